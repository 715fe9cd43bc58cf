import logging
from fastapi import APIRouter, Depends, Request
from typing import Any, Dict, List

from app.api.deps import cache_key, get_cache, get_nasa
from app.core.cache import TTLCache
from app.core.errors import UpstreamError
from app.services.feed import build_feed
from app.services.nasa_api import NasaClient

logger = logging.getLogger(__name__)

router = APIRouter()

FEED_TTL = 30


def _days(value: str, default: int) -> int:
    """Blank, zero or non-numeric values fall back to the default window."""
    try:
        days = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return days if days > 0 else default


@router.get("")
@router.get("/", include_in_schema=False)
async def get_feed(
    request: Request,
    flares_days: str = "",
    cmes_days: str = "",
    gst_days: str = "",
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> List[Dict[str, Any]]:
    """
    Merged feed of recent flares, CMEs, storms, today's NEOs and APOD.
    Newest first. Never fails on upstream "not found".
    """
    key = cache_key(request)
    hit = cache.get(key)
    if hit is not None:
        return hit

    try:
        items = await build_feed(
            nasa,
            flares_days=_days(flares_days, 2),
            cmes_days=_days(cmes_days, 3),
            gst_days=_days(gst_days, 5),
        )
    except UpstreamError as e:
        if e.status == 404:
            logger.warning(f"Feed upstream not found, answering empty feed: {e}")
            return []
        raise

    cache.set(key, items, FEED_TTL)
    return items

from fastapi import APIRouter, Depends, Request
from typing import Any, Optional

from app.api.deps import cache_key, cached, get_cache, get_nasa
from app.core.cache import TTLCache
from app.services.nasa_api import NasaClient

router = APIRouter()


@router.get("/feed")
async def get_neo_feed(
    request: Request,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    """NeoWs feed, defaulting to the last 7 days."""
    return await cached(
        cache, cache_key(request), 60,
        lambda: nasa.get_neo_feed(start_date=start_date, end_date=end_date),
    )


@router.get("/today")
async def get_neo_today(
    request: Request,
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    return await cached(cache, cache_key(request), 30, nasa.get_neo_today)


@router.get("/{neo_id}")
async def get_neo(
    neo_id: str,
    request: Request,
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    """Single asteroid lookup. Orbital data barely changes, so cached for 10 minutes."""
    return await cached(cache, cache_key(request), 600, lambda: nasa.get_neo_lookup(neo_id))

import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from typing import Any, Optional

from app.api.deps import get_cache, get_nasa
from app.core.cache import TTLCache
from app.core.errors import UpstreamError
from app.services.nasa_api import NasaClient

logger = logging.getLogger(__name__)

router = APIRouter()

# Andromeda, known to have an image
FALLBACK_APOD_DATE = "2024-09-30"
APOD_TTL = 30 * 60


@router.get("")
@router.get("/", include_in_schema=False)
async def get_apod(
    date: Optional[str] = None,
    hd: str = "false",
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    """
    Astronomy Picture of the Day, as returned by NASA.

    date: YYYY-MM-DD, defaults to today (UTC).
    hd:   "true" requests the HD image URL, anything else is ignored.
    """
    hd_image = hd.lower() == "true"
    key = f"apod:{date or 'default'}:{str(hd_image).lower()}"
    hit = cache.get(key)
    if hit is not None:
        return hit

    try:
        try:
            data = await nasa.get_apod(date=date, hd=hd_image)
        except UpstreamError as e:
            if e.status not in (400, 404):
                raise
            logger.warning(f"APOD unavailable for {date or 'today'} ({e.status}), using {FALLBACK_APOD_DATE}")
            data = await nasa.get_apod(date=FALLBACK_APOD_DATE, hd=hd_image)
    except UpstreamError as e:
        if e.status == 404:
            return JSONResponse(status_code=404, content={"error": "APOD not found for the requested date"})
        raise

    cache.set(key, data, APOD_TTL)
    return data

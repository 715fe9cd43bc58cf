from fastapi import APIRouter, Depends, Query, Request
from typing import Any, Optional

from app.api.deps import MAX_DAYS, cache_key, cached, get_cache, get_nasa
from app.core.cache import TTLCache
from app.core.errors import MissingDateRangeError
from app.services.nasa_api import NasaClient

router = APIRouter()

SHORT_TTL = 30
MEDIUM_TTL = 60


def _require_dates(start_date: Optional[str], end_date: Optional[str]) -> None:
    if not start_date or not end_date:
        raise MissingDateRangeError()


@router.get("/flares")
async def get_flares(
    request: Request,
    days: int = Query(2, ge=1, le=MAX_DAYS),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    """Solar flares for the last `days` days. Cached for 30 seconds."""
    return await cached(cache, cache_key(request), SHORT_TTL, lambda: nasa.get_flares(days=days))


@router.get("/flares-range")
async def get_flares_range(
    request: Request,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    """Solar flares for an explicit date range."""
    _require_dates(startDate, endDate)
    return await cached(
        cache, cache_key(request), SHORT_TTL,
        lambda: nasa.get_flares(start_date=startDate, end_date=endDate),
    )


@router.get("/cmes")
async def get_cmes(
    request: Request,
    days: int = Query(3, ge=1, le=MAX_DAYS),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    return await cached(cache, cache_key(request), SHORT_TTL, lambda: nasa.get_cmes(days=days))


@router.get("/gst")
async def get_geomagnetic_storms(
    request: Request,
    days: int = Query(5, ge=1, le=MAX_DAYS),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    return await cached(cache, cache_key(request), MEDIUM_TTL, lambda: nasa.get_geomagnetic_storms(days=days))


@router.get("/hss")
async def get_hss(
    request: Request,
    days: int = Query(5, ge=1, le=MAX_DAYS),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    return await cached(cache, cache_key(request), MEDIUM_TTL, lambda: nasa.get_hss(days=days))


@router.get("/ips")
async def get_ips(
    request: Request,
    days: int = Query(5, ge=1, le=MAX_DAYS),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    return await cached(cache, cache_key(request), MEDIUM_TTL, lambda: nasa.get_ips(days=days))


@router.get("/rbe")
async def get_rbe(
    request: Request,
    days: int = Query(5, ge=1, le=MAX_DAYS),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    return await cached(cache, cache_key(request), MEDIUM_TTL, lambda: nasa.get_rbe(days=days))


@router.get("/sep")
async def get_sep(
    request: Request,
    days: int = Query(5, ge=1, le=MAX_DAYS),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    return await cached(cache, cache_key(request), MEDIUM_TTL, lambda: nasa.get_sep(days=days))


@router.get("/wsa-enlil")
async def get_wsa_enlil(
    request: Request,
    days: int = Query(7, ge=1, le=MAX_DAYS),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    """WSA-Enlil solar wind model runs."""
    return await cached(cache, cache_key(request), MEDIUM_TTL, lambda: nasa.get_wsa_enlil(days=days))


@router.get("/cme-analysis")
async def get_cme_analysis(
    request: Request,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    mostAccurateOnly: bool = False,
    speed: Optional[str] = None,
    halfAngle: Optional[str] = None,
    catalog: Optional[str] = None,
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    _require_dates(startDate, endDate)
    return await cached(
        cache, cache_key(request), MEDIUM_TTL,
        lambda: nasa.get_cme_analysis(
            start_date=startDate,
            end_date=endDate,
            most_accurate_only=mostAccurateOnly,
            speed=speed,
            half_angle=halfAngle,
            catalog=catalog,
        ),
    )


@router.get("/notifications")
async def get_notifications(
    request: Request,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    type: Optional[str] = None,
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    _require_dates(startDate, endDate)
    return await cached(
        cache, cache_key(request), MEDIUM_TTL,
        lambda: nasa.get_notifications(start_date=startDate, end_date=endDate, type=type or "all"),
    )


@router.get("/mpc")
async def get_mpc(
    request: Request,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    """Magnetopause crossings."""
    _require_dates(startDate, endDate)
    return await cached(
        cache, cache_key(request), MEDIUM_TTL,
        lambda: nasa.get_mpc(start_date=startDate, end_date=endDate),
    )

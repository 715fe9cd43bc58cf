"""
Analytics API Endpoints

Provides REST endpoints for:
- DONKI activity overview across every event category
- Chart-ready statistics for a single event category
"""

import logging
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Any

from app.api.deps import MAX_DAYS, get_cache, get_nasa
from app.core.cache import TTLCache
from app.core.errors import UpstreamError
from app.services.donki_analytics import analyze_events, build_overview, normalize_event_type
from app.services.fanout import gather_settled
from app.services.nasa_api import NasaClient

logger = logging.getLogger(__name__)

router = APIRouter()

OVERVIEW_TTL = 5 * 60
CHART_TTL = 3 * 60


@router.get("/overview")
async def get_overview(
    days: int = Query(7, ge=1, le=MAX_DAYS, description="Look-back window in days"),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    """
    Activity overview for every DONKI category.

    Categories are fetched in parallel; a category whose fetch fails is
    left out of `events` and counts as zero in the summary.
    """
    key = f"analytics_overview_{days}"
    hit = cache.get(key)
    if hit is not None:
        return hit

    try:
        results = await gather_settled({
            "flares": nasa.get_flares(days=days),
            "cmes": nasa.get_cmes(days=days),
            "geomagneticStorms": nasa.get_geomagnetic_storms(days=days),
            "hss": nasa.get_hss(days=days),
            "ips": nasa.get_ips(days=days),
            "rbe": nasa.get_rbe(days=days),
            "sep": nasa.get_sep(days=days),
        })
        overview = build_overview(results, days)
    except Exception as e:
        logger.exception("Analytics overview failed")
        return JSONResponse(status_code=500, content={"error": "Analytics overview failed", "message": str(e)})

    cache.set(key, overview, OVERVIEW_TTL)
    return overview


@router.get("/chart-data/{event_type}")
async def get_chart_data(
    event_type: str,
    days: int = Query(7, ge=1, le=MAX_DAYS),
    nasa: NasaClient = Depends(get_nasa),
    cache: TTLCache = Depends(get_cache),
) -> Any:
    """
    Statistics for one category. `event_type` accepts aliases such as
    flare, CME, gst or geomagnetic-storms.
    """
    canonical = normalize_event_type(event_type)

    key = f"chart_{canonical}_{days}"
    hit = cache.get(key)
    if hit is not None:
        return hit

    try:
        events = await nasa.fetch_category(canonical, days=days)
    except UpstreamError as e:
        logger.error(f"Chart data for {canonical} failed: {e}")
        return JSONResponse(status_code=500, content={"error": "Chart data failed", "message": str(e)})

    report = analyze_events(events, canonical)
    cache.set(key, report, CHART_TTL)
    return report

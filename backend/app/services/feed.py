"""
Merged activity feed.

Pulls flares, CMEs, geomagnetic storms, today's NEOs and today's APOD in
parallel and flattens them into one list of
{type, time, title, payload} items, newest first.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from app.services.event_time import parse_event_time
from app.services.fanout import gather_settled
from app.services.nasa_api import NasaClient

logger = logging.getLogger(__name__)


def to_item(type: str, time: Optional[str], title: str, payload: Any) -> Dict[str, Any]:
    return {"type": type, "time": time, "title": title, "payload": payload}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def flatten_neos(neo_feed: Any) -> List[Dict[str, Any]]:
    """NeoWs groups objects by date; return them as one flat list."""
    if not isinstance(neo_feed, dict):
        return []
    by_date = neo_feed.get("near_earth_objects") or {}
    flat: List[Dict[str, Any]] = []
    for objects in by_date.values():
        flat.extend(_as_list(objects))
    return flat


def _neo_time(neo: Dict[str, Any]) -> Optional[str]:
    approaches = neo.get("close_approach_data") or []
    if not approaches:
        return None
    first = approaches[0] or {}
    return first.get("close_approach_date_full") or first.get("close_approach_date")


def normalize_feed(
    flares: Iterable[Dict[str, Any]],
    cmes: Iterable[Dict[str, Any]],
    storms: Iterable[Dict[str, Any]],
    neos: Iterable[Dict[str, Any]],
    apod: Optional[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    if apod:
        items.append(to_item("APOD", apod.get("date"), f"APOD: {apod.get('title')}", apod))
    for f in flares:
        when = f.get("beginTime") or f.get("peakTime") or f.get("endTime")
        items.append(to_item("FLR", when, f"Solar flare {f.get('classType') or ''}".rstrip(), f))
    for c in cmes:
        items.append(to_item("CME", c.get("startTime"), "Coronal mass ejection (CME)", c))
    for g in storms:
        items.append(to_item("GST", g.get("startTime"), "Geomagnetic storm", g))
    for o in neos:
        items.append(to_item("NEO", _neo_time(o), f"Asteroid {o.get('name')}", o))

    # Items without a parseable time are dropped, not sorted last
    timed = []
    for item in items:
        parsed = parse_event_time(item["time"])
        if parsed is None:
            continue
        timed.append((parsed, item))

    # sort() is stable, so equal times keep upstream order
    timed.sort(key=lambda pair: pair[0], reverse=True)
    return [item for _, item in timed]


async def build_feed(
    nasa: NasaClient,
    flares_days: int = 2,
    cmes_days: int = 3,
    gst_days: int = 5,
) -> List[Dict[str, Any]]:
    results = await gather_settled({
        "flares": nasa.get_flares(days=flares_days),
        "cmes": nasa.get_cmes(days=cmes_days),
        "gst": nasa.get_geomagnetic_storms(days=gst_days),
        "neo_today": nasa.get_neo_today(),
        "apod": nasa.get_apod(),
    })

    apod = results["apod"].value_or(None)
    items = normalize_feed(
        flares=[f for f in _as_list(results["flares"].value_or([])) if isinstance(f, dict)],
        cmes=[c for c in _as_list(results["cmes"].value_or([])) if isinstance(c, dict)],
        storms=[g for g in _as_list(results["gst"].value_or([])) if isinstance(g, dict)],
        neos=[o for o in flatten_neos(results["neo_today"].value_or({})) if isinstance(o, dict)],
        apod=apod if isinstance(apod, dict) else None,
    )
    logger.info(f"Feed built with {len(items)} items")
    return items

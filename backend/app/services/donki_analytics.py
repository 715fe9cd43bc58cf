"""
DONKI Analytics Service

Turns raw DONKI event lists into chart-ready reports:
- per-category counts and time range
- flare class histogram and intensity buckets
- CME speed statistics and catalog histogram
- geomagnetic Kp statistics and storm severity buckets
- an overview summary across all categories
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.core.errors import UnknownEventTypeError
from app.services.event_time import parse_event_time, to_iso_z
from app.services.fanout import Settled

# Rates are always reported against a one-week window, whatever the query asked for.
AVERAGE_WINDOW_DAYS = 7

EVENT_TYPE_ALIASES = {
    "flare": "flares",
    "flares": "flares",
    "cme": "cmes",
    "cmes": "cmes",
    "gst": "geomagneticstorms",
    "geomagneticstorm": "geomagneticstorms",
    "geomagneticstorms": "geomagneticstorms",
    "geomagnetic-storms": "geomagneticstorms",
    "hss": "hss",
    "ips": "ips",
    "rbe": "rbe",
    "sep": "sep",
}

# Candidate time fields, highest priority first
EVENT_TIME_FIELDS = ("eventTime", "beginTime", "peakTime", "endTime", "startTime", "time", "date")

# Overview section name -> analysis type, in fan-out order
OVERVIEW_CATEGORIES = {
    "flares": "flares",
    "cmes": "cmes",
    "geomagneticStorms": "geomagneticStorms",
    "hss": "hss",
    "ips": "ips",
    "rbe": "rbe",
    "sep": "sep",
}


def normalize_event_type(event_type: str) -> str:
    """Map a user supplied event type onto its canonical category."""
    canonical = EVENT_TYPE_ALIASES.get(str(event_type or "").lower())
    if canonical is None:
        raise UnknownEventTypeError(event_type)
    return canonical


def extract_event_date(event: Dict[str, Any]) -> Optional[datetime]:
    for field in EVENT_TIME_FIELDS:
        parsed = parse_event_time(event.get(field))
        if parsed:
            return parsed
    return None


def _number_stats(values: List[float]) -> Optional[Dict[str, float]]:
    if not values:
        return None
    return {
        "average": sum(values) / len(values),
        "min": min(values),
        "max": max(values),
        "total": len(values),
    }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def analyze_flares(flares: List[Dict[str, Any]]) -> Dict[str, Any]:
    class_counts: Dict[str, int] = {}
    intensity = {"low": 0, "medium": 0, "high": 0}

    for flare in flares:
        class_type = flare.get("classType")
        if not class_type:
            continue
        class_key = class_type[0]
        class_counts[class_key] = class_counts.get(class_key, 0) + 1
        if class_key == "C":
            intensity["low"] += 1
        elif class_key == "M":
            intensity["medium"] += 1
        elif class_key == "X":
            intensity["high"] += 1

    # max() keeps the first key seen on ties
    most_common = max(class_counts, key=class_counts.get) if class_counts else None

    return {
        "classCounts": class_counts,
        "intensityDistribution": intensity,
        "averagePerDay": len(flares) / AVERAGE_WINDOW_DAYS,
        "mostCommonClass": most_common,
    }


def analyze_cmes(cmes: List[Dict[str, Any]]) -> Dict[str, Any]:
    speeds: List[float] = []
    catalogs: Dict[str, int] = {}

    for cme in cmes:
        analyses = cme.get("cmeAnalyses") or []
        if analyses and isinstance(analyses[0], dict):
            speed = analyses[0].get("speed")
            if speed and _is_number(speed):
                speeds.append(speed)
        catalog = cme.get("catalog")
        if catalog:
            catalogs[catalog] = catalogs.get(catalog, 0) + 1

    return {
        "catalogCounts": catalogs,
        "speedStatistics": _number_stats(speeds),
        "averagePerDay": len(cmes) / AVERAGE_WINDOW_DAYS,
    }


def classify_kp(kp: float) -> Optional[str]:
    """NOAA G-scale bucket for a single Kp reading, None below storm level."""
    if kp >= 9:
        return "extreme"
    if kp >= 8:
        return "severe"
    if kp >= 7:
        return "strong"
    if kp >= 6:
        return "moderate"
    if kp >= 5:
        return "minor"
    return None


def analyze_geomagnetic_storms(storms: List[Dict[str, Any]]) -> Dict[str, Any]:
    kp_indices: List[float] = []
    for storm in storms:
        for reading in storm.get("allKpIndex") or []:
            kp = reading.get("kpIndex")
            if _is_number(kp):
                kp_indices.append(kp)

    intensity = {"minor": 0, "moderate": 0, "strong": 0, "severe": 0, "extreme": 0}
    for kp in kp_indices:
        bucket = classify_kp(kp)
        if bucket:
            intensity[bucket] += 1

    return {
        "kpStatistics": _number_stats(kp_indices),
        "stormIntensity": intensity,
        "averagePerDay": len(storms) / AVERAGE_WINDOW_DAYS,
    }


def analyze_counts(events: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"total": len(events), "averagePerDay": len(events) / AVERAGE_WINDOW_DAYS}


_ANALYZERS = {
    "flares": analyze_flares,
    "cmes": analyze_cmes,
    "geomagneticstorms": analyze_geomagnetic_storms,
    "hss": analyze_counts,
    "ips": analyze_counts,
    "rbe": analyze_counts,
    "sep": analyze_counts,
}


def analyze_events(events: Any, event_type: str) -> Dict[str, Any]:
    """Build an AnalyticsReport for one category."""
    if not isinstance(events, list) or not events:
        return {"eventType": event_type, "total": 0, "timeRange": None, "statistics": {}}

    dates = [d for d in (extract_event_date(ev) for ev in events if isinstance(ev, dict)) if d]
    time_range = None
    if dates:
        time_range = {"start": to_iso_z(min(dates)), "end": to_iso_z(max(dates))}

    analyzer = _ANALYZERS.get(event_type.lower())
    dict_events = [ev for ev in events if isinstance(ev, dict)]

    return {
        "eventType": event_type,
        "total": len(events),
        "timeRange": time_range,
        "statistics": analyzer(dict_events) if analyzer else {},
        "events": events,
    }


def activity_level(total_events: int, days: int) -> str:
    daily_average = total_events / days
    if daily_average > 10:
        return "high"
    if daily_average > 5:
        return "medium"
    return "low"


def build_overview(results: Dict[str, Settled], days: int) -> Dict[str, Any]:
    """
    Merge settled per-category fetches into the overview payload.

    Categories whose fetch failed are left out and count as zero.
    """
    events: Dict[str, Any] = {}
    total_events = 0
    for section, analysis_type in OVERVIEW_CATEGORIES.items():
        outcome = results.get(section)
        if outcome is None or not outcome.ok:
            continue
        report = analyze_events(outcome.value, analysis_type)
        events[section] = report
        total_events += report["total"]

    most_active = None
    max_events = 0
    for section, report in events.items():
        if report["total"] > max_events:
            max_events = report["total"]
            most_active = section

    return {
        "timeRange": {
            "days": days,
            "generated": to_iso_z(datetime.now(timezone.utc)),
        },
        "events": events,
        "summary": {
            "totalEvents": total_events,
            "mostActiveType": most_active,
            "activityLevel": activity_level(total_events, days),
        },
    }

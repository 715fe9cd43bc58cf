from datetime import datetime, timezone
from typing import Any, Optional

# NeoWs close_approach_date_full looks like "2024-May-01 12:34"
_FALLBACK_FORMATS = ("%Y-%b-%d %H:%M", "%Y-%b-%d")


def parse_event_time(value: Any) -> Optional[datetime]:
    """Parse an upstream timestamp into an aware UTC datetime, None if unparseable."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    parsed = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso_z(dt: datetime) -> str:
    """Render as 2024-05-01T12:34:00.000Z."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"

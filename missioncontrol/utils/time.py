"""Time helpers with timezone-aware UTC defaults."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return timezone-aware current UTC datetime."""
    return datetime.now(UTC)


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO timestamp or datetime into aware UTC; None when unknown."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def time_ago(value: datetime | None, now: datetime) -> str:
    """Short relative age label: '<1h', '5h', '3d'; 'unknown' without a date."""
    if value is None:
        return "unknown"
    hours = int((now - value).total_seconds() // 3600)
    if hours < 1:
        return "<1h"
    if hours < 24:
        return f"{hours}h"
    return f"{hours // 24}d"

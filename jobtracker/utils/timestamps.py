"""UTC timestamp helpers shared by the domain and persistence layers.

Application timestamps are stored as ISO 8601 strings with microseconds and a
'Z' suffix (e.g. ``2026-10-19T08:30:00.000000Z``) so that lexical order in the
database matches chronological order.
"""

from datetime import datetime, timezone
from typing import Optional

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Example:
        >>> utc_now().tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware ones are converted.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime for database storage.

    Example:
        >>> format_timestamp(datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc))
        '2026-10-19T08:30:00.000000Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return None
    return dt_utc.strftime(STORAGE_FORMAT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp back into an aware UTC datetime.

    Accepts values with or without microseconds. Empty values give None.

    Raises:
        ValueError: If the value is not a recognised timestamp
    """
    if not value:
        return None

    trimmed = value.rstrip("Z")
    try:
        dt = datetime.strptime(trimmed, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(trimmed, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def format_date(dt: datetime) -> str:
    """Calendar date (YYYY-MM-DD) of a datetime in UTC, used in import notes."""
    return ensure_utc(dt).date().isoformat()

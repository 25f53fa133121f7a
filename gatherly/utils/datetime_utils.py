"""
Timezone-aware datetime utilities.

Meeting times are stored as wall-clock strings ("05:00 PM") plus an IANA zone.
These helpers turn such pairs into comparable UTC instants.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# UTC timezone constant
UTC = timezone.utc

_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Returns:
        datetime: Current UTC time with tzinfo set to UTC
    """
    return datetime.now(UTC)


def parse_clock_time(value: str) -> time:
    """
    Parse a wall-clock string into a time.

    Accepts 12-hour strings ("05:00 PM", "12:00 AM") and 24-hour strings
    ("17:00"). 12:00 AM is midnight and 12:00 PM is noon.

    Raises:
        ValueError: If the string is not a valid clock time
    """
    match = _CLOCK_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time string: {value!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    period = match.group(3)
    if minutes > 59:
        raise ValueError(f"Invalid minutes in time string: {value!r}")

    if period:
        if not 1 <= hours <= 12:
            raise ValueError(f"Invalid 12-hour time string: {value!r}")
        period = period.upper()
        if period == "PM" and hours != 12:
            hours += 12
        if period == "AM" and hours == 12:
            hours = 0
    elif hours > 23:
        raise ValueError(f"Invalid 24-hour time string: {value!r}")

    return time(hours, minutes)


def format_clock_time(value: time) -> str:
    """Format a time as a 12-hour clock string, e.g. "05:00 PM"."""
    return value.strftime("%I:%M %p")


def get_zone(name: str) -> ZoneInfo:
    """
    Resolve an IANA timezone name.

    Raises:
        ValueError: If the zone is unknown
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc


def local_to_utc(day: date, clock: str, tz_name: str) -> datetime:
    """
    Convert a local calendar date + wall-clock string in a zone to a UTC instant.

    Example:
        >>> local_to_utc(date(2025, 3, 12), "06:00 PM", "America/Denver")
        datetime(2025, 3, 13, 0, 0, tzinfo=timezone.utc)
    """
    local = datetime.combine(day, parse_clock_time(clock), tzinfo=get_zone(tz_name))
    return local.astimezone(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Args:
        dt: datetime to convert (can be None, naive, or timezone-aware)

    Returns:
        Optional[datetime]: UTC timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert to a naive UTC datetime, the form stored in DateTime columns."""
    return ensure_utc(dt).replace(tzinfo=None)

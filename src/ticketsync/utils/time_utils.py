"""Time-of-day parsing and proximity helpers."""

import re
from datetime import datetime, time
from typing import Any, Optional

DEFAULT_TIME_BUFFER_MINUTES = 30

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_LOOSE_TIME_RE = re.compile(r"(\d{1,2})[:.]?(\d{2})?\s*(am|pm|a\.m\.|p\.m\.)?", re.IGNORECASE)


def minutes_since_midnight(value: time) -> int:
    """Return the number of minutes from midnight to the given time."""
    return value.hour * 60 + value.minute


def is_time_close(
    first: Optional[time],
    second: Optional[time],
    buffer_minutes: int = DEFAULT_TIME_BUFFER_MINUTES,
) -> bool:
    """Check whether two times of day fall within buffer_minutes of each other.

    Missing times never match. Times are compared within the same day, so
    23:50 and 00:10 are not considered close.
    """
    if first is None or second is None:
        return False
    difference = abs(minutes_since_midnight(first) - minutes_since_midnight(second))
    return difference <= buffer_minutes


def to_24_hour(hour: int, meridiem: Optional[str]) -> int:
    """Convert a 12-hour clock hour to 24-hour form.

    Args:
        hour: Hour as written
        meridiem: "am"/"pm" (dots and case ignored), or None when absent

    Returns:
        Hour in the range used by datetime.time
    """
    if not meridiem:
        return hour
    meridiem = meridiem.replace(".", "").lower()
    if meridiem == "pm" and hour < 12:
        return hour + 12
    if meridiem == "am" and hour == 12:
        return 0
    return hour


def build_time(hour: int, minute: int = 0) -> Optional[time]:
    """Return a time, or None when hour/minute are out of range."""
    if 0 <= hour <= 23 and 0 <= minute <= 59:
        return time(hour, minute)
    return None


def parse_time_value(value: Any) -> Optional[time]:
    """Parse a time of day from loosely formatted metadata.

    Accepts time objects, "20:00", "8pm", "8:30 p.m.", "0830" and similar.

    Returns:
        Parsed time, or None when nothing usable is found
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.time().replace(second=0, microsecond=0)
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    text = str(value).strip()
    if not text:
        return None

    match = _CLOCK_RE.match(text)
    if match:
        return build_time(int(match.group(1)), int(match.group(2)))

    match = _LOOSE_TIME_RE.search(text)
    if match:
        hour = to_24_hour(int(match.group(1)), match.group(3))
        minute = int(match.group(2)) if match.group(2) else 0
        return build_time(hour, minute)

    return None

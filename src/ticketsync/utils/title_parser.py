"""Day-of-week and time-of-day heuristics for free-text product titles."""

import re
from datetime import date, time, timedelta
from enum import IntEnum
from typing import Optional

from ticketsync.utils.time_utils import build_time, to_24_hour


class DayOfWeek(IntEnum):
    """Weekday numbered like date.weekday()."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def from_name(cls, name: str) -> "DayOfWeek":
        """Look up a weekday by (case-insensitive) English name.

        Raises:
            ValueError: If the name is not a weekday
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown day of week: '{name}'")


# Search order for titles naming more than one day.
DAY_SEARCH_ORDER = (
    DayOfWeek.SUNDAY,
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
)

# "8pm", "8:00pm", "8 PM", "7.30pm"
_MERIDIEM_RE = re.compile(r"(\d{1,2})[ :.]?([0-5][0-9])?\s*(am|pm)", re.IGNORECASE)
# "20:00", "8.00"
_CLOCK_RE = re.compile(r"(\d{1,2})[:.](\d{2})")
# "8 o'clock", "8 oclock"
_OCLOCK_RE = re.compile(r"(\d{1,2})\s*o'?clock", re.IGNORECASE)

DEFAULT_UPCOMING_COUNT = 8


def extract_day(title: str) -> Optional[DayOfWeek]:
    """Find a weekday name anywhere in a title.

    Matching is a plain substring search with no word boundaries, so a word
    that merely contains a day name also matches.
    """
    lowered = title.lower()
    for day in DAY_SEARCH_ORDER:
        if day.name.lower() in lowered:
            return day
    return None


def extract_time(title: str) -> Optional[time]:
    """Find a time of day in a title.

    Patterns are tried in a fixed order (12-hour with am/pm, 24-hour clock,
    "o'clock") and the first one producing a valid time wins.
    """
    match = _MERIDIEM_RE.search(title)
    if match:
        hour = to_24_hour(int(match.group(1)), match.group(3))
        minute = int(match.group(2)) if match.group(2) else 0
        parsed = build_time(hour, minute)
        if parsed is not None:
            return parsed

    match = _CLOCK_RE.search(title)
    if match:
        parsed = build_time(int(match.group(1)), int(match.group(2)))
        if parsed is not None:
            return parsed

    match = _OCLOCK_RE.search(title)
    if match:
        return build_time(int(match.group(1)), 0)

    return None


def upcoming_dates_for_day(
    day: DayOfWeek,
    count: int = DEFAULT_UPCOMING_COUNT,
    today: Optional[date] = None,
) -> list[date]:
    """Return the next count dates falling on day.

    When today is that day, a single requested date is today itself; for
    longer lists the first date is one week out.
    """
    if count <= 0:
        return []
    if today is None:
        today = date.today()

    days_ahead = (int(day) - today.weekday()) % 7
    if days_ahead == 0:
        if count == 1:
            return [today]
        days_ahead = 7

    first = today + timedelta(days=days_ahead)
    return [first + timedelta(weeks=week) for week in range(count)]


def common_times() -> list[tuple[str, str]]:
    """Half-hourly (value, label) pairs from 08:00 to 23:30."""
    times = []
    for hour in range(8, 24):
        for minute in (0, 30):
            value = time(hour, minute)
            label = value.strftime("%I:%M %p").lstrip("0")
            times.append((value.strftime("%H:%M"), label))
    return times

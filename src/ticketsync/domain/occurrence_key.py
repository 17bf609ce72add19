"""Canonical occurrence keys.

An occurrence key is ``YYYY-MM-DD`` for a whole-day occurrence or
``YYYY-MM-DD_HH:MM`` when a time of day is known. Mapping and ledger keys
are always built and split here.
"""

from datetime import date, datetime, time
from typing import Optional

KEY_SEPARATOR = "_"
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def format_time(value: time) -> str:
    """Format a time of day as 24-hour HH:MM."""
    return value.strftime(TIME_FORMAT)


def occurrence_key(occurrence_date: date, occurrence_time: Optional[time] = None) -> str:
    """Build the key for an occurrence."""
    key = occurrence_date.strftime(DATE_FORMAT)
    if occurrence_time is not None:
        key = f"{key}{KEY_SEPARATOR}{format_time(occurrence_time)}"
    return key


def date_prefix(occurrence_date: date) -> str:
    """Prefix shared by every timed key on the given date."""
    return occurrence_key(occurrence_date) + KEY_SEPARATOR


def split_occurrence_key(key: str) -> tuple[date, Optional[time]]:
    """Split a key back into its date and optional time.

    Raises:
        ValueError: If the key is not a valid occurrence key
    """
    date_part, _, time_part = key.partition(KEY_SEPARATOR)
    occurrence_date = datetime.strptime(date_part, DATE_FORMAT).date()
    if not time_part:
        return occurrence_date, None
    return occurrence_date, datetime.strptime(time_part, TIME_FORMAT).time()


def ledger_entry_key(
    product_id: int,
    occurrence_date: Optional[date] = None,
    occurrence_time: Optional[time] = None,
) -> str:
    """Build the ledger key for a product sale.

    Sales without an occurrence date are keyed by the bare product id.
    """
    if occurrence_date is None:
        return str(product_id)
    return f"{product_id}{KEY_SEPARATOR}{occurrence_key(occurrence_date, occurrence_time)}"

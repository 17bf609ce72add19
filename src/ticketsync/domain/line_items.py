"""Occurrence date/time extraction from order line items."""

import logging
import re
from datetime import date, time
from typing import Any, Mapping, Optional

from ticketsync.domain.collaborators import CatalogService
from ticketsync.domain.entities import LineItem
from ticketsync.utils.date_parser import parse_date_value
from ticketsync.utils.time_utils import parse_time_value

logger = logging.getLogger(__name__)

# Keys written by event ticketing plugins, checked first.
EVENT_PLUGIN_DATE_KEYS = (
    "WooCommerceEventsDate",
    "WooCommerceEventsTicketDate",
    "WooCommerceEventsProductDate",
    "_event_date",
    "_event_start_date",
    "fooevents_date",
    "fooevents_ticket_date",
)

BOOKING_DATE_KEYS = (
    "event_date",
    "ticket_date",
    "booking_date",
    "pa_date",
    "date",
    "_event_date",
    "_booking_date",
    "Event Date",
    "Ticket Date",
    "Show Date",
    "Performance Date",
)

BOOKING_TIME_KEYS = (
    "event_time",
    "ticket_time",
    "booking_time",
    "pa_time",
    "time",
    "_event_time",
    "_booking_time",
    "Event Time",
    "Ticket Time",
    "Show Time",
    "Performance Time",
)

_DATE_LIKE_KEY_RE = re.compile(r"(date|day|event|show|performance|time)", re.IGNORECASE)
_DATE_LIKE_ATTRIBUTE_RE = re.compile(r"(date|day|event|show|performance)", re.IGNORECASE)
_TIME_LIKE_KEY_RE = re.compile(r"(time|hour|clock)", re.IGNORECASE)


def find_date_in_meta(meta: Mapping[str, Any]) -> Optional[date]:
    """Find a booking date in line item metadata.

    Known keys are tried first, then any key whose name looks date-related.
    """
    for key in EVENT_PLUGIN_DATE_KEYS + BOOKING_DATE_KEYS:
        parsed = parse_date_value(meta.get(key))
        if parsed is not None:
            return parsed

    for key, value in meta.items():
        if _DATE_LIKE_KEY_RE.search(str(key)):
            parsed = parse_date_value(value)
            if parsed is not None:
                return parsed
    return None


def find_time_in_meta(meta: Mapping[str, Any]) -> Optional[time]:
    """Find a booking time in line item metadata."""
    for key in BOOKING_TIME_KEYS:
        parsed = parse_time_value(meta.get(key))
        if parsed is not None:
            return parsed

    for key, value in meta.items():
        if _TIME_LIKE_KEY_RE.search(str(key)):
            parsed = parse_time_value(value)
            if parsed is not None:
                return parsed
    return None


def extract_occurrence(
    item: LineItem, catalog: Optional[CatalogService] = None
) -> tuple[Optional[date], Optional[time]]:
    """Work out which occurrence a line item was sold for.

    Falls back to the variant product's attributes when the item metadata
    names no date.

    Returns:
        (occurrence_date, occurrence_time); either may be None
    """
    occurrence_date = find_date_in_meta(item.meta)
    occurrence_time = find_time_in_meta(item.meta)

    if occurrence_date is None and item.variation_id and catalog is not None:
        variation = catalog.get_product(item.variation_id)
        if variation is not None:
            for name, value in variation.attributes.items():
                if occurrence_date is None and _DATE_LIKE_ATTRIBUTE_RE.search(name):
                    occurrence_date = parse_date_value(value)
                elif occurrence_time is None and _TIME_LIKE_KEY_RE.search(name):
                    occurrence_time = parse_time_value(value)
        else:
            logger.debug("Variation %s of product %s not found", item.variation_id, item.product_id)

    return occurrence_date, occurrence_time

"""Occurrence discovery for catalog products.

A product's occurrences come from the first source that yields anything:
its explicit event schedule, generic booking-slot metadata, a weekday and
time named in its title, a same-weekday lookup on the remote ticketing
service, and finally a placeholder week of dates.
"""

import json
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Iterable, Mapping, Optional

from ticketsync.domain.collaborators import CatalogService, TicketingService
from ticketsync.domain.entities import Occurrence, OccurrenceSource, Product
from ticketsync.domain.errors import DomainError
from ticketsync.domain.matching import MatchEngine
from ticketsync.utils.date_parser import parse_date_value
from ticketsync.utils.similarity import SimilarityFunc, character_similarity
from ticketsync.utils.time_utils import (
    DEFAULT_TIME_BUFFER_MINUTES,
    build_time,
    parse_time_value,
    to_24_hour,
)
from ticketsync.utils.title_parser import (
    DEFAULT_UPCOMING_COUNT,
    extract_day,
    extract_time,
    upcoming_dates_for_day,
)

logger = logging.getLogger(__name__)

FALLBACK_DAYS = 7

# Event schedule metadata
BOOKING_OPTIONS_KEY = "fooevents_bookings_options_serialized"
SINGLE_DATE_KEY = "fooevents_event_date"
SINGLE_TIME_KEY = "fooevents_event_time"
MULTI_DATES_KEY = "fooevents_event_dates"
MULTI_TIMES_KEY = "fooevents_event_times"
SERIALIZED_DATES_KEY = "fooevents_event_dates_serialized"
SERIALIZED_TIMES_KEY = "fooevents_event_times_serialized"
DAY_SLOTS_KEY = "fooevents_event_day_slots"

# Booking-slot metadata, in lookup order
SLOT_TABLE_KEY = "_booking_slots"
AVAILABILITY_KEY = "_wc_booking_availability"
SLOT_LIST_KEYS = ("_product_booking_slots", "_wc_slots", "_event_slots", "_bookings", "_event_dates")


def _decode(value: Any) -> Any:
    """Decode JSON-encoded metadata; other values pass through."""
    if isinstance(value, str) and value.strip()[:1] in ("{", "["):
        return json.loads(value)
    return value


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _sort_key(occurrence: Occurrence) -> tuple[date, time]:
    return (occurrence.date, occurrence.time or time.min)


class OccurrenceDiscoveryService:
    """Service that lists the dated occurrences of a product."""

    def __init__(
        self,
        catalog: CatalogService,
        ticketing: Optional[TicketingService] = None,
        similarity: SimilarityFunc = character_similarity,
        time_buffer_minutes: int = DEFAULT_TIME_BUFFER_MINUTES,
    ):
        """Initialize discovery service.

        Args:
            catalog: Catalog the products are read from
            ticketing: Remote ticketing service for weekday lookups; optional
            similarity: Name similarity scorer used by weekday lookups
            time_buffer_minutes: Tolerance when comparing title and event times
        """
        self.catalog = catalog
        self.ticketing = ticketing
        self.similarity = similarity
        self.time_buffer_minutes = time_buffer_minutes

    def discover(
        self,
        product_id: int,
        include_remote: bool = False,
        today: Optional[date] = None,
        infer_from_title: bool = True,
    ) -> list[Occurrence]:
        """List a product's occurrences.

        Sources are never merged: the first one that yields occurrences wins.
        Failures in one source are logged and the next source is tried.

        Args:
            product_id: Product ID
            include_remote: Also try a same-weekday lookup on the ticketing service
            today: Reference date for generated dates (defaults to today)
            infer_from_title: Generate weekly dates from a weekday named in
                the title; when off, titles only drive the remote lookup

        Returns:
            Occurrences; empty only when the product does not exist
        """
        if today is None:
            today = date.today()

        try:
            product = self.catalog.get_product(product_id)
        except DomainError as e:
            logger.error("Could not load product %s: %s", product_id, e)
            return []
        if product is None:
            logger.warning("Product %s not found; no occurrences discovered", product_id)
            return []

        sources: list[tuple[str, Callable[[], list[Occurrence]]]] = [
            ("schedule", lambda: self.from_schedule(product)),
            ("booking slots", lambda: self.from_booking_slots(product)),
        ]
        if infer_from_title:
            sources.append(("title", lambda: self.from_title(product, today)))
        if include_remote and self.ticketing is not None:
            sources.append(("remote weekday lookup", lambda: self.from_remote_weekday(product, today)))

        for label, source in sources:
            try:
                occurrences = source()
            except (DomainError, ValueError, TypeError, AttributeError) as e:
                logger.error(
                    "Skipping %s occurrences for product %s: %s", label, product_id, e
                )
                continue
            if occurrences:
                logger.debug(
                    "Product %s: %d occurrences from %s", product_id, len(occurrences), label
                )
                return occurrences

        return self.fallback(today)

    # Source 1: explicit event schedule
    def from_schedule(self, product: Product) -> list[Occurrence]:
        """Occurrences from the product's event schedule metadata."""
        occurrences = self._from_booking_options(product)
        if not occurrences:
            occurrences = self._from_event_dates(product)
        return sorted(occurrences, key=_sort_key)

    def _from_booking_options(self, product: Product) -> list[Occurrence]:
        options = _decode(product.meta.get(BOOKING_OPTIONS_KEY))
        if not isinstance(options, Mapping):
            return []

        occurrences = []
        for session in options.values():
            if not isinstance(session, Mapping):
                continue
            session_time = self._session_time(session)

            slots = session.get("add_date")
            if isinstance(slots, Mapping):
                # Nested slots: {"add_date": {slot_id: {"date": ..., "stock": ...}}}
                pairs = [
                    (slot.get("date"), slot.get("stock"))
                    for slot in slots.values()
                    if isinstance(slot, Mapping)
                ]
            else:
                # Flat slots: {"<slot>_add_date": ..., "<slot>_stock": ...}
                pairs = [
                    (value, session.get(key.replace("_add_date", "_stock")))
                    for key, value in session.items()
                    if "_add_date" in key and value
                ]

            for raw_date, raw_stock in pairs:
                occurrence_date = parse_date_value(raw_date)
                if occurrence_date is None:
                    continue
                stock = _to_int(raw_stock)
                occurrences.append(
                    Occurrence(
                        date=occurrence_date,
                        time=session_time,
                        inventory=stock if stock is not None else product.stock_quantity,
                        source=OccurrenceSource.SCHEDULE,
                    )
                )
        return occurrences

    @staticmethod
    def _session_time(session: Mapping[str, Any]) -> Optional[time]:
        if session.get("add_time") != "enabled":
            return None
        if session.get("hour") in (None, "") or session.get("minute") in (None, ""):
            return None
        hour = to_24_hour(int(session["hour"]), session.get("period")) % 24
        return build_time(hour, int(session["minute"]))

    def _from_event_dates(self, product: Product) -> list[Occurrence]:
        meta = product.meta
        occurrences = []

        def add(raw_date: Any, raw_time: Any, inventory: Optional[int]) -> None:
            occurrence_date = parse_date_value(raw_date)
            if occurrence_date is not None:
                occurrences.append(
                    Occurrence(
                        date=occurrence_date,
                        time=parse_time_value(raw_time),
                        inventory=inventory,
                        source=OccurrenceSource.SCHEDULE,
                    )
                )

        if meta.get(SINGLE_DATE_KEY):
            add(meta[SINGLE_DATE_KEY], meta.get(SINGLE_TIME_KEY), product.stock_quantity)

        event_dates = _decode(meta.get(MULTI_DATES_KEY))
        if isinstance(event_dates, list):
            event_times = _decode(meta.get(MULTI_TIMES_KEY))
            if not isinstance(event_times, Mapping):
                event_times = {}
            for raw_date in event_dates:
                parsed = parse_date_value(raw_date)
                raw_time = event_times.get(parsed.isoformat()) if parsed else None
                add(raw_date, raw_time, product.stock_quantity)

        serialized_dates = _decode(meta.get(SERIALIZED_DATES_KEY))
        if isinstance(serialized_dates, list):
            serialized_times = _decode(meta.get(SERIALIZED_TIMES_KEY))
            if not isinstance(serialized_times, list):
                serialized_times = []
            for index, raw_date in enumerate(serialized_dates):
                raw_time = serialized_times[index] if index < len(serialized_times) else None
                add(raw_date, raw_time, product.stock_quantity)

        day_slots = _decode(meta.get(DAY_SLOTS_KEY))
        if isinstance(day_slots, Mapping):
            for raw_date, slot in day_slots.items():
                slot = slot if isinstance(slot, Mapping) else {}
                add(raw_date, slot.get("time"), _to_int(slot.get("stock")))

        return occurrences

    # Source 2: booking slots
    def from_booking_slots(self, product: Product) -> list[Occurrence]:
        """Occurrences from generic booking-slot metadata.

        Several storage shapes are tried in turn; the first one present wins.
        """
        meta = product.meta

        slot_table = _decode(meta.get(SLOT_TABLE_KEY))
        if isinstance(slot_table, Mapping) and slot_table:
            return self._slots(
                (raw_date, slot.get("time"), slot.get("inventory"))
                for raw_date, slot in slot_table.items()
                if isinstance(slot, Mapping)
            )

        availability = _decode(meta.get(AVAILABILITY_KEY))
        if isinstance(availability, list) and availability:
            return self._slots(self._expand_ranges(availability))

        for key in SLOT_LIST_KEYS:
            slot_list = _decode(meta.get(key))
            if isinstance(slot_list, list) and slot_list:
                return self._slots(self._slot_rows(slot_list))

        if product.variation_ids:
            return self._from_variations(product)
        return []

    def _slots(self, rows: Iterable[tuple[Any, Any, Any]]) -> list[Occurrence]:
        occurrences = []
        for raw_date, raw_time, raw_inventory in rows:
            occurrence_date = parse_date_value(raw_date)
            if occurrence_date is None:
                continue
            occurrences.append(
                Occurrence(
                    date=occurrence_date,
                    time=parse_time_value(raw_time),
                    inventory=_to_int(raw_inventory),
                    source=OccurrenceSource.BOOKING_SLOTS,
                )
            )
        return occurrences

    @staticmethod
    def _expand_ranges(ranges: list[Any]) -> Iterable[tuple[Any, Any, Any]]:
        """Expand availability ranges day by day, both ends included."""
        for slot in ranges:
            if not isinstance(slot, Mapping) or not slot.get("from") or not slot.get("to"):
                continue
            start = parse_date_value(slot["from"])
            end = parse_date_value(slot["to"])
            if start is None or end is None:
                continue
            slot_time = slot.get("from_time") if slot.get("to_time") else None
            current = start
            while current <= end:
                yield current, slot_time, slot.get("qty")
                current += timedelta(days=1)

    @staticmethod
    def _slot_rows(slot_list: list[Any]) -> Iterable[tuple[Any, Any, Any]]:
        for booking in slot_list:
            if not isinstance(booking, Mapping) or "date" not in booking:
                continue
            raw_time = booking.get("time")
            if raw_time is None and "hour" in booking and "minute" in booking:
                raw_time = build_time(int(booking["hour"]), int(booking["minute"]))
            inventory = next(
                (booking[key] for key in ("stock", "inventory", "quantity") if key in booking),
                None,
            )
            yield booking["date"], raw_time, inventory

    def _from_variations(self, product: Product) -> list[Occurrence]:
        occurrences = []
        for variation_id in product.variation_ids:
            variation = self.catalog.get_product(variation_id)
            if variation is None:
                continue
            occurrence_date = None
            occurrence_time = None
            for name, value in variation.attributes.items():
                lowered = name.lower()
                if "date" in lowered or "day" in lowered:
                    occurrence_date = parse_date_value(value)
                elif "time" in lowered or "hour" in lowered:
                    occurrence_time = parse_time_value(value)
            if occurrence_date is not None:
                occurrences.append(
                    Occurrence(
                        date=occurrence_date,
                        time=occurrence_time,
                        inventory=variation.stock_quantity,
                        source=OccurrenceSource.BOOKING_SLOTS,
                    )
                )
        return occurrences

    # Source 3: weekly recurrence named in the title
    def from_title(
        self,
        product: Product,
        today: Optional[date] = None,
        count: int = DEFAULT_UPCOMING_COUNT,
    ) -> list[Occurrence]:
        """Upcoming weekly occurrences for a title like "Friday Improv 8pm"."""
        day = extract_day(product.name)
        if day is None:
            return []
        title_time = extract_time(product.name)
        return [
            Occurrence(
                date=occurrence_date,
                time=title_time,
                source=OccurrenceSource.TITLE,
            )
            for occurrence_date in upcoming_dates_for_day(day, count, today)
        ]

    # Source 4: remote events on the same weekday
    def from_remote_weekday(
        self, product: Product, today: Optional[date] = None
    ) -> list[Occurrence]:
        """Occurrences taken from similar remote events on the title's weekday.

        Raises:
            DomainError: When the ticketing service cannot be queried
        """
        if self.ticketing is None:
            return []
        day = extract_day(product.name)
        if day is None:
            return []
        if today is None:
            today = date.today()

        engine = MatchEngine(self.ticketing, self.similarity, self.time_buffer_minutes)
        occurrences = []
        for match in engine.weekday_matches(product.name, day, extract_time(product.name)):
            event_start: datetime = match.event.start
            if event_start.date() < today:
                continue
            occurrences.append(
                Occurrence(
                    date=event_start.date(),
                    time=event_start.time().replace(second=0, microsecond=0),
                    inventory=match.ticket.available,
                    source=OccurrenceSource.REMOTE,
                    remote_event_id=match.event.id,
                    remote_ticket_id=match.ticket.id,
                    remote_name=match.event.name,
                    venue_name=match.event.venue_name,
                    similarity=round(match.similarity, 2),
                )
            )
        return occurrences

    # Source 5: placeholder dates
    @staticmethod
    def fallback(today: Optional[date] = None) -> list[Occurrence]:
        """The next seven days starting tomorrow, without inventory."""
        if today is None:
            today = date.today()
        return [
            Occurrence(
                date=today + timedelta(days=offset),
                inventory=None,
                source=OccurrenceSource.FALLBACK,
            )
            for offset in range(1, FALLBACK_DAYS + 1)
        ]

"""Sales ledger domain service."""

import logging
from dataclasses import replace
from datetime import date, time
from typing import Any, Mapping, Optional, Union

from ticketsync.database.base import Database
from ticketsync.domain.collaborators import CatalogService
from ticketsync.domain.entities import (
    Channel,
    DaySummary,
    LedgerSummary,
    ProductSales,
    ProductSummary,
    SalesLedgerEntry,
)
from ticketsync.domain.errors import (
    ConfigurationError,
    NotFoundError,
    ValidationError,
    invalid_date_range,
    invalid_quantity,
    product_not_found,
    unknown_channel,
)
from ticketsync.domain.occurrence_key import ledger_entry_key
from ticketsync.utils.date_parser import parse_date_value
from ticketsync.utils.time_utils import parse_time_value

logger = logging.getLogger(__name__)


def coerce_channel(channel: Union[Channel, str]) -> Channel:
    """Return the Channel named by ``channel``, raising ValidationError if unknown."""
    try:
        return Channel(channel)
    except ValueError:
        raise ValidationError(unknown_channel(str(channel)))


def _validate_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError(invalid_quantity(quantity))
    return quantity


class SalesLedgerService:
    """Service for recording and aggregating per-channel sales."""

    def __init__(self, db: Database, catalog: Optional[CatalogService] = None):
        """Initialize sales ledger service.

        Args:
            db: Database instance
            catalog: Catalog used to look up product names and SKUs; only
                needed for recording sales
        """
        self.db = db
        self.catalog = catalog

    def record(
        self,
        channel: Union[Channel, str],
        product_id: int,
        quantity: int,
        sale_date: date,
        occurrence_date: Optional[date] = None,
        occurrence_time: Optional[time] = None,
    ) -> SalesLedgerEntry:
        """Add a sale to the ledger.

        The entry for (sale_date, occurrence) is created with zero counts when
        missing, then its total and the channel's count grow by quantity.

        Args:
            channel: Channel the sale went through
            product_id: Product sold
            quantity: Units sold
            sale_date: Day the sale happened
            occurrence_date: Occurrence the tickets are for, if known
            occurrence_time: Occurrence time, if known

        Returns:
            Updated ledger entry

        Raises:
            ValidationError: If the channel or quantity is invalid
            NotFoundError: If the product does not exist
            ConfigurationError: If no catalog was provided
        """
        channel = coerce_channel(channel)
        quantity = _validate_quantity(quantity)

        if self.catalog is None:
            raise ConfigurationError("A catalog is required to record sales")
        product = self.catalog.get_product(product_id)
        if product is None:
            raise NotFoundError(product_not_found(product_id))

        if occurrence_date is None:
            occurrence_time = None
        entry_key = ledger_entry_key(product_id, occurrence_date, occurrence_time)
        entry = self.db.get_ledger_entry(sale_date, entry_key)
        if entry is None:
            entry = SalesLedgerEntry(
                sale_date=sale_date,
                entry_key=entry_key,
                product_id=product_id,
                name=product.name,
                sku=product.sku,
                booking_date=occurrence_date,
                booking_time=occurrence_time,
                quantity=0,
                woocommerce=0,
                eventbrite=0,
                square=0,
            )

        entry = replace(
            entry,
            quantity=(entry.quantity or 0) + quantity,
            **{channel.value: entry.channel_count(channel) + quantity},
        )
        if not entry.is_consistent:
            # Legacy rows with missing channel counts are rebuilt from the channels
            entry = replace(
                entry,
                woocommerce=entry.woocommerce or 0,
                eventbrite=entry.eventbrite or 0,
                square=entry.square or 0,
            )
            entry = replace(
                entry, quantity=entry.woocommerce + entry.eventbrite + entry.square
            )

        self.db.save_ledger_entry(entry)
        logger.info(
            "Recorded %d %s sale(s) of product %s on %s (%s)",
            quantity,
            channel.value,
            product_id,
            sale_date,
            entry_key,
        )
        return entry

    def record_historical(
        self,
        channel: Union[Channel, str],
        product_id: int,
        quantity: int,
        sale_date: date,
        occurrence_date: Optional[date] = None,
        occurrence_time: Optional[time] = None,
    ) -> SalesLedgerEntry:
        """Add a backfilled sale to the ledger.

        Has the same ledger effect as record() but is never followed by a
        push to the remote channels.
        """
        logger.debug("Historical %s sale for product %s on %s", channel, product_id, sale_date)
        return self.record(
            channel, product_id, quantity, sale_date, occurrence_date, occurrence_time
        )

    def daily(
        self,
        sale_date: date,
        product_id: Optional[int] = None,
        booking_date: Optional[date] = None,
    ) -> list[SalesLedgerEntry]:
        """Well-formed entries for one sale date, optionally narrowed."""
        entries = self._valid_entries(sale_date, sale_date, product_id)
        if booking_date is not None:
            entries = [e for e in entries if e.booking_date == booking_date]
        return entries

    def total(self, start_date: date, end_date: date) -> dict[str, ProductSales]:
        """Sales per product occurrence summed over a date range.

        Returns:
            Mapping of ledger key (product or product occurrence) to totals
        """
        self._check_range(start_date, end_date)
        totals: dict[str, ProductSales] = {}
        for entry in self._valid_entries(start_date, end_date):
            sales = totals.get(entry.entry_key)
            if sales is None:
                sales = ProductSales(
                    product_id=entry.product_id,
                    name=entry.name,
                    sku=entry.sku,
                    booking_date=entry.booking_date,
                )
                totals[entry.entry_key] = sales
            sales.totals.add(entry)
        return totals

    def summary(self, start_date: date, end_date: date) -> LedgerSummary:
        """Totals, per-channel totals and a per-day breakdown for a date range."""
        self._check_range(start_date, end_date)
        summary = LedgerSummary(start_date=start_date, end_date=end_date)
        for entry in self._valid_entries(start_date, end_date):
            summary.totals.add(entry)

            day = summary.days.get(entry.sale_date)
            if day is None:
                day = DaySummary(sale_date=entry.sale_date)
                summary.days[entry.sale_date] = day
            day.totals.add(entry)

            product_key = str(entry.product_id)
            sales = day.products.get(product_key)
            if sales is None:
                sales = ProductSales(product_id=entry.product_id, name=entry.name, sku=entry.sku)
                day.products[product_key] = sales
            sales.totals.add(entry)
        return summary

    def product_summary(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> dict[int, ProductSummary]:
        """Total quantity per product and its split per booking date."""
        if start_date is not None and end_date is not None:
            self._check_range(start_date, end_date)
        summaries: dict[int, ProductSummary] = {}
        for entry in self._valid_entries(start_date, end_date):
            if entry.product_id is None:
                continue
            summary = summaries.get(entry.product_id)
            if summary is None:
                summary = ProductSummary(product_id=entry.product_id, name=entry.name)
                summaries[entry.product_id] = summary
            summary.total_quantity += entry.quantity
            if entry.booking_date is not None:
                summary.booking_dates[entry.booking_date] = (
                    summary.booking_dates.get(entry.booking_date, 0) + entry.quantity
                )
        return summaries

    def reset(self) -> int:
        """Delete the whole ledger. Returns number of entries removed."""
        deleted = self.db.clear_ledger()
        logger.warning("Sales ledger reset: %d entries deleted", deleted)
        return deleted

    def import_legacy(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Load a legacy ledger export of the form {date: {key: entry}}.

        Each entry carries name, sku, product_id, booking_date, quantity and
        per-channel counts. Existing entries with the same date and key are
        overwritten. When the channel counts do not add up to quantity the
        difference is attributed to the local catalog channel.

        Returns:
            Dictionary with 'imported', 'skipped' and 'errors'
        """
        imported = 0
        skipped = 0
        errors = []

        for raw_date, day_entries in data.items():
            sale_date = parse_date_value(raw_date)
            if sale_date is None or not isinstance(day_entries, Mapping):
                skipped += 1
                errors.append(f"Day '{raw_date}': not a date with entries")
                continue

            for entry_key, raw_entry in day_entries.items():
                try:
                    entry = self._legacy_entry(sale_date, str(entry_key), raw_entry)
                except (ValidationError, ValueError, TypeError) as e:
                    skipped += 1
                    errors.append(f"{sale_date} '{entry_key}': {e}")
                    logger.error("Skipping legacy ledger entry %s/%s: %s", sale_date, entry_key, e)
                    continue
                self.db.save_ledger_entry(entry)
                imported += 1

        return {"imported": imported, "skipped": skipped, "errors": errors}

    @staticmethod
    def _legacy_entry(sale_date: date, entry_key: str, raw: Any) -> SalesLedgerEntry:
        if not isinstance(raw, Mapping):
            raise ValidationError("entry is not a mapping")
        if raw.get("quantity") in (None, ""):
            raise ValidationError("entry has no quantity")

        quantity = int(raw["quantity"])
        counts = {channel.value: int(raw.get(channel.value) or 0) for channel in Channel}
        if quantity < 0 or any(count < 0 for count in counts.values()):
            raise ValidationError("entry has negative counts")
        channel_sum = sum(counts.values())
        if channel_sum > quantity:
            raise ValidationError(
                f"channel counts ({channel_sum}) exceed quantity ({quantity})"
            )
        counts[Channel.WOOCOMMERCE.value] += quantity - channel_sum

        product_id = raw.get("product_id")
        return SalesLedgerEntry(
            sale_date=sale_date,
            entry_key=entry_key,
            product_id=int(product_id) if product_id not in (None, "") else None,
            name=str(raw.get("name") or ""),
            sku=str(raw.get("sku") or ""),
            booking_date=parse_date_value(raw.get("booking_date")),
            booking_time=parse_time_value(raw.get("booking_time")),
            quantity=quantity,
            **counts,
        )

    def _valid_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        product_id: Optional[int] = None,
    ) -> list[SalesLedgerEntry]:
        entries = []
        for entry in self.db.list_ledger_entries(start_date, end_date, product_id):
            if not entry.is_consistent:
                logger.error(
                    "Skipping malformed ledger entry %s/%s", entry.sale_date, entry.entry_key
                )
                continue
            entries.append(entry)
        return entries

    @staticmethod
    def _check_range(start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValidationError(invalid_date_range(start_date, end_date))

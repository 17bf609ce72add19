"""Channel mapping domain service."""

import logging
from datetime import date, time
from typing import Iterable, Optional

from ticketsync.database.base import Database
from ticketsync.domain.entities import ChannelMapping, MappingEntry
from ticketsync.domain.errors import ValidationError
from ticketsync.domain.occurrence_key import date_prefix, occurrence_key, split_occurrence_key
from ticketsync.utils.time_utils import DEFAULT_TIME_BUFFER_MINUTES, is_time_close

logger = logging.getLogger(__name__)


class MappingService:
    """Service for storing and resolving remote channel mappings."""

    def __init__(self, db: Database, time_buffer_minutes: int = DEFAULT_TIME_BUFFER_MINUTES):
        """Initialize mapping service.

        Args:
            db: Database instance
            time_buffer_minutes: Tolerance when matching a sale time to a
                time-specific mapping
        """
        self.db = db
        self.time_buffer_minutes = time_buffer_minutes

    def resolve(
        self,
        product_id: int,
        occurrence_date: Optional[date] = None,
        occurrence_time: Optional[time] = None,
    ) -> ChannelMapping:
        """Find the mapping that applies to a product occurrence.

        Precedence is: a mapping on the same date whose time is within the
        tolerance of occurrence_time (first saved wins), then the date-only
        mapping, then the product default.

        Args:
            product_id: Product ID
            occurrence_date: Occurrence date, or None for the product default
            occurrence_time: Optional occurrence time

        Returns:
            Matching mapping, or an empty mapping when nothing is stored
        """
        if occurrence_date is not None:
            mapping = self.resolve_occurrence(product_id, occurrence_date, occurrence_time)
            if mapping is not None:
                return mapping
        return self.get_default(product_id)

    def resolve_occurrence(
        self,
        product_id: int,
        occurrence_date: date,
        occurrence_time: Optional[time] = None,
    ) -> Optional[ChannelMapping]:
        """Like resolve(), without falling back to the product default."""
        mappings = self.db.get_occurrence_mappings(product_id)

        if occurrence_time is not None:
            prefix = date_prefix(occurrence_date)
            for mapping in mappings:
                if not mapping.occurrence_key.startswith(prefix):
                    continue
                try:
                    _, stored_time = split_occurrence_key(mapping.occurrence_key)
                except ValueError:
                    logger.error(
                        "Skipping malformed mapping key '%s' for product %s",
                        mapping.occurrence_key,
                        product_id,
                    )
                    continue
                if is_time_close(occurrence_time, stored_time, self.time_buffer_minutes):
                    return mapping

        date_key = occurrence_key(occurrence_date)
        for mapping in mappings:
            if mapping.occurrence_key == date_key:
                return mapping
        return None

    def get_default(self, product_id: int) -> ChannelMapping:
        """Get the product default mapping (empty when none is stored)."""
        mapping = self.db.get_default_mapping(product_id)
        if mapping is None:
            return ChannelMapping(product_id=product_id)
        return mapping

    def save_default(
        self, product_id: int, remote_ticket_id: str = "", remote_pos_id: str = ""
    ) -> ChannelMapping:
        """Store the product default mapping, overwriting any previous one."""
        remote_ticket_id = (remote_ticket_id or "").strip()
        remote_pos_id = (remote_pos_id or "").strip()
        self.db.set_default_mapping(product_id, remote_ticket_id, remote_pos_id)
        logger.info(
            "Saved default mapping for product %s: ticket=%r pos=%r",
            product_id,
            remote_ticket_id,
            remote_pos_id,
        )
        return self.get_default(product_id)

    def save(self, product_id: int, entries: Iterable[MappingEntry]) -> int:
        """Replace every occurrence mapping of a product.

        Existing occurrence mappings are removed even when they do not appear
        in entries. Entries without any remote ID are dropped; when two
        entries share an occurrence the later one wins.

        Args:
            product_id: Product ID
            entries: Occurrence mappings to store

        Returns:
            Number of mappings written
        """
        by_key: dict[str, ChannelMapping] = {}
        for entry in entries:
            if entry.date is None:
                raise ValidationError("Mapping entries require a date")
            mapping = ChannelMapping(
                product_id=product_id,
                occurrence_key=occurrence_key(entry.date, entry.time),
                remote_ticket_id=(entry.remote_ticket_id or "").strip(),
                remote_pos_id=(entry.remote_pos_id or "").strip(),
            )
            if mapping.is_empty:
                continue
            by_key[mapping.occurrence_key] = mapping

        count = self.db.replace_occurrence_mappings(product_id, list(by_key.values()))
        logger.info("Saved %d occurrence mappings for product %s", count, product_id)
        return count

    def list_occurrence_mappings(self, product_id: int) -> list[ChannelMapping]:
        """List a product's occurrence mappings in saved order."""
        return self.db.get_occurrence_mappings(product_id)

    def list_all(self) -> list[ChannelMapping]:
        """List every stored mapping, defaults included."""
        return self.db.list_mappings()

    def find_by_pos_id(self, remote_pos_id: str) -> Optional[ChannelMapping]:
        """Find the mapping a point-of-sale catalog item belongs to.

        Occurrence mappings are preferred over product defaults.
        """
        if not remote_pos_id:
            return None
        mappings = self.db.find_mappings_by_pos_id(remote_pos_id)
        for mapping in mappings:
            if not mapping.is_default:
                return mapping
        return mappings[0] if mappings else None

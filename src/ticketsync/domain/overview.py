"""Occurrence lists annotated with their mappings, for the admin screens."""

import logging
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from ticketsync.domain.discovery import OccurrenceDiscoveryService
from ticketsync.domain.entities import MatchCandidate, Occurrence
from ticketsync.domain.errors import DomainError
from ticketsync.domain.mapping import MappingService
from ticketsync.domain.matching import MatchEngine
from ticketsync.domain.occurrence_key import split_occurrence_key

logger = logging.getLogger(__name__)

SAVED_MAPPING_SOURCE = "saved_mapping"


@dataclass(frozen=True)
class OccurrenceRow:
    """One occurrence with the mapping that applies to it."""

    date: date
    time: Optional[time]
    key: str
    inventory: Optional[int]
    source: str
    remote_ticket_id: str = ""
    remote_pos_id: str = ""
    suggestion: Optional[MatchCandidate] = None

    @property
    def is_suggested(self) -> bool:
        return self.suggestion is not None

    @property
    def from_mappings(self) -> bool:
        return self.source == SAVED_MAPPING_SOURCE


class MappingOverviewService:
    """Builds the occurrence/mapping table shown to operators."""

    def __init__(
        self,
        mappings: MappingService,
        discovery: OccurrenceDiscoveryService,
        match_engine: Optional[MatchEngine] = None,
    ):
        self.mappings = mappings
        self.discovery = discovery
        self.match_engine = match_engine

    def list_occurrences(
        self,
        product_id: int,
        include_remote: bool = False,
        suggest: bool = True,
        today: Optional[date] = None,
        infer_from_title: bool = True,
    ) -> list[OccurrenceRow]:
        """List a product's occurrences with mapped or suggested remote IDs.

        Saved occurrence mappings whose occurrence was not discovered are
        appended so they stay visible. Unmapped rows get the best remote
        candidate as a suggestion when a match engine is available.
        """
        occurrences = self.discovery.discover(
            product_id, include_remote, today, infer_from_title
        )
        rows: list[tuple[Occurrence, str]] = [(o, o.source.value) for o in occurrences]

        known_keys = {occurrence.key for occurrence in occurrences}
        for mapping in self.mappings.list_occurrence_mappings(product_id):
            if mapping.occurrence_key in known_keys:
                continue
            try:
                occurrence_date, occurrence_time = split_occurrence_key(mapping.occurrence_key)
            except ValueError:
                logger.error("Skipping malformed mapping key '%s'", mapping.occurrence_key)
                continue
            rows.append((Occurrence(date=occurrence_date, time=occurrence_time), SAVED_MAPPING_SOURCE))
            known_keys.add(mapping.occurrence_key)

        title = self._product_title(product_id)
        events = None
        if suggest and self.match_engine is not None and title:
            events = self.match_engine.fetch_events()

        result = []
        for occurrence, source in rows:
            mapping = self.mappings.resolve_occurrence(product_id, occurrence.date, occurrence.time)
            suggestion = None
            if mapping is None and events:
                candidates = self.match_engine.rank(
                    title, occurrence.date, occurrence.time, events, limit=1
                )
                suggestion = candidates[0] if candidates else None
            result.append(
                OccurrenceRow(
                    date=occurrence.date,
                    time=occurrence.time,
                    key=occurrence.key,
                    inventory=occurrence.inventory,
                    source=source,
                    remote_ticket_id=mapping.remote_ticket_id if mapping else "",
                    remote_pos_id=mapping.remote_pos_id if mapping else "",
                    suggestion=suggestion,
                )
            )
        return result

    def _product_title(self, product_id: int) -> Optional[str]:
        try:
            product = self.discovery.catalog.get_product(product_id)
        except DomainError as e:
            logger.error("Could not load product %s: %s", product_id, e)
            return None
        return product.name if product is not None else None

"""Resumable historical sales import.

An import runs as a series of independent steps. Each step processes one
bounded batch from one source and returns an ImportCursor that the caller
passes to the next step; no state is kept between steps.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ticketsync.config import DEFAULT_IMPORT_BATCH_SIZE
from ticketsync.domain.collaborators import CatalogService, PointOfSaleService
from ticketsync.domain.entities import (
    Channel,
    ImportCursor,
    ImportStepResult,
    OffsetProgress,
    SourceProgress,
    TokenProgress,
)
from ticketsync.domain.errors import ValidationError, invalid_date_range
from ticketsync.domain.ledger import SalesLedgerService
from ticketsync.domain.line_items import extract_occurrence
from ticketsync.domain.mapping import MappingService
from ticketsync.domain.occurrence_key import split_occurrence_key

logger = logging.getLogger(__name__)

COMPLETED_STATUS = "completed"


@dataclass
class SourceBatch:
    """What one source did during one step."""

    processed: int
    progress: SourceProgress
    exhausted: bool
    logs: list[str] = field(default_factory=list)


class ImportSource(ABC):
    """A pageable source of historical sales."""

    name: str = "source"

    @abstractmethod
    def initial_progress(self) -> SourceProgress:
        """Progress value for a source that has not been read yet."""
        pass

    @abstractmethod
    def process_batch(
        self, start_date: date, end_date: date, progress: SourceProgress, limit: int
    ) -> SourceBatch:
        """Record at most one batch of sales starting at progress.

        Failures of individual records are logged and skipped; anything
        raised from here fails the whole step.
        """
        pass

    def accepts(self, progress: SourceProgress) -> bool:
        return isinstance(progress, type(self.initial_progress()))


class LocalOrdersSource(ImportSource):
    """Completed catalog orders, paged by offset."""

    name = "local orders"

    def __init__(self, catalog: CatalogService, ledger: SalesLedgerService):
        self.catalog = catalog
        self.ledger = ledger

    def initial_progress(self) -> OffsetProgress:
        return OffsetProgress(0)

    def process_batch(
        self, start_date: date, end_date: date, progress: SourceProgress, limit: int
    ) -> SourceBatch:
        offset = progress.offset
        orders = self.catalog.get_orders(COMPLETED_STATUS, start_date, end_date, offset, limit)
        logs = [f"Fetched {len(orders)} orders at offset {offset}."]
        processed = 0

        for order in orders:
            for item in order.line_items:
                try:
                    occurrence_date, occurrence_time = extract_occurrence(item, self.catalog)
                    self.ledger.record_historical(
                        Channel.WOOCOMMERCE,
                        item.product_id,
                        item.quantity,
                        order.created,
                        occurrence_date,
                        occurrence_time,
                    )
                    processed += 1
                except Exception as e:
                    logger.error(
                        "Skipping product %s in order %s: %s", item.product_id, order.id, e
                    )
                    logs.append(f"Error: order {order.id}, product {item.product_id}: {e}")

        return SourceBatch(
            processed=processed,
            progress=OffsetProgress(offset + len(orders)),
            exhausted=len(orders) < limit,
            logs=logs,
        )


class RemotePosSource(ImportSource):
    """Point-of-sale orders, paged by an opaque cursor token."""

    name = "point-of-sale orders"

    def __init__(
        self, pos: PointOfSaleService, ledger: SalesLedgerService, mappings: MappingService
    ):
        self.pos = pos
        self.ledger = ledger
        self.mappings = mappings

    def initial_progress(self) -> TokenProgress:
        return TokenProgress(None)

    def process_batch(
        self, start_date: date, end_date: date, progress: SourceProgress, limit: int
    ) -> SourceBatch:
        page = self.pos.list_orders(start_date, end_date, progress.token, limit)
        logs = [f"Fetched {len(page.orders)} point-of-sale orders."]
        processed = 0

        for order in page.orders:
            for item in order.line_items:
                try:
                    mapping = self.mappings.find_by_pos_id(item.catalog_item_id)
                    if mapping is None:
                        logs.append(
                            f"Skipped order {order.id}: catalog item {item.catalog_item_id} is not mapped"
                        )
                        continue
                    occurrence_date = occurrence_time = None
                    if not mapping.is_default:
                        occurrence_date, occurrence_time = split_occurrence_key(
                            mapping.occurrence_key
                        )
                    self.ledger.record_historical(
                        Channel.SQUARE,
                        mapping.product_id,
                        item.quantity,
                        order.created,
                        occurrence_date,
                        occurrence_time,
                    )
                    processed += 1
                except Exception as e:
                    logger.error(
                        "Skipping item %s in point-of-sale order %s: %s",
                        item.catalog_item_id,
                        order.id,
                        e,
                    )
                    logs.append(f"Error: order {order.id}, item {item.catalog_item_id}: {e}")

        return SourceBatch(
            processed=processed,
            progress=TokenProgress(page.cursor),
            exhausted=page.cursor is None,
            logs=logs,
        )


class ResumableImporter:
    """Drives a multi-source import one batch per call."""

    def __init__(
        self, sources: Sequence[ImportSource], batch_size: int = DEFAULT_IMPORT_BATCH_SIZE
    ):
        """Initialize importer.

        Args:
            sources: Sources in the order they are imported
            batch_size: Maximum records fetched per step
        """
        if batch_size <= 0:
            raise ValidationError(f"Batch size must be positive, got {batch_size}")
        self.sources = list(sources)
        self.batch_size = batch_size

    def step(
        self,
        start_date: date,
        end_date: date,
        cursor: Optional[ImportCursor] = None,
    ) -> ImportStepResult:
        """Process the next batch of the import.

        Args:
            start_date: First sale date to import
            end_date: Last sale date to import
            cursor: Cursor returned by the previous step, None to start

        Returns:
            ImportStepResult; next_cursor is None once every source is done.
            A failed step returns the cursor it was given so it can be retried.

        Raises:
            ValidationError: If the date range, sources or cursor are invalid
        """
        if start_date > end_date:
            raise ValidationError(invalid_date_range(start_date, end_date))
        if not self.sources:
            raise ValidationError("No import sources selected")

        if cursor is None:
            cursor = ImportCursor()
        source_count = len(self.sources)

        if cursor.source_index >= source_count:
            return ImportStepResult(
                success=True,
                logs=("Import complete.",),
                progress=100,
                next_cursor=None,
            )

        source = self.sources[cursor.source_index]
        progress = cursor.progress
        if progress is None:
            progress = source.initial_progress()
        elif not source.accepts(progress):
            raise ValidationError(
                f"Cursor progress {progress!r} does not belong to source '{source.name}'"
            )

        logs = [f"Importing {source.name} ({cursor.source_index + 1}/{source_count})."]
        try:
            batch = source.process_batch(start_date, end_date, progress, self.batch_size)
        except Exception as e:
            logger.exception("Import step failed for source %s", source.name)
            logs.append(f"Error: {e}")
            return ImportStepResult(
                success=False,
                logs=tuple(logs),
                progress=self._progress(cursor.source_index, source_count, mid_source=True),
                next_cursor=cursor,
                error=str(e),
            )

        logs.extend(batch.logs)
        total_processed = cursor.total_processed + batch.processed

        if batch.exhausted:
            logs.append(f"Finished {source.name}; {total_processed} sales imported so far.")
            next_cursor = ImportCursor(
                source_index=cursor.source_index + 1,
                progress=None,
                total_processed=total_processed,
            )
            percent = self._progress(cursor.source_index + 1, source_count, mid_source=False)
        else:
            next_cursor = ImportCursor(
                source_index=cursor.source_index,
                progress=batch.progress,
                total_processed=total_processed,
            )
            percent = self._progress(cursor.source_index, source_count, mid_source=True)

        return ImportStepResult(
            success=True,
            logs=tuple(logs),
            progress=percent,
            next_cursor=next_cursor,
            processed=batch.processed,
        )

    @staticmethod
    def _progress(source_index: int, source_count: int, mid_source: bool) -> int:
        """Estimate completion from the position in the source list.

        100 is reserved for the terminal step.
        """
        position = source_index + 0.5 if mid_source else source_index
        return min(99, round(position / source_count * 100))

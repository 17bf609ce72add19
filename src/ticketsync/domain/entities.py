"""Domain model entities for ticketsync.

These are pure data classes representing business concepts, independent of
the database schema and of the remote services' wire formats. Collaborators
translate their payloads into these entities at the boundary.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Mapping, Optional, Union

from ticketsync.domain.occurrence_key import occurrence_key


class Channel(str, Enum):
    """Sales channel a ledger quantity was sold through."""

    WOOCOMMERCE = "woocommerce"
    EVENTBRITE = "eventbrite"
    SQUARE = "square"


class OccurrenceSource(str, Enum):
    """Discovery method that produced an occurrence."""

    SCHEDULE = "schedule"
    BOOKING_SLOTS = "booking_slots"
    TITLE = "title"
    REMOTE = "remote"
    FALLBACK = "fallback"


class SyncStatus(str, Enum):
    """Result of a single reconciliation action."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    SIMULATED = "simulated"
    FAILED = "failed"


@dataclass(frozen=True)
class Product:
    """Catalog product, read-only to this package."""

    id: int
    name: str
    sku: str = ""
    stock_quantity: Optional[int] = None
    manage_stock: bool = False
    meta: Mapping[str, Any] = field(default_factory=dict)
    attributes: Mapping[str, Any] = field(default_factory=dict)
    parent_id: Optional[int] = None
    variation_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class LineItem:
    """Single line of a catalog order."""

    product_id: int
    quantity: int
    variation_id: Optional[int] = None
    meta: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Order:
    """Catalog order."""

    id: int
    status: str
    created: date
    line_items: tuple[LineItem, ...] = ()


@dataclass(frozen=True)
class PosLineItem:
    """Single line of a point-of-sale order."""

    catalog_item_id: str
    quantity: int


@dataclass(frozen=True)
class PosOrder:
    """Point-of-sale order."""

    id: str
    created: date
    line_items: tuple[PosLineItem, ...] = ()


@dataclass(frozen=True)
class PosOrderPage:
    """One page of point-of-sale orders and the token for the next page."""

    orders: tuple[PosOrder, ...]
    cursor: Optional[str] = None


@dataclass(frozen=True)
class TicketClass:
    """Ticket class inside a remote event."""

    id: str
    name: str
    event_id: str
    free: bool = False
    capacity: int = 0
    capacity_is_custom: bool = False
    quantity_sold: int = 0
    event_capacity: int = 0

    @property
    def effective_capacity(self) -> int:
        """Capacity that applies to this ticket class."""
        return self.capacity if self.capacity_is_custom else self.event_capacity

    @property
    def available(self) -> int:
        return self.effective_capacity - self.quantity_sold


@dataclass(frozen=True)
class RemoteEvent:
    """Event listed by the remote ticketing service."""

    id: str
    name: str
    start: datetime
    venue_name: str = ""
    capacity: int = 0
    ticket_classes: tuple[TicketClass, ...] = ()


@dataclass(frozen=True)
class Occurrence:
    """A product instance on a calendar date, optionally at a time of day."""

    date: date
    time: Optional[time] = None
    inventory: Optional[int] = None
    source: OccurrenceSource = OccurrenceSource.SCHEDULE
    remote_event_id: Optional[str] = None
    remote_ticket_id: Optional[str] = None
    remote_name: Optional[str] = None
    venue_name: Optional[str] = None
    similarity: Optional[float] = None

    @property
    def key(self) -> str:
        return occurrence_key(self.date, self.time)


@dataclass(frozen=True)
class ChannelMapping:
    """Remote identifiers mapped to a product occurrence.

    An empty occurrence_key marks the product-level default mapping.
    """

    product_id: int
    occurrence_key: str = ""
    remote_ticket_id: str = ""
    remote_pos_id: str = ""

    @property
    def is_default(self) -> bool:
        return self.occurrence_key == ""

    @property
    def is_empty(self) -> bool:
        return not self.remote_ticket_id and not self.remote_pos_id


@dataclass(frozen=True)
class MappingEntry:
    """Input row for saving a product's occurrence mappings."""

    date: date
    time: Optional[time] = None
    remote_ticket_id: str = ""
    remote_pos_id: str = ""


@dataclass(frozen=True)
class MatchCandidate:
    """Remote ticket class ranked against a local occurrence."""

    remote_event_id: str
    remote_ticket_id: str
    event_name: str
    ticket_name: str
    date: date
    time: time
    venue_name: str
    name_similarity: float
    relevance: float
    exact_date_match: bool
    close_time_match: bool


@dataclass(frozen=True)
class SalesLedgerEntry:
    """Sales for one product occurrence on one sale date.

    quantity always equals the sum of the per-channel counts.
    """

    sale_date: date
    entry_key: str
    product_id: Optional[int]
    name: str
    sku: str
    booking_date: Optional[date]
    booking_time: Optional[time]
    quantity: Optional[int]
    woocommerce: Optional[int]
    eventbrite: Optional[int]
    square: Optional[int]

    def channel_count(self, channel: Channel) -> int:
        return getattr(self, channel.value) or 0

    @property
    def is_consistent(self) -> bool:
        """Whether this entry can be aggregated safely."""
        counts = (self.quantity, self.woocommerce, self.eventbrite, self.square)
        if any(count is None or count < 0 for count in counts):
            return False
        return self.quantity == self.woocommerce + self.eventbrite + self.square


@dataclass
class ChannelTotals:
    """Mutable accumulator of per-channel quantities."""

    quantity: int = 0
    woocommerce: int = 0
    eventbrite: int = 0
    square: int = 0

    def add(self, entry: SalesLedgerEntry) -> None:
        self.quantity += entry.quantity
        self.woocommerce += entry.woocommerce
        self.eventbrite += entry.eventbrite
        self.square += entry.square


@dataclass
class ProductSales:
    """Aggregated sales for one product (or product occurrence)."""

    product_id: Optional[int]
    name: str
    sku: str
    booking_date: Optional[date] = None
    totals: ChannelTotals = field(default_factory=ChannelTotals)


@dataclass
class DaySummary:
    """Sales for a single sale date."""

    sale_date: date
    totals: ChannelTotals = field(default_factory=ChannelTotals)
    products: dict[str, ProductSales] = field(default_factory=dict)


@dataclass
class LedgerSummary:
    """Sales over a date range with per-channel and per-day breakdowns."""

    start_date: date
    end_date: date
    totals: ChannelTotals = field(default_factory=ChannelTotals)
    days: dict[date, DaySummary] = field(default_factory=dict)


@dataclass
class ProductSummary:
    """Total quantity sold for a product and the split per booking date."""

    product_id: int
    name: str
    total_quantity: int = 0
    booking_dates: dict[date, int] = field(default_factory=dict)


@dataclass(frozen=True)
class OperationLogEntry:
    """Audit record of an operation performed or simulated."""

    id: int
    created_at: datetime
    source: str
    operation: str
    details: str
    test_mode: bool


@dataclass(frozen=True)
class SyncOutcome:
    """Structured result of one reconciliation action."""

    product_id: int
    status: SyncStatus
    message: str
    occurrence_key: str = ""
    remote_ticket_id: str = ""
    previous: Optional[int] = None
    new: Optional[int] = None


@dataclass(frozen=True)
class OffsetProgress:
    """Position inside an offset-paged source."""

    offset: int = 0


@dataclass(frozen=True)
class TokenProgress:
    """Position inside a token-paged source; None means the first page."""

    token: Optional[str] = None


SourceProgress = Union[OffsetProgress, TokenProgress]


@dataclass(frozen=True)
class ImportCursor:
    """Externalised state of a resumable import.

    Callers echo the cursor back on every step. It is terminal once
    source_index reaches the number of sources.
    """

    source_index: int = 0
    progress: Optional[SourceProgress] = None
    total_processed: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialise for callers that keep the cursor as plain data."""
        return {
            "source_index": self.source_index,
            "local_offset": (
                self.progress.offset if isinstance(self.progress, OffsetProgress) else 0
            ),
            "remote_cursor_token": (
                self.progress.token if isinstance(self.progress, TokenProgress) else None
            ),
            "total_processed": self.total_processed,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ImportCursor":
        """Rebuild a cursor from its plain-data form.

        The per-source progress is left for the active source to interpret;
        a non-zero offset wins over a token when both are present.
        """
        if not data:
            return cls()
        offset = int(data.get("local_offset") or 0)
        token = data.get("remote_cursor_token") or None
        progress: Optional[SourceProgress] = None
        if offset:
            progress = OffsetProgress(offset)
        elif token:
            progress = TokenProgress(token)
        return cls(
            source_index=int(data.get("source_index") or 0),
            progress=progress,
            total_processed=int(data.get("total_processed") or 0),
        )


@dataclass(frozen=True)
class ImportStepResult:
    """Outcome of one resumable import step."""

    success: bool
    logs: tuple[str, ...]
    progress: int
    next_cursor: Optional[ImportCursor]
    processed: int = 0
    error: Optional[str] = None

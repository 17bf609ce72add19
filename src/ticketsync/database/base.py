"""Abstract database interface."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

# Import entities directly to avoid circular import through domain/__init__.py
from ticketsync.domain.entities import (
    ChannelMapping,
    OperationLogEntry,
    SalesLedgerEntry,
)


class Database(ABC):
    """Abstract database interface for ticketsync."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Mapping operations
    @abstractmethod
    def get_default_mapping(self, product_id: int) -> Optional[ChannelMapping]:
        """Get the product-level default mapping."""
        pass

    @abstractmethod
    def set_default_mapping(
        self, product_id: int, remote_ticket_id: str, remote_pos_id: str
    ) -> None:
        """Create or overwrite the product-level default mapping."""
        pass

    @abstractmethod
    def get_occurrence_mappings(self, product_id: int) -> list[ChannelMapping]:
        """Get all occurrence mappings of a product in the order they were saved."""
        pass

    @abstractmethod
    def replace_occurrence_mappings(
        self, product_id: int, mappings: list[ChannelMapping]
    ) -> int:
        """Atomically replace all occurrence mappings of a product.

        The default mapping is left untouched. Returns number of rows written.
        """
        pass

    @abstractmethod
    def list_mappings(self) -> list[ChannelMapping]:
        """List every stored mapping, defaults included."""
        pass

    @abstractmethod
    def find_mappings_by_pos_id(self, remote_pos_id: str) -> list[ChannelMapping]:
        """List mappings pointing at a point-of-sale catalog item."""
        pass

    # Ledger operations
    @abstractmethod
    def get_ledger_entry(self, sale_date: date, entry_key: str) -> Optional[SalesLedgerEntry]:
        """Get the ledger entry for a sale date and entry key."""
        pass

    @abstractmethod
    def save_ledger_entry(self, entry: SalesLedgerEntry) -> None:
        """Insert or overwrite the ledger entry with the same sale date and key."""
        pass

    @abstractmethod
    def list_ledger_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        product_id: Optional[int] = None,
    ) -> list[SalesLedgerEntry]:
        """List ledger entries ordered by sale date, optionally filtered."""
        pass

    @abstractmethod
    def clear_ledger(self) -> int:
        """Delete every ledger entry. Returns number of rows deleted."""
        pass

    # Operation log
    @abstractmethod
    def add_operation_log(
        self, source: str, operation: str, details: str, test_mode: bool
    ) -> int:
        """Append an operation log record. Returns record ID."""
        pass

    @abstractmethod
    def list_operation_logs(self, limit: Optional[int] = None) -> list[OperationLogEntry]:
        """List operation log records, newest first."""
        pass

    @abstractmethod
    def prune_operation_logs(self, keep: int) -> int:
        """Delete all but the newest keep records. Returns number deleted."""
        pass

    @abstractmethod
    def clear_operation_logs(self) -> int:
        """Delete all operation log records. Returns number deleted."""
        pass

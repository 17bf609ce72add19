"""Abstract interfaces for the external services ticketsync talks to.

Concrete implementations wrap the store's catalog, the remote ticketing
service and the point-of-sale service. They translate wire payloads into
domain entities and raise ConfigurationError when credentials are missing
and RemoteAPIError for failed calls, timeouts and error payloads.
"""

from abc import ABC, abstractmethod
from datetime import date, time
from typing import Any, Optional

from ticketsync.domain.entities import (
    Order,
    PosOrderPage,
    Product,
    RemoteEvent,
    TicketClass,
)


class CatalogService(ABC):
    """Local product catalog and its orders."""

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[Product]:
        """Get a product (or product variation) by ID."""
        pass

    @abstractmethod
    def get_orders(
        self,
        status: str,
        start_date: date,
        end_date: date,
        offset: int,
        limit: int,
    ) -> list[Order]:
        """List orders with the given status created in the date range.

        Orders come back oldest first so offset paging is stable.
        """
        pass

    @abstractmethod
    def get_occurrence_inventory(
        self, product_id: int, occurrence_date: date, occurrence_time: Optional[time]
    ) -> Optional[int]:
        """Get stored inventory for one occurrence, None when untracked."""
        pass

    @abstractmethod
    def set_occurrence_inventory(
        self,
        product_id: int,
        occurrence_date: date,
        occurrence_time: Optional[time],
        quantity: int,
    ) -> None:
        """Overwrite stored inventory for one occurrence."""
        pass

    @abstractmethod
    def set_stock_quantity(self, product_id: int, quantity: int) -> None:
        """Overwrite a product's own stock quantity."""
        pass


class TicketingService(ABC):
    """Remote event ticketing service."""

    @abstractmethod
    def list_org_events(self, status: str = "live", page_size: int = 50) -> list[RemoteEvent]:
        """List the organization's events with their ticket classes.

        Args:
            status: Comma separated event statuses (e.g. "live,started")
            page_size: Events requested per page
        """
        pass

    @abstractmethod
    def get_ticket(self, ticket_id: str) -> Optional[TicketClass]:
        """Get a ticket class by ID, including its event capacity."""
        pass

    @abstractmethod
    def get_event(self, event_id: str) -> Optional[RemoteEvent]:
        """Get an event by ID."""
        pass

    @abstractmethod
    def update_ticket_capacity(self, ticket_id: str, capacity: int) -> None:
        """Set a custom capacity on a ticket class."""
        pass

    @abstractmethod
    def list_attendees(self, event_id: str) -> list[dict[str, Any]]:
        """List attendees of an event, following pagination."""
        pass


class PointOfSaleService(ABC):
    """Remote point-of-sale catalog and orders."""

    @abstractmethod
    def list_catalog_items(self) -> list[dict[str, Any]]:
        """List catalog items."""
        pass

    @abstractmethod
    def get_catalog_item(self, item_id: str) -> Optional[dict[str, Any]]:
        """Get a catalog item by ID."""
        pass

    @abstractmethod
    def test_connection(self) -> bool:
        """Check credentials against the service."""
        pass

    @abstractmethod
    def list_orders(
        self,
        start_date: date,
        end_date: date,
        cursor: Optional[str],
        limit: int,
    ) -> PosOrderPage:
        """Fetch one page of completed orders.

        Args:
            start_date: First sale date included
            end_date: Last sale date included
            cursor: Token from the previous page, None for the first page
            limit: Maximum orders returned
        """
        pass

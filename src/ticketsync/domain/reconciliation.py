"""Reconciliation of local sales and remote ticket availability."""

import logging
from datetime import date, time
from typing import Optional, Union

from ticketsync.config import Settings
from ticketsync.database.base import Database
from ticketsync.domain.collaborators import CatalogService, TicketingService
from ticketsync.domain.entities import (
    Channel,
    ChannelMapping,
    Order,
    SyncOutcome,
    SyncStatus,
)
from ticketsync.domain.errors import (
    DomainError,
    NotFoundError,
    product_not_found,
    ticket_not_found,
)
from ticketsync.domain.ledger import SalesLedgerService, coerce_channel
from ticketsync.domain.line_items import extract_occurrence
from ticketsync.domain.mapping import MappingService
from ticketsync.domain.occurrence_key import format_time, split_occurrence_key
from ticketsync.domain.operation_log import OperationLogService
from ticketsync.utils.time_utils import is_time_close

logger = logging.getLogger(__name__)

COMPLETED_STATUS = "completed"
TICKETING_SOURCE = "Eventbrite"
SALES_SOURCE = "Sales Tracking"
INVENTORY_SOURCE = "Inventory Sync"


class ReconciliationService:
    """Pushes local sales to the ticketing service and pulls availability back."""

    def __init__(
        self,
        db: Database,
        catalog: CatalogService,
        ticketing: TicketingService,
        settings: Optional[Settings] = None,
    ):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            catalog: Local catalog collaborator
            ticketing: Remote ticketing collaborator
            settings: Runtime settings (test mode, live logging, time buffer)
        """
        self.db = db
        self.catalog = catalog
        self.ticketing = ticketing
        self.settings = settings or Settings()
        self.mappings = MappingService(db, self.settings.time_buffer_minutes)
        self.ledger = SalesLedgerService(db, catalog)
        self.operation_log = OperationLogService(db, self.settings)

    def handle_order_completed(self, order: Order) -> list[SyncOutcome]:
        """Record a completed order's sales and push them to the ticketing service.

        Each line item is recorded in the ledger under the local catalog
        channel, then its quantity is taken off the mapped remote ticket.
        A failure on one line item does not stop the others.

        Returns:
            One outcome per line item (empty when the order is not completed)
        """
        if order.status != COMPLETED_STATUS:
            logger.debug("Ignoring order %s with status %s", order.id, order.status)
            return []

        outcomes = []
        for item in order.line_items:
            try:
                occurrence_date, occurrence_time = extract_occurrence(item, self.catalog)
                if self.settings.test_mode:
                    self.operation_log.log_operation(
                        SALES_SOURCE,
                        "Order Completed",
                        {
                            "order_id": order.id,
                            "product_id": item.product_id,
                            "quantity": item.quantity,
                            "booking_date": occurrence_date,
                            "booking_time": occurrence_time,
                            "action": "would record sale",
                        },
                    )
                else:
                    self.ledger.record(
                        Channel.WOOCOMMERCE,
                        item.product_id,
                        item.quantity,
                        order.created,
                        occurrence_date,
                        occurrence_time,
                    )
            except DomainError as e:
                logger.error(
                    "Could not record sale of product %s from order %s: %s",
                    item.product_id,
                    order.id,
                    e,
                )
                outcomes.append(
                    SyncOutcome(product_id=item.product_id, status=SyncStatus.FAILED, message=str(e))
                )
                continue

            # In test mode push_sale logs the computed capacity change and skips the write
            outcomes.append(
                self.push_sale(item.product_id, item.quantity, occurrence_date, occurrence_time)
            )
        return outcomes

    def push_sale(
        self,
        product_id: int,
        quantity: int,
        occurrence_date: Optional[date] = None,
        occurrence_time: Optional[time] = None,
    ) -> SyncOutcome:
        """Lower the mapped remote ticket's capacity after a local sale.

        Capacity never drops below the tickets already sold remotely. Errors
        are logged and returned, never retried; the local sale stands.
        """
        mapping = self.mappings.resolve(product_id, occurrence_date, occurrence_time)
        if not mapping.remote_ticket_id:
            return SyncOutcome(
                product_id=product_id,
                status=SyncStatus.SKIPPED,
                message="No remote ticket mapped",
                occurrence_key=mapping.occurrence_key,
            )

        ticket_id = mapping.remote_ticket_id
        try:
            ticket = self.ticketing.get_ticket(ticket_id)
            if ticket is None:
                raise NotFoundError(ticket_not_found(ticket_id))
            capacity = ticket.effective_capacity
            new_capacity = max(ticket.quantity_sold, capacity - quantity)

            details = {
                "product_id": product_id,
                "ticket_id": ticket_id,
                "booking_date": occurrence_date,
                "booking_time": occurrence_time,
                "quantity": quantity,
                "capacity": capacity,
                "sold": ticket.quantity_sold,
                "new_capacity": new_capacity,
            }
            self.operation_log.log_operation(TICKETING_SOURCE, "Update Ticket Capacity", details)
            if self.settings.test_mode:
                return SyncOutcome(
                    product_id=product_id,
                    status=SyncStatus.SIMULATED,
                    message=f"Test mode: capacity would change {capacity} -> {new_capacity}",
                    occurrence_key=mapping.occurrence_key,
                    remote_ticket_id=ticket_id,
                    previous=capacity,
                    new=new_capacity,
                )

            self.ticketing.update_ticket_capacity(ticket_id, new_capacity)
        except DomainError as e:
            logger.error(
                "Failed to update remote ticket %s for product %s: %s", ticket_id, product_id, e
            )
            return SyncOutcome(
                product_id=product_id,
                status=SyncStatus.FAILED,
                message=str(e),
                occurrence_key=mapping.occurrence_key,
                remote_ticket_id=ticket_id,
            )

        logger.info(
            "Remote ticket %s capacity %d -> %d after sale of product %s",
            ticket_id,
            capacity,
            new_capacity,
            product_id,
        )
        return SyncOutcome(
            product_id=product_id,
            status=SyncStatus.UPDATED,
            message=f"Capacity updated {capacity} -> {new_capacity}",
            occurrence_key=mapping.occurrence_key,
            remote_ticket_id=ticket_id,
            previous=capacity,
            new=new_capacity,
        )

    def record_remote_sale(
        self,
        channel: Union[Channel, str],
        product_id: int,
        quantity: int,
        sale_date: date,
        occurrence_date: Optional[date] = None,
        occurrence_time: Optional[time] = None,
    ) -> SyncOutcome:
        """Record a sale reported by the ticketing or point-of-sale service.

        Raises:
            ValidationError: If channel is not a known sales channel
        """
        channel = coerce_channel(channel)
        if self.settings.test_mode:
            self.operation_log.log_operation(
                SALES_SOURCE,
                f"Record {channel.value} sale",
                {
                    "product_id": product_id,
                    "quantity": quantity,
                    "sale_date": sale_date,
                    "booking_date": occurrence_date,
                    "booking_time": occurrence_time,
                },
            )
            return SyncOutcome(
                product_id=product_id,
                status=SyncStatus.SIMULATED,
                message=f"Test mode: {channel.value} sale not recorded",
            )

        try:
            entry = self.ledger.record(
                channel, product_id, quantity, sale_date, occurrence_date, occurrence_time
            )
        except DomainError as e:
            logger.error("Could not record %s sale of product %s: %s", channel.value, product_id, e)
            return SyncOutcome(product_id=product_id, status=SyncStatus.FAILED, message=str(e))

        return SyncOutcome(
            product_id=product_id,
            status=SyncStatus.UPDATED,
            message=f"Recorded {quantity} {channel.value} sale(s)",
            occurrence_key=entry.entry_key,
            new=entry.quantity,
        )

    def sync_availability(self) -> list[SyncOutcome]:
        """Copy remote availability onto local inventory for every mapped ticket.

        Occurrence mappings update the occurrence's inventory; default
        mappings update the product's own stock when it is stock-managed.
        Local values are only written when they differ.
        """
        outcomes = []
        for mapping in self.mappings.list_all():
            if not mapping.remote_ticket_id:
                continue
            try:
                outcomes.append(self._sync_mapping(mapping))
            except ValueError as e:
                # Covers DomainError and malformed stored occurrence keys
                logger.error(
                    "Availability sync failed for product %s (%s): %s",
                    mapping.product_id,
                    mapping.occurrence_key or "default",
                    e,
                )
                outcomes.append(
                    SyncOutcome(
                        product_id=mapping.product_id,
                        status=SyncStatus.FAILED,
                        message=str(e),
                        occurrence_key=mapping.occurrence_key,
                        remote_ticket_id=mapping.remote_ticket_id,
                    )
                )
        return outcomes

    def _sync_mapping(self, mapping: ChannelMapping) -> SyncOutcome:
        ticket = self.ticketing.get_ticket(mapping.remote_ticket_id)
        if ticket is None:
            raise NotFoundError(ticket_not_found(mapping.remote_ticket_id))
        available = ticket.available

        def outcome(status: SyncStatus, message: str, previous: Optional[int] = None) -> SyncOutcome:
            return SyncOutcome(
                product_id=mapping.product_id,
                status=status,
                message=message,
                occurrence_key=mapping.occurrence_key,
                remote_ticket_id=mapping.remote_ticket_id,
                previous=previous,
                new=available,
            )

        if mapping.is_default:
            product = self.catalog.get_product(mapping.product_id)
            if product is None:
                raise NotFoundError(product_not_found(mapping.product_id))
            if not product.manage_stock:
                return outcome(SyncStatus.SKIPPED, "Product does not manage stock")
            current = product.stock_quantity
        else:
            occurrence_date, occurrence_time = split_occurrence_key(mapping.occurrence_key)
            current = self.catalog.get_occurrence_inventory(
                mapping.product_id, occurrence_date, occurrence_time
            )

        if current == available:
            return outcome(SyncStatus.UNCHANGED, "Inventory already matches", current)

        self.operation_log.log_operation(
            INVENTORY_SOURCE,
            "Update Local Inventory",
            {
                "product_id": mapping.product_id,
                "occurrence": mapping.occurrence_key or "default",
                "ticket_id": mapping.remote_ticket_id,
                "local": current,
                "remote_available": available,
            },
        )
        if self.settings.test_mode:
            return outcome(
                SyncStatus.SIMULATED,
                f"Test mode: inventory would change {current} -> {available}",
                current,
            )

        if mapping.is_default:
            self.catalog.set_stock_quantity(mapping.product_id, available)
        else:
            self.catalog.set_occurrence_inventory(
                mapping.product_id, occurrence_date, occurrence_time, available
            )
        logger.info(
            "Inventory for product %s (%s) updated %s -> %d",
            mapping.product_id,
            mapping.occurrence_key or "default",
            current,
            available,
        )
        return outcome(SyncStatus.UPDATED, f"Inventory updated {current} -> {available}", current)

    def check_ticket_mapping(
        self,
        product_id: int,
        remote_ticket_id: str,
        occurrence_date: Optional[date] = None,
        occurrence_time: Optional[time] = None,
    ) -> list[str]:
        """Check that a ticket class can be reached and fits the occurrence.

        Returns:
            Human-readable report lines; warnings start with "Warning:"

        Raises:
            NotFoundError: If the product or ticket class does not exist
            RemoteAPIError: If the ticketing service cannot be reached
        """
        product = self.catalog.get_product(product_id)
        if product is None:
            raise NotFoundError(product_not_found(product_id))
        ticket = self.ticketing.get_ticket(remote_ticket_id)
        if ticket is None:
            raise NotFoundError(ticket_not_found(remote_ticket_id))
        event = self.ticketing.get_event(ticket.event_id)

        lines = [f"Product: {product.name}", f"Ticket: {ticket.name} ({ticket.id})"]
        if occurrence_date is not None:
            lines.append(f"Occurrence: {occurrence_date.isoformat()}")
        if occurrence_time is not None:
            lines.append(f"Occurrence time: {format_time(occurrence_time)}")

        if event is not None:
            event_time = event.start.time().replace(second=0, microsecond=0)
            lines.append(f"Event: {event.name} on {event.start.date().isoformat()} at {format_time(event_time)}")
            if event.venue_name:
                lines.append(f"Venue: {event.venue_name}")
            if occurrence_date is not None and event.start.date() != occurrence_date:
                lines.append("Warning: event date differs from the occurrence date")
            if occurrence_time is not None and not is_time_close(
                occurrence_time, event_time, self.settings.time_buffer_minutes
            ):
                lines.append("Warning: event time is not close to the occurrence time")

        if ticket.free:
            lines.append("Warning: ticket class is free")
        lines.append(
            f"Capacity: {ticket.effective_capacity}, sold: {ticket.quantity_sold}, "
            f"available: {ticket.available}"
        )
        return lines

"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic so the storage schema can change
without touching the domain services.
"""

from ticketsync.domain import entities as domain
from ticketsync.database.models import (
    ChannelMapping as ORMChannelMapping,
    LedgerEntry as ORMLedgerEntry,
    OperationLog as ORMOperationLog,
)


def channel_mapping_to_domain(orm_mapping: ORMChannelMapping) -> domain.ChannelMapping:
    """Convert SQLAlchemy ChannelMapping model to domain ChannelMapping entity."""
    return domain.ChannelMapping(
        product_id=orm_mapping.product_id,
        occurrence_key=orm_mapping.occurrence_key or "",
        remote_ticket_id=orm_mapping.remote_ticket_id or "",
        remote_pos_id=orm_mapping.remote_pos_id or "",
    )


def ledger_entry_to_domain(orm_entry: ORMLedgerEntry) -> domain.SalesLedgerEntry:
    """Convert SQLAlchemy LedgerEntry model to domain SalesLedgerEntry entity."""
    return domain.SalesLedgerEntry(
        sale_date=orm_entry.sale_date,
        entry_key=orm_entry.entry_key,
        product_id=orm_entry.product_id,
        name=orm_entry.name or "",
        sku=orm_entry.sku or "",
        booking_date=orm_entry.booking_date,
        booking_time=orm_entry.booking_time,
        quantity=orm_entry.quantity,
        woocommerce=orm_entry.woocommerce,
        eventbrite=orm_entry.eventbrite,
        square=orm_entry.square,
    )


def apply_ledger_entry(orm_entry: ORMLedgerEntry, entry: domain.SalesLedgerEntry) -> None:
    """Copy a domain SalesLedgerEntry onto a SQLAlchemy LedgerEntry model."""
    orm_entry.sale_date = entry.sale_date
    orm_entry.entry_key = entry.entry_key
    orm_entry.product_id = entry.product_id
    orm_entry.name = entry.name
    orm_entry.sku = entry.sku
    orm_entry.booking_date = entry.booking_date
    orm_entry.booking_time = entry.booking_time
    orm_entry.quantity = entry.quantity
    orm_entry.woocommerce = entry.woocommerce
    orm_entry.eventbrite = entry.eventbrite
    orm_entry.square = entry.square


def operation_log_to_domain(orm_log: ORMOperationLog) -> domain.OperationLogEntry:
    """Convert SQLAlchemy OperationLog model to domain OperationLogEntry entity."""
    return domain.OperationLogEntry(
        id=orm_log.id,
        created_at=orm_log.created_at,
        source=orm_log.source,
        operation=orm_log.operation,
        details=orm_log.details or "",
        test_mode=orm_log.test_mode,
    )

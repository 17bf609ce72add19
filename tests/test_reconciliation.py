"""Tests for sale push, availability sync and mapping checks."""

import json
from datetime import date, datetime, time

import pytest

from ticketsync.config import Settings
from ticketsync.domain.entities import (
    ChannelMapping,
    LineItem,
    MappingEntry,
    Order,
    SyncStatus,
    TicketClass,
)
from ticketsync.domain.errors import NotFoundError, RemoteAPIError, ValidationError
from ticketsync.domain.reconciliation import ReconciliationService

SALE_DAY = date(2025, 3, 3)
FRIDAY = date(2025, 3, 7)


@pytest.fixture
def service(temp_db, catalog, ticketing):
    """Create a live-mode ReconciliationService."""
    return ReconciliationService(temp_db, catalog, ticketing)


@pytest.fixture
def simulating_service(temp_db, catalog, ticketing):
    """Create a ReconciliationService that only simulates writes."""
    return ReconciliationService(temp_db, catalog, ticketing, Settings(test_mode=True))


def completed_order(*items, status="completed"):
    return Order(id=500, status=status, created=SALE_DAY, line_items=tuple(items))


def friday_item(product_id=1, quantity=2):
    return LineItem(
        product_id=product_id,
        quantity=quantity,
        meta={"WooCommerceEventsDate": "March 7, 2025", "event_time": "8:00 PM"},
    )


def test_push_sale_lowers_remote_capacity(service, ticketing):
    service.mappings.save_default(1, "E1-T1")

    outcome = service.push_sale(1, 3)

    assert outcome.status == SyncStatus.UPDATED
    assert (outcome.previous, outcome.new) == (50, 47)
    assert ticketing.capacity_updates == [("E1-T1", 47)]


def test_push_sale_never_drops_capacity_below_sold(service, ticketing, event_factory):
    ticketing.events = [
        event_factory(
            tickets=[
                TicketClass(id="T", name="GA", event_id="E1", capacity=50, capacity_is_custom=True, quantity_sold=48)
            ]
        )
    ]
    service.mappings.save_default(1, "T")

    outcome = service.push_sale(1, 5)

    assert outcome.new == 48
    assert ticketing.capacity_updates == [("T", 48)]


def test_push_sale_uses_event_capacity_when_not_custom(service, ticketing, event_factory):
    ticketing.events = [
        event_factory(capacity=80, tickets=[TicketClass(id="T", name="GA", event_id="E1", event_capacity=80)])
    ]
    service.mappings.save_default(1, "T")

    assert service.push_sale(1, 1).new == 79


def test_push_sale_resolves_occurrence_mapping(service, ticketing, event_factory):
    ticketing.events.append(event_factory("E2"))
    service.mappings.save_default(1, "E1-T1")
    service.mappings.save(1, [MappingEntry(date=FRIDAY, time=time(20, 0), remote_ticket_id="E2-T1")])

    outcome = service.push_sale(1, 1, FRIDAY, time(20, 10))

    assert outcome.occurrence_key == "2025-03-07_20:00"
    assert ticketing.capacity_updates == [("E2-T1", 49)]


def test_push_sale_without_mapping_is_skipped(service, ticketing):
    outcome = service.push_sale(1, 1, FRIDAY)

    assert outcome.status == SyncStatus.SKIPPED
    assert ticketing.capacity_updates == []


def test_push_sale_remote_failure(service, ticketing):
    service.mappings.save_default(1, "E1-T1")
    ticketing.error = RemoteAPIError("eventbrite", "Unauthorized", 401)

    outcome = service.push_sale(1, 1)

    assert outcome.status == SyncStatus.FAILED
    assert "Unauthorized" in outcome.message


def test_push_sale_unknown_ticket(service):
    service.mappings.save_default(1, "missing")

    outcome = service.push_sale(1, 1)

    assert outcome.status == SyncStatus.FAILED
    assert "not found" in outcome.message


def test_push_sale_in_test_mode_only_logs(simulating_service, ticketing):
    simulating_service.mappings.save_default(1, "E1-T1")

    outcome = simulating_service.push_sale(1, 3, FRIDAY)

    assert outcome.status == SyncStatus.SIMULATED
    assert outcome.new == 47
    assert ticketing.capacity_updates == []
    records = simulating_service.operation_log.recent()
    assert len(records) == 1
    assert records[0].test_mode
    assert json.loads(records[0].details)["new_capacity"] == 47


def test_handle_order_completed_records_and_pushes(service, ticketing):
    service.mappings.save_default(1, "E1-T1")

    outcomes = service.handle_order_completed(completed_order(friday_item()))

    assert [o.status for o in outcomes] == [SyncStatus.UPDATED]
    assert ticketing.capacity_updates == [("E1-T1", 48)]
    entry = service.ledger.daily(SALE_DAY)[0]
    assert entry.entry_key == "1_2025-03-07_20:00"
    assert (entry.quantity, entry.woocommerce) == (2, 2)


def test_handle_order_ignores_incomplete_orders(service, ticketing):
    assert service.handle_order_completed(completed_order(friday_item(), status="processing")) == []
    assert service.ledger.daily(SALE_DAY) == []


def test_handle_order_continues_after_failed_item(service):
    outcomes = service.handle_order_completed(completed_order(friday_item(product_id=999), friday_item()))

    assert [o.status for o in outcomes] == [SyncStatus.FAILED, SyncStatus.SKIPPED]
    assert len(service.ledger.daily(SALE_DAY)) == 1


def test_handle_order_in_test_mode_logs_capacity_change(simulating_service, ticketing):
    simulating_service.mappings.save_default(1, "E1-T1")

    outcomes = simulating_service.handle_order_completed(completed_order(friday_item(quantity=3)))

    assert [o.status for o in outcomes] == [SyncStatus.SIMULATED]
    assert (outcomes[0].previous, outcomes[0].new) == (50, 47)
    assert simulating_service.ledger.daily(SALE_DAY) == []
    assert ticketing.capacity_updates == []

    records = simulating_service.operation_log.recent()
    assert [r.operation for r in records] == ["Update Ticket Capacity", "Order Completed"]
    details = json.loads(records[0].details)
    assert (details["capacity"], details["sold"], details["new_capacity"]) == (50, 10, 47)


def test_handle_order_continues_after_catalog_failure(service, catalog, monkeypatch):
    lookup = catalog.get_product

    def get_product(product_id):
        if product_id == 99:
            raise RemoteAPIError("catalog", "timeout", 504)
        return lookup(product_id)

    monkeypatch.setattr(catalog, "get_product", get_product)
    order = completed_order(LineItem(product_id=2, quantity=1, variation_id=99), friday_item())

    outcomes = service.handle_order_completed(order)

    assert [o.status for o in outcomes] == [SyncStatus.FAILED, SyncStatus.SKIPPED]
    assert "504" in outcomes[0].message
    assert [e.product_id for e in service.ledger.daily(SALE_DAY)] == [1]


def test_record_remote_sale(service):
    outcome = service.record_remote_sale("eventbrite", 1, 2, SALE_DAY, FRIDAY, time(20, 0))

    assert outcome.status == SyncStatus.UPDATED
    entry = service.ledger.daily(SALE_DAY)[0]
    assert (entry.quantity, entry.eventbrite) == (2, 2)


def test_record_remote_sale_unknown_product(service):
    outcome = service.record_remote_sale("square", 999, 1, SALE_DAY)

    assert outcome.status == SyncStatus.FAILED


def test_record_remote_sale_in_test_mode(simulating_service):
    outcome = simulating_service.record_remote_sale("square", 1, 2, SALE_DAY)

    assert outcome.status == SyncStatus.SIMULATED
    assert simulating_service.ledger.daily(SALE_DAY) == []


def test_sync_availability(service, catalog):
    service.mappings.save_default(1, "E1-T1")
    service.mappings.save_default(2, "E1-T1")
    service.mappings.save(
        1,
        [
            MappingEntry(date=FRIDAY, time=time(20, 0), remote_ticket_id="E1-T1"),
            MappingEntry(date=date(2025, 3, 14), remote_pos_id="POS-ONLY"),
        ],
    )
    catalog.occurrence_inventory[(1, FRIDAY, time(20, 0))] = 35

    outcomes = {(o.product_id, o.occurrence_key): o for o in service.sync_availability()}

    assert len(outcomes) == 3
    assert outcomes[(1, "")].status == SyncStatus.UNCHANGED
    assert outcomes[(2, "")].status == SyncStatus.SKIPPED
    occurrence = outcomes[(1, "2025-03-07_20:00")]
    assert occurrence.status == SyncStatus.UPDATED
    assert (occurrence.previous, occurrence.new) == (35, 40)
    assert catalog.inventory_writes == [(1, FRIDAY, time(20, 0), 40)]


def test_sync_availability_updates_product_stock(service, catalog):
    service.mappings.save_default(1, "E1-T1")
    catalog.set_stock_quantity(1, 12)
    catalog.stock_writes.clear()

    outcome = service.sync_availability()[0]

    assert outcome.status == SyncStatus.UPDATED
    assert catalog.stock_writes == [(1, 40)]
    assert catalog.products[1].stock_quantity == 40


def test_sync_availability_in_test_mode(simulating_service, catalog):
    simulating_service.mappings.save(1, [MappingEntry(date=FRIDAY, remote_ticket_id="E1-T1")])

    outcomes = simulating_service.sync_availability()

    assert [o.status for o in outcomes] == [SyncStatus.SIMULATED]
    assert catalog.inventory_writes == []
    assert len(simulating_service.operation_log.recent()) == 1


def test_sync_availability_continues_after_failure(service, catalog):
    service.mappings.save_default(1, "missing")
    service.mappings.save_default(2, "E1-T1")

    outcomes = service.sync_availability()

    assert [o.status for o in outcomes] == [SyncStatus.FAILED, SyncStatus.SKIPPED]


def test_sync_availability_reports_malformed_occurrence_key(service, temp_db):
    temp_db.replace_occurrence_mappings(1, [ChannelMapping(1, "legacy-key", "E1-T1", "")])
    service.mappings.save_default(2, "E1-T1")

    outcomes = service.sync_availability()

    assert [(o.occurrence_key, o.status) for o in outcomes] == [
        ("legacy-key", SyncStatus.FAILED),
        ("", SyncStatus.SKIPPED),
    ]


def test_check_ticket_mapping_matching_occurrence(service):
    lines = service.check_ticket_mapping(1, "E1-T1", FRIDAY, time(20, 0))

    assert "Product: Friday Improv 8pm" in lines
    assert "Venue: Main Stage" in lines
    assert not any(line.startswith("Warning:") for line in lines)
    assert lines[-1] == "Capacity: 50, sold: 10, available: 40"


def test_check_ticket_mapping_warnings(service, ticketing, event_factory):
    ticketing.events = [
        event_factory(
            start=datetime(2025, 3, 8, 22, 0),
            tickets=[TicketClass(id="F", name="Comp", event_id="E1", free=True)],
        )
    ]

    lines = service.check_ticket_mapping(1, "F", FRIDAY, time(20, 0))

    warnings = [line for line in lines if line.startswith("Warning:")]
    assert len(warnings) == 3


def test_check_ticket_mapping_unknown_ids(service):
    with pytest.raises(NotFoundError):
        service.check_ticket_mapping(999, "E1-T1")
    with pytest.raises(NotFoundError):
        service.check_ticket_mapping(1, "missing")


def test_record_remote_sale_unknown_channel(service):
    with pytest.raises(ValidationError, match="ticketmaster"):
        service.record_remote_sale("ticketmaster", 1, 1, SALE_DAY)

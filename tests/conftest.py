"""Shared pytest fixtures for ticketsync tests."""

import os
import tempfile
from dataclasses import replace
from datetime import date, datetime

import pytest

from ticketsync.config import Settings
from ticketsync.database.factories import create_sqlite_database
from ticketsync.domain.collaborators import (
    CatalogService,
    PointOfSaleService,
    TicketingService,
)
from ticketsync.domain.entities import PosOrderPage, Product, RemoteEvent, TicketClass
from ticketsync.domain.ledger import SalesLedgerService
from ticketsync.domain.mapping import MappingService


class FakeCatalog(CatalogService):
    """In-memory catalog."""

    def __init__(self):
        self.products = {}
        self.orders = []
        self.occurrence_inventory = {}
        self.inventory_writes = []
        self.stock_writes = []
        self.error = None

    def add_product(self, product):
        self.products[product.id] = product
        return product

    def get_product(self, product_id):
        if self.error is not None:
            raise self.error
        return self.products.get(product_id)

    def get_orders(self, status, start_date, end_date, offset, limit):
        matching = [
            order
            for order in self.orders
            if order.status == status and start_date <= order.created <= end_date
        ]
        return matching[offset : offset + limit]

    def get_occurrence_inventory(self, product_id, occurrence_date, occurrence_time):
        return self.occurrence_inventory.get((product_id, occurrence_date, occurrence_time))

    def set_occurrence_inventory(self, product_id, occurrence_date, occurrence_time, quantity):
        self.occurrence_inventory[(product_id, occurrence_date, occurrence_time)] = quantity
        self.inventory_writes.append((product_id, occurrence_date, occurrence_time, quantity))

    def set_stock_quantity(self, product_id, quantity):
        self.products[product_id] = replace(self.products[product_id], stock_quantity=quantity)
        self.stock_writes.append((product_id, quantity))


class FakeTicketing(TicketingService):
    """In-memory ticketing service that can be told to fail."""

    def __init__(self, events=()):
        self.events = list(events)
        self.capacity_updates = []
        self.error = None
        self.list_calls = 0

    def _check(self):
        if self.error is not None:
            raise self.error

    def list_org_events(self, status="live", page_size=50):
        self._check()
        self.list_calls += 1
        return list(self.events)

    def get_ticket(self, ticket_id):
        self._check()
        for event in self.events:
            for ticket in event.ticket_classes:
                if ticket.id == ticket_id:
                    return ticket
        return None

    def get_event(self, event_id):
        self._check()
        return next((event for event in self.events if event.id == event_id), None)

    def update_ticket_capacity(self, ticket_id, capacity):
        self._check()
        self.capacity_updates.append((ticket_id, capacity))

    def list_attendees(self, event_id):
        return []


class FakePointOfSale(PointOfSaleService):
    """Point-of-sale service serving pre-built pages keyed by cursor token.

    A page given as an exception instance is raised instead.
    """

    def __init__(self, pages=None):
        self.pages = pages or {None: PosOrderPage(orders=())}
        self.requested_cursors = []

    def list_catalog_items(self):
        return []

    def get_catalog_item(self, item_id):
        return None

    def test_connection(self):
        return True

    def list_orders(self, start_date, end_date, cursor, limit):
        self.requested_cursors.append(cursor)
        page = self.pages[cursor]
        if isinstance(page, Exception):
            raise page
        return page


def build_event(
    event_id="E1",
    name="Friday Improv",
    start=datetime(2025, 3, 7, 20, 0),
    venue_name="Main Stage",
    tickets=None,
    capacity=100,
):
    """Build a remote event with one paid ticket class by default."""
    if tickets is None:
        tickets = [
            TicketClass(
                id=f"{event_id}-T1",
                name="General Admission",
                event_id=event_id,
                capacity=50,
                capacity_is_custom=True,
                quantity_sold=10,
                event_capacity=capacity,
            )
        ]
    return RemoteEvent(
        id=event_id,
        name=name,
        start=start,
        venue_name=venue_name,
        capacity=capacity,
        ticket_classes=tuple(tickets),
    )


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def catalog():
    """In-memory catalog with two products."""
    catalog = FakeCatalog()
    catalog.add_product(
        Product(id=1, name="Friday Improv 8pm", sku="IMPROV-FRI", stock_quantity=40, manage_stock=True)
    )
    catalog.add_product(Product(id=2, name="Comedy Workshop", sku="WORKSHOP", stock_quantity=12))
    return catalog


@pytest.fixture
def ticketing():
    """Ticketing service with a single Friday event."""
    return FakeTicketing([build_event()])


@pytest.fixture
def event_factory():
    """Return the remote event builder."""
    return build_event


@pytest.fixture
def pos_factory():
    """Return the point-of-sale fake class for building paged sources."""
    return FakePointOfSale


@pytest.fixture
def settings():
    """Default settings (live mode, 30 minute time buffer)."""
    return Settings()


@pytest.fixture
def mapping_service(temp_db):
    """Create a MappingService with a temporary database."""
    return MappingService(temp_db)


@pytest.fixture
def ledger_service(temp_db, catalog):
    """Create a SalesLedgerService with a temporary database."""
    return SalesLedgerService(temp_db, catalog)


@pytest.fixture
def friday():
    """A Friday used as the reference occurrence date."""
    return date(2025, 3, 7)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()

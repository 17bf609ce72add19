"""Tests for Database interface returning domain models."""

from datetime import date, datetime, time

import pytest
from sqlalchemy.exc import IntegrityError

from ticketsync.domain import entities


def ledger_entry(**overrides):
    values = dict(
        sale_date=date(2025, 3, 3),
        entry_key="1_2025-03-07_20:00",
        product_id=1,
        name="Friday Improv 8pm",
        sku="IMPROV-FRI",
        booking_date=date(2025, 3, 7),
        booking_time=time(20, 0),
        quantity=3,
        woocommerce=2,
        eventbrite=1,
        square=0,
    )
    values.update(overrides)
    return entities.SalesLedgerEntry(**values)


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_default_mapping_returns_domain_model(self, temp_db):
        """Test that get_default_mapping returns a domain ChannelMapping."""
        assert temp_db.get_default_mapping(1) is None

        temp_db.set_default_mapping(1, "111", "SQ-1")

        mapping = temp_db.get_default_mapping(1)
        assert isinstance(mapping, entities.ChannelMapping)
        assert mapping == entities.ChannelMapping(1, "", "111", "SQ-1")

    def test_replace_occurrence_mappings_keeps_insertion_order(self, temp_db):
        """Test that occurrence mappings come back in the order they were written."""
        mappings = [
            entities.ChannelMapping(1, "2025-03-14", "B", ""),
            entities.ChannelMapping(1, "2025-03-07_20:00", "A", ""),
        ]

        assert temp_db.replace_occurrence_mappings(1, mappings) == 2
        assert temp_db.get_occurrence_mappings(1) == mappings

        # Replacing with the same keys must not collide with the old rows
        assert temp_db.replace_occurrence_mappings(1, list(reversed(mappings))) == 2
        assert temp_db.get_occurrence_mappings(1) == list(reversed(mappings))

    def test_replace_occurrence_mappings_rolls_back_on_error(self, temp_db):
        """Test that a failed replace leaves the previous mappings in place."""
        original = [entities.ChannelMapping(1, "2025-03-07", "A", "")]
        temp_db.replace_occurrence_mappings(1, original)

        duplicate = entities.ChannelMapping(1, "2025-03-14", "B", "")
        with pytest.raises(IntegrityError):
            temp_db.replace_occurrence_mappings(1, [duplicate, duplicate])

        assert temp_db.get_occurrence_mappings(1) == original

    def test_find_mappings_by_pos_id(self, temp_db):
        """Test lookup of mappings by point-of-sale item."""
        temp_db.set_default_mapping(1, "", "SQ-1")
        temp_db.replace_occurrence_mappings(1, [entities.ChannelMapping(1, "2025-03-07", "", "SQ-1")])
        temp_db.set_default_mapping(2, "", "SQ-2")

        mappings = temp_db.find_mappings_by_pos_id("SQ-1")

        assert [m.occurrence_key for m in mappings] == ["", "2025-03-07"]
        assert len(temp_db.list_mappings()) == 3

    def test_ledger_entry_roundtrip(self, temp_db):
        """Test that ledger entries keep their booking time and channel counts."""
        entry = ledger_entry()
        temp_db.save_ledger_entry(entry)

        stored = temp_db.get_ledger_entry(entry.sale_date, entry.entry_key)
        assert isinstance(stored, entities.SalesLedgerEntry)
        assert stored == entry

    def test_save_ledger_entry_overwrites_same_key(self, temp_db):
        """Test that saving an entry with an existing date and key updates it."""
        temp_db.save_ledger_entry(ledger_entry())
        temp_db.save_ledger_entry(ledger_entry(quantity=5, woocommerce=4))

        entries = temp_db.list_ledger_entries()
        assert len(entries) == 1
        assert entries[0].quantity == 5

    def test_ledger_entry_keeps_missing_counts(self, temp_db):
        """Test that legacy rows with missing counts are stored as NULL."""
        temp_db.save_ledger_entry(ledger_entry(quantity=None, square=None))

        stored = temp_db.get_ledger_entry(date(2025, 3, 3), "1_2025-03-07_20:00")
        assert stored.quantity is None
        assert stored.square is None
        assert not stored.is_consistent

    def test_list_ledger_entries_filters(self, temp_db):
        """Test date range and product filters."""
        temp_db.save_ledger_entry(ledger_entry())
        temp_db.save_ledger_entry(ledger_entry(sale_date=date(2025, 3, 5)))
        temp_db.save_ledger_entry(ledger_entry(entry_key="2", product_id=2))

        assert len(temp_db.list_ledger_entries(start_date=date(2025, 3, 4))) == 1
        assert len(temp_db.list_ledger_entries(end_date=date(2025, 3, 4))) == 2
        assert len(temp_db.list_ledger_entries(product_id=2)) == 1
        assert temp_db.clear_ledger() == 3
        assert temp_db.list_ledger_entries() == []

    def test_operation_logs(self, temp_db):
        """Test operation log records come back newest first."""
        first = temp_db.add_operation_log("Eventbrite", "one", "{}", True)
        second = temp_db.add_operation_log("Eventbrite", "two", "{}", False)

        records = temp_db.list_operation_logs()
        assert [r.id for r in records] == [second, first]
        assert isinstance(records[0].created_at, datetime)
        assert records[1].test_mode

        assert temp_db.prune_operation_logs(keep=1) == 1
        assert [r.id for r in temp_db.list_operation_logs()] == [second]
        assert temp_db.clear_operation_logs() == 1

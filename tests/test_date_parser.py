"""Tests for date parsing helpers."""

from datetime import date, datetime, timedelta

import pytest

from ticketsync.utils.date_parser import get_date_range, parse_date, parse_date_value


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


def test_parse_relative_dates():
    """Test parsing 'today', 'yesterday' and 'tomorrow'."""
    today = date.today()
    assert parse_date("today") == today
    assert parse_date(" Yesterday ") == today - timedelta(days=1)
    assert parse_date("tomorrow") == today + timedelta(days=1)


def test_parse_invalid_date():
    """Test parsing an invalid date string."""
    with pytest.raises(ValueError, match="Could not parse date"):
        parse_date("not a date")


def test_get_date_range_this_month():
    """Test this-month range."""
    start, end = get_date_range("this-month")
    today = date.today()
    assert start == today.replace(day=1)
    assert end == today


def test_get_date_range_last_week():
    """Test last-week range runs Monday to Sunday."""
    start, end = get_date_range("last-week")
    assert start.weekday() == 0
    assert (end - start).days == 6
    assert end < date.today()


def test_get_date_range_last_month():
    """Test last-month range ends the day before this month starts."""
    start, end = get_date_range("last-month")
    assert start.day == 1
    assert end == date.today().replace(day=1) - timedelta(days=1)


def test_get_date_range_unknown_period():
    """Test unknown period."""
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("next-decade")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2025-03-07", date(2025, 3, 7)),
        ("2025-03-07T20:00:00", date(2025, 3, 7)),
        ("03/07/2025", date(2025, 3, 7)),
        ("25/03/2025", date(2025, 3, 25)),
        ("07.03.2025", date(2025, 3, 7)),
        ("March 7, 2025", date(2025, 3, 7)),
        ({"date": "2025-03-07", "time": "20:00"}, date(2025, 3, 7)),
        (["2025-03-07", "2025-03-14"], date(2025, 3, 7)),
        (datetime(2025, 3, 7, 20, 0), date(2025, 3, 7)),
        (date(2025, 3, 7), date(2025, 3, 7)),
    ],
)
def test_parse_date_value(value, expected):
    assert parse_date_value(value) == expected


@pytest.mark.parametrize("value", [None, "", [], "2025-02-30", "8pm", "no date here"])
def test_parse_date_value_unparseable(value):
    assert parse_date_value(value) is None

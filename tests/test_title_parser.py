"""Tests for product title heuristics."""

from datetime import date, time

import pytest

from ticketsync.utils.title_parser import (
    DayOfWeek,
    common_times,
    extract_day,
    extract_time,
    upcoming_dates_for_day,
)

MONDAY = date(2025, 3, 3)


@pytest.mark.parametrize(
    "title, expected_day, expected_time",
    [
        ("Friday Improv 8pm", DayOfWeek.FRIDAY, time(20, 0)),
        ("Saturday Show 7:30 PM", DayOfWeek.SATURDAY, time(19, 30)),
        ("Late Show Thursday 11.45pm", DayOfWeek.THURSDAY, time(23, 45)),
        ("Thursday Jam 20:00", DayOfWeek.THURSDAY, time(20, 0)),
        ("Monday Drop-In 9 o'clock", DayOfWeek.MONDAY, time(9, 0)),
        ("Sunday Funday at 10", DayOfWeek.SUNDAY, None),
        ("Wednesday Brunch 12am", DayOfWeek.WEDNESDAY, time(0, 0)),
        ("Tuesday Lunch Set 12pm", DayOfWeek.TUESDAY, time(12, 0)),
        ("Weekly Comedy Night", None, None),
    ],
)
def test_extract_day_and_time(title, expected_day, expected_time):
    assert extract_day(title) == expected_day
    assert extract_time(title) == expected_time


def test_extract_day_is_case_insensitive():
    assert extract_day("FRIDAY LATE") == DayOfWeek.FRIDAY
    assert extract_day("friday late") == DayOfWeek.FRIDAY


def test_extract_day_prefers_sunday_when_several_days_appear():
    assert extract_day("Fridays and Sundays") == DayOfWeek.SUNDAY
    assert extract_day("Monday or Saturday") == DayOfWeek.MONDAY


def test_extract_day_matches_inside_longer_words():
    assert extract_day("Mondayitis Support Group") == DayOfWeek.MONDAY


def test_extract_time_skips_invalid_clock_values():
    assert extract_time("Open Mic 25:00") is None
    assert extract_time("Room 99:99 then 7pm") == time(19, 0)


def test_day_of_week_from_name():
    assert DayOfWeek.from_name(" friday ") == DayOfWeek.FRIDAY
    with pytest.raises(ValueError, match="Unknown day of week"):
        DayOfWeek.from_name("Funday")


def test_upcoming_dates_for_day_starts_at_next_occurrence():
    result = upcoming_dates_for_day(DayOfWeek.FRIDAY, 8, today=MONDAY)

    assert len(result) == 8
    assert result[0] == date(2025, 3, 7)
    assert result[-1] == date(2025, 4, 25)
    assert all(d.weekday() == DayOfWeek.FRIDAY for d in result)
    assert all((b - a).days == 7 for a, b in zip(result, result[1:]))


def test_upcoming_dates_single_date_on_same_day_is_today():
    assert upcoming_dates_for_day(DayOfWeek.MONDAY, 1, today=MONDAY) == [MONDAY]


def test_upcoming_dates_several_dates_on_same_day_start_next_week():
    result = upcoming_dates_for_day(DayOfWeek.MONDAY, 3, today=MONDAY)
    assert result == [date(2025, 3, 10), date(2025, 3, 17), date(2025, 3, 24)]


def test_upcoming_dates_zero_count():
    assert upcoming_dates_for_day(DayOfWeek.FRIDAY, 0, today=MONDAY) == []


def test_upcoming_dates_defaults_to_today():
    today = date.today()
    assert upcoming_dates_for_day(DayOfWeek(today.weekday()), 1) == [today]


def test_common_times():
    times = common_times()

    assert len(times) == 32
    assert times[0] == ("08:00", "8:00 AM")
    assert ("12:00", "12:00 PM") in times
    assert ("20:30", "8:30 PM") in times
    assert times[-1] == ("23:30", "11:30 PM")

"""Tests for time-of-day helpers."""

from datetime import datetime, time

import pytest

from ticketsync.utils.time_utils import (
    build_time,
    is_time_close,
    parse_time_value,
    to_24_hour,
)


def test_is_time_close_within_buffer():
    assert is_time_close(time(20, 0), time(20, 30))
    assert is_time_close(time(20, 30), time(20, 0))
    assert is_time_close(time(20, 0), time(20, 0))


def test_is_time_close_outside_buffer():
    assert not is_time_close(time(20, 0), time(20, 31))
    assert not is_time_close(time(19, 0), time(20, 0))


def test_is_time_close_custom_buffer():
    assert is_time_close(time(19, 0), time(20, 0), buffer_minutes=60)
    assert not is_time_close(time(20, 0), time(20, 10), buffer_minutes=5)


def test_is_time_close_missing_time():
    assert not is_time_close(None, time(20, 0))
    assert not is_time_close(time(20, 0), None)
    assert not is_time_close(None, None)


def test_is_time_close_does_not_wrap_midnight():
    assert not is_time_close(time(23, 50), time(0, 10))


@pytest.mark.parametrize(
    "hour, meridiem, expected",
    [
        (8, "pm", 20),
        (8, "PM", 20),
        (8, "p.m.", 20),
        (12, "pm", 12),
        (12, "am", 0),
        (9, "am", 9),
        (17, None, 17),
    ],
)
def test_to_24_hour(hour, meridiem, expected):
    assert to_24_hour(hour, meridiem) == expected


def test_build_time_out_of_range():
    assert build_time(24, 0) is None
    assert build_time(10, 60) is None
    assert build_time(23, 59) == time(23, 59)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("20:00", time(20, 0)),
        ("8pm", time(20, 0)),
        ("8:30 p.m.", time(20, 30)),
        ("0830", time(8, 30)),
        (time(20, 0, 15), time(20, 0)),
        (datetime(2025, 3, 7, 19, 30), time(19, 30)),
        ("25:00", None),
        ("", None),
        ("no time", None),
        (None, None),
    ],
)
def test_parse_time_value(value, expected):
    assert parse_time_value(value) == expected

"""Utility functions for ticketsync."""

from ticketsync.utils.date_parser import parse_date
from ticketsync.utils.time_utils import is_time_close
from ticketsync.utils.title_parser import extract_day, extract_time, upcoming_dates_for_day

__all__ = ["parse_date", "is_time_close", "extract_day", "extract_time", "upcoming_dates_for_day"]

"""CLI helpers for date and time options."""

from datetime import date, time
from typing import Optional

import click

from ticketsync.utils.date_parser import get_date_range, parse_date
from ticketsync.utils.time_utils import parse_time_value

PERIODS = ("this-month", "this-week", "last-month", "last-week")


def parse_cli_date(ctx: click.Context, value: Optional[str], label: str) -> Optional[date]:
    """Parse a date option, exiting with an error message when invalid."""
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_cli_time(ctx: click.Context, value: Optional[str]) -> Optional[time]:
    """Parse a time option such as "20:00" or "8pm"."""
    if not value:
        return None
    parsed = parse_time_value(value)
    if parsed is None:
        click.echo(f"Error: Invalid time: '{value}'", err=True)
        ctx.exit(1)
    return parsed


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
    default_range: tuple[date, date] | None = None,
) -> tuple[date, date]:
    """Resolve a CLI date range from a period name or explicit dates.

    A missing start or end falls back to the other bound, so a single
    --start-date selects one day.
    """
    if period and (start_date or end_date):
        click.echo(
            "Error: --period cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    if period:
        return get_date_range(period)

    start = parse_cli_date(ctx, start_date, "start date")
    end = parse_cli_date(ctx, end_date, "end date")

    if start is None and end is None:
        if default_range is None:
            click.echo("Error: Provide --period or --start-date/--end-date.", err=True)
            ctx.exit(1)
        return default_range

    start = start or end
    end = end or start
    if start > end:
        click.echo(f"Error: Start date {start} is after end date {end}.", err=True)
        ctx.exit(1)
    return start, end

"""Title heuristics commands."""

import click
from ticketsync.utils.title_parser import (
    DEFAULT_UPCOMING_COUNT,
    common_times,
    extract_day,
    extract_time,
    upcoming_dates_for_day,
)


@click.command("title")
@click.argument("product_title")
@click.option(
    "--count",
    type=int,
    default=DEFAULT_UPCOMING_COUNT,
    show_default=True,
    help="Number of upcoming dates to list",
)
def inspect_title(product_title: str, count: int):
    """Show the weekday, time and upcoming dates read from a product title.

    Examples:
        ticketsync title "Friday Improv 8pm"
        ticketsync title "Sunday Funday at 10" --count 4
    """
    day = extract_day(product_title)
    show_time = extract_time(product_title)

    click.echo(f"Day:  {day.name.title() if day is not None else '-'}")
    click.echo(f"Time: {show_time.strftime('%H:%M') if show_time is not None else '-'}")
    if day is None:
        click.echo("No weekday found; occurrences cannot be inferred from this title.")
        return

    click.echo("\nUpcoming dates:")
    for upcoming in upcoming_dates_for_day(day, count):
        click.echo(f"  {upcoming.isoformat()} ({upcoming.strftime('%A')})")


@click.command("times")
def list_times():
    """List the half-hourly times offered when mapping occurrences."""
    for value, label in common_times():
        click.echo(f"{value}  {label}")


def register_commands(cli):
    """Register title heuristics commands with main CLI."""
    cli.add_command(inspect_title)
    cli.add_command(list_times)

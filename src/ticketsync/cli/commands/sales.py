"""Sales ledger commands."""

import json

import click
from ticketsync.cli.date_filters import PERIODS, parse_cli_date, resolve_cli_date_range
from ticketsync.cli.error_handling import handle_domain_error
from ticketsync.domain.entities import ChannelTotals
from ticketsync.domain.errors import DomainError
from ticketsync.domain.ledger import SalesLedgerService


def _channels(totals: ChannelTotals) -> str:
    return (
        f"total {totals.quantity:4d} | woocommerce {totals.woocommerce:4d} | "
        f"eventbrite {totals.eventbrite:4d} | square {totals.square:4d}"
    )


def _range_options(func):
    func = click.option("--period", type=click.Choice(PERIODS), help="Named period")(func)
    func = click.option("--end-date", help="End date (inclusive)")(func)
    func = click.option("--start-date", help="Start date (inclusive)")(func)
    return func


@click.group()
def sales_group():
    """Inspect and maintain the sales ledger."""
    pass


@sales_group.command("daily")
@click.argument("sale_date")
@click.option("--product-id", type=int, help="Only this product")
@click.option("--booking-date", help="Only sales for this occurrence date")
@click.pass_context
def daily_sales(ctx, sale_date: str, product_id: int | None, booking_date: str | None):
    """Show ledger entries for SALE_DATE."""
    day = parse_cli_date(ctx, sale_date, "sale date")
    booking = parse_cli_date(ctx, booking_date, "booking date")
    service = SalesLedgerService(ctx.obj["db"])

    entries = service.daily(day, product_id=product_id, booking_date=booking)
    if not entries:
        click.echo(f"No sales recorded on {day}.")
        return

    click.echo(f"\nSales on {day}:")
    click.echo("-" * 90)
    for entry in entries:
        occurrence = entry.booking_date.isoformat() if entry.booking_date else "-"
        click.echo(
            f"{entry.name[:30]:30s} | {occurrence:10s} | qty {entry.quantity:3d} "
            f"(wc {entry.woocommerce}, eb {entry.eventbrite}, sq {entry.square})"
        )


@sales_group.command("summary")
@_range_options
@click.option("--by-occurrence", is_flag=True, help="List totals per product occurrence")
@click.pass_context
def sales_summary(ctx, start_date, end_date, period, by_occurrence: bool):
    """Summarize sales per channel and per day."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period=period
    )
    service = SalesLedgerService(ctx.obj["db"])

    try:
        summary = service.summary(start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nSales {start} to {end}")
    click.echo("=" * 80)
    click.echo(_channels(summary.totals))

    if by_occurrence:
        click.echo("\nBy occurrence:")
        for key, sales in sorted(service.total(start, end).items()):
            click.echo(f"  {key:24s} {sales.name[:24]:24s} {_channels(sales.totals)}")
        return

    if summary.days:
        click.echo("\nBy day:")
        for day in sorted(summary.days):
            click.echo(f"  {day.isoformat()}  {_channels(summary.days[day].totals)}")


@sales_group.command("products")
@_range_options
@click.pass_context
def product_summary(ctx, start_date, end_date, period):
    """Show total quantity per product and per booking date."""
    start = end = None
    if start_date or end_date or period:
        start, end = resolve_cli_date_range(
            ctx, start_date=start_date, end_date=end_date, period=period
        )
    service = SalesLedgerService(ctx.obj["db"])
    summaries = service.product_summary(start, end)
    if not summaries:
        click.echo("No sales recorded.")
        return

    for summary in sorted(summaries.values(), key=lambda s: -s.total_quantity):
        click.echo(f"\n{summary.name} (ID: {summary.product_id}): {summary.total_quantity}")
        for booking_date in sorted(summary.booking_dates):
            click.echo(f"  {booking_date.isoformat()}: {summary.booking_dates[booking_date]}")


@sales_group.command("import-legacy")
@click.argument("json_file", type=click.Path(exists=True))
@click.pass_context
def import_legacy(ctx, json_file: str):
    """Load a legacy ledger export ({date: {key: entry}})."""
    with open(json_file, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            click.echo(f"Error: Invalid JSON in {json_file}: {e}", err=True)
            ctx.exit(1)
    if not isinstance(data, dict):
        click.echo("Error: Legacy ledger must be a JSON object keyed by date", err=True)
        ctx.exit(1)

    result = SalesLedgerService(ctx.obj["db"]).import_legacy(data)
    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result['imported']} entries")
    click.echo(f"  Skipped: {result['skipped']} entries")
    for error in result["errors"]:
        click.echo(f"    {error}", err=True)


@sales_group.command("reset")
@click.confirmation_option(prompt="Delete every ledger entry?")
@click.pass_context
def reset_ledger(ctx):
    """Delete the whole sales ledger."""
    deleted = SalesLedgerService(ctx.obj["db"]).reset()
    click.echo(f"Deleted {deleted} ledger entries.")


def register_commands(cli):
    """Register sales commands with main CLI."""
    cli.add_command(sales_group, name="sales")

"""Channel mapping commands."""

import json

import click
from ticketsync.cli.date_filters import parse_cli_date, parse_cli_time
from ticketsync.cli.error_handling import handle_domain_error
from ticketsync.domain.entities import MappingEntry
from ticketsync.domain.errors import DomainError
from ticketsync.domain.mapping import MappingService
from ticketsync.utils.date_parser import parse_date_value
from ticketsync.utils.time_utils import parse_time_value


def _mapping_service(ctx) -> MappingService:
    return MappingService(ctx.obj["db"], ctx.obj["settings"].time_buffer_minutes)


def _describe(mapping) -> str:
    ticket = mapping.remote_ticket_id or "-"
    pos = mapping.remote_pos_id or "-"
    return f"ticket: {ticket:15s} | pos: {pos}"


@click.group()
def mapping_group():
    """Manage remote ticket and point-of-sale mappings."""
    pass


@mapping_group.command("set-default")
@click.argument("product_id", type=int)
@click.option("--ticket-id", default="", help="Remote ticket class ID")
@click.option("--pos-id", default="", help="Point-of-sale catalog item ID")
@click.pass_context
def set_default(ctx, product_id: int, ticket_id: str, pos_id: str):
    """Set the product-level default mapping.

    The default applies to every occurrence without its own mapping.

    Examples:
        ticketsync mapping set-default 42 --ticket-id 123456789
        ticketsync mapping set-default 42 --pos-id ABCDEF
    """
    service = _mapping_service(ctx)
    mapping = service.save_default(product_id, ticket_id, pos_id)
    click.echo(f"Default mapping for product {product_id}: {_describe(mapping)}")


@mapping_group.command("save")
@click.argument("product_id", type=int)
@click.argument("mappings_file", type=click.Path(exists=True))
@click.pass_context
def save_mappings(ctx, product_id: int, mappings_file: str):
    """Replace all occurrence mappings of a product from a JSON file.

    The file holds a list of objects with "date", optional "time",
    "ticket_id" and "pos_id". Mappings not listed are removed.

    Example file:
        [{"date": "2025-03-07", "time": "20:00", "ticket_id": "111"}]
    """
    with open(mappings_file, encoding="utf-8") as f:
        try:
            rows = json.load(f)
        except json.JSONDecodeError as e:
            click.echo(f"Error: Invalid JSON in {mappings_file}: {e}", err=True)
            ctx.exit(1)

    if not isinstance(rows, list):
        click.echo("Error: Mappings file must contain a list", err=True)
        ctx.exit(1)

    entries = []
    for index, row in enumerate(rows, start=1):
        occurrence_date = parse_date_value(row.get("date")) if isinstance(row, dict) else None
        if occurrence_date is None:
            click.echo(f"Error: Row {index} has no valid date", err=True)
            ctx.exit(1)
        entries.append(
            MappingEntry(
                date=occurrence_date,
                time=parse_time_value(row.get("time")),
                remote_ticket_id=str(row.get("ticket_id") or ""),
                remote_pos_id=str(row.get("pos_id") or ""),
            )
        )

    service = _mapping_service(ctx)
    try:
        count = service.save(product_id, entries)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Saved {count} occurrence mapping(s) for product {product_id}")


@mapping_group.command("resolve")
@click.argument("product_id", type=int)
@click.option("--date", "date_str", help="Occurrence date")
@click.option("--time", "time_str", help="Occurrence time (e.g. 20:00 or 8pm)")
@click.pass_context
def resolve_mapping(ctx, product_id: int, date_str: str | None, time_str: str | None):
    """Show which mapping a sale of PRODUCT_ID would use."""
    occurrence_date = parse_cli_date(ctx, date_str, "date")
    occurrence_time = parse_cli_time(ctx, time_str)

    service = _mapping_service(ctx)
    mapping = service.resolve(product_id, occurrence_date, occurrence_time)
    if mapping.is_empty:
        click.echo(f"Product {product_id} has no mapping for this occurrence.")
        return
    scope = mapping.occurrence_key or "default"
    click.echo(f"{scope}: {_describe(mapping)}")


@mapping_group.command("list")
@click.argument("product_id", type=int, required=False)
@click.pass_context
def list_mappings(ctx, product_id: int | None):
    """List stored mappings, optionally for one product."""
    service = _mapping_service(ctx)
    if product_id is None:
        mappings = service.list_all()
    else:
        mappings = [service.get_default(product_id)] + service.list_occurrence_mappings(product_id)
        mappings = [m for m in mappings if not m.is_empty]

    if not mappings:
        click.echo("No mappings found.")
        return

    click.echo("\nMappings:")
    click.echo("-" * 70)
    for m in mappings:
        click.echo(f"Product {m.product_id:5d} | {m.occurrence_key or 'default':16s} | {_describe(m)}")


def register_commands(cli):
    """Register mapping commands with main CLI."""
    cli.add_command(mapping_group, name="mapping")

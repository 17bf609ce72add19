"""Operation log commands."""

import click
from ticketsync.domain.operation_log import OperationLogService


@click.group()
def logs_group():
    """Review operations recorded in test mode or with live logging."""
    pass


@logs_group.command("show")
@click.option("--limit", type=int, default=50, show_default=True, help="Records to show")
@click.option("--test-only", is_flag=True, help="Only show test mode records")
@click.pass_context
def show_logs(ctx, limit: int, test_only: bool):
    """Show the newest operation log records."""
    service = OperationLogService(ctx.obj["db"], ctx.obj["settings"])
    records = service.recent(limit)
    if test_only:
        records = [r for r in records if r.test_mode]

    if not records:
        click.echo("No operations logged.")
        return

    for record in records:
        marker = "[TEST] " if record.test_mode else ""
        timestamp = record.created_at.strftime("%Y-%m-%d %H:%M:%S")
        click.echo(f"{timestamp} {marker}{record.source} - {record.operation}")
        if record.details:
            click.echo(f"    {record.details}")


@logs_group.command("clear")
@click.confirmation_option(prompt="Delete all operation log records?")
@click.pass_context
def clear_logs(ctx):
    """Delete all operation log records."""
    deleted = OperationLogService(ctx.obj["db"], ctx.obj["settings"]).clear()
    click.echo(f"Deleted {deleted} log records.")


def register_commands(cli):
    """Register operation log commands with main CLI."""
    cli.add_command(logs_group, name="logs")

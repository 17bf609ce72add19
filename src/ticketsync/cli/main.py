"""Main CLI entry point."""

import logging

import click
from ticketsync.config import Settings
from ticketsync.database.factories import create_sqlite_database

# Import and register all commands at module level
from ticketsync.cli.commands import logs, mapping, sales, title


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides TICKETSYNC_DB_PATH environment variable)",
    envvar="TICKETSYNC_DB_PATH",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Ticketsync - keep event tickets in step across sales channels.

    Map catalog product occurrences to remote ticket and point-of-sale
    records, and review the per-channel sales ledger.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            ctx.obj["settings"] = Settings.from_env()
        except ValueError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
mapping.register_commands(cli)
sales.register_commands(cli)
title.register_commands(cli)
logs.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

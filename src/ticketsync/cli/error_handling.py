"""CLI error handling helpers."""

import logging

import click

from ticketsync.domain.errors import ConfigurationError, DomainError, RemoteAPIError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    logger.debug("Command failed", exc_info=error)
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, ConfigurationError):
        click.echo("Check the service credentials in your environment.", err=True)
    elif isinstance(error, RemoteAPIError) and error.status_code in (401, 403):
        click.echo(f"The {error.service} credentials were rejected.", err=True)
    ctx.exit(1)

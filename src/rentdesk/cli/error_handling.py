"""CLI error handling helpers."""

import logging

import click

from rentdesk.domain.errors import DataSourceError, DomainError, NoDataError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError) -> None:
    """Print a domain error to stderr and exit with status 1.

    The underlying cause is only logged, so it shows up with --verbose.
    """
    logger.debug("%s in '%s'", type(error).__name__, ctx.command_path, exc_info=error)
    if isinstance(error, NoDataError):
        click.echo(f"Error: {error}. Try a wider date range or other filters.", err=True)
    elif isinstance(error, DataSourceError):
        click.echo(f"Error: could not read the database ({error})", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)

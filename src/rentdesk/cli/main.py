"""Main CLI entry point."""

import logging

import click
from rentdesk.config import DB_PATH_ENVVAR
from rentdesk.database.factories import create_sqlite_database

# Import and register all commands at module level
from rentdesk.cli.commands import (
    sale,
    financial,
    goals,
    process,
    notification,
    export,
)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENVVAR} environment variable)",
    envvar=DB_PATH_ENVVAR,
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """Rentdesk - Vacation rental sales management.

    Register sales, follow financial reports and annual goals, and drive the
    concierge process for upcoming reservations.
    """
    ctx.ensure_object(dict)
    _configure_logging(verbose)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
sale.register_commands(cli)
financial.register_commands(cli)
goals.register_commands(cli)
process.register_commands(cli)
notification.register_commands(cli)
export.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()

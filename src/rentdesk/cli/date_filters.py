"""CLI helpers for date range resolution."""

from datetime import date

import click

from rentdesk.utils.date_parser import get_date_range, parse_date

PERIOD_FLAG_NAMES = (
    "this-month",
    "this-quarter",
    "this-year",
    "last-month",
    "last-quarter",
    "last-year",
)


def period_options(command):
    """Attach --start-date, --end-date and the period flags to a command.

    The flags reach the command as keyword arguments named this_month,
    last_year and so on; pass them on as ``period_flags``.
    """
    for name in reversed(PERIOD_FLAG_NAMES):
        command = click.option(f"--{name}", is_flag=True, help=f"Filter to {name.replace('-', ' ')}")(command)
    command = click.option("--end-date", help="End date (YYYY-MM-DD, DD/MM/YYYY or relative like 'today')")(command)
    command = click.option("--start-date", help="Start date (YYYY-MM-DD, DD/MM/YYYY or relative like 'last month')")(
        command
    )
    return command


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from period flags or explicit dates."""
    selected = [name for name, is_set in period_flags.items() if is_set]

    if len(selected) > 1:
        flags = ", ".join(f"--{name}" for name in PERIOD_FLAG_NAMES)
        click.echo(f"Error: Only one period option ({flags}) can be specified at a time.", err=True)
        ctx.exit(1)

    if selected and (start_date or end_date):
        click.echo(
            "Error: Period options (--this-month, --this-year, etc.) cannot be combined with --start-date or --end-date.",
            err=True,
        )
        ctx.exit(1)

    start = None
    end = None

    if selected:
        start, end = get_date_range(selected[0].replace("_", "-"))
    else:
        if start_date:
            try:
                start = parse_date(start_date)
            except ValueError as e:
                click.echo(f"Error: Invalid start date: {e}", err=True)
                ctx.exit(1)

        if end_date:
            try:
                end = parse_date(end_date)
            except ValueError as e:
                click.echo(f"Error: Invalid end date: {e}", err=True)
                ctx.exit(1)

        if start is None and end is None and default_range is not None:
            start, end = default_range

    return start, end

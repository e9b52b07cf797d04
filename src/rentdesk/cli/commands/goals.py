"""Goal setting and tracking commands."""

from datetime import date
from decimal import Decimal

import click
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.config import GOAL_CATEGORY_LABELS
from rentdesk.domain.entities import GoalCategory, GoalPeriod
from rentdesk.domain.errors import DomainError
from rentdesk.domain.goals import GoalsService
from rentdesk.utils.amount_parser import parse_amount
from rentdesk.utils.formatting import format_currency, format_percentage

PERIOD_CHOICES = [period.value for period in GoalPeriod]

STATUS_LABELS = {
    "below_target": "abaixo da meta",
    "on_track": "no caminho",
    "exceeded": "superada",
}


def goal_value_options(command):
    """Attach one option per goal category."""
    for category in reversed(list(GoalCategory)):
        option = "--" + category.value.replace("_", "-")
        label = GOAL_CATEGORY_LABELS[category.value]
        command = click.option(option, f"{category.value}_goal", default="0", help=f"Goal for {label}")(command)
    return command


def _parse_goal_values(ctx, raw: dict[str, str]) -> dict[str, Decimal]:
    values = {}
    for name, value in raw.items():
        try:
            values[name] = parse_amount(value)
        except ValueError as e:
            click.echo(f"Error: Invalid {name.replace('_', ' ')}: {e}", err=True)
            ctx.exit(1)
    return values


def _format_goal(category: GoalCategory, value: Decimal) -> str:
    if category == GoalCategory.CONTRACTS_QUANTITY:
        return f"{value.normalize():f}"
    return format_currency(value)


@click.group()
def goals_group():
    """Set annual and monthly goals and follow their achievement."""
    pass


@goals_group.command("set-annual")
@click.argument("year", type=int)
@goal_value_options
@click.option("--created-by", help="Who set the goal")
@click.pass_context
def set_annual(ctx, year: int, created_by: str | None, **raw_goals: str) -> None:
    """Create or replace the annual goal of YEAR.

    Examples:
        rentdesk goals set-annual 2024 --rental-sales 1200000 --contracts-quantity 120
    """
    service = GoalsService(ctx.obj["db"])
    goals = _parse_goal_values(ctx, raw_goals)
    try:
        goal_id = service.save_annual_goal(year, created_by=created_by, **goals)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Saved annual goal for {year} (ID: {goal_id})")


@goals_group.command("set-monthly")
@click.argument("year", type=int)
@click.argument("month", type=int)
@goal_value_options
@click.pass_context
def set_monthly(ctx, year: int, month: int, **raw_goals: str) -> None:
    """Create or replace the goal of MONTH (1-12) in YEAR."""
    service = GoalsService(ctx.obj["db"])
    goals = _parse_goal_values(ctx, raw_goals)
    try:
        goal_id = service.save_monthly_goal(year, month, **goals)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Saved goal for {month:02d}/{year} (ID: {goal_id})")


@goals_group.command("thermometer")
@click.argument("year", type=int, required=False)
@click.pass_context
def thermometer(ctx, year: int | None) -> None:
    """Show the year-to-date achievement against the annual goal."""
    year = year or date.today().year
    service = GoalsService(ctx.obj["db"])
    try:
        data = service.annual_thermometer(year)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not data.categories:
        click.echo(f"No annual goal set for {year}.")
        return

    click.echo(
        f"{year}: {format_percentage(data.percentage)} of the annual goal "
        f"({STATUS_LABELS[data.status.value]})"
    )
    click.echo(f"{'Category':<26} {'Goal':>16} {'Achieved':>16} {'%':>9}  Status")
    click.echo("-" * 84)
    for comparison in data.categories:
        click.echo(
            f"{comparison.category_label:<26} {_format_goal(comparison.category, comparison.goal):>16} "
            f"{_format_goal(comparison.category, comparison.achieved):>16} "
            f"{format_percentage(comparison.percentage):>9}  {STATUS_LABELS[comparison.status.value]}"
        )


@goals_group.command("monthly")
@click.argument("year", type=int, required=False)
@click.option("--period", type=click.Choice(PERIOD_CHOICES), default=GoalPeriod.ANNUAL.value, help="Months to show")
@click.option("--start-month", type=int, help="First month (1-12)")
@click.option("--end-month", type=int, help="Last month (1-12)")
@click.pass_context
def monthly(ctx, year: int | None, period: str, start_month: int | None, end_month: int | None) -> None:
    """Show goal versus achievement month by month."""
    year = year or date.today().year
    service = GoalsService(ctx.obj["db"])
    try:
        dashboard = service.dashboard(year, period=period, start_month=start_month, end_month=end_month)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for month_data in dashboard.monthly_data:
        click.echo(f"\n{month_data.month_label} {year}")
        for comparison in month_data.comparisons:
            line = (
                f"  {comparison.category_label:<26} {_format_goal(comparison.category, comparison.goal):>16} "
                f"{_format_goal(comparison.category, comparison.achieved):>16} "
                f"{format_percentage(comparison.percentage):>9}"
            )
            if comparison.revenue_percentage is not None:
                line += f"  ({format_percentage(comparison.revenue_percentage)} of revenue)"
            click.echo(line)

    charts = dashboard.charts.thermometer
    click.echo(
        f"\nAnnual: {format_currency(charts.achieved)} of {format_currency(charts.goal)}"
        f" ({format_percentage(charts.percentage)}), remaining {format_currency(charts.remaining)}"
    )


def register_commands(cli: click.Group) -> None:
    """Register goal commands with main CLI."""
    cli.add_command(goals_group, name="goals")

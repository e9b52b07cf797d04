"""Concierge process commands."""

from datetime import datetime, time, timedelta

import click
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.entities import STEP_LABELS, Priority, ProcessStatus, ProcessStep
from rentdesk.domain.errors import DomainError
from rentdesk.domain.process import ProcessService
from rentdesk.domain.reports import ProcessFilters
from rentdesk.utils.date_parser import parse_date
from rentdesk.utils.formatting import format_currency, format_date_br, format_percentage

STEP_CHOICES = [step.value for step in ProcessStep]
PRIORITY_CHOICES = [priority.value for priority in Priority]
STATUS_CHOICES = [status.value for status in ProcessStatus]

# Default dashboard window around today
DEFAULT_WINDOW_DAYS = 30


def process_filter_options(command):
    """Attach the process dashboard filter options to a command."""
    command = click.option("--step", type=click.Choice(STEP_CHOICES), help="Filter by current step")(command)
    command = click.option("--priority", type=click.Choice(PRIORITY_CHOICES), help="Filter by priority")(command)
    command = click.option("--status", help="Filter by process or reservation status")(command)
    command = click.option("--house-id", help="Filter by house")(command)
    command = click.option("--end", "end_date", help="End of the window (default: 30 days from today)")(command)
    command = click.option("--start", "start_date", help="Start of the window (default: 30 days ago)")(command)
    return command


def build_process_filters(ctx, start_date, end_date, house_id, status, priority, step) -> ProcessFilters:
    """Turn raw CLI options into ProcessFilters, exiting on bad dates."""
    today = datetime.now().date()
    try:
        start = parse_date(start_date) if start_date else today - timedelta(days=DEFAULT_WINDOW_DAYS)
        end = parse_date(end_date) if end_date else today + timedelta(days=DEFAULT_WINDOW_DAYS)
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)
    return ProcessFilters(
        start=datetime.combine(start, time.min),
        end=datetime.combine(end, time.max),
        house_id=house_id,
        status=status,
        priority=priority,
        step=ProcessStep(step) if step else None,
    )


@click.group()
def process_group():
    """Manage concierge processes."""
    pass


@process_group.command("create")
@click.argument("sale_id", type=int)
@click.option("--priority", type=click.Choice(PRIORITY_CHOICES), default=Priority.MEDIUM.value, help="Process priority")
@click.pass_context
def create_process(ctx, sale_id: int, priority: str) -> None:
    """Open a concierge process for the reservation SALE_ID."""
    service = ProcessService(ctx.obj["db"])
    try:
        process_id = service.create_process(sale_id, priority=priority)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created concierge process (ID: {process_id}) for sale {sale_id}")


@process_group.command("list")
@process_filter_options
@click.pass_context
def list_processes(ctx, start_date, end_date, house_id, status, priority, step) -> None:
    """List concierge processes created inside the window."""
    filters = build_process_filters(ctx, start_date, end_date, house_id, status, priority, step)
    service = ProcessService(ctx.obj["db"])
    try:
        processes = service.concierge_processes(filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not processes:
        click.echo("No concierge processes found.")
        return

    click.echo(f"{'ID':<6} {'Client':<22} {'House':<22} {'Check-in':<12} {'Step':<26} {'Done':>5} {'Status':<12} {'Priority':<8}")
    click.echo("-" * 120)
    for process in processes:
        click.echo(
            f"{process.id:<6} {process.client_name[:22]:<22} {process.house_name[:22]:<22} "
            f"{format_date_br(process.check_in):<12} {STEP_LABELS[process.current_step]:<26} "
            f"{process.completed_steps:>3}/{process.total_steps} {process.status.value:<12} {process.priority.value:<8}"
        )


@process_group.command("show")
@click.argument("process_id", type=int)
@click.pass_context
def show_process(ctx, process_id: int) -> None:
    """Show a process and the state of each step."""
    service = ProcessService(ctx.obj["db"])
    process = service.get_process(process_id)
    if process is None:
        click.echo(f"Error: Concierge process {process_id} not found", err=True)
        ctx.exit(1)

    click.echo(f"Process {process.id}: {process.client_name} at {process.house_name}")
    click.echo(f"  Stay: {format_date_br(process.check_in)} - {format_date_br(process.check_out)}")
    click.echo(f"  Status: {process.status.value}  Priority: {process.priority.value}")
    for step in ProcessStep:
        state = process.steps[step]
        marker = "x" if state.completed else " "
        line = f"  [{marker}] {STEP_LABELS[step]}"
        if state.completed_at:
            line += f" ({state.completed_at:%d/%m/%Y %H:%M})"
        if state.notes:
            line += f" - {state.notes}"
        click.echo(line)


@process_group.command("advance")
@click.argument("process_id", type=int)
@click.argument("step", type=click.Choice(STEP_CHOICES))
@click.option("--notes", help="Notes recorded on the step")
@click.pass_context
def advance(ctx, process_id: int, step: str, notes: str | None) -> None:
    """Mark STEP of a process as completed."""
    service = ProcessService(ctx.obj["db"])
    try:
        service.advance_step(process_id, step, notes=notes)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Process {process_id}: '{STEP_LABELS[ProcessStep(step)]}' completed")


@process_group.command("dashboard")
@process_filter_options
@click.pass_context
def dashboard(ctx, start_date, end_date, house_id, status, priority, step) -> None:
    """Show reservations, process metrics and step performance."""
    filters = build_process_filters(ctx, start_date, end_date, house_id, status, priority, step)
    service = ProcessService(ctx.obj["db"])
    try:
        data = service.dashboard(filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    metrics = data.metrics
    click.echo("Metrics")
    click.echo(f"  Reservations: {metrics.total_reservations}")
    click.echo(f"  Active processes: {metrics.active_concierge_processes}")
    click.echo(f"  Completed processes: {metrics.completed_processes}")
    click.echo(f"  Overdue processes: {metrics.overdue_processes}")
    click.echo(f"  Average process time: {metrics.average_process_time:.1f}h")
    click.echo(f"  Completion rate: {format_percentage(metrics.completion_rate)}")
    click.echo(
        f"  This month: {metrics.this_month.new_reservations} new, "
        f"{metrics.this_month.completed_processes} completed"
    )
    click.echo(
        f"  Last month: {metrics.last_month.new_reservations} new, "
        f"{metrics.last_month.completed_processes} completed"
    )

    if data.reservations:
        click.echo("\nUpcoming reservations")
        for reservation in data.reservations:
            process = f"process {reservation.concierge_process_id}" if reservation.concierge_process_id else "no process"
            concierge = "concierge" if reservation.concierge_required else "-"
            click.echo(
                f"  {format_date_br(reservation.check_in)}  {reservation.client_name[:22]:<22} "
                f"{reservation.house_name[:22]:<22} {format_currency(reservation.total_value):>16}  "
                f"{concierge:<9} {process}"
            )

    click.echo("\nStep performance")
    for performance in data.charts.step_performance:
        click.echo(
            f"  {performance.step_label:<26} {format_percentage(performance.completion_rate):>9} "
            f"{performance.average_time:>7.1f}h {performance.total_processes:>4} current"
        )

    if data.charts.house_performance:
        click.echo("\nBy house")
        for house in data.charts.house_performance:
            click.echo(
                f"  {house.house_name[:26]:<26} {house.completed_processes}/{house.total_processes} "
                f"{format_percentage(house.completion_rate):>9}"
            )


def register_commands(cli: click.Group) -> None:
    """Register process commands with main CLI."""
    cli.add_command(process_group, name="process")

"""Notification commands."""

import click
from rentdesk.cli.commands.process import build_process_filters
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.errors import DomainError
from rentdesk.domain.process import ProcessService


@click.group()
def notification_group():
    """List, read and generate notifications."""
    pass


@notification_group.command("list")
@click.option("--start", "start_date", help="Start of the window (default: 30 days ago)")
@click.option("--end", "end_date", help="End of the window (default: 30 days from today)")
@click.option("--unread", is_flag=True, help="Show only unread notifications")
@click.pass_context
def list_notifications(ctx, start_date: str | None, end_date: str | None, unread: bool) -> None:
    """List notifications, newest first."""
    filters = build_process_filters(ctx, start_date, end_date, None, None, None, None)
    service = ProcessService(ctx.obj["db"])
    try:
        notifications = service.notifications(filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if unread:
        notifications = [n for n in notifications if not n.is_read]
    if not notifications:
        click.echo("No notifications found.")
        return

    for n in notifications:
        flag = " " if n.is_read else "*"
        action = " [action required]" if n.action_required else ""
        click.echo(f"{flag} {n.id:<5} {n.created_at:%d/%m/%Y %H:%M}  {n.priority.value:<7} {n.title}{action}")
        click.echo(f"        {n.message}")


@notification_group.command("read")
@click.argument("notification_id", type=int)
@click.pass_context
def mark_read(ctx, notification_id: int) -> None:
    """Mark a notification as read."""
    service = ProcessService(ctx.obj["db"])
    try:
        service.mark_notification_read(notification_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Notification {notification_id} marked as read")


@notification_group.command("generate")
@click.pass_context
def generate(ctx) -> None:
    """Create reminders for upcoming reservations lacking a concierge process."""
    service = ProcessService(ctx.obj["db"])
    try:
        created = service.generate_reservation_notifications()
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created {len(created)} reminder(s)")


def register_commands(cli: click.Group) -> None:
    """Register notification commands with main CLI."""
    cli.add_command(notification_group, name="notification")

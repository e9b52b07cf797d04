"""Sale management commands."""

from decimal import Decimal

import click
from rentdesk.cli.date_filters import period_options, resolve_cli_date_range
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.entities import (
    ADDITIONAL_SALES_FIELDS,
    AdditionalSales,
    CompanyType,
    SaleOrigin,
    SaleStatus,
)
from rentdesk.domain.errors import DomainError
from rentdesk.domain.sale import SaleService
from rentdesk.utils.amount_parser import parse_amount
from rentdesk.utils.date_parser import parse_date
from rentdesk.utils.formatting import format_currency, format_date_br
from rentdesk.utils.money import ZERO

COMPANY_CHOICES = [company.value for company in CompanyType]
STATUS_CHOICES = [status.value for status in SaleStatus]
ORIGIN_CHOICES = [origin.value for origin in SaleOrigin]


def _parse_amount_option(ctx, name: str, value: str | None) -> Decimal:
    if value is None:
        return ZERO
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {name}: {e}", err=True)
        ctx.exit(1)


def _parse_date_option(ctx, name: str, value: str):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {name}: {e}", err=True)
        ctx.exit(1)


@click.group()
def sale_group():
    """Manage sales."""
    pass


@sale_group.command("create")
@click.option("--company", type=click.Choice(COMPANY_CHOICES), required=True, help="Company registering the sale")
@click.option("--client", "client_name", required=True, help="Client name")
@click.option("--house-id", required=True, help="House identifier")
@click.option("--house-name", required=True, help="House display name")
@click.option("--house-address", default="", help="House address as 'street, number - city/state'")
@click.option("--check-in", required=True, help="Check-in date (YYYY-MM-DD or DD/MM/YYYY)")
@click.option("--check-out", required=True, help="Check-out date (YYYY-MM-DD or DD/MM/YYYY)")
@click.option("--value", "contract_value", required=True, help="Contract value (e.g. 'R$ 10.000,00' or 10000)")
@click.option("--discount", help="Discount on the contract value")
@click.option("--housekeeper", help="Housekeeper value (expense)")
@click.option("--concierge", help="Concierge value")
@click.option("--supermarket", help="Supermarket commission")
@click.option("--seafood", help="Seafood commission")
@click.option("--seafood-meat", help="Seafood and meat commission")
@click.option("--transfer", help="Transfer commission")
@click.option("--vegetables", help="Vegetables commission")
@click.option("--coconuts", help="Coconuts commission")
@click.option("--client-id", help="Client identifier")
@click.option("--gender", "client_gender", help="Client gender")
@click.option("--origin", type=click.Choice(ORIGIN_CHOICES), help="Where the sale came from")
@click.option("--guests", type=int, default=0, help="Number of guests")
@click.option("--status", type=click.Choice(STATUS_CHOICES), default=SaleStatus.PENDING.value, help="Initial status")
@click.option("--notes", help="Notes")
@click.pass_context
def create_sale(
    ctx,
    company: str,
    client_name: str,
    house_id: str,
    house_name: str,
    house_address: str,
    check_in: str,
    check_out: str,
    contract_value: str,
    discount: str | None,
    housekeeper: str | None,
    concierge: str | None,
    client_id: str | None,
    client_gender: str | None,
    origin: str | None,
    guests: int,
    status: str,
    notes: str | None,
    **commissions: str | None,
) -> None:
    """Register a new sale.

    Derived values (nights, net value, commission, revenue and margin) are
    computed from the inputs.

    Examples:
        rentdesk sale create --company exclusive --client "Ana" --house-id h1 \\
            --house-name "Casa Azul" --check-in 2024-01-10 --check-out 2024-01-15 --value 10000
    """
    db = ctx.obj["db"]
    service = SaleService(db)

    additional_sales = AdditionalSales(
        **{
            field: _parse_amount_option(ctx, field.replace("_", "-"), commissions.get(field))
            for field in ADDITIONAL_SALES_FIELDS
        }
    )

    try:
        sale_id = service.create_sale(
            company=company,
            client_name=client_name,
            house_id=house_id,
            house_name=house_name,
            house_address=house_address,
            check_in_date=_parse_date_option(ctx, "check-in date", check_in),
            check_out_date=_parse_date_option(ctx, "check-out date", check_out),
            contract_value=_parse_amount_option(ctx, "value", contract_value),
            discount=_parse_amount_option(ctx, "discount", discount),
            housekeeper_value=_parse_amount_option(ctx, "housekeeper value", housekeeper),
            concierge_value=_parse_amount_option(ctx, "concierge value", concierge),
            additional_sales=additional_sales,
            client_id=client_id,
            client_gender=client_gender,
            sale_origin=origin,
            number_of_guests=guests,
            status=status,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    sale = service.get_sale(sale_id)
    click.echo(f"Created sale {sale.code} (ID: {sale_id})")
    click.echo(f"  Total revenue: {format_currency(sale.total_revenue)}")


@sale_group.command("stats")
@click.option("--company", type=click.Choice(COMPANY_CHOICES + ["all"]), help="Filter by company")
@click.pass_context
def sale_stats(ctx, company: str | None) -> None:
    """Show counts per status and the sale totals."""
    try:
        stats = SaleService(ctx.obj["db"]).stats(company=company)
    except DomainError as e:
        handle_domain_error(ctx, e)

    rows = [
        ("Total de Vendas", str(stats.total)),
        ("Pendentes", str(stats.pending)),
        ("Confirmadas", str(stats.confirmed)),
        ("Concluídas", str(stats.completed)),
        ("Canceladas", str(stats.cancelled)),
        ("Receita Total", format_currency(stats.total_revenue)),
        ("Ticket Médio", format_currency(stats.average_ticket)),
        ("Comissões", format_currency(stats.total_commissions)),
        ("Margem de Contribuição", format_currency(stats.total_margin)),
    ]
    for label, value in rows:
        click.echo(f"{label:<26} {value:>20}")


@sale_group.command("list")
@period_options
@click.option("--company", type=click.Choice(COMPANY_CHOICES + ["all"]), help="Filter by company")
@click.option("--status", type=click.Choice(STATUS_CHOICES), help="Filter by status")
@click.option("--origin", type=click.Choice(ORIGIN_CHOICES), help="Filter by origin")
@click.option("--search", help="Match code, client or house name")
@click.pass_context
def list_sales(
    ctx,
    start_date: str | None,
    end_date: str | None,
    company: str | None,
    status: str | None,
    origin: str | None,
    search: str | None,
    **period_flags: bool,
) -> None:
    """List sales, newest first."""
    db = ctx.obj["db"]
    service = SaleService(db)
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags
    )

    try:
        sales = service.list_sales(
            company=company,
            status=status,
            sale_origin=origin,
            start_date=start,
            end_date=end,
            search=search,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not sales:
        click.echo("No sales found.")
        return

    click.echo(f"{'ID':<6} {'Code':<12} {'Check-in':<12} {'Check-out':<12} {'Client':<24} {'House':<24} {'Status':<10} {'Revenue':>16}")
    click.echo("-" * 124)
    for sale in sales:
        click.echo(
            f"{sale.id:<6} {sale.code:<12} {format_date_br(sale.check_in_date):<12} "
            f"{format_date_br(sale.check_out_date):<12} {sale.client_name[:24]:<24} "
            f"{sale.house_name[:24]:<24} {sale.status.value:<10} {format_currency(sale.total_revenue):>16}"
        )
    click.echo(f"\n{len(sales)} sale(s)")


@sale_group.command("show")
@click.argument("sale_id", type=int)
@click.pass_context
def show_sale(ctx, sale_id: int) -> None:
    """Show every field of a sale."""
    db = ctx.obj["db"]
    service = SaleService(db)
    sale = service.get_sale(sale_id)
    if sale is None:
        click.echo(f"Error: Sale {sale_id} not found", err=True)
        ctx.exit(1)

    click.echo(f"Sale {sale.code} (ID: {sale.id})")
    click.echo(f"  Company: {sale.company.value}")
    click.echo(f"  Status: {sale.status.value}")
    click.echo(f"  Client: {sale.client_name}")
    if sale.client_gender:
        click.echo(f"  Gender: {sale.client_gender}")
    if sale.sale_origin:
        click.echo(f"  Origin: {sale.sale_origin.value}")
    click.echo(f"  House: {sale.house_name} ({sale.house_id})")
    if sale.house_address:
        click.echo(f"  Address: {sale.house_address}")
    click.echo(
        f"  Stay: {format_date_br(sale.check_in_date)} - {format_date_br(sale.check_out_date)}"
        f" ({sale.number_of_nights} nights, {sale.number_of_guests} guests)"
    )
    click.echo(f"  Contract value: {format_currency(sale.contract_value)}")
    click.echo(f"  Discount: {format_currency(sale.discount)}")
    click.echo(f"  Net value: {format_currency(sale.net_value)}")
    click.echo(f"  Sales commission: {format_currency(sale.sales_commission)}")
    click.echo(f"  Housekeeper: {format_currency(sale.housekeeper_value)}")
    click.echo(f"  Concierge: {format_currency(sale.concierge_value)}")
    click.echo(f"  Additional sales: {format_currency(sale.total_additional_sales)}")
    click.echo(f"  Total revenue: {format_currency(sale.total_revenue)}")
    click.echo(f"  Contribution margin: {format_currency(sale.contribution_margin)}")
    if sale.notes:
        click.echo(f"  Notes: {sale.notes}")


@sale_group.command("status")
@click.argument("sale_id", type=int)
@click.argument("status", type=click.Choice(STATUS_CHOICES))
@click.pass_context
def update_status(ctx, sale_id: int, status: str) -> None:
    """Change the status of a sale."""
    db = ctx.obj["db"]
    service = SaleService(db)
    try:
        service.update_status(sale_id, status)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Sale {sale_id} is now {status}")


@sale_group.command("notes")
@click.argument("sale_id", type=int)
@click.argument("notes", required=False)
@click.pass_context
def update_notes(ctx, sale_id: int, notes: str | None) -> None:
    """Replace the notes of a sale (omit NOTES to clear them)."""
    db = ctx.obj["db"]
    service = SaleService(db)
    try:
        service.update_notes(sale_id, notes)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated notes of sale {sale_id}")


@sale_group.command("delete")
@click.argument("sale_id", type=int)
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_context
def delete_sale(ctx, sale_id: int, yes: bool) -> None:
    """Delete a sale."""
    db = ctx.obj["db"]
    service = SaleService(db)
    if not yes:
        click.confirm(f"Delete sale {sale_id}?", abort=True)
    try:
        service.delete_sale(sale_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted sale {sale_id}")


def register_commands(cli: click.Group) -> None:
    """Register sale commands with main CLI."""
    cli.add_command(sale_group, name="sale")

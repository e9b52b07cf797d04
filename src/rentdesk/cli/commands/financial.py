"""Financial report commands."""

import click
from rentdesk.cli.date_filters import period_options, resolve_cli_date_range
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.consolidation import ConsolidationService
from rentdesk.domain.entities import CompanyType, Dimension, PeriodGrouping
from rentdesk.domain.errors import DomainError
from rentdesk.domain.export import ExcelExportService
from rentdesk.domain.financial import FinancialService
from rentdesk.domain.reports import ReportFilters
from rentdesk.utils.date_parser import parse_date
from rentdesk.utils.formatting import format_currency, format_date_br, format_percentage

COMPANY_CHOICES = [company.value for company in CompanyType] + ["all"]
GROUPING_CHOICES = [grouping.value for grouping in PeriodGrouping]
DIMENSION_CHOICES = [dimension.value for dimension in Dimension]

TREND_ARROWS = {"up": "↑", "down": "↓", "neutral": "="}

# Labels for the comparative report rows
COMPARISON_LABELS = {
    "total_sales": "Total de Vendas",
    "total_revenue": "Receita Total",
    "daily_rates": "Diárias",
    "concierge": "Concierge",
    "suppliers_commission": "Comissões Fornecedores",
    "average_ticket": "Ticket Médio",
    "number_of_nights": "Noites Vendidas",
}
COUNT_METRICS = ("total_sales", "number_of_nights")


def report_options(command):
    """Attach the shared report filter options to a command."""
    command = click.option(
        "--group-by",
        type=click.Choice(GROUPING_CHOICES),
        default=PeriodGrouping.MONTH.value,
        help="Period bucket for time-based reports",
    )(command)
    command = click.option("--house-id", help="Filter by house")(command)
    command = click.option("--company", type=click.Choice(COMPANY_CHOICES), help="Filter by company")(command)
    return period_options(command)


def build_report_filters(
    ctx,
    start_date: str | None,
    end_date: str | None,
    company: str | None,
    house_id: str | None,
    group_by: str,
    period_flags: dict[str, bool],
) -> ReportFilters:
    """Turn raw CLI options into ReportFilters, exiting on bad dates."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags
    )
    return ReportFilters(
        start_date=start,
        end_date=end,
        company=None if company in (None, "all") else CompanyType(company),
        house_id=house_id,
        group_by=PeriodGrouping(group_by),
    )


@click.group()
def financial_group():
    """Financial reports over the registered sales."""
    pass


@financial_group.command("summary")
@report_options
@click.pass_context
def summary(ctx, start_date, end_date, company, house_id, group_by, **period_flags) -> None:
    """Show the headline financial totals."""
    filters = build_report_filters(ctx, start_date, end_date, company, house_id, group_by, period_flags)
    try:
        data = FinancialService(ctx.obj["db"]).financial_summary(filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    rows = [
        ("Receita Total", format_currency(data.total_revenue)),
        ("Despesas Totais", format_currency(data.total_expenses)),
        ("Lucro Líquido", format_currency(data.net_profit)),
        ("Margem de Lucro", format_percentage(data.profit_margin)),
        ("Número de Vendas", str(data.number_of_sales)),
        ("Ticket Médio", format_currency(data.average_ticket)),
        ("Receita Diárias", format_currency(data.daily_rates_revenue)),
        ("Receita Concierge", format_currency(data.concierge_revenue)),
        ("Comissões Fornecedores", format_currency(data.suppliers_commission_revenue)),
    ]
    for label, value in rows:
        click.echo(f"{label:<30} {value:>20}")


@financial_group.command("houses")
@report_options
@click.pass_context
def revenue_by_house(ctx, start_date, end_date, company, house_id, group_by, **period_flags) -> None:
    """Show revenue per house, best first."""
    filters = build_report_filters(ctx, start_date, end_date, company, house_id, group_by, period_flags)
    try:
        rows = FinancialService(ctx.obj["db"]).revenue_by_house(filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not rows:
        click.echo("No sales found.")
        return

    click.echo(f"{'House':<28} {'Sales':>6} {'Nights':>7} {'Gross':>16} {'Expenses':>16} {'Net':>16}")
    click.echo("-" * 94)
    for row in rows:
        click.echo(
            f"{row.house_name[:28]:<28} {row.number_of_sales:>6} {row.number_of_nights:>7} "
            f"{format_currency(row.gross_revenue):>16} {format_currency(row.expenses):>16} "
            f"{format_currency(row.net_revenue):>16}"
        )


@financial_group.command("cash-flow")
@report_options
@click.pass_context
def cash_flow(ctx, start_date, end_date, company, house_id, group_by, **period_flags) -> None:
    """Show cash in and out per period with the running balance."""
    filters = build_report_filters(ctx, start_date, end_date, company, house_id, group_by, period_flags)
    try:
        entries = FinancialService(ctx.obj["db"]).cash_flow(filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not entries:
        click.echo("No sales found.")
        return

    click.echo(f"{'Period':<14} {'Cash in':>16} {'Cash out':>16} {'Balance':>16} {'Accumulated':>16}")
    click.echo("-" * 82)
    for entry in entries:
        click.echo(
            f"{entry.period:<14} {format_currency(entry.cash_in):>16} {format_currency(entry.cash_out):>16} "
            f"{format_currency(entry.balance):>16} {format_currency(entry.accumulated_balance):>16}"
        )


@financial_group.command("contracts")
@report_options
@click.pass_context
def contracts(ctx, start_date, end_date, company, house_id, group_by, **period_flags) -> None:
    """Show contract counts and revenue per status."""
    filters = build_report_filters(ctx, start_date, end_date, company, house_id, group_by, period_flags)
    try:
        report = FinancialService(ctx.obj["db"]).contracts_report(filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    rows = [
        ("Ativos", report.active),
        ("Concluídos", report.completed),
        ("Pendentes", report.pending),
        ("Cancelados", report.cancelled),
    ]
    click.echo(f"{'Status':<12} {'Count':>6} {'Revenue':>16} {'Average':>16}")
    click.echo("-" * 53)
    for label, metrics in rows:
        average = format_currency(metrics.average_value) if metrics.average_value is not None else "-"
        click.echo(f"{label:<12} {metrics.count:>6} {format_currency(metrics.total_revenue):>16} {average:>16}")
    click.echo(f"\nLost revenue: {format_currency(report.lost_revenue)}")


@financial_group.command("breakdown")
@report_options
@click.pass_context
def breakdown(ctx, start_date, end_date, company, house_id, group_by, **period_flags) -> None:
    """Show how revenue splits between daily rates, concierge and commissions."""
    filters = build_report_filters(ctx, start_date, end_date, company, house_id, group_by, period_flags)
    try:
        report = FinancialService(ctx.obj["db"]).revenue_breakdown(filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for label, share in (
        ("Diárias", report.daily_rates),
        ("Concierge", report.concierge),
        ("Comissões Fornecedores", report.suppliers_commission),
    ):
        click.echo(f"{label:<26} {format_currency(share.total):>16} {format_percentage(share.percentage):>9}")
    click.echo(f"{'Total':<26} {format_currency(report.total_revenue):>16}")


@financial_group.command("demographic")
@click.argument("dimension", type=click.Choice(DIMENSION_CHOICES))
@report_options
@click.pass_context
def demographic(ctx, dimension, start_date, end_date, company, house_id, group_by, **period_flags) -> None:
    """Show the sales distribution by house, gender, location or origin."""
    filters = build_report_filters(ctx, start_date, end_date, company, house_id, group_by, period_flags)
    try:
        rows = FinancialService(ctx.obj["db"]).demographic_report(dimension, filters)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not rows:
        click.echo("No sales found.")
        return

    click.echo(f"{'Value':<28} {'Sales':>6} {'Revenue':>16} {'Share':>9} {'Average':>16}")
    click.echo("-" * 79)
    for row in rows:
        click.echo(
            f"{row.value[:28]:<28} {row.number_of_sales:>6} {format_currency(row.total_revenue):>16} "
            f"{format_percentage(row.percentage):>9} {format_currency(row.average_ticket):>16}"
        )


@financial_group.command("compare")
@click.option("--period1-start", required=True, help="Start of the base period")
@click.option("--period1-end", required=True, help="End of the base period")
@click.option("--period2-start", required=True, help="Start of the compared period")
@click.option("--period2-end", required=True, help="End of the compared period")
@click.option("--company", type=click.Choice(COMPANY_CHOICES), help="Filter by company")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Also export the comparison to this Excel file")
@click.pass_context
def compare(ctx, period1_start, period1_end, period2_start, period2_end, company, output) -> None:
    """Compare two periods; variations are relative to the first one."""
    try:
        dates = [parse_date(value) for value in (period1_start, period1_end, period2_start, period2_end)]
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)

    try:
        report = FinancialService(ctx.obj["db"]).comparative_report(
            *dates, company=None if company == "all" else company
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"{'Metric':<24} {report.period1.label:>25} {report.period2.label:>25} {'Change':>16} {'%':>10}")
    click.echo("-" * 104)
    for name, label in COMPARISON_LABELS.items():
        first = getattr(report.period1.metrics, name)
        second = getattr(report.period2.metrics, name)
        change = report.comparison[name]
        if name in COUNT_METRICS:
            values = (str(first), str(second), f"{change.absolute_change:g}")
        else:
            values = (format_currency(first), format_currency(second), format_currency(change.absolute_change))
        click.echo(
            f"{label:<24} {values[0]:>25} {values[1]:>25} {values[2]:>16} "
            f"{format_percentage(change.percentage_change):>9}{TREND_ARROWS[change.trend.value]}"
        )

    if output:
        try:
            path = ExcelExportService().comparative(report).save(output)
        except DomainError as e:
            handle_domain_error(ctx, e)
        click.echo(f"\nExported comparison to {path}")


@financial_group.command("tax")
@period_options
@click.pass_context
def tax(ctx, start_date, end_date, **period_flags) -> None:
    """Show the estimated tax per company."""
    start, end = resolve_cli_date_range(
        ctx, start_date=start_date, end_date=end_date, period_flags=period_flags
    )
    try:
        rows = FinancialService(ctx.obj["db"]).tax_report(ReportFilters(start_date=start, end_date=end))
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Period: {rows[0].period}")
    click.echo(f"{'Company':<22} {'Gross':>16} {'Rate':>8} {'Tax':>16} {'Net':>16}")
    click.echo("-" * 82)
    for row in rows:
        click.echo(
            f"{row.company_name:<22} {format_currency(row.gross_revenue):>16} {format_percentage(row.tax_rate):>8} "
            f"{format_currency(row.tax_amount):>16} {format_currency(row.net_revenue):>16}"
        )


@financial_group.command("overview")
@report_options
@click.option("--houses", "house_count", type=click.IntRange(min=1), help="Number of rentable houses for the occupancy rate")
@click.pass_context
def overview(ctx, start_date, end_date, company, house_id, group_by, house_count, **period_flags) -> None:
    """Show the consolidated dashboard against the previous period.

    Without dates the period is the current --group-by period (month by default).
    """
    filters = build_report_filters(ctx, start_date, end_date, company, house_id, group_by, period_flags)
    service = ConsolidationService(ctx.obj["db"])
    try:
        indicators = service.top_indicators(filters)
        data = service.financial_data(filters)
        stats = service.quick_stats(filters, house_count=house_count)
        occupancy = service.occupancy_rate(filters, house_count=house_count)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Period: {format_date_br(indicators.start_date)} - {format_date_br(indicators.end_date)}")
    click.echo(
        f"Active contracts: {indicators.active_contracts.value} "
        f"({format_percentage(indicators.active_contracts.variation)})"
    )
    click.echo(f"Future reservations: {indicators.future_reservations_count}")
    click.echo(
        f"Daily rates (month): {format_currency(indicators.daily_rates_month.value)} "
        f"({format_percentage(indicators.daily_rates_month.variation)} MoM)"
    )
    click.echo(
        f"Daily rates (year): {format_currency(indicators.daily_rates_year.value)} "
        f"({format_percentage(indicators.daily_rates_year.variation)} YoY)"
    )
    click.echo(f"Average ticket: {format_currency(indicators.average_ticket.total)}")

    click.echo(f"\n{'Total':<26} {'Current':>16} {'Previous':>16} {'Change':>10}")
    click.echo("-" * 71)
    for label, total in (
        ("Vendas", data.total_sales),
        ("Comissões", data.total_commissions),
        ("Comissões Fornecedores", data.supplier_commissions),
        ("Concierge", data.concierge),
        ("Governança", data.housekeeper_payments),
        ("Margem de Contribuição", data.contribution_margin),
    ):
        click.echo(
            f"{label:<26} {format_currency(total.current):>16} {format_currency(total.previous):>16} "
            f"{format_percentage(total.variation):>10}"
        )

    if data.margin_by_house:
        click.echo(f"\n{'House':<28} {'Revenue':>16} {'Margin':>16} {'Margin %':>9}")
        click.echo("-" * 72)
        for row in data.margin_by_house:
            click.echo(
                f"{row.house_name[:28]:<28} {format_currency(row.total_revenue):>16} "
                f"{format_currency(row.margin):>16} {format_percentage(row.margin_percentage):>9}"
            )

    click.echo("\nOccupancy:")
    for month in occupancy:
        click.echo(
            f"  {month.month_label}/{month.year}: {month.occupied_days}/{month.total_days} nights "
            f"({format_percentage(month.rate)})"
        )
    click.echo(f"Occupancy rate: {format_percentage(stats.occupancy_rate)}")
    if stats.top_house:
        click.echo(f"Top house: {stats.top_house}")
    if stats.top_media_source:
        click.echo(f"Top media source: {stats.top_media_source}")


def register_commands(cli: click.Group) -> None:
    """Register financial commands with main CLI."""
    cli.add_command(financial_group, name="financial")

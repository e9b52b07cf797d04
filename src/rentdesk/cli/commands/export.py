"""Excel export command."""

import click
from rentdesk.cli.commands.financial import DIMENSION_CHOICES, build_report_filters, report_options
from rentdesk.cli.error_handling import handle_domain_error
from rentdesk.domain.errors import DomainError
from rentdesk.domain.export import ExcelExportService
from rentdesk.domain.financial import FinancialService

REPORT_CHOICES = [
    "houses",
    "cash-flow",
    "contracts",
    "demographic",
    "tax",
    "summary",
    "complete",
]


@click.command("export")
@click.argument("report", type=click.Choice(REPORT_CHOICES))
@report_options
@click.option("--dimension", type=click.Choice(DIMENSION_CHOICES), default="house", help="Dimension for 'demographic'")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Output file (default: the report's own filename)")
@click.pass_context
def export(ctx, report, start_date, end_date, company, house_id, group_by, dimension, output, **period_flags) -> None:
    """Export a financial report to an Excel workbook.

    Examples:
        rentdesk export complete --this-year -o relatorio.xlsx
        rentdesk export demographic --dimension origin
    """
    filters = build_report_filters(ctx, start_date, end_date, company, house_id, group_by, period_flags)
    financial = FinancialService(ctx.obj["db"])
    exporter = ExcelExportService()

    try:
        if report == "houses":
            export_file = exporter.revenue_by_house(financial.revenue_by_house(filters))
        elif report == "cash-flow":
            export_file = exporter.cash_flow(financial.cash_flow(filters))
        elif report == "contracts":
            export_file = exporter.contracts(financial.contracts_report(filters))
        elif report == "demographic":
            export_file = exporter.demographic(financial.demographic_report(dimension, filters), dimension)
        elif report == "tax":
            export_file = exporter.tax(financial.tax_report(filters))
        elif report == "summary":
            export_file = exporter.summary(financial.financial_summary(filters))
        else:
            export_file = exporter.complete_report(
                financial.revenue_by_house(filters),
                financial.cash_flow(filters),
                financial.contracts_report(filters),
                financial.tax_report(filters),
                financial.financial_summary(filters),
            )
    except DomainError as e:
        handle_domain_error(ctx, e)

    path = export_file.save(output)
    click.echo(f"Exported {report} report to {path}")


def register_commands(cli: click.Group) -> None:
    """Register export command with main CLI."""
    cli.add_command(export, name="export")

"""Excel export of the financial reports.

Each export builds an openpyxl workbook in memory with one sheet per report
section and returns the serialized bytes with a suggested filename. Cells
hold display strings (currency and percentages already formatted).
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence, Union

from openpyxl import Workbook

from rentdesk.domain.entities import Dimension
from rentdesk.domain.errors import NoDataError, nothing_to_export
from rentdesk.domain.reports import (
    CashFlowEntry,
    ComparativeReport,
    ContractsReport,
    DemographicReport,
    FinancialSummary,
    RevenueByHouse,
    TaxReport,
)
from rentdesk.utils.formatting import format_currency, format_percentage
from rentdesk.utils.money import ZERO

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

DIMENSION_LABELS = {
    Dimension.HOUSE: "Casa",
    Dimension.GENDER: "Gênero",
    Dimension.LOCATION: "Localidade",
    Dimension.ORIGIN: "Origem",
}

# (label, attribute, is_money) rows of the comparative sheet
_COMPARATIVE_ROWS = (
    ("Total de Vendas", "total_sales", False),
    ("Receita Total", "total_revenue", True),
    ("Diárias", "daily_rates", True),
    ("Concierge", "concierge", True),
    ("Comissões Fornecedores", "suppliers_commission", True),
    ("Ticket Médio", "average_ticket", True),
    ("Noites Vendidas", "number_of_nights", False),
)


@dataclass
class ExportFile:
    """A serialized workbook ready to be written or sent."""

    media_type: str
    filename: str
    content: bytes

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write the workbook to path (or to its own filename) and return the path."""
        target = Path(path) if path else Path(self.filename)
        target.write_bytes(self.content)
        logger.info("Wrote %s (%d bytes)", target, len(self.content))
        return target


def _new_workbook() -> Workbook:
    # Drop the default sheet so every section is added the same way
    workbook = Workbook()
    workbook.remove(workbook.active)
    return workbook


def _append_sheet(workbook: Workbook, title: str, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    sheet = workbook.create_sheet(title=title)
    sheet.append(list(headers))
    for row in rows:
        sheet.append(list(row))


def _to_export_file(workbook: Workbook, filename: str) -> ExportFile:
    output = BytesIO()
    workbook.save(output)
    return ExportFile(media_type=XLSX_MEDIA_TYPE, filename=filename, content=output.getvalue())


def _summary_rows(summary: FinancialSummary, detailed: bool = True) -> list[tuple[str, str]]:
    rows = [
        ("Receita Total", format_currency(summary.total_revenue)),
        ("Despesas Totais", format_currency(summary.total_expenses)),
        ("Lucro Líquido", format_currency(summary.net_profit)),
        ("Margem de Lucro", format_percentage(summary.profit_margin)),
        ("Número de Vendas", str(summary.number_of_sales)),
        ("Ticket Médio", format_currency(summary.average_ticket)),
    ]
    if detailed:
        rows += [
            ("Receita Diárias", format_currency(summary.daily_rates_revenue)),
            ("Receita Concierge", format_currency(summary.concierge_revenue)),
            ("Comissões Fornecedores", format_currency(summary.suppliers_commission_revenue)),
        ]
    return rows


class ExcelExportService:
    """Service turning report views into Excel workbooks."""

    def revenue_by_house(
        self, data: Sequence[RevenueByHouse], filename: str = "receitas-por-casa.xlsx"
    ) -> ExportFile:
        """Export revenue per house.

        Raises:
            NoDataError: If there are no rows to export
        """
        if not data:
            raise NoDataError(nothing_to_export("receitas por casa"))
        workbook = _new_workbook()
        _append_sheet(
            workbook,
            "Receitas por Casa",
            [
                "Casa",
                "Endereço",
                "Vendas",
                "Noites",
                "Diárias",
                "Concierge",
                "Comissões Fornecedores",
                "Receita Bruta",
                "Despesas",
                "Receita Líquida",
            ],
            (
                (
                    item.house_name,
                    item.house_address,
                    item.number_of_sales,
                    item.number_of_nights,
                    format_currency(item.daily_rates_revenue),
                    format_currency(item.concierge_revenue),
                    format_currency(item.suppliers_commission),
                    format_currency(item.gross_revenue),
                    format_currency(item.expenses),
                    format_currency(item.net_revenue),
                )
                for item in data
            ),
        )
        return _to_export_file(workbook, filename)

    def cash_flow(self, data: Sequence[CashFlowEntry], filename: str = "fluxo-de-caixa.xlsx") -> ExportFile:
        """Export the cash flow with period and accumulated balances."""
        if not data:
            raise NoDataError(nothing_to_export("fluxo de caixa"))
        workbook = _new_workbook()
        _append_sheet(
            workbook,
            "Fluxo de Caixa",
            ["Período", "Entradas", "Saídas", "Saldo do Período", "Saldo Acumulado"],
            (
                (
                    item.period,
                    format_currency(item.cash_in),
                    format_currency(item.cash_out),
                    format_currency(item.balance),
                    format_currency(item.accumulated_balance),
                )
                for item in data
            ),
        )
        return _to_export_file(workbook, filename)

    def contracts(self, data: ContractsReport, filename: str = "relatorio-contratos.xlsx") -> ExportFile:
        """Export the contracts report, one row per status group.

        Pending and cancelled rows have no average ticket.
        """
        total = data.active.count + data.completed.count + data.cancelled.count
        if total == 0:
            raise NoDataError(nothing_to_export("contratos"))
        workbook = _new_workbook()
        _append_sheet(
            workbook,
            "Contratos",
            ["Status", "Quantidade", "Receita Total", "Ticket Médio"],
            [
                (
                    "Ativos",
                    data.active.count,
                    format_currency(data.active.total_revenue),
                    format_currency(data.active.average_value or ZERO),
                ),
                (
                    "Concluídos",
                    data.completed.count,
                    format_currency(data.completed.total_revenue),
                    format_currency(data.completed.average_value or ZERO),
                ),
                ("Pendentes", data.pending.count, format_currency(data.pending.total_revenue), "-"),
                ("Cancelados", data.cancelled.count, format_currency(data.lost_revenue), "-"),
            ],
        )
        return _to_export_file(workbook, filename)

    def demographic(
        self,
        data: Sequence[DemographicReport],
        dimension: Union[Dimension, str],
        filename: Optional[str] = None,
    ) -> ExportFile:
        """Export a demographic distribution; the first column is named after the dimension."""
        dimension = Dimension(dimension)
        if not data:
            raise NoDataError(nothing_to_export(f"vendas por {dimension.value}"))
        label = DIMENSION_LABELS.get(dimension, "Categoria")
        workbook = _new_workbook()
        _append_sheet(
            workbook,
            f"Por {label}",
            [label, "Número de Vendas", "Receita Total", "Percentual", "Ticket Médio"],
            (
                (
                    item.value,
                    item.number_of_sales,
                    format_currency(item.total_revenue),
                    format_percentage(item.percentage),
                    format_currency(item.average_ticket),
                )
                for item in data
            ),
        )
        return _to_export_file(workbook, filename or f"vendas-por-{dimension.value}.xlsx")

    def comparative(
        self, data: ComparativeReport, filename: str = "relatorio-comparativo.xlsx"
    ) -> ExportFile:
        """Export the two-period comparison, one row per metric."""
        if data.period1.metrics.total_sales == 0 and data.period2.metrics.total_sales == 0:
            raise NoDataError(nothing_to_export("comparativo"))

        rows = []
        for label, name, is_money in _COMPARATIVE_ROWS:
            first = getattr(data.period1.metrics, name)
            second = getattr(data.period2.metrics, name)
            change = data.comparison[name]
            if is_money:
                rows.append(
                    (
                        label,
                        format_currency(first),
                        format_currency(second),
                        format_currency(change.absolute_change),
                        format_percentage(change.percentage_change),
                    )
                )
            else:
                rows.append((label, first, second, change.absolute_change, format_percentage(change.percentage_change)))

        workbook = _new_workbook()
        _append_sheet(
            workbook,
            "Comparativo",
            ["Métrica", data.period1.label, data.period2.label, "Variação", "Variação %"],
            rows,
        )
        return _to_export_file(workbook, filename)

    def tax(self, data: Sequence[TaxReport], filename: str = "impostos.xlsx") -> ExportFile:
        """Export the estimated tax per company."""
        if not data:
            raise NoDataError(nothing_to_export("impostos"))
        workbook = _new_workbook()
        _append_sheet(
            workbook,
            "Impostos",
            [
                "Empresa",
                "Período",
                "Receita Bruta",
                "Receita Tributável",
                "Alíquota",
                "Valor do Imposto",
                "Receita Líquida",
            ],
            (
                (
                    item.company_name,
                    item.period,
                    format_currency(item.gross_revenue),
                    format_currency(item.taxable_revenue),
                    format_percentage(item.tax_rate),
                    format_currency(item.tax_amount),
                    format_currency(item.net_revenue),
                )
                for item in data
            ),
        )
        return _to_export_file(workbook, filename)

    def summary(self, data: FinancialSummary, filename: str = "resumo-financeiro.xlsx") -> ExportFile:
        """Export the headline financial summary as metric/value pairs."""
        if data.number_of_sales == 0:
            raise NoDataError(nothing_to_export("resumo financeiro"))
        workbook = _new_workbook()
        _append_sheet(workbook, "Resumo", ["Métrica", "Valor"], _summary_rows(data))
        return _to_export_file(workbook, filename)

    def complete_report(
        self,
        revenue_by_house: Sequence[RevenueByHouse],
        cash_flow: Sequence[CashFlowEntry],
        contracts: ContractsReport,
        tax_report: Sequence[TaxReport],
        summary: FinancialSummary,
        filename: str = "relatorio-completo.xlsx",
    ) -> ExportFile:
        """Export every report into one workbook.

        Sheets, in order: Resumo, Receitas por Casa, Fluxo de Caixa,
        Contratos, Impostos.

        Raises:
            NoDataError: If the summary covers no sales
        """
        if summary.number_of_sales == 0 and contracts.cancelled.count == 0:
            raise NoDataError(nothing_to_export("relatório completo"))

        workbook = _new_workbook()
        _append_sheet(workbook, "Resumo", ["Métrica", "Valor"], _summary_rows(summary, detailed=False))
        _append_sheet(
            workbook,
            "Receitas por Casa",
            ["Casa", "Diárias", "Concierge", "Comissões", "Receita Bruta", "Despesas", "Receita Líquida"],
            (
                (
                    item.house_name,
                    format_currency(item.daily_rates_revenue),
                    format_currency(item.concierge_revenue),
                    format_currency(item.suppliers_commission),
                    format_currency(item.gross_revenue),
                    format_currency(item.expenses),
                    format_currency(item.net_revenue),
                )
                for item in revenue_by_house
            ),
        )
        _append_sheet(
            workbook,
            "Fluxo de Caixa",
            ["Período", "Entradas", "Saídas", "Saldo"],
            (
                (
                    item.period,
                    format_currency(item.cash_in),
                    format_currency(item.cash_out),
                    format_currency(item.balance),
                )
                for item in cash_flow
            ),
        )
        _append_sheet(
            workbook,
            "Contratos",
            ["Status", "Quantidade", "Receita"],
            [
                ("Ativos", contracts.active.count, format_currency(contracts.active.total_revenue)),
                ("Concluídos", contracts.completed.count, format_currency(contracts.completed.total_revenue)),
                ("Cancelados", contracts.cancelled.count, format_currency(contracts.lost_revenue)),
            ],
        )
        _append_sheet(
            workbook,
            "Impostos",
            ["Empresa", "Receita Bruta", "Alíquota", "Valor Imposto", "Receita Líquida"],
            (
                (
                    item.company_name,
                    format_currency(item.gross_revenue),
                    format_percentage(item.tax_rate),
                    format_currency(item.tax_amount),
                    format_currency(item.net_revenue),
                )
                for item in tax_report
            ),
        )
        logger.info("Built complete report with %d sheets", len(workbook.worksheets))
        return _to_export_file(workbook, filename)

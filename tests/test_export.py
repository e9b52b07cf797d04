"""Tests for Excel export."""

from datetime import date
from io import BytesIO

import pytest
from openpyxl import load_workbook

from rentdesk.domain.errors import NoDataError
from rentdesk.domain.export import XLSX_MEDIA_TYPE, ExcelExportService
from rentdesk.domain.reports import ReportFilters


def _open(export_file):
    return load_workbook(BytesIO(export_file.content))


@pytest.fixture
def exporter():
    return ExcelExportService()


class TestExcelExport:
    """Tests for ExcelExportService."""

    def test_revenue_by_house(self, sample_sales, financial_service, exporter):
        """Test the revenue per house sheet."""
        export_file = exporter.revenue_by_house(financial_service.revenue_by_house())

        assert export_file.media_type == XLSX_MEDIA_TYPE
        assert export_file.filename == "receitas-por-casa.xlsx"
        sheet = _open(export_file)["Receitas por Casa"]
        rows = list(sheet.values)
        assert rows[0][0] == "Casa"
        assert rows[1][0] == "Casa Azul"
        assert rows[1][7] == "R$ 10.700,00"
        assert len(rows) == 3

    def test_cash_flow(self, sample_sales, financial_service, exporter):
        sheet = _open(exporter.cash_flow(financial_service.cash_flow()))["Fluxo de Caixa"]
        rows = list(sheet.values)

        assert rows[0] == ("Período", "Entradas", "Saídas", "Saldo do Período", "Saldo Acumulado")
        assert rows[2][4] == "R$ 13.900,00"

    def test_contracts(self, sample_sales, financial_service, exporter):
        sheet = _open(exporter.contracts(financial_service.contracts_report()))["Contratos"]
        rows = list(sheet.values)

        assert [row[0] for row in rows[1:]] == ["Ativos", "Concluídos", "Pendentes", "Cancelados"]
        assert rows[4][2] == "R$ 4.000,00"
        assert rows[4][3] == "-"

    def test_demographic_sheet_named_after_dimension(self, sample_sales, financial_service, exporter):
        export_file = exporter.demographic(financial_service.demographic_report("origin"), "origin")

        assert export_file.filename == "vendas-por-origin.xlsx"
        sheet = _open(export_file)["Por Origem"]
        assert next(sheet.values)[0] == "Origem"

    def test_comparative(self, sample_sales, financial_service, exporter):
        report = financial_service.comparative_report(
            date(2024, 1, 1), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 29)
        )
        sheet = _open(exporter.comparative(report))["Comparativo"]
        rows = list(sheet.values)

        assert rows[0][1] == "01/01/2024 - 31/01/2024"
        assert rows[1] == ("Total de Vendas", 1, 1, 0, "0.00%")
        assert len(rows) == 8

    def test_tax(self, sample_sales, financial_service, exporter):
        sheet = _open(exporter.tax(financial_service.tax_report()))["Impostos"]
        rows = list(sheet.values)

        assert rows[1][0] == "Exclusive Imóveis"
        assert rows[1][4] == "6.00%"
        assert rows[1][5] == "R$ 642,00"

    def test_complete_report_sheets(self, sample_sales, financial_service, exporter):
        """Test that the complete report holds the five sheets in order."""
        filters = ReportFilters()
        export_file = exporter.complete_report(
            financial_service.revenue_by_house(filters),
            financial_service.cash_flow(filters),
            financial_service.contracts_report(filters),
            financial_service.tax_report(filters),
            financial_service.financial_summary(filters),
        )

        workbook = _open(export_file)
        assert workbook.sheetnames == ["Resumo", "Receitas por Casa", "Fluxo de Caixa", "Contratos", "Impostos"]
        assert list(workbook["Resumo"].values)[1] == ("Receita Total", "R$ 15.700,00")

    def test_empty_reports_raise(self, financial_service, exporter):
        """Test that exporting nothing is an error."""
        with pytest.raises(NoDataError):
            exporter.revenue_by_house(financial_service.revenue_by_house())
        with pytest.raises(NoDataError):
            exporter.summary(financial_service.financial_summary())
        with pytest.raises(NoDataError):
            exporter.contracts(financial_service.contracts_report())

    def test_save(self, sample_sales, financial_service, exporter, tmp_path):
        export_file = exporter.summary(financial_service.financial_summary())

        path = export_file.save(tmp_path / "resumo.xlsx")

        assert path.read_bytes() == export_file.content
        assert _open(export_file).sheetnames == ["Resumo"]

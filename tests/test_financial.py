"""Tests for financial reports."""

import random
from datetime import date, timedelta
from decimal import Decimal

import pytest

from rentdesk.database.memory import SALES, InMemoryDatabase
from rentdesk.domain.entities import (
    AdditionalSales,
    CompanyType,
    Dimension,
    PeriodGrouping,
    SaleOrigin,
    SaleStatus,
)
from rentdesk.domain.errors import DataSourceError, InvalidFilterError
from rentdesk.domain.financial import ALL_PERIODS_LABEL, FinancialService
from rentdesk.domain.reports import ReportFilters, Trend


class TestRevenueByHouse:
    """Tests for the revenue per house report."""

    def test_groups_by_house_and_excludes_cancelled(self, sample_sales, financial_service):
        """Test per-house totals, sorted by net revenue."""
        rows = financial_service.revenue_by_house()

        assert [row.house_id for row in rows] == ["h1", "h2"]
        casa_azul, casa_verde = rows
        assert casa_azul.daily_rates_revenue == 10000.0
        assert casa_azul.concierge_revenue == 500.0
        assert casa_azul.suppliers_commission == 200.0
        assert casa_azul.gross_revenue == 10700.0
        assert casa_azul.expenses == pytest.approx(1300.0)
        assert casa_azul.net_revenue == pytest.approx(9400.0)
        assert casa_azul.number_of_nights == 5
        # The cancelled Casa Verde sale is not counted
        assert casa_verde.number_of_sales == 1
        assert casa_verde.gross_revenue == 5000.0

    def test_company_filter(self, sample_sales, financial_service):
        """Test that the company filter narrows the houses."""
        rows = financial_service.revenue_by_house(ReportFilters(company=CompanyType.GIOGIO))

        assert [row.house_name for row in rows] == ["Casa Verde"]

    def test_empty_store(self, financial_service):
        """Test that no sales means no rows."""
        assert financial_service.revenue_by_house() == []

    def test_invalid_range(self, financial_service):
        """Test that start after end is rejected."""
        with pytest.raises(InvalidFilterError):
            financial_service.revenue_by_house(
                ReportFilters(start_date=date(2024, 3, 1), end_date=date(2024, 1, 1))
            )


class TestCashFlow:
    """Tests for the cash flow report."""

    def test_monthly_running_balance(self, sample_sales, financial_service):
        """Test chronological entries with an accumulated balance."""
        entries = financial_service.cash_flow()

        assert [entry.key for entry in entries] == ["2024-01", "2024-02"]
        assert entries[0].period == "Jan/2024"
        assert entries[0].date == date(2024, 1, 1)
        assert entries[0].cash_in == 10700.0
        assert entries[0].balance == pytest.approx(9400.0)
        assert entries[1].balance == pytest.approx(4500.0)
        assert entries[1].accumulated_balance == pytest.approx(13900.0)

    def test_yearly_grouping(self, sample_sales, financial_service):
        """Test that a coarser grouping merges the periods."""
        entries = financial_service.cash_flow(ReportFilters(group_by=PeriodGrouping.YEAR))

        assert len(entries) == 1
        assert entries[0].period == "2024"
        assert entries[0].accumulated_balance == pytest.approx(13900.0)


class TestContractsReport:
    """Tests for the contracts report."""

    def test_status_groups(self, sample_sales, financial_service):
        """Test that every status is covered, cancelled included."""
        report = financial_service.contracts_report()

        assert report.active.count == 2
        assert report.active.total_revenue == pytest.approx(15700.0)
        assert report.active.average_value == pytest.approx(7850.0)
        assert report.completed.count == 0
        assert report.pending.average_value is None
        assert report.cancelled.count == 1
        assert report.lost_revenue == pytest.approx(4000.0)


class TestRevenueBreakdown:
    """Tests for the revenue breakdown."""

    def test_shares_sum_to_total(self, sample_sales, financial_service):
        """Test that the three shares add up to the total revenue."""
        report = financial_service.revenue_breakdown()

        assert report.total_revenue == pytest.approx(15700.0)
        assert report.daily_rates.total == 15000.0
        assert report.concierge.total == 500.0
        assert report.suppliers_commission.total == 200.0
        total_percentage = (
            report.daily_rates.percentage + report.concierge.percentage + report.suppliers_commission.percentage
        )
        assert total_percentage == pytest.approx(100.0)

    def test_no_revenue_gives_zero_percentages(self, financial_service):
        """Test that an empty breakdown does not divide by zero."""
        report = financial_service.revenue_breakdown()

        assert report.total_revenue == 0.0
        assert report.daily_rates.percentage == 0.0


class TestDemographicReport:
    """Tests for demographic distributions."""

    def test_by_gender(self, sample_sales, financial_service):
        """Test the distribution by client gender."""
        rows = financial_service.demographic_report("gender")

        assert [row.value for row in rows] == ["F", "M"]
        assert rows[0].category == Dimension.GENDER
        assert rows[0].total_revenue == 10700.0
        assert sum(row.percentage for row in rows) == pytest.approx(100.0)

    def test_by_location_uses_city(self, sample_sales, financial_service):
        """Test that location is the city part of the house address."""
        rows = financial_service.demographic_report(Dimension.LOCATION)

        assert {row.value for row in rows} == {"Trancoso/BA", "Caraíva/BA"}

    def test_missing_values_bucketed(self, make_sale, financial_service):
        """Test that sales without the field land in 'Não informado'."""
        make_sale(client_gender=None)
        rows = financial_service.demographic_report("gender")

        assert len(rows) == 1
        assert rows[0].value == "Não informado"
        assert rows[0].percentage == pytest.approx(100.0)

    def test_unknown_dimension(self, financial_service):
        """Test that an unknown dimension is rejected."""
        with pytest.raises(ValueError):
            financial_service.demographic_report("age")


class TestComparativeReport:
    """Tests for the two-period comparison."""

    def test_compare_months(self, sample_sales, financial_service):
        """Test January against February."""
        report = financial_service.comparative_report(
            date(2024, 1, 1), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 29)
        )

        assert report.period1.label == "01/01/2024 - 31/01/2024"
        assert report.period1.metrics.total_sales == 1
        assert report.period2.metrics.total_sales == 1
        assert report.comparison["total_sales"].trend == Trend.NEUTRAL
        revenue = report.comparison["total_revenue"]
        assert revenue.absolute_change == pytest.approx(5000.0 - 10700.0)
        assert revenue.percentage_change == pytest.approx((5000.0 - 10700.0) / 10700.0 * 100)
        assert revenue.trend == Trend.DOWN

    def test_zero_base_period(self, sample_sales, financial_service):
        """Test that growth from nothing reports 100%."""
        report = financial_service.comparative_report(
            date(2023, 1, 1), date(2023, 1, 31), date(2024, 1, 1), date(2024, 1, 31)
        )

        assert report.comparison["total_revenue"].percentage_change == 100.0
        assert report.comparison["total_revenue"].trend == Trend.UP

    def test_invalid_period(self, financial_service):
        """Test that an inverted period is rejected."""
        with pytest.raises(InvalidFilterError):
            financial_service.comparative_report(
                date(2024, 2, 1), date(2024, 1, 1), date(2024, 3, 1), date(2024, 3, 31)
            )


class TestTaxReport:
    """Tests for the tax report."""

    def test_one_row_per_company(self, sample_sales, financial_service):
        """Test fixed company order and the tax amounts."""
        rows = financial_service.tax_report()

        assert [row.company for row in rows] == list(CompanyType)
        exclusive = rows[0]
        assert exclusive.gross_revenue == pytest.approx(10700.0)
        assert exclusive.tax_rate == 6.0
        assert exclusive.tax_amount == pytest.approx(642.0)
        assert exclusive.net_revenue == pytest.approx(10058.0)
        assert rows[2].gross_revenue == 0.0
        assert exclusive.period == ALL_PERIODS_LABEL

    def test_company_filter_ignored(self, sample_sales, financial_service):
        """Test that every company keeps its row under a company filter."""
        rows = financial_service.tax_report(ReportFilters(company=CompanyType.GIOGIO))

        assert rows[0].gross_revenue == pytest.approx(10700.0)

    def test_period_label(self, sample_sales, financial_service):
        """Test the period label of a bounded report."""
        rows = financial_service.tax_report(ReportFilters(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)))

        assert rows[0].period == "01/01/2024 - 31/01/2024"
        assert rows[1].gross_revenue == 0.0


class TestFinancialSummary:
    """Tests for the financial summary."""

    def test_summary_totals(self, sample_sales, financial_service):
        """Test headline totals."""
        summary = financial_service.financial_summary()

        assert summary.total_revenue == pytest.approx(15700.0)
        assert summary.total_expenses == pytest.approx(1800.0)
        assert summary.net_profit == pytest.approx(13900.0)
        assert summary.profit_margin == pytest.approx(13900.0 / 15700.0 * 100)
        assert summary.number_of_sales == 2
        assert summary.average_ticket == pytest.approx(7850.0)

    def test_data_source_failure_propagates(self):
        """Test that a failing store surfaces as DataSourceError."""
        service = FinancialService(InMemoryDatabase(failing=[SALES]))

        with pytest.raises(DataSourceError):
            service.financial_summary()


def _cents(rng, low, high):
    return Decimal(rng.randint(low * 100, high * 100)) / 100


def _generate_sales(sale_service, seed, count, houses):
    """Create `count` sales with cent amounts spread over houses, statuses and months.

    Each house gets back-to-back three-night stays, so no booking conflicts.
    """
    rng = random.Random(seed)
    next_check_in = {f"h{index}": date(2023, 11, 1) + timedelta(days=index) for index in range(houses)}
    for index in range(count):
        house_id = f"h{index % houses}"
        check_in = next_check_in[house_id]
        next_check_in[house_id] = check_in + timedelta(days=rng.randint(3, 20))
        contract_value = _cents(rng, 500, 20000)
        sale_service.create_sale(
            company=rng.choice(list(CompanyType)),
            client_name=f"Client {index}",
            house_id=house_id,
            house_name=f"Casa {house_id}",
            house_address=rng.choice(["Rua A, 1 - Trancoso/BA", "Rua B, 2 - Caraíva/BA", ""]),
            check_in_date=check_in,
            check_out_date=check_in + timedelta(days=3),
            contract_value=contract_value,
            discount=min(_cents(rng, 0, 300), contract_value),
            housekeeper_value=_cents(rng, 0, 400),
            concierge_value=_cents(rng, 0, 900),
            additional_sales=AdditionalSales(
                supermarket=_cents(rng, 0, 250), transfer=_cents(rng, 0, 120)
            ),
            client_gender=rng.choice(["F", "M", None]),
            sale_origin=rng.choice(list(SaleOrigin) + [None]),
            status=rng.choice(list(SaleStatus)),
        )


@pytest.mark.parametrize(
    "seed, count, houses",
    [
        (1, 1, 1),
        (2, 7, 2),
        (3, 25, 4),
        (4, 60, 6),
    ],
)
class TestBucketTotals:
    """Test that report buckets add up to the report totals exactly."""

    @pytest.fixture(autouse=True)
    def _sales(self, sale_service, seed, count, houses):
        _generate_sales(sale_service, seed, count, houses)

    @pytest.mark.parametrize("grouping", list(PeriodGrouping))
    def test_accumulated_balance_is_running_sum(self, financial_service, grouping):
        """Test that each accumulated balance is the sum of the balances so far."""
        entries = financial_service.cash_flow(ReportFilters(group_by=grouping))

        running = Decimal("0")
        for entry in entries:
            running += entry.balance
            assert entry.accumulated_balance == running
            assert entry.balance == entry.cash_in - entry.cash_out

    @pytest.mark.parametrize("grouping", list(PeriodGrouping))
    def test_cash_in_adds_up_to_total_revenue(self, financial_service, grouping):
        """Test that the cash in of all periods is the total revenue."""
        summary = financial_service.financial_summary()
        entries = financial_service.cash_flow(ReportFilters(group_by=grouping))

        assert sum(entry.cash_in for entry in entries) == summary.total_revenue
        assert sum(entry.cash_out for entry in entries) == summary.total_expenses

    def test_house_revenue_adds_up_to_total(self, financial_service):
        """Test that the gross revenue of all houses is the total revenue."""
        summary = financial_service.financial_summary()
        rows = financial_service.revenue_by_house()

        assert sum(row.gross_revenue for row in rows) == summary.total_revenue
        assert sum(row.number_of_sales for row in rows) == summary.number_of_sales

    @pytest.mark.parametrize("dimension", list(Dimension))
    def test_demographic_revenue_adds_up_to_total(self, financial_service, dimension):
        """Test that every sale lands in exactly one demographic bucket."""
        summary = financial_service.financial_summary()
        rows = financial_service.demographic_report(dimension)

        assert sum(row.total_revenue for row in rows) == summary.total_revenue
        assert sum(row.number_of_sales for row in rows) == summary.number_of_sales
        if summary.total_revenue:
            assert sum(row.percentage for row in rows) == pytest.approx(100.0)

    def test_breakdown_shares_add_up_to_total(self, financial_service):
        """Test that daily rates, concierge and commissions make up the total."""
        report = financial_service.revenue_breakdown()

        parts = report.daily_rates.total + report.concierge.total + report.suppliers_commission.total
        assert parts == report.total_revenue
        assert report.total_revenue == financial_service.financial_summary().total_revenue

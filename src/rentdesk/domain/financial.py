"""Financial reporting service.

Every report reads the full sale set once, then filters, groups and
aggregates in memory. Cancelled sales are left out unless a report states
otherwise (the contracts report covers every status).
"""

import logging
from datetime import date
from typing import Optional, Sequence, Union

from rentdesk.config import COMPANY_NAMES, TAX_RATES
from rentdesk.database.base import Database
from rentdesk.domain.entities import CompanyType, Dimension, Sale, SaleStatus
from rentdesk.domain.grouping import (
    exclude_cancelled,
    filter_by_company,
    filter_by_house,
    filter_by_period,
    format_period_label,
    group_by_dimension,
    group_by_key,
    group_by_period,
    period_start,
    sorted_period_keys,
)
from rentdesk.domain.metrics import compare, percentage_of, safe_average, total_of
from rentdesk.domain.reports import (
    PERIOD_METRIC_NAMES,
    BreakdownShare,
    CashFlowEntry,
    ComparativePeriod,
    ComparativeReport,
    ContractsReport,
    DemographicReport,
    FinancialSummary,
    PeriodMetrics,
    ReportFilters,
    RevenueBreakdown,
    RevenueByHouse,
    StatusMetrics,
    TaxReport,
)
from rentdesk.utils.formatting import format_date_br
from rentdesk.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

ALL_PERIODS_LABEL = "Todos os períodos"


def _period_label(start_date: date, end_date: date) -> str:
    return f"{format_date_br(start_date)} - {format_date_br(end_date)}"


def _status_metrics(sales: Sequence[Sale], with_average: bool = True) -> StatusMetrics:
    total_revenue = total_of(sales, lambda sale: sale.total_revenue)
    return StatusMetrics(
        count=len(sales),
        total_revenue=total_revenue,
        average_value=safe_average(total_revenue, len(sales)) if with_average else None,
    )


def period_metrics(sales: Sequence[Sale]) -> PeriodMetrics:
    """Aggregate the comparable metrics of a set of sales."""
    total_revenue = total_of(sales, lambda sale: sale.total_revenue)
    return PeriodMetrics(
        total_sales=len(sales),
        total_revenue=total_revenue,
        daily_rates=total_of(sales, lambda sale: sale.net_value),
        concierge=total_of(sales, lambda sale: sale.concierge_value),
        suppliers_commission=total_of(sales, lambda sale: sale.total_additional_sales),
        average_ticket=safe_average(total_revenue, len(sales)),
        number_of_nights=sum(sale.number_of_nights for sale in sales),
    )


class FinancialService:
    """Service computing the financial reports."""

    def __init__(self, db: Database):
        """Initialize financial service.

        Args:
            db: Database instance
        """
        self.db = db

    def _load_sales(
        self,
        filters: Optional[ReportFilters],
        include_cancelled: bool = False,
        by_company: bool = True,
    ) -> list[Sale]:
        """Fetch all sales once and apply the report filters in memory.

        Raises:
            InvalidFilterError: If the filter's start date is after its end date
        """
        filters = filters or ReportFilters()
        sales = self.db.list_sales()
        sales = filter_by_period(sales, filters.start_date, filters.end_date)
        if by_company:
            sales = filter_by_company(sales, filters.company)
        sales = filter_by_house(sales, filters.house_id)
        if not include_cancelled:
            sales = exclude_cancelled(sales)
        logger.debug("Loaded %d sales for report (filters=%s)", len(sales), filters)
        return sales

    def revenue_by_house(self, filters: Optional[ReportFilters] = None) -> list[RevenueByHouse]:
        """Revenue lines per house, sorted by net revenue (descending).

        Args:
            filters: Optional report filters

        Returns:
            One RevenueByHouse per house with at least one non-cancelled sale
        """
        sales = self._load_sales(filters)
        results = []
        for house_id, house_sales in group_by_key(sales, lambda sale: sale.house_id).items():
            daily_rates = total_of(house_sales, lambda sale: sale.net_value)
            concierge = total_of(house_sales, lambda sale: sale.concierge_value)
            suppliers = total_of(house_sales, lambda sale: sale.total_additional_sales)
            expenses = total_of(house_sales, lambda sale: sale.expenses)
            gross_revenue = daily_rates + concierge + suppliers
            results.append(
                RevenueByHouse(
                    house_id=house_id,
                    house_name=house_sales[0].house_name,
                    house_address=house_sales[0].house_address,
                    daily_rates_revenue=daily_rates,
                    concierge_revenue=concierge,
                    suppliers_commission=suppliers,
                    gross_revenue=gross_revenue,
                    expenses=expenses,
                    net_revenue=gross_revenue - expenses,
                    number_of_sales=len(house_sales),
                    number_of_nights=sum(sale.number_of_nights for sale in house_sales),
                )
            )
        results.sort(key=lambda row: row.net_revenue, reverse=True)
        return results

    def cash_flow(self, filters: Optional[ReportFilters] = None) -> list[CashFlowEntry]:
        """Cash in/out per period with a running balance.

        Entries are in chronological order; the accumulated balance of the
        last entry equals the sum of all balances.
        """
        filters = filters or ReportFilters()
        sales = self._load_sales(filters)
        groups = group_by_period(sales, filters.group_by)

        entries = []
        accumulated_balance = ZERO
        for key in sorted_period_keys(groups):
            period_sales = groups[key]
            cash_in = total_of(period_sales, lambda sale: sale.total_revenue)
            cash_out = total_of(period_sales, lambda sale: sale.expenses)
            balance = cash_in - cash_out
            accumulated_balance += balance
            entries.append(
                CashFlowEntry(
                    key=key,
                    period=format_period_label(key, filters.group_by),
                    date=period_start(key, filters.group_by),
                    cash_in=cash_in,
                    cash_out=cash_out,
                    balance=balance,
                    accumulated_balance=accumulated_balance,
                )
            )
        return entries

    def contracts_report(self, filters: Optional[ReportFilters] = None) -> ContractsReport:
        """Contract counts and revenue per status, including cancelled sales."""
        sales = self._load_sales(filters, include_cancelled=True)
        by_status = {status: [] for status in SaleStatus}
        for sale in sales:
            by_status[sale.status].append(sale)

        active = by_status[SaleStatus.CONFIRMED] + by_status[SaleStatus.PENDING]
        return ContractsReport(
            active=_status_metrics(active),
            completed=_status_metrics(by_status[SaleStatus.COMPLETED]),
            pending=_status_metrics(by_status[SaleStatus.PENDING], with_average=False),
            cancelled=_status_metrics(by_status[SaleStatus.CANCELLED], with_average=False),
        )

    def revenue_breakdown(self, filters: Optional[ReportFilters] = None) -> RevenueBreakdown:
        """Split revenue into daily rates, concierge and supplier commissions."""
        sales = self._load_sales(filters)
        daily_rates = total_of(sales, lambda sale: sale.net_value)
        concierge = total_of(sales, lambda sale: sale.concierge_value)
        suppliers = total_of(sales, lambda sale: sale.total_additional_sales)
        total_revenue = daily_rates + concierge + suppliers
        return RevenueBreakdown(
            daily_rates=BreakdownShare(daily_rates, percentage_of(daily_rates, total_revenue)),
            concierge=BreakdownShare(concierge, percentage_of(concierge, total_revenue)),
            suppliers_commission=BreakdownShare(suppliers, percentage_of(suppliers, total_revenue)),
            total_revenue=total_revenue,
        )

    def demographic_report(
        self,
        dimension: Union[Dimension, str],
        filters: Optional[ReportFilters] = None,
    ) -> list[DemographicReport]:
        """Sales distribution over a categorical dimension.

        Every sale lands in exactly one bucket, so the percentages share one
        denominator and sum to 100 whenever there is revenue.
        """
        dimension = Dimension(dimension)
        sales = self._load_sales(filters)
        total_revenue = total_of(sales, lambda sale: sale.total_revenue)

        results = []
        for value, group in group_by_dimension(sales, dimension).items():
            revenue = total_of(group, lambda sale: sale.total_revenue)
            results.append(
                DemographicReport(
                    category=dimension,
                    value=value,
                    number_of_sales=len(group),
                    total_revenue=revenue,
                    percentage=percentage_of(revenue, total_revenue),
                    average_ticket=safe_average(revenue, len(group)),
                )
            )
        results.sort(key=lambda row: row.total_revenue, reverse=True)
        return results

    def comparative_report(
        self,
        period1_start: date,
        period1_end: date,
        period2_start: date,
        period2_end: date,
        company: Optional[Union[CompanyType, str]] = None,
    ) -> ComparativeReport:
        """Compare the metrics of two periods (period 1 is the base).

        Raises:
            InvalidFilterError: If either period starts after it ends
        """
        all_sales = exclude_cancelled(filter_by_company(self.db.list_sales(), company))
        period1_sales = filter_by_period(all_sales, period1_start, period1_end)
        period2_sales = filter_by_period(all_sales, period2_start, period2_end)

        period1 = ComparativePeriod(
            label=_period_label(period1_start, period1_end),
            start_date=period1_start,
            end_date=period1_end,
            metrics=period_metrics(period1_sales),
        )
        period2 = ComparativePeriod(
            label=_period_label(period2_start, period2_end),
            start_date=period2_start,
            end_date=period2_end,
            metrics=period_metrics(period2_sales),
        )
        comparison = {
            name: compare(getattr(period1.metrics, name), getattr(period2.metrics, name))
            for name in PERIOD_METRIC_NAMES
        }
        return ComparativeReport(period1=period1, period2=period2, comparison=comparison)

    def tax_report(self, filters: Optional[ReportFilters] = None) -> list[TaxReport]:
        """Estimated tax per company, one row per company in a fixed order.

        The company filter does not apply; every company gets a row.
        """
        filters = filters or ReportFilters()
        sales = self._load_sales(filters, by_company=False)
        if filters.start_date and filters.end_date:
            period = _period_label(filters.start_date, filters.end_date)
        else:
            period = ALL_PERIODS_LABEL

        results = []
        for company in CompanyType:
            gross_revenue = total_of(
                (sale for sale in sales if sale.company == company),
                lambda sale: sale.total_revenue,
            )
            tax_rate = TAX_RATES[company.value]
            tax_amount = to_money(gross_revenue * tax_rate / 100)
            results.append(
                TaxReport(
                    company=company,
                    company_name=COMPANY_NAMES[company.value],
                    period=period,
                    gross_revenue=gross_revenue,
                    taxable_revenue=gross_revenue,
                    tax_rate=tax_rate,
                    tax_amount=tax_amount,
                    net_revenue=gross_revenue - tax_amount,
                )
            )
        return results

    def financial_summary(self, filters: Optional[ReportFilters] = None) -> FinancialSummary:
        """Headline totals for the filtered sales."""
        sales = self._load_sales(filters)
        total_revenue = total_of(sales, lambda sale: sale.total_revenue)
        total_expenses = total_of(sales, lambda sale: sale.expenses)
        net_profit = total_revenue - total_expenses
        return FinancialSummary(
            total_revenue=total_revenue,
            total_expenses=total_expenses,
            net_profit=net_profit,
            profit_margin=percentage_of(net_profit, total_revenue),
            number_of_sales=len(sales),
            average_ticket=safe_average(total_revenue, len(sales)),
            daily_rates_revenue=total_of(sales, lambda sale: sale.net_value),
            concierge_revenue=total_of(sales, lambda sale: sale.concierge_value),
            suppliers_commission_revenue=total_of(sales, lambda sale: sale.total_additional_sales),
        )

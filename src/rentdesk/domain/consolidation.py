"""Consolidated dashboard service.

Puts the current period side by side with the one just before it, and the
current month and year next to their predecessors. Cancelled sales are left
out of every total; the contract counts pick their statuses explicitly.
"""

import logging
from calendar import monthrange
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from rentdesk.config import MONTH_LABELS
from rentdesk.database.base import Database
from rentdesk.domain.entities import PeriodGrouping, Sale, SaleStatus
from rentdesk.domain.errors import InvalidFilterError, invalid_date_range
from rentdesk.domain.grouping import (
    exclude_cancelled,
    filter_by_company,
    filter_by_house,
    filter_by_period,
    format_period_label,
    group_by_key,
    group_by_period,
    sorted_period_keys,
)
from rentdesk.domain.metrics import percentage_of, safe_average, total_of, variation
from rentdesk.domain.reports import (
    AverageTickets,
    ChartPoint,
    ContributionMarginByHouse,
    FinancialData,
    OccupancyRate,
    PeriodTotal,
    QuickStats,
    ReportFilters,
    TopIndicators,
    ValueVariation,
)
from rentdesk.utils.date_parser import month_bounds
from rentdesk.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

UPCOMING_RESERVATIONS_LIMIT = 10

ACTIVE_STATUSES = (SaleStatus.CONFIRMED, SaleStatus.PENDING)


def resolve_period_range(filters: ReportFilters, today: date) -> tuple[date, date]:
    """Return the explicit date range of the filters, or the period containing today.

    The period follows ``filters.group_by``: the day, month, quarter or year
    that contains today.
    """
    if filters.start_date is not None and filters.end_date is not None:
        return filters.start_date, filters.end_date
    grouping = PeriodGrouping(filters.group_by)
    if grouping == PeriodGrouping.DAY:
        return today, today
    if grouping == PeriodGrouping.YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if grouping == PeriodGrouping.QUARTER:
        first_month = (today.month - 1) // 3 * 3 + 1
        start, _ = month_bounds(today.year, first_month)
        _, end = month_bounds(today.year, first_month + 2)
        return start, end
    return month_bounds(today.year, today.month)


def previous_period(start_date: date, end_date: date) -> tuple[date, date]:
    """Return the range of the same length that ends the day before start_date.

    Examples:
        >>> previous_period(date(2024, 3, 1), date(2024, 3, 31))
        (datetime.date(2024, 1, 30), datetime.date(2024, 2, 29))
    """
    previous_end = start_date - timedelta(days=1)
    return previous_end - (end_date - start_date), previous_end


def _value_variation(current, previous) -> ValueVariation:
    return ValueVariation(value=current, variation=variation(current, previous))


def _period_total(
    current: Sequence[Sale], previous: Sequence[Sale], value: Callable[[Sale], Decimal]
) -> PeriodTotal:
    current_total = total_of(current, value)
    previous_total = total_of(previous, value)
    return PeriodTotal(
        current=current_total,
        previous=previous_total,
        variation=variation(current_total, previous_total),
    )


def _commissions(sale: Sale) -> Decimal:
    return sale.sales_commission + sale.total_additional_sales


def _chart(sales: Sequence[Sale], value: Callable[[Sale], Decimal]) -> tuple[ChartPoint, ...]:
    """Monthly series of a money field, in chronological order."""
    groups = group_by_period(sales, PeriodGrouping.MONTH)
    return tuple(
        ChartPoint(
            period=key,
            label=format_period_label(key, PeriodGrouping.MONTH),
            value=total_of(groups[key], value),
        )
        for key in sorted_period_keys(groups)
    )


def contribution_margin_by_house(sales: Sequence[Sale]) -> list[ContributionMarginByHouse]:
    """Margin per house, best first.

    Costs are the sales commission, the housekeeper and the supplier
    commissions; the margin is revenue minus costs.
    """
    results = []
    for house_id, house_sales in group_by_key(sales, lambda sale: sale.house_id).items():
        total_revenue = total_of(house_sales, lambda sale: sale.total_revenue)
        total_costs = total_of(
            house_sales,
            lambda sale: sale.sales_commission + sale.housekeeper_value + sale.total_additional_sales,
        )
        margin = total_revenue - total_costs
        results.append(
            ContributionMarginByHouse(
                house_id=house_id,
                house_name=house_sales[0].house_name,
                total_revenue=total_revenue,
                total_costs=total_costs,
                margin=margin,
                margin_percentage=percentage_of(margin, total_revenue),
            )
        )
    results.sort(key=lambda row: (-row.margin, row.house_id))
    return results


def _occupied_nights(
    sales: Sequence[Sale], start_date: date, end_date: date
) -> dict[tuple[int, int], list]:
    """Occupied nights and their revenue per (year, month), clipped to the range.

    A night counts on the date it starts, so the check-out day is free.
    """
    occupied: dict[tuple[int, int], list] = {}
    for sale in sales:
        nights = sale.number_of_nights
        per_night = sale.total_revenue / nights if nights > 0 else ZERO
        night = max(sale.check_in_date, start_date)
        last_night = min(sale.check_out_date - timedelta(days=1), end_date)
        while night <= last_night:
            bucket = occupied.setdefault((night.year, night.month), [0, ZERO])
            bucket[0] += 1
            bucket[1] += per_night
            night += timedelta(days=1)
    return occupied


def occupancy_rate(
    sales: Sequence[Sale], start_date: date, end_date: date, house_count: int
) -> list[OccupancyRate]:
    """Monthly occupancy of the houses over a date range.

    Every month the range touches gets a row, with the month's full day count
    multiplied by the number of houses as the denominator. Revenue is spread
    evenly over the nights of each stay.
    """
    occupied = _occupied_nights(sales, start_date, end_date)
    results = []
    cursor = date(start_date.year, start_date.month, 1)
    while cursor <= end_date:
        total_days = monthrange(cursor.year, cursor.month)[1] * max(house_count, 0)
        occupied_days, revenue = occupied.get((cursor.year, cursor.month), (0, ZERO))
        results.append(
            OccupancyRate(
                year=cursor.year,
                month=cursor.month,
                month_label=MONTH_LABELS[cursor.month - 1],
                total_days=total_days,
                occupied_days=occupied_days,
                rate=percentage_of(occupied_days, total_days),
                revenue=to_money(revenue),
            )
        )
        cursor += relativedelta(months=1)
    return results


def _top_key(groups: dict[str, list[Sale]], score: Callable[[list[Sale]], object]) -> Optional[str]:
    if not groups:
        return None
    return min(groups, key=lambda key: (-score(groups[key]), key))


class ConsolidationService:
    """Service building the consolidated management dashboard."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = datetime.now):
        """Initialize consolidation service.

        Args:
            db: Database instance
            clock: Returns the current timestamp
        """
        self.db = db
        self.clock = clock

    def _scoped_sales(self, filters: ReportFilters) -> list[Sale]:
        """Every non-cancelled sale of the filtered company and house, any date."""
        sales = self.db.list_sales()
        sales = filter_by_house(filter_by_company(sales, filters.company), filters.house_id)
        return exclude_cancelled(sales)

    def _periods(self, filters: Optional[ReportFilters]) -> tuple[ReportFilters, date, date, date, date]:
        filters = filters or ReportFilters()
        start_date, end_date = resolve_period_range(filters, self.clock().date())
        if start_date > end_date:
            raise InvalidFilterError(invalid_date_range(start_date, end_date))
        previous_start, previous_end = previous_period(start_date, end_date)
        return filters, start_date, end_date, previous_start, previous_end

    def top_indicators(self, filters: Optional[ReportFilters] = None) -> TopIndicators:
        """Headline indicators with their variation.

        Active contracts compare the period with the previous one. Daily rates
        and closed contracts compare the current month with the previous month
        (MoM) and the current year with the previous year (YoY), whatever the
        period filter says.

        Raises:
            InvalidFilterError: If the start date is after the end date
        """
        filters, start_date, end_date, previous_start, previous_end = self._periods(filters)
        scoped = self._scoped_sales(filters)
        current = filter_by_period(scoped, start_date, end_date)

        def active(sales):
            return sum(1 for sale in sales if sale.status in ACTIVE_STATUSES)

        def closed(sales):
            return sum(1 for sale in sales if sale.status == SaleStatus.COMPLETED)

        def daily_rates(sales):
            return total_of(sales, lambda sale: sale.net_value)

        today = self.clock().date()
        month_start, month_end = month_bounds(today.year, today.month)
        last_month = month_start - relativedelta(months=1)
        last_month_start, last_month_end = month_bounds(last_month.year, last_month.month)
        this_month = filter_by_period(scoped, month_start, month_end)
        previous_month = filter_by_period(scoped, last_month_start, last_month_end)
        this_year = filter_by_period(scoped, date(today.year, 1, 1), date(today.year, 12, 31))
        previous_year = filter_by_period(
            scoped, date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)
        )

        upcoming = sorted(
            (sale for sale in current if sale.check_in_date > today),
            key=lambda sale: (sale.check_in_date, sale.id),
        )
        total_revenue = total_of(current, lambda sale: sale.total_revenue)
        house_averages = [
            safe_average(total_of(group, lambda sale: sale.total_revenue), len(group))
            for group in group_by_key(current, lambda sale: sale.house_id).values()
        ]

        return TopIndicators(
            start_date=start_date,
            end_date=end_date,
            active_contracts=_value_variation(
                active(current), active(filter_by_period(scoped, previous_start, previous_end))
            ),
            future_reservations_count=len(upcoming),
            upcoming_reservations=tuple(upcoming[:UPCOMING_RESERVATIONS_LIMIT]),
            daily_rates_month=_value_variation(daily_rates(this_month), daily_rates(previous_month)),
            daily_rates_year=_value_variation(daily_rates(this_year), daily_rates(previous_year)),
            closed_contracts_month=_value_variation(closed(this_month), closed(previous_month)),
            closed_contracts_year=_value_variation(closed(this_year), closed(previous_year)),
            average_ticket=AverageTickets(
                total=safe_average(total_revenue, len(current)),
                by_house=safe_average(sum(house_averages, ZERO), len(house_averages)),
                by_supplier=safe_average(
                    total_of(current, lambda sale: sale.total_additional_sales), len(current)
                ),
                by_concierge=safe_average(
                    total_of(current, lambda sale: sale.concierge_value), len(current)
                ),
            ),
        )

    def financial_data(self, filters: Optional[ReportFilters] = None) -> FinancialData:
        """Current and previous period totals, margin per house and monthly charts.

        Raises:
            InvalidFilterError: If the start date is after the end date
        """
        filters, start_date, end_date, previous_start, previous_end = self._periods(filters)
        scoped = self._scoped_sales(filters)
        current = filter_by_period(scoped, start_date, end_date)
        previous = filter_by_period(scoped, previous_start, previous_end)
        logger.debug(
            "Consolidating %d sales against %d from %s to %s",
            len(current),
            len(previous),
            previous_start,
            previous_end,
        )

        return FinancialData(
            total_sales=_period_total(current, previous, lambda sale: sale.total_revenue),
            total_commissions=_period_total(current, previous, _commissions),
            supplier_commissions=_period_total(current, previous, lambda sale: sale.total_additional_sales),
            concierge=_period_total(current, previous, lambda sale: sale.concierge_value),
            housekeeper_payments=_period_total(current, previous, lambda sale: sale.housekeeper_value),
            contribution_margin=_period_total(current, previous, lambda sale: sale.contribution_margin),
            margin_by_house=tuple(contribution_margin_by_house(current)),
            sales_chart=_chart(current, lambda sale: sale.total_revenue),
            commissions_chart=_chart(current, lambda sale: sale.sales_commission),
        )

    def contribution_margin_by_house(
        self, filters: Optional[ReportFilters] = None
    ) -> list[ContributionMarginByHouse]:
        """Margin per house for the filtered period, best first."""
        filters, start_date, end_date, _, _ = self._periods(filters)
        return contribution_margin_by_house(
            filter_by_period(self._scoped_sales(filters), start_date, end_date)
        )

    def _house_count(self, filters: ReportFilters, house_count: Optional[int]) -> int:
        if house_count is not None:
            return house_count
        if filters.house_id:
            return 1
        return len({sale.house_id for sale in filter_by_company(self.db.list_sales(), filters.company)})

    def occupancy_rate(
        self, filters: Optional[ReportFilters] = None, house_count: Optional[int] = None
    ) -> list[OccupancyRate]:
        """Monthly occupancy over the filtered period.

        Args:
            filters: Optional filters; without dates the current period is used
            house_count: Number of rentable houses. Defaults to 1 with a house
                filter, else to the number of distinct houses that were ever sold.

        Raises:
            InvalidFilterError: If the start date is after the end date
        """
        filters, start_date, end_date, _, _ = self._periods(filters)
        return occupancy_rate(
            self._scoped_sales(filters),
            start_date,
            end_date,
            self._house_count(filters, house_count),
        )

    def quick_stats(
        self, filters: Optional[ReportFilters] = None, house_count: Optional[int] = None
    ) -> QuickStats:
        """A handful of numbers for the dashboard header.

        The top house ranks by revenue and the top media source by number of
        sales; ties go to the smaller key.
        """
        filters, start_date, end_date, _, _ = self._periods(filters)
        scoped = self._scoped_sales(filters)
        current = filter_by_period(scoped, start_date, end_date)
        total_revenue = total_of(current, lambda sale: sale.total_revenue)

        houses = self._house_count(filters, house_count)
        months = occupancy_rate(scoped, start_date, end_date, houses)
        occupied = sum(month.occupied_days for month in months)
        available = ((end_date - start_date).days + 1) * houses

        by_house = group_by_key(current, lambda sale: sale.house_id)
        top_house_id = _top_key(by_house, lambda group: total_of(group, lambda sale: sale.total_revenue))
        by_origin = group_by_key(
            current, lambda sale: sale.sale_origin.value if sale.sale_origin else None
        )
        return QuickStats(
            total_revenue=total_revenue,
            total_contracts=len(current),
            average_ticket=safe_average(total_revenue, len(current)),
            occupancy_rate=percentage_of(occupied, available),
            top_house=by_house[top_house_id][0].house_name if top_house_id else None,
            top_media_source=_top_key(by_origin, len),
        )

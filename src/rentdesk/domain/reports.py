"""Derived, read-only report views.

Every view here is computed fresh from the current sale set (or goal and
process records) on each query. None has a persisted identity.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from rentdesk.domain.entities import (
    CompanyType,
    ConciergeProcess,
    Dimension,
    FutureReservation,
    GoalCategory,
    GoalStatus,
    Notification,
    PeriodGrouping,
    ProcessStep,
    Sale,
)


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class ReportFilters:
    """Filters shared by the financial reports."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    company: Optional[CompanyType] = None
    house_id: Optional[str] = None
    group_by: PeriodGrouping = PeriodGrouping.MONTH


@dataclass(frozen=True)
class ComparisonMetric:
    absolute_change: Union[Decimal, int]
    percentage_change: float
    trend: Trend


@dataclass(frozen=True)
class RevenueByHouse:
    house_id: str
    house_name: str
    house_address: str
    daily_rates_revenue: Decimal
    concierge_revenue: Decimal
    suppliers_commission: Decimal
    gross_revenue: Decimal
    expenses: Decimal
    net_revenue: Decimal
    number_of_sales: int
    number_of_nights: int


@dataclass(frozen=True)
class CashFlowEntry:
    key: str
    period: str
    date: date
    cash_in: Decimal
    cash_out: Decimal
    balance: Decimal
    accumulated_balance: Decimal


@dataclass(frozen=True)
class StatusMetrics:
    count: int
    total_revenue: Decimal
    average_value: Optional[Decimal] = None


@dataclass(frozen=True)
class ContractsReport:
    active: StatusMetrics
    completed: StatusMetrics
    pending: StatusMetrics
    cancelled: StatusMetrics

    @property
    def lost_revenue(self) -> Decimal:
        return self.cancelled.total_revenue


@dataclass(frozen=True)
class BreakdownShare:
    total: Decimal
    percentage: float


@dataclass(frozen=True)
class RevenueBreakdown:
    daily_rates: BreakdownShare
    concierge: BreakdownShare
    suppliers_commission: BreakdownShare
    total_revenue: Decimal


@dataclass(frozen=True)
class DemographicReport:
    category: Dimension
    value: str
    number_of_sales: int
    total_revenue: Decimal
    percentage: float
    average_ticket: Decimal


@dataclass(frozen=True)
class PeriodMetrics:
    total_sales: int
    total_revenue: Decimal
    daily_rates: Decimal
    concierge: Decimal
    suppliers_commission: Decimal
    average_ticket: Decimal
    number_of_nights: int


# Metric names in the order they are compared and exported
PERIOD_METRIC_NAMES = (
    "total_sales",
    "total_revenue",
    "daily_rates",
    "concierge",
    "suppliers_commission",
    "average_ticket",
    "number_of_nights",
)


@dataclass(frozen=True)
class ComparativePeriod:
    label: str
    start_date: date
    end_date: date
    metrics: PeriodMetrics


@dataclass(frozen=True)
class ComparativeReport:
    period1: ComparativePeriod
    period2: ComparativePeriod
    comparison: dict[str, ComparisonMetric]


@dataclass(frozen=True)
class TaxReport:
    company: CompanyType
    company_name: str
    period: str
    gross_revenue: Decimal
    taxable_revenue: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    net_revenue: Decimal


@dataclass(frozen=True)
class FinancialSummary:
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: float
    number_of_sales: int
    average_ticket: Decimal
    daily_rates_revenue: Decimal
    concierge_revenue: Decimal
    suppliers_commission_revenue: Decimal


# Consolidated dashboard views


@dataclass(frozen=True)
class SaleStats:
    total: int
    total_revenue: Decimal
    pending: int
    confirmed: int
    cancelled: int
    completed: int
    average_ticket: Decimal
    total_commissions: Decimal
    total_margin: Decimal


@dataclass(frozen=True)
class ValueVariation:
    """A value with its percentage change against the previous period."""

    value: Union[Decimal, int]
    variation: float


@dataclass(frozen=True)
class AverageTickets:
    total: Decimal
    by_house: Decimal
    by_supplier: Decimal
    by_concierge: Decimal


@dataclass(frozen=True)
class TopIndicators:
    start_date: date
    end_date: date
    active_contracts: ValueVariation
    future_reservations_count: int
    upcoming_reservations: tuple[Sale, ...]
    daily_rates_month: ValueVariation
    daily_rates_year: ValueVariation
    closed_contracts_month: ValueVariation
    closed_contracts_year: ValueVariation
    average_ticket: AverageTickets


@dataclass(frozen=True)
class PeriodTotal:
    current: Decimal
    previous: Decimal
    variation: float


@dataclass(frozen=True)
class ChartPoint:
    period: str
    label: str
    value: Decimal


@dataclass(frozen=True)
class ContributionMarginByHouse:
    house_id: str
    house_name: str
    total_revenue: Decimal
    total_costs: Decimal
    margin: Decimal
    margin_percentage: float


@dataclass(frozen=True)
class FinancialData:
    total_sales: PeriodTotal
    total_commissions: PeriodTotal
    supplier_commissions: PeriodTotal
    concierge: PeriodTotal
    housekeeper_payments: PeriodTotal
    contribution_margin: PeriodTotal
    margin_by_house: tuple[ContributionMarginByHouse, ...]
    sales_chart: tuple[ChartPoint, ...]
    commissions_chart: tuple[ChartPoint, ...]


@dataclass(frozen=True)
class OccupancyRate:
    year: int
    month: int
    month_label: str
    total_days: int
    occupied_days: int
    rate: float
    revenue: Decimal


@dataclass(frozen=True)
class QuickStats:
    total_revenue: Decimal
    total_contracts: int
    average_ticket: Decimal
    occupancy_rate: float
    top_house: Optional[str]
    top_media_source: Optional[str]


# Goals dashboard views


@dataclass(frozen=True)
class MonthlyAchievement:
    year: int
    month: int
    rental_sales: Decimal
    contracts_quantity: Decimal
    supplier_commission: Decimal
    concierge: Decimal
    house_sales: Decimal
    total_revenue: Decimal

    def achieved_for(self, category: GoalCategory) -> Decimal:
        return getattr(self, category.value)


@dataclass(frozen=True)
class GoalComparison:
    category: GoalCategory
    category_label: str
    goal: Decimal
    achieved: Decimal
    percentage: float
    status: GoalStatus
    difference: Decimal
    revenue_percentage: Optional[float] = None


@dataclass(frozen=True)
class AnnualThermometer:
    year: int
    total_goal: Decimal
    total_achieved: Decimal
    percentage: float
    status: GoalStatus
    categories: tuple[GoalComparison, ...] = ()


@dataclass(frozen=True)
class MonthlyGoalData:
    year: int
    month: int
    month_label: str
    goals: dict[GoalCategory, Decimal]
    achieved: dict[GoalCategory, Decimal]
    comparisons: tuple[GoalComparison, ...]
    total_revenue: Decimal


@dataclass(frozen=True)
class MonthlyTrendPoint:
    month: str
    goals: dict[GoalCategory, Decimal]
    achieved: dict[GoalCategory, Decimal]


@dataclass(frozen=True)
class CategoryChartPoint:
    category: str
    goal: Decimal
    achieved: Decimal
    percentage: float


@dataclass(frozen=True)
class ThermometerData:
    percentage: float
    achieved: Decimal
    goal: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class GoalsChartsData:
    monthly_trend: tuple[MonthlyTrendPoint, ...]
    category_comparison: tuple[CategoryChartPoint, ...]
    thermometer: ThermometerData


@dataclass(frozen=True)
class GoalsDashboard:
    year: int
    annual_thermometer: AnnualThermometer
    monthly_data: tuple[MonthlyGoalData, ...]
    charts: GoalsChartsData
    last_update: datetime


# Process dashboard views


@dataclass(frozen=True)
class ProcessFilters:
    start: datetime
    end: datetime
    house_id: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    step: Optional[ProcessStep] = None

    @property
    def key(self) -> tuple:
        """Hashable identity used to detect superseded loads."""
        return (
            self.start,
            self.end,
            self.house_id,
            self.status,
            self.priority,
            self.step,
        )


@dataclass(frozen=True)
class PeriodProcessMetrics:
    new_reservations: int
    completed_processes: int
    average_time: float


@dataclass(frozen=True)
class HouseProcessMetrics:
    house_id: str
    house_name: str
    total_processes: int
    completed_processes: int
    average_time: float
    completion_rate: float


@dataclass(frozen=True)
class ProcessMetrics:
    total_reservations: int
    active_concierge_processes: int
    completed_processes: int
    overdue_processes: int
    average_process_time: float
    completion_rate: float
    this_month: PeriodProcessMetrics
    last_month: PeriodProcessMetrics
    by_house: tuple[HouseProcessMetrics, ...] = ()


@dataclass(frozen=True)
class ProcessCompletionDay:
    date: str
    completed: int
    pending: int
    overdue: int


@dataclass(frozen=True)
class StepPerformance:
    step: ProcessStep
    step_label: str
    average_time: float
    completion_rate: float
    total_processes: int


@dataclass(frozen=True)
class ProcessChartsData:
    process_completion: tuple[ProcessCompletionDay, ...]
    step_performance: tuple[StepPerformance, ...]
    house_performance: tuple[HouseProcessMetrics, ...]


@dataclass(frozen=True)
class ProcessDashboard:
    reservations: tuple[FutureReservation, ...]
    processes: tuple[ConciergeProcess, ...]
    notifications: tuple[Notification, ...]
    metrics: ProcessMetrics
    charts: ProcessChartsData
    filters: Optional[ProcessFilters] = field(default=None, compare=False)

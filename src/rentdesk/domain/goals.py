"""Goals dashboard service."""

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence, Union

from rentdesk.config import GOAL_CATEGORY_LABELS, MONTH_LABELS, MONTH_LABELS_SHORT
from rentdesk.database.base import Database
from rentdesk.domain.entities import (
    AnnualGoal,
    GoalCategory,
    GoalPeriod,
    GoalStatus,
    MonthlyGoal,
    Sale,
    SaleStatus,
)
from rentdesk.domain.errors import DataSourceError, InvalidFilterError, ValidationError
from rentdesk.domain.metrics import classify_goal, percentage_of, total_of
from rentdesk.domain.reports import (
    AnnualThermometer,
    CategoryChartPoint,
    GoalComparison,
    GoalsChartsData,
    GoalsDashboard,
    MonthlyAchievement,
    MonthlyGoalData,
    MonthlyTrendPoint,
    ThermometerData,
)
from rentdesk.utils.date_parser import month_bounds
from rentdesk.utils.money import ZERO, to_money

logger = logging.getLogger(__name__)

MONTHS_IN_YEAR = 12

Money = Union[Decimal, int, float, str]


def compare_goal(
    category: Union[GoalCategory, str],
    goal: Decimal,
    achieved: Decimal,
    total_revenue: Optional[Decimal] = None,
) -> GoalComparison:
    """Compare an achieved value with its goal.

    For house sales the share of total revenue is reported as well.
    """
    category = GoalCategory(category)
    revenue_percentage = None
    if category == GoalCategory.HOUSE_SALES and total_revenue:
        revenue_percentage = percentage_of(achieved, total_revenue)
    return GoalComparison(
        category=category,
        category_label=GOAL_CATEGORY_LABELS[category.value],
        goal=goal,
        achieved=achieved,
        percentage=percentage_of(achieved, goal) if goal > 0 else 0.0,
        status=classify_goal(achieved, goal),
        difference=achieved - goal,
        revenue_percentage=revenue_percentage,
    )


def achievement_from_sales(year: int, month: int, sales: Sequence[Sale]) -> MonthlyAchievement:
    """Sum the achieved values of a month's sales.

    Only the contract count skips cancelled sales; the value sums cover every
    sale that checks in during the month.
    """
    return MonthlyAchievement(
        year=year,
        month=month,
        rental_sales=total_of(sales, lambda sale: sale.contract_value),
        contracts_quantity=Decimal(sum(1 for sale in sales if sale.status != SaleStatus.CANCELLED)),
        supplier_commission=total_of(sales, lambda sale: sale.sales_commission),
        concierge=total_of(sales, lambda sale: sale.concierge_value),
        house_sales=total_of(sales, lambda sale: sale.total_additional_sales),
        total_revenue=total_of(sales, lambda sale: sale.total_revenue),
    )


def empty_thermometer(year: int) -> AnnualThermometer:
    return AnnualThermometer(
        year=year,
        total_goal=ZERO,
        total_achieved=ZERO,
        percentage=0.0,
        status=GoalStatus.BELOW_TARGET,
        categories=(),
    )


def charts_data(
    monthly_data: Sequence[MonthlyGoalData], thermometer: AnnualThermometer
) -> GoalsChartsData:
    """Build the chart series of the goals dashboard."""
    monthly_trend = tuple(
        MonthlyTrendPoint(
            month=MONTH_LABELS_SHORT[data.month - 1],
            goals=dict(data.goals),
            achieved=dict(data.achieved),
        )
        for data in monthly_data
    )
    category_comparison = tuple(
        CategoryChartPoint(
            category=comparison.category_label,
            goal=comparison.goal,
            achieved=comparison.achieved,
            percentage=comparison.percentage,
        )
        for comparison in thermometer.categories
    )
    return GoalsChartsData(
        monthly_trend=monthly_trend,
        category_comparison=category_comparison,
        thermometer=ThermometerData(
            percentage=thermometer.percentage,
            achieved=thermometer.total_achieved,
            goal=thermometer.total_goal,
            remaining=thermometer.total_goal - thermometer.total_achieved,
        ),
    )


def dashboard_months(
    period: Union[GoalPeriod, str],
    start_month: Optional[int] = None,
    end_month: Optional[int] = None,
) -> list[int]:
    """Resolve the months covered by a dashboard period.

    Raises:
        InvalidFilterError: If the month bounds are missing or out of order
    """
    period = GoalPeriod(period)
    if period == GoalPeriod.ANNUAL:
        return list(range(1, MONTHS_IN_YEAR + 1))

    if start_month is None:
        raise InvalidFilterError(f"A start month is required for the {period.value} period")
    if period == GoalPeriod.MONTHLY:
        end_month = start_month
    elif end_month is None:
        raise InvalidFilterError("An end month is required for the quarterly period")

    for month in (start_month, end_month):
        if not 1 <= month <= MONTHS_IN_YEAR:
            raise InvalidFilterError(f"Month {month} is out of range (1-12)")
    if start_month > end_month:
        raise InvalidFilterError(f"Start month {start_month} is after end month {end_month}")
    return list(range(start_month, end_month + 1))


def _validate_goal_values(values: dict[GoalCategory, Decimal]) -> None:
    for category, value in values.items():
        if value < 0:
            raise ValidationError(f"Goal for {category.value} cannot be negative")


class GoalsService:
    """Service for goals and the goals dashboard."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = datetime.now):
        """Initialize goals service.

        Args:
            db: Database instance
            clock: Returns the current timestamp
        """
        self.db = db
        self.clock = clock

    def get_annual_goal(self, year: int) -> Optional[AnnualGoal]:
        return self.db.get_annual_goal(year)

    def get_monthly_goals(self, year: int) -> list[MonthlyGoal]:
        return self.db.list_monthly_goals(year)

    def save_annual_goal(
        self,
        year: int,
        rental_sales_goal: Money = ZERO,
        contracts_quantity_goal: Money = ZERO,
        supplier_commission_goal: Money = ZERO,
        concierge_goal: Money = ZERO,
        house_sales_goal: Money = ZERO,
        created_by: Optional[str] = None,
    ) -> int:
        """Create or replace the annual goal of a year.

        Returns:
            Annual goal ID

        Raises:
            ValidationError: If the year is not positive or a goal is negative
        """
        if year <= 0:
            raise ValidationError(f"Invalid year {year}")
        values = {
            GoalCategory.RENTAL_SALES: to_money(rental_sales_goal),
            GoalCategory.CONTRACTS_QUANTITY: to_money(contracts_quantity_goal),
            GoalCategory.SUPPLIER_COMMISSION: to_money(supplier_commission_goal),
            GoalCategory.CONCIERGE: to_money(concierge_goal),
            GoalCategory.HOUSE_SALES: to_money(house_sales_goal),
        }
        _validate_goal_values(values)
        fields = {f"{category.value}_goal": value for category, value in values.items()}
        now = self.clock()

        existing = self.db.get_annual_goal(year)
        if existing is not None:
            self.db.update_annual_goal(existing.id, {**fields, "updated_at": now})
            logger.info("Updated annual goal for %d", year)
            return existing.id

        goal_id = self.db.create_annual_goal(
            {
                "year": year,
                **fields,
                "created_by": created_by,
                "created_at": now,
                "updated_at": now,
            }
        )
        logger.info("Created annual goal for %d", year)
        return goal_id

    def save_monthly_goal(
        self,
        year: int,
        month: int,
        rental_sales_goal: Money = ZERO,
        contracts_quantity_goal: Money = ZERO,
        supplier_commission_goal: Money = ZERO,
        concierge_goal: Money = ZERO,
        house_sales_goal: Money = ZERO,
    ) -> int:
        """Create or replace the goal of a (year, month).

        Returns:
            Monthly goal ID

        Raises:
            ValidationError: If year or month is invalid or a goal is negative
        """
        if year <= 0:
            raise ValidationError(f"Invalid year {year}")
        if not 1 <= month <= MONTHS_IN_YEAR:
            raise ValidationError(f"Month {month} is out of range (1-12)")
        values = {
            GoalCategory.RENTAL_SALES: to_money(rental_sales_goal),
            GoalCategory.CONTRACTS_QUANTITY: to_money(contracts_quantity_goal),
            GoalCategory.SUPPLIER_COMMISSION: to_money(supplier_commission_goal),
            GoalCategory.CONCIERGE: to_money(concierge_goal),
            GoalCategory.HOUSE_SALES: to_money(house_sales_goal),
        }
        _validate_goal_values(values)
        fields = {f"{category.value}_goal": value for category, value in values.items()}
        now = self.clock()

        existing = self.db.get_monthly_goal(year, month)
        if existing is not None:
            self.db.update_monthly_goal(existing.id, {**fields, "updated_at": now})
            return existing.id

        return self.db.create_monthly_goal(
            {"year": year, "month": month, **fields, "created_at": now, "updated_at": now}
        )

    def calculate_monthly_achievement(self, year: int, month: int) -> MonthlyAchievement:
        """Achieved values of the sales checking in during a month."""
        start_date, end_date = month_bounds(year, month)
        sales = self.db.list_sales(start_date=start_date, end_date=end_date)
        return achievement_from_sales(year, month, sales)

    def _achievements(self, year: int, months: Iterable[int]) -> dict[int, MonthlyAchievement]:
        """Achievements for several months of a year from a single range read."""
        months = sorted(set(months))
        if not months:
            return {}
        start_date, _ = month_bounds(year, months[0])
        _, end_date = month_bounds(year, months[-1])
        by_month: dict[int, list[Sale]] = defaultdict(list)
        for sale in self.db.list_sales(start_date=start_date, end_date=end_date):
            by_month[sale.check_in_date.month].append(sale)
        return {month: achievement_from_sales(year, month, by_month[month]) for month in months}

    def annual_thermometer(self, year: int) -> AnnualThermometer:
        """Year-to-date achievement against the annual goal.

        Without an annual goal the thermometer is empty and below target.
        """
        annual_goal = self.db.get_annual_goal(year)
        if annual_goal is None:
            return empty_thermometer(year)

        achievements = self._achievements(year, range(1, MONTHS_IN_YEAR + 1)).values()
        totals = {
            category: sum((achievement.achieved_for(category) for achievement in achievements), ZERO)
            for category in GoalCategory
        }
        total_revenue = sum((achievement.total_revenue for achievement in achievements), ZERO)

        categories = tuple(
            compare_goal(
                category,
                annual_goal.goal_for(category),
                totals[category],
                total_revenue if category == GoalCategory.HOUSE_SALES else None,
            )
            for category in GoalCategory
        )
        total_goal = annual_goal.total_goal
        total_achieved = sum(totals.values(), ZERO)
        return AnnualThermometer(
            year=year,
            total_goal=total_goal,
            total_achieved=total_achieved,
            percentage=percentage_of(total_achieved, total_goal),
            status=classify_goal(total_achieved, total_goal),
            categories=categories,
        )

    def monthly_goal_data(self, year: int, months: Iterable[int]) -> list[MonthlyGoalData]:
        """Goal versus achievement for each requested month.

        A month without its own goal uses one twelfth of the annual goal.
        """
        months = list(months)
        monthly_goals = {goal.month: goal for goal in self.db.list_monthly_goals(year)}
        annual_goal = self.db.get_annual_goal(year)
        achievements = self._achievements(year, months)

        results = []
        for month in months:
            month_goal = monthly_goals.get(month)
            if month_goal is not None:
                goals = {category: month_goal.goal_for(category) for category in GoalCategory}
            elif annual_goal is not None:
                goals = {
                    category: to_money(annual_goal.goal_for(category) / MONTHS_IN_YEAR)
                    for category in GoalCategory
                }
            else:
                goals = {category: ZERO for category in GoalCategory}

            achievement = achievements[month]
            achieved = {category: achievement.achieved_for(category) for category in GoalCategory}
            comparisons = tuple(
                compare_goal(
                    category,
                    goals[category],
                    achieved[category],
                    achievement.total_revenue if category == GoalCategory.HOUSE_SALES else None,
                )
                for category in GoalCategory
            )
            results.append(
                MonthlyGoalData(
                    year=year,
                    month=month,
                    month_label=MONTH_LABELS[month - 1],
                    goals=goals,
                    achieved=achieved,
                    comparisons=comparisons,
                    total_revenue=achievement.total_revenue,
                )
            )
        return results

    def dashboard(
        self,
        year: int,
        period: Union[GoalPeriod, str] = GoalPeriod.ANNUAL,
        start_month: Optional[int] = None,
        end_month: Optional[int] = None,
    ) -> GoalsDashboard:
        """Assemble the goals dashboard for a year and period.

        A data source failure degrades the affected part (thermometer or
        monthly data) to empty values instead of failing the whole dashboard.

        Raises:
            InvalidFilterError: If the period's month bounds are invalid
        """
        months = dashboard_months(period, start_month, end_month)

        try:
            thermometer = self.annual_thermometer(year)
        except DataSourceError as e:
            logger.error("Could not build annual thermometer for %d: %s", year, e)
            thermometer = empty_thermometer(year)

        try:
            monthly_data = self.monthly_goal_data(year, months)
        except DataSourceError as e:
            logger.error("Could not build monthly goal data for %d: %s", year, e)
            monthly_data = []

        return GoalsDashboard(
            year=year,
            annual_thermometer=thermometer,
            monthly_data=tuple(monthly_data),
            charts=charts_data(monthly_data, thermometer),
            last_update=self.clock(),
        )

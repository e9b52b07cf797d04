"""Aggregation and comparison helpers shared by every report.

Money flows through as Decimal so bucket totals add up to report totals
exactly. Percentages and ratios are plain floats.
"""

from decimal import Decimal
from typing import Callable, Iterable, Union

from rentdesk.config import GOAL_EXCEEDED_RATIO, GOAL_ON_TRACK_RATIO
from rentdesk.domain.entities import GoalStatus, Sale
from rentdesk.domain.reports import ComparisonMetric, Trend
from rentdesk.utils.money import ZERO, to_money

Number = Union[Decimal, int, float]


def total_of(sales: Iterable[Sale], value: Callable[[Sale], Decimal]) -> Decimal:
    """Sum a money field over sales."""
    return sum((value(sale) for sale in sales), ZERO)


def safe_average(total: Number, count: int) -> Number:
    """Return total / count, or 0 when there is nothing to average.

    Money totals come back as Decimals rounded to cents. Anything else, such
    as process hours, is averaged as a float.
    """
    if isinstance(total, Decimal):
        return to_money(total / count) if count else ZERO
    if count == 0:
        return 0.0
    return total / count


def percentage_of(part: Number, total: Number) -> float:
    """Return part as a percentage of total, or 0 when total is 0."""
    if total == 0:
        return 0.0
    return float(part) / float(total) * 100


def variation(current: Number, previous: Number) -> float:
    """Percentage change from previous to current.

    A zero base reports 100 when the current value is positive, else 0.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (float(current) - float(previous)) / float(previous) * 100


def compare(period1: Number, period2: Number) -> ComparisonMetric:
    """Compare two scalar values (period1 is the base).

    Examples:
        >>> compare(100, 150).percentage_change
        50.0
        >>> compare(0, 50).trend
        <Trend.UP: 'up'>
    """
    absolute_change = period2 - period1
    if absolute_change > 0:
        trend = Trend.UP
    elif absolute_change < 0:
        trend = Trend.DOWN
    else:
        trend = Trend.NEUTRAL
    return ComparisonMetric(
        absolute_change=absolute_change,
        percentage_change=variation(period2, period1),
        trend=trend,
    )


def classify_goal(achieved: Number, goal: Number) -> GoalStatus:
    """Classify achievement against a goal.

    A zero goal is always on_track.
    """
    if goal == 0:
        return GoalStatus.ON_TRACK
    ratio = float(achieved) / float(goal)
    if ratio >= GOAL_EXCEEDED_RATIO:
        return GoalStatus.EXCEEDED
    if ratio >= GOAL_ON_TRACK_RATIO:
        return GoalStatus.ON_TRACK
    return GoalStatus.BELOW_TARGET

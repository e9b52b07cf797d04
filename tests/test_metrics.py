"""Tests for aggregation and comparison helpers."""

import pytest

from rentdesk.domain.entities import GoalStatus
from rentdesk.domain.metrics import classify_goal, compare, percentage_of, safe_average, variation
from rentdesk.domain.reports import Trend


def test_safe_average_and_percentage_handle_zero():
    assert safe_average(100, 0) == 0.0
    assert safe_average(100, 4) == 25.0
    assert percentage_of(5, 0) == 0.0
    assert percentage_of(25, 200) == 12.5


@pytest.mark.parametrize(
    "current, previous, expected",
    [
        (150, 100, 50.0),
        (50, 100, -50.0),
        (10, 0, 100.0),
        (0, 0, 0.0),
    ],
)
def test_variation(current, previous, expected):
    assert variation(current, previous) == pytest.approx(expected)


def test_compare_trends():
    up = compare(100, 150)
    assert (up.absolute_change, up.percentage_change, up.trend) == (50, 50.0, Trend.UP)
    assert compare(200, 100).trend == Trend.DOWN
    assert compare(7, 7).trend == Trend.NEUTRAL
    assert compare(0, 50).percentage_change == 100.0


@pytest.mark.parametrize(
    "achieved, goal, status",
    [
        (100, 100, GoalStatus.EXCEEDED),
        (120, 100, GoalStatus.EXCEEDED),
        (70, 100, GoalStatus.ON_TRACK),
        (69.9, 100, GoalStatus.BELOW_TARGET),
        (0, 0, GoalStatus.ON_TRACK),
        (500, 0, GoalStatus.ON_TRACK),
    ],
)
def test_classify_goal(achieved, goal, status):
    assert classify_goal(achieved, goal) == status

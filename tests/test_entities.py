"""Tests for domain entities."""

from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from rentdesk.domain.entities import (
    AdditionalSales,
    AnnualGoal,
    GoalCategory,
    ProcessStep,
    StepState,
    empty_steps,
)


class TestAdditionalSales:
    """Tests for AdditionalSales entity."""

    def test_total(self):
        sales = AdditionalSales(supermarket=200, seafood_meat=150.5, coconuts=49.5)
        assert sales.total == 400.0

    def test_dict_uses_camel_case_keys(self):
        """Test that seafood_meat is stored as seafoodMeat."""
        data = AdditionalSales(seafood_meat=10).to_dict()
        assert data["seafoodMeat"] == 10
        assert "seafood_meat" not in data
        assert AdditionalSales.from_dict(data) == AdditionalSales(seafood_meat=10)

    def test_from_dict_tolerates_missing_values(self):
        assert AdditionalSales.from_dict(None) == AdditionalSales()
        assert AdditionalSales.from_dict({"transfer": None}).transfer == 0.0

    def test_immutability(self):
        """Test that AdditionalSales entities are immutable."""
        sales = AdditionalSales()
        with pytest.raises(FrozenInstanceError):
            sales.supermarket = 10.0


class TestProcessStep:
    """Tests for the concierge step ordering."""

    def test_field_names(self):
        assert ProcessStep.MENU_SENT.field_name == "menuSent"
        assert ProcessStep.INVOICES_RECEIVED.field_name == "invoicesReceived"
        assert ProcessStep.from_field_name("receiptsSent") == ProcessStep.RECEIPTS_SENT

    def test_unknown_field_name(self):
        with pytest.raises(ValueError):
            ProcessStep.from_field_name("dinnerServed")

    def test_linear_order(self):
        """Test that every step but the last has exactly one successor."""
        steps = list(ProcessStep)
        assert len(steps) == 8
        for current, following in zip(steps, steps[1:]):
            assert current.next_step() == following
            assert following.index == current.index + 1
        assert ProcessStep.RECEIPTS_SENT.next_step() is None

    def test_empty_steps(self):
        steps = empty_steps()
        assert set(steps) == set(ProcessStep)
        assert all(state == StepState() for state in steps.values())


def test_annual_goal_total():
    """Test that the total goal sums every category."""
    now = datetime(2024, 1, 1)
    goal = AnnualGoal(
        id=1,
        year=2024,
        rental_sales_goal=1000,
        contracts_quantity_goal=5,
        supplier_commission_goal=100,
        concierge_goal=50,
        house_sales_goal=20,
        created_by=None,
        created_at=now,
        updated_at=now,
    )
    assert goal.goal_for(GoalCategory.CONTRACTS_QUANTITY) == 5
    assert goal.total_goal == 1175

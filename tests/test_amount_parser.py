"""Tests for amount parser."""

from decimal import Decimal

import pytest

from rentdesk.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "text, expected",
    [
        ("123.45", "123.45"),
        ("R$ 1.234,56", "1234.56"),
        ("R$ 10.000,00", "10000.00"),
        ("1,234.56", "1234.56"),
        ("123,45", "123.45"),
        ("1.000.000", "1000000"),
        ("-50", "-50"),
        ("(99,90)", "-99.90"),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == Decimal(expected)


def test_parse_amount_returns_decimal():
    """Test that amounts come back as exact Decimals."""
    amount = parse_amount("0,10")
    assert isinstance(amount, Decimal)
    assert amount + parse_amount("0,20") == Decimal("0.30")


class TestReaisThousandsDot:
    """Test the thousands dot of amounts written in reais."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("R$ 1.500", "1500"),
            ("R$1.500", "1500"),
            ("R$ 12.345", "12345"),
            ("R$ 999.000", "999000"),
            ("(R$ 1.500)", "-1500"),
        ],
    )
    def test_single_dot_before_three_digits_is_thousands(self, text, expected):
        """Test that 'R$ 1.500' reads as fifteen hundred reais."""
        assert parse_amount(text) == Decimal(expected)

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("R$ 1.5", "1.5"),
            ("R$ 1.50", "1.50"),
            ("R$ 1.5000", "1.5000"),
        ],
    )
    def test_other_dot_positions_stay_decimal(self, text, expected):
        """Test that a dot not followed by exactly three digits is a decimal mark."""
        assert parse_amount(text) == Decimal(expected)

    def test_without_currency_prefix_dot_is_decimal(self):
        """Test that a bare '1.500' keeps the dot as a decimal mark."""
        assert parse_amount("1.500") == Decimal("1.5")


def test_empty_amount():
    with pytest.raises(ValueError, match="Empty"):
        parse_amount("  ")


def test_invalid_amount():
    with pytest.raises(ValueError):
        parse_amount("abc")


def test_non_finite_amount_rejected():
    with pytest.raises(ValueError):
        parse_amount("NaN")

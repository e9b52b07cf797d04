"""Tests for display formatting."""

from datetime import date, datetime

from rentdesk.utils.formatting import format_currency, format_date_br, format_percentage


def test_format_currency():
    assert format_currency(1234.56) == "R$ 1.234,56"
    assert format_currency(0) == "R$ 0,00"
    assert format_currency(1000000) == "R$ 1.000.000,00"


def test_format_negative_currency():
    assert format_currency(-42.5) == "-R$ 42,50"


def test_format_percentage():
    assert format_percentage(12.345) == "12.35%"
    assert format_percentage(50, decimals=0) == "50%"


def test_format_date_br():
    assert format_date_br(date(2024, 3, 5)) == "05/03/2024"
    assert format_date_br(datetime(2024, 12, 31, 23, 0)) == "31/12/2024"
    assert format_date_br(None) == ""

"""Utility functions for rentdesk."""

from rentdesk.utils.date_parser import parse_date
from rentdesk.utils.amount_parser import parse_amount
from rentdesk.utils.formatting import format_currency, format_date_br, format_percentage

__all__ = [
    "parse_date",
    "parse_amount",
    "format_currency",
    "format_date_br",
    "format_percentage",
]

"""Display formatting for currency, percentages and dates (pt-BR)."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union


def format_currency(value: Union[Decimal, float]) -> str:
    """Format a value as Brazilian reais, e.g. ``R$ 1.234,56``."""
    sign = "-" if value < 0 else ""
    # Format with US separators, then swap them
    formatted = f"{abs(value):,.2f}"
    formatted = formatted.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {formatted}"


def format_percentage(value: float, decimals: int = 2) -> str:
    """Format a percentage value, e.g. ``12.34%``."""
    return f"{value:.{decimals}f}%"


def format_date_br(value: Optional[Union[date, datetime]]) -> str:
    """Format a date as DD/MM/YYYY; missing dates render as an empty string."""
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")

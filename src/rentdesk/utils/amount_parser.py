"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

# A single dot followed by exactly three digits, e.g. "1.500"
_THOUSANDS_DOT = re.compile(r"^-?\d{1,3}\.\d{3}$")


def _normalize_separators(amount_str: str, brazilian: bool = False) -> str:
    """Rewrite thousands/decimal separators to the '1234.56' form.

    When both separators appear, the rightmost one is the decimal mark. A lone
    comma is a decimal comma (Brazilian style); several dots and no comma are
    thousands separators. For reais amounts ("R$ 1.500") a single dot before
    exactly three digits is a thousands separator too.
    """
    has_comma = "," in amount_str
    has_dot = "." in amount_str
    if has_comma and has_dot:
        if amount_str.rfind(",") > amount_str.rfind("."):
            return amount_str.replace(".", "").replace(",", ".")
        return amount_str.replace(",", "")
    if has_comma:
        if amount_str.count(",") > 1:
            return amount_str.replace(",", "")
        return amount_str.replace(",", ".")
    if amount_str.count(".") > 1:
        return amount_str.replace(".", "")
    if brazilian and _THOUSANDS_DOT.match(amount_str):
        return amount_str.replace(".", "")
    return amount_str


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "R$ 123,45"
    - "R$ 1.234,56"
    - "R$ 1.500" (thousands dot)
    - "1,234.56"
    - "-123.45"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove whitespace
    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    brazilian = "R$" in amount_str

    # Remove currency symbols
    amount_str = re.sub(r"R\$|[$€£¥]", "", amount_str)
    amount_str = re.sub(r"\s+", "", amount_str)

    amount_str = _normalize_separators(amount_str, brazilian=brazilian)

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}") from e
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if is_negative:
        amount = -amount
    return amount

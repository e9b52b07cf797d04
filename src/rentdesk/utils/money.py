"""Money helpers.

Amounts are Decimals rounded to cents, so totals add up exactly whatever the
order of the additions.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Optional[Union[Decimal, int, float, str]]) -> Decimal:
    """Convert a number to a Decimal rounded to cents.

    Floats go through their shortest repr, so 0.1 becomes Decimal("0.10")
    rather than its binary expansion. None is zero.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

"""Fixed-precision money helpers."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Coerce a number to a Decimal with two places.

    Floats go through ``str`` first so 25.5 becomes 25.50 and not the binary
    expansion of 25.5.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        amount = Decimal(value)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values) -> Decimal:
    """Sum amounts without going through float."""
    total = ZERO
    for value in values:
        total += to_money(value)
    return total.quantize(CENT, rounding=ROUND_HALF_UP)

"""
Financial amount parsing.

Every amount that enters a posting goes through as_amount so that
sums are taken over values already rounded to 2 decimal places.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

MONEY_QUANT = Decimal("0.01")

NumberValue = Union[Decimal, int, float, str, None]


def as_amount(value: NumberValue) -> Decimal:
    """
    Parse anything parseable into a 2-decimal Decimal.

    None and unparseable input become zero, the same way the record
    forms treat blank amounts.
    """
    if value is None:
        return Decimal("0.00")
    try:
        if isinstance(value, Decimal):
            parsed = value
        else:
            parsed = Decimal(str(value))
        return parsed.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError, ValueError):
        return Decimal("0.00")

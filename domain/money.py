"""
Fixed-point money helpers.

Amounts are Decimals quantized to cents with ROUND_HALF_UP. Each step of
the order totals is rounded before it is combined with the next one:

    subtotal = round(sum(line subtotals))
    tax      = round(subtotal * tax_rate)
    total    = subtotal + tax
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, NamedTuple, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyLike = Union[Decimal, int, str, float]


class Totals(NamedTuple):
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def to_decimal(value: MoneyLike) -> Decimal:
    """Convert to Decimal going through str so floats keep their printed value."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"Not a monetary amount: {value!r}") from e


def round_money(value: MoneyLike) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(line_subtotals: Iterable[Decimal], tax_rate: Decimal) -> Totals:
    subtotal = round_money(sum((to_decimal(v) for v in line_subtotals), ZERO))
    tax = round_money(subtotal * to_decimal(tax_rate))
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)

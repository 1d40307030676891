from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Union

from bookkeeper.errors import DivisionUndefined

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Tolerance for comparing monetary sums
EPSILON = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Quantize to two decimal places. Floats go through str() to drop binary noise."""
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = repr(value)
    amount = Decimal(value)
    if not amount.is_finite():
        raise InvalidOperation(f"non-finite amount {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Number]) -> Decimal:
    total = ZERO
    for v in values:
        total += to_money(v)
    return total


def within_epsilon(a: Number, b: Number) -> bool:
    """True when |a - b| <= 0.01."""
    return abs(to_money(a) - to_money(b)) <= EPSILON


def is_balanced(a: Number, b: Number) -> bool:
    """Report-level check: strictly below the epsilon."""
    return abs(to_money(a) - to_money(b)) < EPSILON


def safe_ratio(numerator: Number, denominator: Number) -> Decimal:
    denominator = to_money(denominator)
    if denominator == ZERO:
        raise DivisionUndefined("Ratio denominator is zero", {"numerator": str(to_money(numerator))})
    return (to_money(numerator) / denominator).quantize(CENT, rounding=ROUND_HALF_UP)

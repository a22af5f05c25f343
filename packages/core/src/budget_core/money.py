"""Fixed-precision money arithmetic.

Every monetary value in Budget Core is a ``Decimal``. Floats are accepted at
the boundary only and are converted through their shortest decimal string,
so ``1000.00`` is stored as ``Decimal("1000.0")`` and never as
``999.9999999999999``.

All helpers are total: division by zero yields ``Decimal("0")``.
"""

import re
from collections.abc import Callable, Hashable, Iterable
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, TypeVar, Union

from .exceptions import ValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")
HALF = Decimal("0.5")

# Anything to_decimal accepts.
MoneyInput = Union[Decimal, int, float, str]

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def to_decimal(value: Any) -> Decimal:
    """Convert a boundary value to Decimal without binary float artifacts.

    Args:
        value: Decimal, int, float, numeric string or None (treated as 0).

    Returns:
        The exact decimal value.

    Raises:
        ValidationError: If the value cannot be read as a finite number.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValidationError("Boolean is not a monetary amount", value=value)
    elif isinstance(value, int):
        return Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValidationError(
                f"Not a numeric amount: {value!r}",
                value=str(value),
                constraint="decimal number",
            ) from e

    if not result.is_finite():
        raise ValidationError("Amount must be finite", value=str(value))
    return result


def round_amount(amount: Any, decimals: int = 2) -> Decimal:
    """Round half-up to ``decimals`` places."""
    exponent = Decimal(1).scaleb(-decimals)
    return to_decimal(amount).quantize(exponent, rounding=ROUND_HALF_UP)


def round_percent(value: Decimal) -> int:
    """Round a percentage to a whole number, halves toward +infinity.

    ``2.5`` becomes 3 and ``-2.5`` becomes -2.
    """
    return int((value + HALF).to_integral_value(rounding=ROUND_FLOOR))


def safe_divide(numerator: Any, denominator: Any) -> Decimal:
    """Divide, returning 0 when the denominator is zero."""
    denominator = to_decimal(denominator)
    if denominator == 0:
        return ZERO
    return to_decimal(numerator) / denominator


def percent_amount(percent: Any, whole: Any) -> Decimal:
    """Return ``percent`` % of ``whole``, rounded to cents."""
    return round_amount(to_decimal(percent) / HUNDRED * to_decimal(whole))


def percent_of(part: Any, whole: Any) -> Decimal:
    """Return what percent ``part`` is of ``whole`` (0 when whole is 0)."""
    return round_amount(safe_divide(part, whole) * HUNDRED)


def sum_amounts(amounts: Iterable[Any]) -> Decimal:
    """Sum amounts and round the total to cents."""
    return round_amount(sum((to_decimal(a) for a in amounts), ZERO))


def parse_amount(text: str) -> Decimal:
    """Parse user-entered money such as ``"$1,234.50"``.

    Anything unparseable reads as 0.
    """
    cleaned = _NON_NUMERIC.sub("", text or "")
    try:
        return Decimal(cleaned) if cleaned else ZERO
    except InvalidOperation:
        return ZERO


def format_currency(amount: Any, decimals: int = 2) -> str:
    """Format as US dollars, e.g. ``$1,234.50`` or ``-$5.00``."""
    value = round_amount(amount, decimals)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.{decimals}f}"


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group items by key, preserving first-seen key order."""
    groups: dict[K, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


__all__ = [
    "ZERO",
    "CENT",
    "HUNDRED",
    "MoneyInput",
    "to_decimal",
    "round_amount",
    "round_percent",
    "safe_divide",
    "percent_amount",
    "percent_of",
    "sum_amounts",
    "parse_amount",
    "format_currency",
    "group_by",
]

"""
Decimal helpers.
"""

from __future__ import annotations

from decimal import (
    ROUND_CEILING,
    ROUND_FLOOR,
    ROUND_HALF_DOWN,
    ROUND_HALF_UP,
    Decimal,
    InvalidOperation,
)
from typing import Any

_ROUNDING_MODES = {
    "ceil": ROUND_CEILING,
    "floor": ROUND_FLOOR,
    "half_up": ROUND_HALF_UP,
    "half_down": ROUND_HALF_DOWN,
}


def safe_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Safely convert a value to Decimal.

    Returns default for None, NaN, Infinity, and invalid values.
    """
    if value is None:
        return default
    if isinstance(value, Decimal):
        if value.is_nan() or value.is_infinite():
            return default
        return value
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default
    if result.is_nan() or result.is_infinite():
        return default
    return result


def round_to_increment(value: Decimal, increment: Decimal, *, rounding: str) -> Decimal:
    """
    Round `value` to a multiple of `increment`.

    `rounding` is one of "ceil", "floor", "half_up", "half_down".

    NOTE: Exchanges may enforce non-power-of-10 increments.
    `Decimal.quantize()` only matches exponent/decimal places, so we round by division.
    """
    if increment <= 0:
        return value
    if value <= 0:
        return value
    q = (value / increment).to_integral_value(rounding=_ROUNDING_MODES[rounding])
    # Normalise the exponent to the increment's so 105.000 prints as 105.0 for tick 0.1
    return (q * increment).quantize(increment)

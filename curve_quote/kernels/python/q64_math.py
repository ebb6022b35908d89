"""
Q64.64 fixed-point kernel.

Values are unsigned integers scaled by 2**64. Python ints are unbounded, so the
fixed widths of the settlement engine (u64 amounts, u128 prices/liquidity) are
enforced explicitly where the settlement engine would fail, and intermediate
products are simply computed exactly (the 256-bit intermediates on-chain).
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Optional

from ...errors import DivisionByZeroError


RESOLUTION = 64
SCALE_OFFSET = RESOLUTION
ONE = 1 << RESOLUTION
MAX_EXPONENTIAL = 0x80000
BASIS_POINT_MAX = 10_000

U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1


@unique
class Rounding(Enum):
    UP = "up"
    DOWN = "down"


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def ceil_div(numerator: int, denominator: int) -> int:
    if denominator == 0:
        raise DivisionByZeroError("division by zero")
    return -((-numerator) // denominator)


def div_round(numerator: int, denominator: int, rounding: Rounding) -> int:
    if denominator == 0:
        raise DivisionByZeroError("division by zero")
    if rounding is Rounding.UP:
        return ceil_div(numerator, denominator)
    return numerator // denominator


def mul_div(x: int, y: int, denominator: int, rounding: Rounding) -> int:
    """
    Compute `x * y / denominator` with an exact intermediate.

    Raises:
        DivisionByZeroError: if `denominator == 0`.
    """
    _require_int("x", x)
    _require_int("y", y)
    _require_int("denominator", denominator)
    return div_round(x * y, denominator, rounding)


def shl_div(x: int, y: int, offset: int, rounding: Rounding) -> int:
    """Compute `(x << offset) / y`."""
    _require_int("x", x)
    _require_int("y", y)
    return div_round(x << offset, y, rounding)


def pow(base: int, exp: int) -> Optional[int]:
    """
    Raise a Q64.64 `base` to a signed integer power.

    Uses the settlement engine's binary exponentiation: a base >= 1.0 is first
    replaced by its reciprocal so every squaring stays below 1.0, and the result
    is inverted back at the end. Exactly 19 squaring steps run, which is why
    `|exp|` must stay below `MAX_EXPONENTIAL`.

    Returns:
        The Q64.64 result, or None when the computation overflows or
        underflows to zero.
    """
    _require_int("base", base)
    _require_int("exp", exp)

    invert = exp < 0
    if exp == 0:
        return ONE

    exp = -exp if invert else exp
    if exp >= MAX_EXPONENTIAL:
        return None

    squared = base
    result = ONE

    if squared >= ONE:
        squared = U128_MAX // squared
        invert = not invert

    bit = 0x1
    while bit < MAX_EXPONENTIAL:
        if exp & bit:
            result = (result * squared) >> RESOLUTION
        squared = (squared * squared) >> RESOLUTION
        bit <<= 1

    if result == 0:
        return None

    if invert:
        result = U128_MAX // result

    return result

"""
Curve traversal over a piecewise-constant liquidity curve.

`curve[i]` holds the liquidity active from the previous bound (or the start
price) up to `curve[i].sqrt_price`. Selling base walks the curve downward,
selling quote walks it upward. Output amounts are rounded down and per-segment
input capacities are rounded up, so a quote never promises more than
settlement pays.
A zero-liquidity band is crossed at no cost and pays nothing. A partial fill
too small to move the rounded price raises `InvalidPriceError`.

The two directions are intentionally asymmetric at the curve's end:

- base -> quote: any input left after the lowest bound is absorbed by
  `curve[0].liquidity` with no lower price bound;
- quote -> base: input left after the highest bound is an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..errors import InvalidPriceError, MathOverflowError, NotEnoughLiquidityError
from ..kernels.python.curve_math import (
    get_delta_amount_base_unsigned,
    get_delta_amount_base_unsigned_unchecked,
    get_delta_amount_quote_unsigned,
    get_delta_amount_quote_unsigned_unchecked,
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)
from ..kernels.python.q64_math import U64_MAX, Rounding, _require_int
from ..state.pool import CurveSegment


@dataclass(frozen=True)
class SwapAmount:
    output_amount: int
    next_sqrt_price: int


@dataclass(frozen=True)
class SwapInput:
    input_amount: int
    next_sqrt_price: int


def _checked_add_u64(name: str, a: int, b: int) -> int:
    total = a + b
    if total > U64_MAX:
        raise MathOverflowError(f"{name} does not fit u64: {total}")
    return total


def _check_start(sqrt_price: int, amount: int) -> None:
    _require_int("sqrt_price", sqrt_price)
    _require_int("amount", amount)
    if sqrt_price == 0:
        raise InvalidPriceError("sqrt price must be non-zero")
    if amount < 0:
        raise MathOverflowError(f"amount must be non-negative: {amount}")


def get_swap_amount_from_base_to_quote(
    curve: Sequence[CurveSegment],
    sqrt_price: int,
    amount_in: int,
) -> SwapAmount:
    """Sell `amount_in` base; the price moves down through the curve."""
    _check_start(sqrt_price, amount_in)
    total_output = 0
    current_sqrt_price = sqrt_price
    amount_left = amount_in

    for i in range(len(curve) - 2, -1, -1):
        if amount_left == 0:
            break
        lower = curve[i].sqrt_price
        liquidity = curve[i + 1].liquidity
        if lower >= current_sqrt_price:
            continue
        if liquidity == 0:
            current_sqrt_price = lower
            continue

        max_amount_in = get_delta_amount_base_unsigned_unchecked(
            lower, current_sqrt_price, liquidity, Rounding.UP
        )
        if amount_left < max_amount_in:
            next_sqrt_price = get_next_sqrt_price_from_input(
                current_sqrt_price, liquidity, amount_left, True
            )
            output = get_delta_amount_quote_unsigned(
                next_sqrt_price, current_sqrt_price, liquidity, Rounding.DOWN
            )
            total_output = _checked_add_u64("total output", total_output, output)
            current_sqrt_price = next_sqrt_price
            amount_left = 0
            break

        output = get_delta_amount_quote_unsigned(
            lower, current_sqrt_price, liquidity, Rounding.DOWN
        )
        total_output = _checked_add_u64("total output", total_output, output)
        current_sqrt_price = lower
        amount_left -= max_amount_in

    if amount_left != 0:
        liquidity = curve[0].liquidity
        next_sqrt_price = get_next_sqrt_price_from_input(
            current_sqrt_price, liquidity, amount_left, True
        )
        output = get_delta_amount_quote_unsigned(
            next_sqrt_price, current_sqrt_price, liquidity, Rounding.DOWN
        )
        total_output = _checked_add_u64("total output", total_output, output)
        current_sqrt_price = next_sqrt_price

    return SwapAmount(output_amount=total_output, next_sqrt_price=current_sqrt_price)


def get_swap_amount_from_quote_to_base(
    curve: Sequence[CurveSegment],
    sqrt_price: int,
    amount_in: int,
) -> SwapAmount:
    """Sell `amount_in` quote; the price moves up through the curve."""
    _check_start(sqrt_price, amount_in)
    total_output = 0
    current_sqrt_price = sqrt_price
    amount_left = amount_in

    for segment in curve:
        if amount_left == 0:
            break
        upper = segment.sqrt_price
        if upper <= current_sqrt_price:
            continue
        if segment.liquidity == 0:
            current_sqrt_price = upper
            continue

        max_amount_in = get_delta_amount_quote_unsigned_unchecked(
            current_sqrt_price, upper, segment.liquidity, Rounding.UP
        )
        if amount_left < max_amount_in:
            next_sqrt_price = get_next_sqrt_price_from_input(
                current_sqrt_price, segment.liquidity, amount_left, False
            )
            output = get_delta_amount_base_unsigned(
                current_sqrt_price, next_sqrt_price, segment.liquidity, Rounding.DOWN
            )
            total_output = _checked_add_u64("total output", total_output, output)
            current_sqrt_price = next_sqrt_price
            amount_left = 0
            break

        output = get_delta_amount_base_unsigned(
            current_sqrt_price, upper, segment.liquidity, Rounding.DOWN
        )
        total_output = _checked_add_u64("total output", total_output, output)
        current_sqrt_price = upper
        amount_left -= max_amount_in

    if amount_left != 0:
        raise NotEnoughLiquidityError(f"curve exhausted with {amount_left} quote left")

    return SwapAmount(output_amount=total_output, next_sqrt_price=current_sqrt_price)


def get_swap_amount(
    curve: Sequence[CurveSegment],
    sqrt_price: int,
    amount_in: int,
    swap_base_for_quote: bool,
) -> SwapAmount:
    if swap_base_for_quote:
        return get_swap_amount_from_base_to_quote(curve, sqrt_price, amount_in)
    return get_swap_amount_from_quote_to_base(curve, sqrt_price, amount_in)


def get_input_amount_from_base_to_quote(
    curve: Sequence[CurveSegment],
    sqrt_price: int,
    amount_out: int,
    sqrt_start_price: int,
) -> SwapInput:
    """
    Base needed to receive `amount_out` quote.

    Past the lowest bound the walk continues on `curve[0].liquidity` but may
    not cross `sqrt_start_price`.
    """
    _check_start(sqrt_price, amount_out)
    total_input = 0
    current_sqrt_price = sqrt_price
    amount_left = amount_out

    for i in range(len(curve) - 2, -1, -1):
        if amount_left == 0:
            break
        lower = curve[i].sqrt_price
        liquidity = curve[i + 1].liquidity
        if lower >= current_sqrt_price:
            continue
        if liquidity == 0:
            current_sqrt_price = lower
            continue

        max_amount_out = get_delta_amount_quote_unsigned_unchecked(
            lower, current_sqrt_price, liquidity, Rounding.DOWN
        )
        if amount_left < max_amount_out:
            next_sqrt_price = get_next_sqrt_price_from_output(
                current_sqrt_price, liquidity, amount_left, True
            )
            amount_in = get_delta_amount_base_unsigned(
                next_sqrt_price, current_sqrt_price, liquidity, Rounding.UP
            )
            total_input = _checked_add_u64("total input", total_input, amount_in)
            current_sqrt_price = next_sqrt_price
            amount_left = 0
            break

        amount_in = get_delta_amount_base_unsigned(
            lower, current_sqrt_price, liquidity, Rounding.UP
        )
        total_input = _checked_add_u64("total input", total_input, amount_in)
        current_sqrt_price = lower
        amount_left -= max_amount_out

    if amount_left != 0:
        liquidity = curve[0].liquidity
        next_sqrt_price = get_next_sqrt_price_from_output(
            current_sqrt_price, liquidity, amount_left, True
        )
        if next_sqrt_price < sqrt_start_price:
            raise NotEnoughLiquidityError("quote output would move price below the start price")
        amount_in = get_delta_amount_base_unsigned(
            next_sqrt_price, current_sqrt_price, liquidity, Rounding.UP
        )
        total_input = _checked_add_u64("total input", total_input, amount_in)
        current_sqrt_price = next_sqrt_price

    return SwapInput(input_amount=total_input, next_sqrt_price=current_sqrt_price)


def get_input_amount_from_quote_to_base(
    curve: Sequence[CurveSegment],
    sqrt_price: int,
    amount_out: int,
) -> SwapInput:
    """Quote needed to receive `amount_out` base."""
    _check_start(sqrt_price, amount_out)
    total_input = 0
    current_sqrt_price = sqrt_price
    amount_left = amount_out

    for segment in curve:
        if amount_left == 0:
            break
        upper = segment.sqrt_price
        if upper <= current_sqrt_price:
            continue
        if segment.liquidity == 0:
            current_sqrt_price = upper
            continue

        max_amount_out = get_delta_amount_base_unsigned_unchecked(
            current_sqrt_price, upper, segment.liquidity, Rounding.DOWN
        )
        if amount_left < max_amount_out:
            next_sqrt_price = get_next_sqrt_price_from_output(
                current_sqrt_price, segment.liquidity, amount_left, False
            )
            amount_in = get_delta_amount_quote_unsigned(
                current_sqrt_price, next_sqrt_price, segment.liquidity, Rounding.UP
            )
            total_input = _checked_add_u64("total input", total_input, amount_in)
            current_sqrt_price = next_sqrt_price
            amount_left = 0
            break

        amount_in = get_delta_amount_quote_unsigned(
            current_sqrt_price, upper, segment.liquidity, Rounding.UP
        )
        total_input = _checked_add_u64("total input", total_input, amount_in)
        current_sqrt_price = upper
        amount_left -= max_amount_out

    if amount_left != 0:
        raise NotEnoughLiquidityError(f"curve exhausted with {amount_left} base still owed")

    return SwapInput(input_amount=total_input, next_sqrt_price=current_sqrt_price)

"""
Concentrated-liquidity delta kernel.

For a segment with liquidity `L` between sqrt prices `lower < upper`:

    base amount  = L * (upper - lower) / (upper * lower)
    quote amount = L * (upper - lower) / 2**128

`checked` variants match settlement's guarded entry points (non-zero
liquidity, ordered bounds, u64 results). `unchecked` variants are the raw
256-bit forms used when sizing how much input a segment can absorb.
"""

from __future__ import annotations

from ...errors import (
    DivisionByZeroError,
    InvalidPriceError,
    MathOverflowError,
    NotEnoughLiquidityError,
)
from .q64_math import RESOLUTION, U64_MAX, U128_MAX, Rounding, _require_int, ceil_div, mul_div


def _check_segment(lower_sqrt_price: int, upper_sqrt_price: int, liquidity: int) -> None:
    _require_int("lower_sqrt_price", lower_sqrt_price)
    _require_int("upper_sqrt_price", upper_sqrt_price)
    _require_int("liquidity", liquidity)
    if liquidity == 0:
        raise MathOverflowError("liquidity must be non-zero")
    if lower_sqrt_price >= upper_sqrt_price:
        raise InvalidPriceError(
            f"lower sqrt price must be below upper: {lower_sqrt_price} >= {upper_sqrt_price}"
        )


def _to_u64(name: str, value: int) -> int:
    if value < 0 or value > U64_MAX:
        raise MathOverflowError(f"{name} does not fit u64: {value}")
    return value


def get_delta_amount_base_unsigned_unchecked(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    denominator = lower_sqrt_price * upper_sqrt_price
    if denominator == 0:
        raise DivisionByZeroError("sqrt price must be non-zero")
    return mul_div(liquidity, upper_sqrt_price - lower_sqrt_price, denominator, rounding)


def get_delta_amount_base_unsigned(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    """
    Base token amount spanned by `[lower, upper)` at `liquidity`.

    Raises:
        MathOverflowError: zero liquidity, or a result above u64.
        InvalidPriceError: `lower >= upper`.
    """
    _check_segment(lower_sqrt_price, upper_sqrt_price, liquidity)
    amount = get_delta_amount_base_unsigned_unchecked(
        lower_sqrt_price, upper_sqrt_price, liquidity, rounding
    )
    return _to_u64("base delta", amount)


def get_delta_amount_quote_unsigned_unchecked(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    product = liquidity * (upper_sqrt_price - lower_sqrt_price)
    if rounding is Rounding.UP:
        return ceil_div(product, 1 << (RESOLUTION * 2))
    return product >> (RESOLUTION * 2)


def get_delta_amount_quote_unsigned(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    """Quote token amount spanned by `[lower, upper)`; same failure modes as the base variant."""
    _check_segment(lower_sqrt_price, upper_sqrt_price, liquidity)
    amount = get_delta_amount_quote_unsigned_unchecked(
        lower_sqrt_price, upper_sqrt_price, liquidity, rounding
    )
    return _to_u64("quote delta", amount)


def get_next_sqrt_price_from_input(
    sqrt_price: int,
    liquidity: int,
    amount_in: int,
    base_for_quote: bool,
) -> int:
    """
    Price reached after feeding `amount_in` into a single segment.

    Base in (price falls), rounded up so the pool never overpays:
        L * sqrtP / (L + amount * sqrtP)
    Quote in (price rises), rounded down:
        sqrtP + (amount << 128) / L
    """
    _require_int("sqrt_price", sqrt_price)
    _require_int("liquidity", liquidity)
    _require_int("amount_in", amount_in)
    if sqrt_price == 0:
        raise InvalidPriceError("sqrt price must be non-zero")
    if liquidity == 0:
        raise MathOverflowError("liquidity must be non-zero")

    if base_for_quote:
        if amount_in == 0:
            return sqrt_price
        next_sqrt_price = mul_div(
            liquidity, sqrt_price, liquidity + amount_in * sqrt_price, Rounding.UP
        )
    else:
        quotient = (amount_in << (RESOLUTION * 2)) // liquidity
        next_sqrt_price = sqrt_price + quotient

    if next_sqrt_price > U128_MAX:
        raise MathOverflowError(f"next sqrt price does not fit u128: {next_sqrt_price}")
    return next_sqrt_price


def get_next_sqrt_price_from_output(
    sqrt_price: int,
    liquidity: int,
    amount_out: int,
    quote_out: bool,
) -> int:
    """
    Price reached after withdrawing `amount_out` from a single segment.

    Both branches round so that the segment delivers at least `amount_out`:
    quote out moves the price down by `ceil((amount << 128) / L)`, base out
    moves it up to `ceil(L * sqrtP / (L - amount * sqrtP))`.

    Raises:
        NotEnoughLiquidityError: the segment cannot supply `amount_out`.
    """
    _require_int("sqrt_price", sqrt_price)
    _require_int("liquidity", liquidity)
    _require_int("amount_out", amount_out)
    if sqrt_price == 0:
        raise InvalidPriceError("sqrt price must be non-zero")
    if liquidity == 0:
        raise MathOverflowError("liquidity must be non-zero")
    if amount_out == 0:
        return sqrt_price

    if quote_out:
        quotient = ceil_div(amount_out << (RESOLUTION * 2), liquidity)
        if quotient >= sqrt_price:
            raise NotEnoughLiquidityError("quote output exceeds segment liquidity")
        return sqrt_price - quotient

    denominator = liquidity - amount_out * sqrt_price
    if denominator <= 0:
        raise NotEnoughLiquidityError("base output exceeds segment liquidity")
    next_sqrt_price = mul_div(liquidity, sqrt_price, denominator, Rounding.UP)
    if next_sqrt_price > U128_MAX:
        raise MathOverflowError(f"next sqrt price does not fit u128: {next_sqrt_price}")
    return next_sqrt_price

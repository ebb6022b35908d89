"""Volatility tracker roll-forward for the variable fee.

Pure functions over ``DynamicFeeTracker``: each returns a new tracker instead
of mutating. A settlement engine calls ``update_references`` before a swap and
``update_post_swap`` after it. Uninitialized trackers pass through unchanged.
"""

from __future__ import annotations

from dataclasses import replace

from ..errors import DivisionByZeroError, MathOverflowError
from ..kernels.python.q64_math import BASIS_POINT_MAX, ONE, RESOLUTION, U128_MAX, Rounding, _require_int, shl_div
from ..state.pool import DynamicFeeTracker


def get_delta_bin_id(bin_step_u128: int, sqrt_price_a: int, sqrt_price_b: int) -> int:
    """Number of bins between two sqrt prices (doubled, since bins are spaced in price, not sqrt price)."""
    _require_int("bin_step_u128", bin_step_u128)
    upper, lower = (sqrt_price_a, sqrt_price_b) if sqrt_price_a > sqrt_price_b else (sqrt_price_b, sqrt_price_a)
    if bin_step_u128 == 0:
        raise DivisionByZeroError("bin_step_u128 must be non-zero")
    price_ratio = shl_div(upper, lower, RESOLUTION, Rounding.DOWN)
    if price_ratio > U128_MAX:
        raise MathOverflowError(f"price ratio does not fit u128: {price_ratio}")
    return (price_ratio - ONE) // bin_step_u128 * 2


def update_references(tracker: DynamicFeeTracker, sqrt_price: int, current_timestamp: int) -> DynamicFeeTracker:
    """
    Refresh the reference price and decay the reference volatility.

    Only runs once `filter_period` has elapsed since the last bin-crossing
    swap; within `decay_period` the accumulator decays by `reduction_factor`
    basis points, beyond it the reference resets to zero.
    """
    _require_int("current_timestamp", current_timestamp)
    if not tracker.initialized:
        return tracker
    elapsed = current_timestamp - tracker.last_update_timestamp
    if elapsed < 0:
        raise MathOverflowError(
            f"timestamp moved backwards: {current_timestamp} < {tracker.last_update_timestamp}"
        )
    if elapsed < tracker.filter_period:
        return tracker

    if elapsed < tracker.decay_period:
        volatility_reference = tracker.volatility_accumulator * tracker.reduction_factor // BASIS_POINT_MAX
    else:
        volatility_reference = 0
    return replace(tracker, sqrt_price_reference=sqrt_price, volatility_reference=volatility_reference)


def update_volatility_accumulator(tracker: DynamicFeeTracker, sqrt_price: int) -> DynamicFeeTracker:
    if not tracker.initialized:
        return tracker
    delta_bin_id = get_delta_bin_id(tracker.bin_step_u128, sqrt_price, tracker.sqrt_price_reference)
    accumulator = tracker.volatility_reference + delta_bin_id * BASIS_POINT_MAX
    return replace(
        tracker,
        volatility_accumulator=min(accumulator, tracker.max_volatility_accumulator),
    )


def update_post_swap(
    tracker: DynamicFeeTracker,
    old_sqrt_price: int,
    new_sqrt_price: int,
    current_timestamp: int,
) -> DynamicFeeTracker:
    """Accumulate volatility for a completed swap; the timestamp only moves when a bin was crossed."""
    if not tracker.initialized:
        return tracker
    tracker = update_volatility_accumulator(tracker, new_sqrt_price)
    if get_delta_bin_id(tracker.bin_step_u128, old_sqrt_price, new_sqrt_price) > 0:
        tracker = replace(tracker, last_update_timestamp=current_timestamp)
    return tracker

"""
Trading fee engine (deterministic, integer-only).

Fee numerators are over `FEE_DENOMINATOR = 1e9`. The per-swap numerator is the
scheduled base fee plus the volatility-driven variable fee, capped at 50%.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidCollectFeeModeError, InvalidInputError, MathOverflowError
from ..kernels.python.q64_math import BASIS_POINT_MAX, ONE, RESOLUTION, U64_MAX, _require_int, ceil_div, pow
from ..state.pool import (
    BaseFeeParams,
    CollectFeeMode,
    DynamicFeeTracker,
    FeeSchedulerMode,
    PoolFees,
    TradeDirection,
)


FEE_DENOMINATOR = 1_000_000_000
MAX_FEE_NUMERATOR = 500_000_000
VARIABLE_FEE_DENOMINATOR = 100_000_000_000


@dataclass(frozen=True)
class FeeOnAmount:
    """`amount` is what remains after `trading_fee + protocol_fee + referral_fee` is taken."""

    amount: int
    trading_fee: int
    protocol_fee: int
    referral_fee: int

    @property
    def total_fee(self) -> int:
        return self.trading_fee + self.protocol_fee + self.referral_fee


@dataclass(frozen=True)
class FeeBreakdown:
    trading: int
    protocol: int
    referral: int


@dataclass(frozen=True)
class FeeMode:
    fees_on_input: bool
    fees_on_base_token: bool
    has_referral: bool


def get_fee_in_period(cliff_fee_numerator: int, reduction_factor: int, period: int) -> int:
    """
    Exponential decay: `cliff * (1 - reduction_factor / 10_000) ** period`.

    Raises:
        MathOverflowError: if the Q64.64 power overflows.
    """
    _require_int("cliff_fee_numerator", cliff_fee_numerator)
    _require_int("reduction_factor", reduction_factor)
    _require_int("period", period)
    bps = (reduction_factor << RESOLUTION) // BASIS_POINT_MAX
    base = ONE - bps
    result = pow(base, period)
    if result is None:
        raise MathOverflowError(f"fee decay overflow (reduction={reduction_factor}, period={period})")
    return (result * cliff_fee_numerator) >> RESOLUTION


def get_current_base_fee_numerator(
    base_fee: BaseFeeParams,
    current_point: int,
    activation_point: int,
) -> int:
    """
    Scheduled base fee numerator at `current_point`.

    A flat schedule (`period_frequency == 0`) always returns the cliff fee.
    Before activation the schedule is treated as fully decayed
    (`period = number_of_period`).
    """
    _require_int("current_point", current_point)
    _require_int("activation_point", activation_point)
    if base_fee.period_frequency == 0:
        return base_fee.cliff_fee_numerator

    if current_point < activation_point:
        period = base_fee.number_of_period
    else:
        period = min(
            (current_point - activation_point) // base_fee.period_frequency,
            base_fee.number_of_period,
        )

    mode = int(base_fee.fee_scheduler_mode)
    if mode == FeeSchedulerMode.LINEAR:
        fee = base_fee.cliff_fee_numerator - period * base_fee.reduction_factor
        if fee < 0:
            raise MathOverflowError(
                f"linear fee schedule underflows: cliff={base_fee.cliff_fee_numerator}, period={period}"
            )
        return fee
    if mode == FeeSchedulerMode.EXPONENTIAL:
        return get_fee_in_period(base_fee.cliff_fee_numerator, base_fee.reduction_factor, period)
    raise InvalidInputError(f"unknown fee scheduler mode: {mode}")


def get_variable_fee(dynamic_fee: DynamicFeeTracker) -> int:
    if not dynamic_fee.initialized:
        return 0
    square_vfa_bin = (dynamic_fee.volatility_accumulator * dynamic_fee.bin_step) ** 2
    return ceil_div(square_vfa_bin * dynamic_fee.variable_fee_control, VARIABLE_FEE_DENOMINATOR)


def get_total_trading_fee(pool_fees: PoolFees, current_point: int, activation_point: int) -> int:
    """Base plus variable fee numerator, capped at `MAX_FEE_NUMERATOR`."""
    base = get_current_base_fee_numerator(pool_fees.base_fee, current_point, activation_point)
    total = base + get_variable_fee(pool_fees.dynamic_fee)
    return min(total, MAX_FEE_NUMERATOR)


def _fee_total(amount: int, fee_numerator: int) -> int:
    if fee_numerator <= 0:
        return 0
    return max(amount * fee_numerator // FEE_DENOMINATOR, 1)


def split_fees(pool_fees: PoolFees, fee_amount: int, has_referral: bool) -> FeeBreakdown:
    """
    Split a collected fee into trading / protocol / referral shares.

    Referral is carved out of the protocol share, so `trading + protocol +
    referral == fee_amount`.
    """
    _require_int("fee_amount", fee_amount)
    protocol_fee = fee_amount * pool_fees.protocol_fee_percent // 100
    referral_fee = protocol_fee * pool_fees.referral_fee_percent // 100 if has_referral else 0
    return FeeBreakdown(
        trading=fee_amount - protocol_fee,
        protocol=protocol_fee - referral_fee,
        referral=referral_fee,
    )


def calculate_fees(
    pool_fees: PoolFees,
    amount: int,
    has_referral: bool,
    current_point: int,
    activation_point: int,
) -> FeeOnAmount:
    """
    Take the swap fee out of `amount`.

    `total = max(floor(amount * numerator / 1e9), 1)` whenever the capped
    numerator is positive, so any non-free swap pays at least one unit.
    """
    _require_int("amount", amount)
    if amount < 0:
        raise InvalidInputError(f"amount must be non-negative: {amount}")
    fee_numerator = get_total_trading_fee(pool_fees, current_point, activation_point)
    total_fee = _fee_total(amount, fee_numerator)
    split = split_fees(pool_fees, total_fee, has_referral)
    remaining = amount - total_fee
    if remaining < 0:
        raise MathOverflowError(f"fee exceeds amount: fee={total_fee}, amount={amount}")
    return FeeOnAmount(
        amount=remaining,
        trading_fee=split.trading,
        protocol_fee=split.protocol,
        referral_fee=split.referral,
    )


def get_included_fee_amount(fee_numerator: int, excluded_amount: int) -> int:
    """
    Smallest gross amount whose post-fee remainder is at least `excluded_amount`.

    Inverts the fee rule used by `calculate_fees`, including the one-unit
    minimum fee.
    """
    _require_int("fee_numerator", fee_numerator)
    _require_int("excluded_amount", excluded_amount)
    if not (0 <= fee_numerator < FEE_DENOMINATOR):
        raise InvalidInputError(f"fee_numerator out of range: {fee_numerator}")
    if excluded_amount < 0:
        raise InvalidInputError(f"excluded_amount must be non-negative: {excluded_amount}")
    if fee_numerator == 0 or excluded_amount == 0:
        return excluded_amount

    # The estimate can be off by one either way: fees floor, with a one-unit minimum.
    included = ceil_div(excluded_amount * FEE_DENOMINATOR, FEE_DENOMINATOR - fee_numerator)
    while included - _fee_total(included, fee_numerator) < excluded_amount:
        included += 1
    while included > excluded_amount:
        candidate = included - 1
        if candidate - _fee_total(candidate, fee_numerator) < excluded_amount:
            break
        included = candidate
    if included > U64_MAX:
        raise MathOverflowError(f"included fee amount does not fit u64: {included}")
    return included


def get_fee_mode(collect_fee_mode: int, trade_direction: TradeDirection, has_referral: bool) -> FeeMode:
    """
    Decide which token pays the fee and whether it is taken before the swap.

    | collect mode | direction   | on input | on base |
    |--------------|-------------|----------|---------|
    | OutputToken  | BaseToQuote | no       | no      |
    | OutputToken  | QuoteToBase | no       | yes     |
    | QuoteToken   | BaseToQuote | no       | no      |
    | QuoteToken   | QuoteToBase | yes      | no      |
    """
    try:
        mode = CollectFeeMode(collect_fee_mode)
    except ValueError:
        raise InvalidCollectFeeModeError(f"unknown collect fee mode: {collect_fee_mode}") from None
    try:
        direction = TradeDirection(trade_direction)
    except ValueError:
        raise InvalidInputError(f"unknown trade direction: {trade_direction}") from None

    if mode is CollectFeeMode.OUTPUT_TOKEN:
        fees_on_input = False
        fees_on_base_token = direction is TradeDirection.QUOTE_TO_BASE
    else:
        fees_on_input = direction is TradeDirection.QUOTE_TO_BASE
        fees_on_base_token = False

    return FeeMode(
        fees_on_input=fees_on_input,
        fees_on_base_token=fees_on_base_token,
        has_referral=bool(has_referral),
    )

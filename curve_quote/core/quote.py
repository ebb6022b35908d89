"""
Swap quoting for bonding-curve pools.

`quote_exact_in` is the entry point: validate the pool snapshot, decide where
the fee is charged, walk the curve and assemble a `QuoteResult`. Nothing here
mutates the snapshot; `apply_quote` returns the post-swap state as a new value
for callers that want to chain quotes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from ..errors import (
    AmountIsZeroError,
    CurveQuoteError,
    InvalidInputError,
    MathOverflowError,
    PoolIsCompletedError,
)
from ..kernels.python.q64_math import U64_MAX, _require_int
from ..state.pool import ActivationType, PoolConfig, PoolState, TradeDirection
from .curve import (
    get_input_amount_from_base_to_quote,
    get_input_amount_from_quote_to_base,
    get_swap_amount,
)
from .fees import (
    FeeBreakdown,
    FeeMode,
    calculate_fees,
    get_fee_mode,
    get_included_fee_amount,
    get_total_trading_fee,
    split_fees,
)
from .price_math import sqrt_price_to_raw_price
from .volatility import update_post_swap, update_references


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceChange:
    before_swap: int
    after_swap: int


@dataclass(frozen=True)
class QuoteResult:
    """
    Exact-in quote.

    `amount_in` is what the trader sends; `actual_amount_in` is what reaches
    the curve (smaller when the fee is taken from the input). `price` values
    are integer quote-per-base prices, `sqrt_price**2 >> 128`.
    """

    amount_in: int
    actual_amount_in: int
    amount_out: int
    minimum_amount_out: int
    next_sqrt_price: int
    fee: FeeBreakdown
    price: PriceChange


@dataclass(frozen=True)
class ExactOutQuote:
    amount_in: int
    amount_out: int
    next_sqrt_price: int
    fee: FeeBreakdown
    price: PriceChange


@dataclass(frozen=True)
class QuoteAttempt:
    """Tagged result of ``try_quote_exact_in()``; `rejection` carries the error code."""

    accepted: bool
    result: QuoteResult | None = None
    rejection: str | None = None
    message: str | None = None


def _trade_direction(swap_base_for_quote: bool) -> TradeDirection:
    return TradeDirection.BASE_TO_QUOTE if swap_base_for_quote else TradeDirection.QUOTE_TO_BASE


def _validate_trade(pool_state: PoolState, pool_config: PoolConfig, name: str, amount: int) -> None:
    if pool_state.is_curve_complete(pool_config.migration_quote_threshold):
        raise PoolIsCompletedError(
            f"quote reserve {pool_state.quote_reserve} reached migration threshold "
            f"{pool_config.migration_quote_threshold}"
        )
    _require_int(name, amount)
    if amount == 0:
        raise AmountIsZeroError(f"{name} must be positive")
    if not (0 < amount <= U64_MAX):
        raise InvalidInputError(f"{name} out of range [1, {U64_MAX}]: {amount}")


def resolve_current_point(pool_config: PoolConfig, current_timestamp: int, current_slot: int) -> int:
    """Pick the clock the pool's fee schedule runs on."""
    activation_type = int(pool_config.activation_type)
    if activation_type == ActivationType.SLOT:
        return current_slot
    if activation_type == ActivationType.TIMESTAMP:
        return current_timestamp
    raise InvalidInputError(f"unknown activation type: {activation_type}")


def quote_exact_in(
    pool_state: PoolState,
    pool_config: PoolConfig,
    swap_base_for_quote: bool,
    amount_in: int,
    has_referral: bool,
    current_point: int,
) -> QuoteResult:
    """
    Quote a swap of exactly `amount_in`.

    Args:
        pool_state: Live pool snapshot (price, reserves, fee state).
        pool_config: Curve and fee-collection configuration.
        swap_base_for_quote: True to sell base for quote.
        amount_in: Input amount (u64, > 0).
        has_referral: Whether a referral account takes part of the protocol fee.
        current_point: Slot or timestamp, matching `pool_config.activation_type`.

    Returns:
        QuoteResult with `minimum_amount_out == amount_out`; slippage is the
        caller's concern.

    Raises:
        PoolIsCompletedError: quote reserve has reached the migration threshold.
        AmountIsZeroError: `amount_in == 0`.
        NotEnoughLiquidityError: quote -> base input exceeds the curve.
        MathOverflowError / InvalidPriceError / InvalidCollectFeeModeError:
            as raised by the fee engine and curve kernels.
    """
    _validate_trade(pool_state, pool_config, "amount_in", amount_in)
    direction = _trade_direction(swap_base_for_quote)
    fee_mode = get_fee_mode(pool_config.collect_fee_mode, direction, has_referral)
    pool_fees = pool_state.pool_fees

    if fee_mode.fees_on_input:
        fee_on_amount = calculate_fees(
            pool_fees, amount_in, has_referral, current_point, pool_state.activation_point
        )
        actual_amount_in = fee_on_amount.amount
        swap = get_swap_amount(
            pool_config.curve, pool_state.sqrt_price, actual_amount_in, swap_base_for_quote
        )
        amount_out = swap.output_amount
    else:
        actual_amount_in = amount_in
        swap = get_swap_amount(
            pool_config.curve, pool_state.sqrt_price, amount_in, swap_base_for_quote
        )
        fee_on_amount = calculate_fees(
            pool_fees, swap.output_amount, has_referral, current_point, pool_state.activation_point
        )
        amount_out = fee_on_amount.amount

    logger.debug(
        "quote_exact_in direction=%s fees_on_input=%s fees_on_base=%s in=%d out=%d fee=%d",
        direction.name,
        fee_mode.fees_on_input,
        fee_mode.fees_on_base_token,
        amount_in,
        amount_out,
        fee_on_amount.total_fee,
    )

    return QuoteResult(
        amount_in=amount_in,
        actual_amount_in=actual_amount_in,
        amount_out=amount_out,
        minimum_amount_out=amount_out,
        next_sqrt_price=swap.next_sqrt_price,
        fee=FeeBreakdown(
            trading=fee_on_amount.trading_fee,
            protocol=fee_on_amount.protocol_fee,
            referral=fee_on_amount.referral_fee,
        ),
        price=PriceChange(
            before_swap=sqrt_price_to_raw_price(pool_state.sqrt_price),
            after_swap=sqrt_price_to_raw_price(swap.next_sqrt_price),
        ),
    )


def try_quote_exact_in(
    pool_state: PoolState,
    pool_config: PoolConfig,
    swap_base_for_quote: bool,
    amount_in: int,
    has_referral: bool,
    current_point: int,
) -> QuoteAttempt:
    """Like ``quote_exact_in()`` but reports failures as a rejected ``QuoteAttempt``."""
    try:
        result = quote_exact_in(
            pool_state, pool_config, swap_base_for_quote, amount_in, has_referral, current_point
        )
    except CurveQuoteError as exc:
        logger.debug("quote rejected: %s (%s)", exc.code, exc)
        return QuoteAttempt(accepted=False, rejection=exc.code, message=str(exc))
    return QuoteAttempt(accepted=True, result=result)


def quote_exact_out(
    pool_state: PoolState,
    pool_config: PoolConfig,
    swap_base_for_quote: bool,
    amount_out: int,
    has_referral: bool,
    current_point: int,
) -> ExactOutQuote:
    """
    Quote the input needed to receive exactly `amount_out`.

    The input is rounded so that re-quoting it with ``quote_exact_in()`` yields
    at least `amount_out`. Fees are the difference between the gross and net
    amount on whichever side the pool's fee mode charges.
    """
    _validate_trade(pool_state, pool_config, "amount_out", amount_out)
    direction = _trade_direction(swap_base_for_quote)
    fee_mode = get_fee_mode(pool_config.collect_fee_mode, direction, has_referral)
    pool_fees = pool_state.pool_fees
    fee_numerator = get_total_trading_fee(pool_fees, current_point, pool_state.activation_point)

    if fee_mode.fees_on_input:
        curve_out = amount_out
    else:
        curve_out = get_included_fee_amount(fee_numerator, amount_out)

    if swap_base_for_quote:
        swap = get_input_amount_from_base_to_quote(
            pool_config.curve, pool_state.sqrt_price, curve_out, pool_config.sqrt_start_price
        )
    else:
        swap = get_input_amount_from_quote_to_base(
            pool_config.curve, pool_state.sqrt_price, curve_out
        )

    if fee_mode.fees_on_input:
        amount_in = get_included_fee_amount(fee_numerator, swap.input_amount)
        fee_total = amount_in - swap.input_amount
    else:
        amount_in = swap.input_amount
        fee_total = curve_out - amount_out

    logger.debug(
        "quote_exact_out direction=%s out=%d in=%d fee=%d",
        direction.name,
        amount_out,
        amount_in,
        fee_total,
    )

    return ExactOutQuote(
        amount_in=amount_in,
        amount_out=amount_out,
        next_sqrt_price=swap.next_sqrt_price,
        fee=split_fees(pool_fees, fee_total, has_referral),
        price=PriceChange(
            before_swap=sqrt_price_to_raw_price(pool_state.sqrt_price),
            after_swap=sqrt_price_to_raw_price(swap.next_sqrt_price),
        ),
    )


def _checked_u64(name: str, value: int) -> int:
    if not (0 <= value <= U64_MAX):
        raise MathOverflowError(f"{name} leaves u64 range: {value}")
    return value


def apply_quote(
    pool_state: PoolState,
    pool_config: PoolConfig,
    swap_base_for_quote: bool,
    result: QuoteResult,
    current_timestamp: int | None = None,
) -> PoolState:
    """
    Return the pool state settlement would produce for `result`.

    The price moves to `result.next_sqrt_price`, fees accrue on the token the
    fee mode charges, and reserves change by the curve-side amounts. When
    `current_timestamp` is given an initialized volatility tracker is rolled
    forward as well.
    """
    direction = _trade_direction(swap_base_for_quote)
    fee_mode: FeeMode = get_fee_mode(
        pool_config.collect_fee_mode, direction, result.fee.referral > 0
    )
    fee = result.fee

    if fee_mode.fees_on_base_token:
        fee_fields = {
            "trading_base_fee": _checked_u64("trading_base_fee", pool_state.trading_base_fee + fee.trading),
            "protocol_base_fee": _checked_u64("protocol_base_fee", pool_state.protocol_base_fee + fee.protocol),
        }
    else:
        fee_fields = {
            "trading_quote_fee": _checked_u64("trading_quote_fee", pool_state.trading_quote_fee + fee.trading),
            "protocol_quote_fee": _checked_u64("protocol_quote_fee", pool_state.protocol_quote_fee + fee.protocol),
        }

    if fee_mode.fees_on_input:
        actual_amount_out = result.amount_out
    else:
        actual_amount_out = result.amount_out + fee.trading + fee.protocol + fee.referral

    if direction is TradeDirection.BASE_TO_QUOTE:
        base_reserve = _checked_u64("base_reserve", pool_state.base_reserve + result.actual_amount_in)
        quote_reserve = _checked_u64("quote_reserve", pool_state.quote_reserve - actual_amount_out)
    else:
        quote_reserve = _checked_u64("quote_reserve", pool_state.quote_reserve + result.actual_amount_in)
        base_reserve = _checked_u64("base_reserve", pool_state.base_reserve - actual_amount_out)

    pool_fees = pool_state.pool_fees
    if current_timestamp is not None:
        tracker = update_references(pool_fees.dynamic_fee, pool_state.sqrt_price, current_timestamp)
        tracker = update_post_swap(
            tracker, pool_state.sqrt_price, result.next_sqrt_price, current_timestamp
        )
        pool_fees = replace(pool_fees, dynamic_fee=tracker)

    return replace(
        pool_state,
        sqrt_price=result.next_sqrt_price,
        base_reserve=base_reserve,
        quote_reserve=quote_reserve,
        pool_fees=pool_fees,
        **fee_fields,
    )

"""Tests for curve_quote/core/quote.py on the exact two-segment curve (see test_curve_traversal.py)."""

from __future__ import annotations

import importlib.util
from dataclasses import replace

import pytest

from curve_quote.core.curve import get_swap_amount
from curve_quote.core.quote import (
    apply_quote,
    quote_exact_in,
    quote_exact_out,
    resolve_current_point,
    try_quote_exact_in,
)
from curve_quote.errors import (
    AmountIsZeroError,
    InvalidCollectFeeModeError,
    InvalidInputError,
    NotEnoughLiquidityError,
    PoolIsCompletedError,
)
from curve_quote.kernels.python.q64_math import ONE
from curve_quote.state.pool import (
    ActivationType,
    BaseFeeParams,
    CollectFeeMode,
    CurveSegment,
    DynamicFeeTracker,
    PoolConfig,
    PoolFees,
    PoolState,
)


CURVE = (
    CurveSegment(sqrt_price=2 * ONE, liquidity=1000 << 64),
    CurveSegment(sqrt_price=4 * ONE, liquidity=2000 << 64),
)
ONE_PERCENT = PoolFees(base_fee=BaseFeeParams(cliff_fee_numerator=10_000_000), protocol_fee_percent=20)


def _config(collect_fee_mode: CollectFeeMode = CollectFeeMode.QUOTE_TOKEN, **kwargs) -> PoolConfig:
    return PoolConfig(
        curve=CURVE,
        migration_quote_threshold=10**12,
        collect_fee_mode=int(collect_fee_mode),
        **kwargs,
    )


def _state(sqrt_price: int = ONE, **kwargs) -> PoolState:
    kwargs.setdefault("pool_fees", ONE_PERCENT)
    return PoolState(sqrt_price=sqrt_price, base_reserve=10_000, quote_reserve=0, **kwargs)


# ---------------------------------------------------------------------------
# quote_exact_in
# ---------------------------------------------------------------------------

class TestQuoteExactIn:
    def test_fee_on_quote_input(self):
        result = quote_exact_in(_state(), _config(), False, 1010, False, 0)
        assert result.actual_amount_in == 1000
        assert (result.fee.trading, result.fee.protocol, result.fee.referral) == (8, 2, 0)
        assert result.amount_out == 500
        assert result.minimum_amount_out == result.amount_out
        assert result.next_sqrt_price == 2 * ONE
        assert (result.price.before_swap, result.price.after_swap) == (1, 4)

    def test_fee_on_input_matches_curve_walk(self):
        result = quote_exact_in(_state(), _config(), False, 1000, False, 0)
        assert result.actual_amount_in == 990
        assert result.amount_out == get_swap_amount(CURVE, ONE, 990, False).output_amount

    def test_fee_on_base_output(self):
        result = quote_exact_in(_state(), _config(CollectFeeMode.OUTPUT_TOKEN), False, 1000, False, 0)
        assert result.actual_amount_in == 1000
        assert result.amount_out == 495
        assert (result.fee.trading, result.fee.protocol) == (4, 1)

    def test_fee_on_quote_output(self):
        result = quote_exact_in(_state(4 * ONE), _config(), True, 500, False, 0)
        assert result.amount_out == 3960
        assert (result.fee.trading, result.fee.protocol) == (32, 8)
        assert result.next_sqrt_price == 2 * ONE

    def test_referral_share(self):
        fees = replace(ONE_PERCENT, referral_fee_percent=50)
        result = quote_exact_in(_state(4 * ONE, pool_fees=fees), _config(), True, 500, True, 0)
        assert (result.fee.trading, result.fee.protocol, result.fee.referral) == (32, 4, 4)

    def test_variable_fee_raises_the_fee(self):
        dynamic = DynamicFeeTracker(
            initialized=True, volatility_accumulator=1_000_000, bin_step=100, variable_fee_control=5
        )
        fees = replace(ONE_PERCENT, dynamic_fee=dynamic)
        base = quote_exact_in(_state(4 * ONE), _config(), True, 500, False, 0)
        volatile = quote_exact_in(_state(4 * ONE, pool_fees=fees), _config(), True, 500, False, 0)
        assert volatile.amount_out < base.amount_out

    def test_pool_completed(self):
        state = replace(_state(), quote_reserve=10**12)
        with pytest.raises(PoolIsCompletedError):
            quote_exact_in(state, _config(), False, 1000, False, 0)

    def test_zero_amount(self):
        with pytest.raises(AmountIsZeroError):
            quote_exact_in(_state(), _config(), False, 0, False, 0)

    def test_amount_above_u64(self):
        with pytest.raises(InvalidInputError):
            quote_exact_in(_state(), _config(), False, 1 << 64, False, 0)

    def test_unknown_collect_fee_mode(self):
        with pytest.raises(InvalidCollectFeeModeError):
            quote_exact_in(_state(), _config(collect_fee_mode=2), False, 1000, False, 0)

    def test_not_enough_liquidity(self):
        with pytest.raises(NotEnoughLiquidityError):
            quote_exact_in(_state(), _config(), False, 10**9, False, 0)

    def test_snapshot_is_not_mutated(self):
        state = _state()
        before = replace(state)
        quote_exact_in(state, _config(), False, 1000, False, 0)
        assert state == before

    def test_output_grows_with_input(self):
        config = _config(CollectFeeMode.OUTPUT_TOKEN)
        outs = [
            quote_exact_in(_state(), config, False, amount, False, 0).amount_out
            for amount in (2, 10, 999, 1000, 1001, 3000, 4000)
        ]
        assert outs == sorted(outs)
        assert outs[-1] > outs[0]


class TestTryQuoteExactIn:
    def test_accepted(self):
        attempt = try_quote_exact_in(_state(), _config(), False, 1010, False, 0)
        assert attempt.accepted
        assert attempt.rejection is None
        assert attempt.result is not None and attempt.result.amount_out == 500

    def test_rejected_with_code(self):
        attempt = try_quote_exact_in(_state(), _config(), False, 0, False, 0)
        assert not attempt.accepted
        assert attempt.result is None
        assert attempt.rejection == "AmountIsZero"


# ---------------------------------------------------------------------------
# quote_exact_out
# ---------------------------------------------------------------------------

class TestQuoteExactOut:
    def test_fee_on_input(self):
        quote = quote_exact_out(_state(), _config(), False, 500, False, 0)
        assert quote.amount_in == 1010
        assert quote.next_sqrt_price == 2 * ONE
        assert (quote.fee.trading, quote.fee.protocol) == (8, 2)

    def test_fee_on_output_round_trips(self):
        config = _config(CollectFeeMode.OUTPUT_TOKEN)
        quote = quote_exact_out(_state(), config, False, 495, False, 0)
        assert quote_exact_in(_state(), config, False, quote.amount_in, False, 0).amount_out >= 495

    def test_base_to_quote_respects_start_price(self):
        config = _config(sqrt_start_price=ONE + 1)
        with pytest.raises(NotEnoughLiquidityError):
            quote_exact_out(_state(4 * ONE), config, True, 4990, False, 0)


# ---------------------------------------------------------------------------
# Clock and post-swap preview
# ---------------------------------------------------------------------------

def test_resolve_current_point() -> None:
    assert resolve_current_point(_config(activation_type=ActivationType.SLOT), 1_700_000_000, 42) == 42
    assert resolve_current_point(_config(activation_type=ActivationType.TIMESTAMP), 1_700_000_000, 42) == 1_700_000_000
    with pytest.raises(InvalidInputError):
        resolve_current_point(_config(activation_type=3), 0, 0)


class TestApplyQuote:
    def test_fees_accrue_on_base_and_reserves_move(self):
        config = _config(CollectFeeMode.OUTPUT_TOKEN)
        state = _state()
        result = quote_exact_in(state, config, False, 1000, False, 0)
        after = apply_quote(state, config, False, result)
        assert after.sqrt_price == 2 * ONE
        assert after.base_reserve == 10_000 - 500
        assert after.quote_reserve == 1000
        assert (after.trading_base_fee, after.protocol_base_fee) == (4, 1)
        assert (after.trading_quote_fee, after.protocol_quote_fee) == (0, 0)

    def test_fee_on_input_accrues_quote(self):
        state = _state()
        result = quote_exact_in(state, _config(), False, 1010, False, 0)
        after = apply_quote(state, _config(), False, result)
        assert after.quote_reserve == 1000
        assert after.base_reserve == 10_000 - 500
        assert (after.trading_quote_fee, after.protocol_quote_fee) == (8, 2)

    def test_chained_quotes_continue_from_new_price(self):
        config = _config()
        state = _state()
        first = quote_exact_in(state, config, False, 1010, False, 0)
        state = apply_quote(state, config, False, first)
        second = quote_exact_in(state, config, False, 4040, False, 0)
        assert second.amount_out == 500
        assert second.next_sqrt_price == 4 * ONE


if importlib.util.find_spec("hypothesis") is not None:
    import hypothesis.strategies as st
    from hypothesis import given

    @given(st.integers(min_value=1, max_value=4_900), st.sampled_from(list(CollectFeeMode)))
    def test_exact_out_input_delivers_at_least_requested_quote(amount_out: int, mode: CollectFeeMode) -> None:
        config = _config(mode)
        state = _state(4 * ONE)
        quote = quote_exact_out(state, config, True, amount_out, False, 0)
        assert quote_exact_in(state, config, True, quote.amount_in, False, 0).amount_out >= amount_out

    @given(st.integers(min_value=1, max_value=980), st.sampled_from(list(CollectFeeMode)))
    def test_exact_out_input_delivers_at_least_requested_base(amount_out: int, mode: CollectFeeMode) -> None:
        config = _config(mode)
        quote = quote_exact_out(_state(), config, False, amount_out, False, 0)
        assert quote_exact_in(_state(), config, False, quote.amount_in, False, 0).amount_out >= amount_out

    @given(st.integers(min_value=2, max_value=4_000), st.integers(min_value=1, max_value=1_000))
    def test_exact_in_output_is_monotone(amount: int, extra: int) -> None:
        config = _config(CollectFeeMode.OUTPUT_TOKEN)
        a = quote_exact_in(_state(), config, False, amount, False, 0)
        b = quote_exact_in(_state(), config, False, amount + extra, False, 0)
        assert b.amount_out >= a.amount_out

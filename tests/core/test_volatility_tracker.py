from __future__ import annotations

import pytest

from curve_quote.core.volatility import (
    get_delta_bin_id,
    update_post_swap,
    update_references,
    update_volatility_accumulator,
)
from curve_quote.errors import DivisionByZeroError
from curve_quote.kernels.python.q64_math import ONE
from curve_quote.state.pool import DynamicFeeTracker


BIN_STEP_U128 = ONE // 100
THREE_BINS_UP = ONE + 3 * BIN_STEP_U128


def _tracker(**overrides) -> DynamicFeeTracker:
    params = dict(
        initialized=True,
        volatility_accumulator=40_000,
        bin_step=100,
        variable_fee_control=1,
        bin_step_u128=BIN_STEP_U128,
        filter_period=10,
        decay_period=120,
        reduction_factor=5_000,
        max_volatility_accumulator=100_000,
        volatility_reference=0,
        sqrt_price_reference=ONE,
        last_update_timestamp=100,
    )
    params.update(overrides)
    return DynamicFeeTracker(**params)


class TestDeltaBinId:
    def test_counts_bins_both_ways(self):
        assert get_delta_bin_id(BIN_STEP_U128, THREE_BINS_UP, ONE) == 6
        assert get_delta_bin_id(BIN_STEP_U128, ONE, THREE_BINS_UP) == 6

    def test_same_price(self):
        assert get_delta_bin_id(BIN_STEP_U128, ONE, ONE) == 0

    def test_zero_bin_step(self):
        with pytest.raises(DivisionByZeroError):
            get_delta_bin_id(0, ONE, 2 * ONE)


class TestUpdateReferences:
    def test_high_frequency_trade_keeps_references(self):
        tracker = _tracker()
        assert update_references(tracker, 2 * ONE, 105) == tracker

    def test_decay_window(self):
        tracker = update_references(_tracker(), 2 * ONE, 150)
        assert tracker.sqrt_price_reference == 2 * ONE
        assert tracker.volatility_reference == 20_000

    def test_beyond_decay_window_resets(self):
        tracker = update_references(_tracker(), 2 * ONE, 300)
        assert tracker.volatility_reference == 0

    def test_uninitialized_passthrough(self):
        tracker = DynamicFeeTracker()
        assert update_references(tracker, ONE, 10**6) is tracker


class TestAccumulator:
    def test_adds_bins_to_reference(self):
        tracker = update_volatility_accumulator(_tracker(volatility_reference=20_000), THREE_BINS_UP)
        assert tracker.volatility_accumulator == 80_000

    def test_capped(self):
        tracker = update_volatility_accumulator(
            _tracker(volatility_reference=20_000, max_volatility_accumulator=50_000), THREE_BINS_UP
        )
        assert tracker.volatility_accumulator == 50_000

    def test_post_swap_moves_timestamp_only_on_bin_cross(self):
        crossed = update_post_swap(_tracker(), ONE, THREE_BINS_UP, 500)
        assert crossed.last_update_timestamp == 500
        still = update_post_swap(_tracker(), ONE, ONE, 500)
        assert still.last_update_timestamp == 100
        assert still.volatility_accumulator == 0

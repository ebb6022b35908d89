from __future__ import annotations

import json

import pytest
import yaml

from curve_quote.errors import InvalidInputError
from curve_quote.kernels.python.q64_math import ONE
from curve_quote.state.pool import (
    MAX_CURVE_POINT,
    MAX_SQRT_PRICE,
    CurveSegment,
    DynamicFeeTracker,
    PoolConfig,
    PoolState,
)
from curve_quote.state.snapshot import (
    load_snapshot,
    pool_config_from_dict,
    pool_config_to_dict,
    pool_state_from_dict,
    pool_state_to_dict,
)


SNAPSHOT = {
    "config": {
        "migration_quote_threshold": 50_000_000_000,
        "collect_fee_mode": 1,
        "activation_type": 1,
        "curve": [
            {"sqrt_price": str(MAX_SQRT_PRICE), "liquidity": str(2003764205206896640 << 64)},
            {"sqrt_price": str(MAX_SQRT_PRICE), "liquidity": "0"},
            {"sqrt_price": str(MAX_SQRT_PRICE), "liquidity": "0"},
        ],
    },
    "pool": {
        "sqrt_price": "8315081523828484021",
        "base_reserve": 1_000_000_000_000,
        "activation_point": "0x10",
        "pool_fees": {
            "base_fee": {"cliff_fee_numerator": 2_500_000},
            "dynamic_fee": {"initialized": True, "volatility_accumulator": "1_000", "bin_step": 80},
            "protocol_fee_percent": 20,
        },
    },
}


# ---------------------------------------------------------------------------
# Pool types
# ---------------------------------------------------------------------------

class TestPoolConfig:
    def test_strips_sentinel_padding(self):
        config = pool_config_from_dict(SNAPSHOT["config"])
        assert len(config.curve) == 1

    def test_rejects_unordered_bounds(self):
        with pytest.raises(InvalidInputError):
            PoolConfig(
                curve=(CurveSegment(4 * ONE, 1), CurveSegment(2 * ONE, 1)),
                migration_quote_threshold=1,
            )

    def test_rejects_bound_below_start_price(self):
        with pytest.raises(InvalidInputError):
            PoolConfig(curve=(CurveSegment(ONE, 1),), migration_quote_threshold=1, sqrt_start_price=2 * ONE)

    def test_rejects_too_many_points(self):
        curve = tuple(CurveSegment((i + 2) * ONE, 1) for i in range(MAX_CURVE_POINT + 1))
        with pytest.raises(InvalidInputError):
            PoolConfig(curve=curve, migration_quote_threshold=1)

    def test_rejects_unfunded_curve(self):
        with pytest.raises(InvalidInputError):
            PoolConfig(curve=(CurveSegment(2 * ONE, 0),), migration_quote_threshold=1)

    def test_rejects_empty_band_between_funded_segments(self):
        curve = (
            CurveSegment(2 * ONE, 1000 << 64),
            CurveSegment(3 * ONE, 0),
            CurveSegment(4 * ONE, 2000 << 64),
        )
        with pytest.raises(InvalidInputError, match="zero liquidity"):
            PoolConfig(curve=curve, migration_quote_threshold=1)

    def test_rejects_bool_fields(self):
        with pytest.raises(TypeError):
            PoolState(sqrt_price=True)

    def test_completion_flag(self):
        state = PoolState(sqrt_price=ONE, quote_reserve=100)
        assert state.is_curve_complete(100)
        assert not state.is_curve_complete(101)


# ---------------------------------------------------------------------------
# Snapshot loading
# ---------------------------------------------------------------------------

class TestSnapshotDicts:
    def test_parses_string_and_hex_ints(self):
        state = pool_state_from_dict(SNAPSHOT["pool"])
        assert state.sqrt_price == 8315081523828484021
        assert state.activation_point == 16
        assert state.pool_fees.dynamic_fee == DynamicFeeTracker(
            initialized=True, volatility_accumulator=1000, bin_step=80
        )
        assert state.pool_fees.protocol_fee_percent == 20

    def test_unknown_key(self):
        with pytest.raises(InvalidInputError, match="unknown keys"):
            pool_state_from_dict({"sqrt_price": 1, "sqrt_prize": 2})

    def test_missing_sqrt_price(self):
        with pytest.raises(InvalidInputError):
            pool_state_from_dict({})

    def test_bad_integer(self):
        with pytest.raises(InvalidInputError):
            pool_state_from_dict({"sqrt_price": "twelve"})

    def test_out_of_range(self):
        with pytest.raises(InvalidInputError):
            pool_state_from_dict({"sqrt_price": 1, "base_reserve": -1})

    def test_to_dict_survives_json(self):
        config = pool_config_from_dict(SNAPSHOT["config"])
        state = pool_state_from_dict(SNAPSHOT["pool"])
        config_obj = json.loads(json.dumps(pool_config_to_dict(config)))
        state_obj = json.loads(json.dumps(pool_state_to_dict(state)))
        assert pool_config_from_dict(config_obj) == config
        assert pool_state_from_dict(state_obj) == state


def test_load_yaml_snapshot(tmp_path) -> None:
    path = tmp_path / "pool.yaml"
    path.write_text(yaml.safe_dump(SNAPSHOT), encoding="utf-8")
    config, state = load_snapshot(path)
    assert config.collect_fee_mode == 1
    assert config.activation_type == 1
    assert state.base_reserve == 1_000_000_000_000


def test_load_rejects_non_mapping(tmp_path) -> None:
    path = tmp_path / "pool.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(InvalidInputError):
        load_snapshot(path)

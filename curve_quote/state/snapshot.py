"""Pool snapshot (de)serialization.

Snapshots are plain mappings, usually read from YAML:

    config:
      migration_quote_threshold: 50000000000
      collect_fee_mode: 1
      curve:
        - {sqrt_price: "79226673521066979257578248091", liquidity: "..."}
    pool:
      sqrt_price: "8315081523828484021"
      pool_fees:
        base_fee: {cliff_fee_numerator: 2500000}

u128 values exceed what JSON tooling reliably round-trips, so every integer
field also accepts a decimal (or 0x-prefixed hex) string. Serialization writes
u128 fields as strings.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Tuple

import yaml

from ..errors import InvalidInputError
from .pool import (
    BaseFeeParams,
    CurveSegment,
    DynamicFeeTracker,
    PoolConfig,
    PoolFees,
    PoolState,
)


logger = logging.getLogger(__name__)


def _int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip().replace("_", "")
        try:
            return int(text, 16) if text.lower().startswith("0x") else int(text, 10)
        except ValueError:
            raise InvalidInputError(f"{name} is not an integer: {value!r}") from None
    raise InvalidInputError(f"{name} must be an integer, got {type(value).__name__}")


def _bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a bool, got {type(value).__name__}")
    return value


def _mapping(name: str, value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidInputError(f"{name} must be a mapping, got {type(value).__name__}")
    return value


def _check_keys(name: str, obj: Mapping[str, Any], allowed: Tuple[str, ...]) -> None:
    unknown = sorted(set(obj) - set(allowed))
    if unknown:
        raise InvalidInputError(f"{name}: unknown keys {unknown}")


def _build(cls, name: str, **kwargs: Any):
    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise InvalidInputError(f"{name}: {exc}") from exc


_BASE_FEE_KEYS = (
    "cliff_fee_numerator",
    "number_of_period",
    "period_frequency",
    "reduction_factor",
    "fee_scheduler_mode",
)
_DYNAMIC_FEE_INT_KEYS = (
    "volatility_accumulator",
    "bin_step",
    "variable_fee_control",
    "bin_step_u128",
    "filter_period",
    "decay_period",
    "reduction_factor",
    "max_volatility_accumulator",
    "volatility_reference",
    "sqrt_price_reference",
    "last_update_timestamp",
)
_POOL_STATE_INT_KEYS = (
    "sqrt_price",
    "base_reserve",
    "quote_reserve",
    "protocol_base_fee",
    "protocol_quote_fee",
    "trading_base_fee",
    "trading_quote_fee",
    "activation_point",
)
_POOL_CONFIG_INT_KEYS = (
    "migration_quote_threshold",
    "collect_fee_mode",
    "activation_type",
    "sqrt_start_price",
)


def pool_fees_from_dict(obj: Mapping[str, Any]) -> PoolFees:
    obj = _mapping("pool_fees", obj)
    _check_keys("pool_fees", obj, ("base_fee", "dynamic_fee", "protocol_fee_percent", "referral_fee_percent"))

    base_obj = _mapping("base_fee", obj.get("base_fee", {}))
    _check_keys("base_fee", base_obj, _BASE_FEE_KEYS)
    base_fee = _build(
        BaseFeeParams,
        "base_fee",
        **{key: _int(f"base_fee.{key}", value) for key, value in base_obj.items()},
    )

    dyn_obj = _mapping("dynamic_fee", obj.get("dynamic_fee", {}))
    _check_keys("dynamic_fee", dyn_obj, ("initialized",) + _DYNAMIC_FEE_INT_KEYS)
    dyn_kwargs: dict[str, Any] = {
        key: _int(f"dynamic_fee.{key}", value) for key, value in dyn_obj.items() if key != "initialized"
    }
    if "initialized" in dyn_obj:
        dyn_kwargs["initialized"] = _bool("dynamic_fee.initialized", dyn_obj["initialized"])
    dynamic_fee = _build(DynamicFeeTracker, "dynamic_fee", **dyn_kwargs)

    return _build(
        PoolFees,
        "pool_fees",
        base_fee=base_fee,
        dynamic_fee=dynamic_fee,
        protocol_fee_percent=_int("protocol_fee_percent", obj.get("protocol_fee_percent", 0)),
        referral_fee_percent=_int("referral_fee_percent", obj.get("referral_fee_percent", 0)),
    )


def pool_state_from_dict(obj: Mapping[str, Any]) -> PoolState:
    obj = _mapping("pool", obj)
    _check_keys("pool", obj, _POOL_STATE_INT_KEYS + ("pool_fees",))
    if "sqrt_price" not in obj:
        raise InvalidInputError("pool: missing sqrt_price")
    kwargs: dict[str, Any] = {key: _int(f"pool.{key}", obj[key]) for key in _POOL_STATE_INT_KEYS if key in obj}
    kwargs["pool_fees"] = pool_fees_from_dict(obj.get("pool_fees", {}))
    return _build(PoolState, "pool", **kwargs)


def pool_config_from_dict(obj: Mapping[str, Any]) -> PoolConfig:
    obj = _mapping("config", obj)
    _check_keys("config", obj, _POOL_CONFIG_INT_KEYS + ("curve",))
    if "migration_quote_threshold" not in obj:
        raise InvalidInputError("config: missing migration_quote_threshold")
    raw_curve = obj.get("curve")
    if not isinstance(raw_curve, list):
        raise InvalidInputError("config.curve must be a list")

    curve = []
    for i, raw in enumerate(raw_curve):
        point = _mapping(f"config.curve[{i}]", raw)
        _check_keys(f"config.curve[{i}]", point, ("sqrt_price", "liquidity"))
        curve.append(
            _build(
                CurveSegment,
                f"config.curve[{i}]",
                sqrt_price=_int(f"config.curve[{i}].sqrt_price", point.get("sqrt_price")),
                liquidity=_int(f"config.curve[{i}].liquidity", point.get("liquidity")),
            )
        )

    kwargs: dict[str, Any] = {key: _int(f"config.{key}", obj[key]) for key in _POOL_CONFIG_INT_KEYS if key in obj}
    return _build(PoolConfig, "config", curve=tuple(curve), **kwargs)


def load_snapshot(path: str | Path) -> tuple[PoolConfig, PoolState]:
    """Read a YAML (or JSON) snapshot with `config` and `pool` sections."""
    path = Path(path)
    obj = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(obj, Mapping):
        raise InvalidInputError(f"{path}: snapshot must be a mapping")
    _check_keys(str(path), obj, ("config", "pool"))
    config = pool_config_from_dict(obj.get("config"))
    state = pool_state_from_dict(obj.get("pool"))
    logger.debug("loaded snapshot %s: %d curve segments", path, len(config.curve))
    return config, state


def pool_fees_to_dict(pool_fees: PoolFees) -> dict[str, Any]:
    base = pool_fees.base_fee
    dyn = pool_fees.dynamic_fee
    return {
        "base_fee": {key: int(getattr(base, key)) for key in _BASE_FEE_KEYS},
        "dynamic_fee": {
            "initialized": dyn.initialized,
            **{key: str(getattr(dyn, key)) for key in _DYNAMIC_FEE_INT_KEYS},
        },
        "protocol_fee_percent": pool_fees.protocol_fee_percent,
        "referral_fee_percent": pool_fees.referral_fee_percent,
    }


def pool_state_to_dict(state: PoolState) -> dict[str, Any]:
    out: dict[str, Any] = {key: getattr(state, key) for key in _POOL_STATE_INT_KEYS}
    out["sqrt_price"] = str(state.sqrt_price)
    out["pool_fees"] = pool_fees_to_dict(state.pool_fees)
    return out


def pool_config_to_dict(config: PoolConfig) -> dict[str, Any]:
    out: dict[str, Any] = {key: int(getattr(config, key)) for key in _POOL_CONFIG_INT_KEYS}
    out["sqrt_start_price"] = str(config.sqrt_start_price)
    out["curve"] = [
        {"sqrt_price": str(segment.sqrt_price), "liquidity": str(segment.liquidity)}
        for segment in config.curve
    ]
    return out

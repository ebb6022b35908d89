"""Pool snapshot types.

Immutable views of a bonding-curve pool's configuration and live state, as
read from chain. Quoting never mutates them; post-swap previews return new
instances via ``dataclasses.replace``.

Enum-valued fields are stored as raw integers (the on-chain u8) so that a
snapshot with an unknown discriminant still loads and fails at quote time with
the matching error rather than at parse time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, unique
from typing import Iterable, Tuple

from ..errors import InvalidInputError
from ..kernels.python.q64_math import U64_MAX, U128_MAX


MAX_CURVE_POINT = 20
MIN_SQRT_PRICE = 4295048016
MAX_SQRT_PRICE = 79226673521066979257578248091

U8_MAX = (1 << 8) - 1
U16_MAX = (1 << 16) - 1
U32_MAX = (1 << 32) - 1


@unique
class TradeDirection(IntEnum):
    BASE_TO_QUOTE = 0
    QUOTE_TO_BASE = 1


@unique
class CollectFeeMode(IntEnum):
    QUOTE_TOKEN = 0
    OUTPUT_TOKEN = 1


@unique
class FeeSchedulerMode(IntEnum):
    LINEAR = 0
    EXPONENTIAL = 1


@unique
class ActivationType(IntEnum):
    SLOT = 0
    TIMESTAMP = 1


def _require_uint(name: str, value: int, max_value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if not (0 <= value <= max_value):
        raise InvalidInputError(f"{name} out of range [0, {max_value}]: {value}")


@dataclass(frozen=True)
class CurveSegment:
    """Liquidity active up to (and including) `sqrt_price`."""

    sqrt_price: int
    liquidity: int

    def __post_init__(self) -> None:
        _require_uint("sqrt_price", self.sqrt_price, U128_MAX)
        _require_uint("liquidity", self.liquidity, U128_MAX)


@dataclass(frozen=True)
class BaseFeeParams:
    cliff_fee_numerator: int = 0
    number_of_period: int = 0
    period_frequency: int = 0
    reduction_factor: int = 0
    fee_scheduler_mode: int = int(FeeSchedulerMode.LINEAR)

    def __post_init__(self) -> None:
        _require_uint("cliff_fee_numerator", self.cliff_fee_numerator, U64_MAX)
        _require_uint("number_of_period", self.number_of_period, U16_MAX)
        _require_uint("period_frequency", self.period_frequency, U64_MAX)
        _require_uint("reduction_factor", self.reduction_factor, U64_MAX)
        _require_uint("fee_scheduler_mode", int(self.fee_scheduler_mode), U8_MAX)

    @property
    def is_flat(self) -> bool:
        return self.period_frequency == 0


@dataclass(frozen=True)
class DynamicFeeTracker:
    """
    Variable-fee state.

    Only the first four fields feed the fee formula. The rest parameterize the
    volatility roll-forward in ``core/volatility.py``.
    """

    initialized: bool = False
    volatility_accumulator: int = 0
    bin_step: int = 0
    variable_fee_control: int = 0
    bin_step_u128: int = 0
    filter_period: int = 0
    decay_period: int = 0
    reduction_factor: int = 0
    max_volatility_accumulator: int = 0
    volatility_reference: int = 0
    sqrt_price_reference: int = 0
    last_update_timestamp: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.initialized, bool):
            raise TypeError("initialized must be a bool")
        _require_uint("volatility_accumulator", self.volatility_accumulator, U128_MAX)
        _require_uint("bin_step", self.bin_step, U16_MAX)
        _require_uint("variable_fee_control", self.variable_fee_control, U32_MAX)
        _require_uint("bin_step_u128", self.bin_step_u128, U128_MAX)
        _require_uint("filter_period", self.filter_period, U16_MAX)
        _require_uint("decay_period", self.decay_period, U16_MAX)
        _require_uint("reduction_factor", self.reduction_factor, U16_MAX)
        _require_uint("max_volatility_accumulator", self.max_volatility_accumulator, U32_MAX)
        _require_uint("volatility_reference", self.volatility_reference, U128_MAX)
        _require_uint("sqrt_price_reference", self.sqrt_price_reference, U128_MAX)
        _require_uint("last_update_timestamp", self.last_update_timestamp, U64_MAX)


@dataclass(frozen=True)
class PoolFees:
    base_fee: BaseFeeParams = field(default_factory=BaseFeeParams)
    dynamic_fee: DynamicFeeTracker = field(default_factory=DynamicFeeTracker)
    protocol_fee_percent: int = 0
    referral_fee_percent: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.base_fee, BaseFeeParams):
            raise TypeError("base_fee must be BaseFeeParams")
        if not isinstance(self.dynamic_fee, DynamicFeeTracker):
            raise TypeError("dynamic_fee must be DynamicFeeTracker")
        _require_uint("protocol_fee_percent", self.protocol_fee_percent, 100)
        _require_uint("referral_fee_percent", self.referral_fee_percent, 100)


@dataclass(frozen=True)
class PoolState:
    sqrt_price: int
    base_reserve: int = 0
    quote_reserve: int = 0
    protocol_base_fee: int = 0
    protocol_quote_fee: int = 0
    trading_base_fee: int = 0
    trading_quote_fee: int = 0
    activation_point: int = 0
    pool_fees: PoolFees = field(default_factory=PoolFees)

    def __post_init__(self) -> None:
        _require_uint("sqrt_price", self.sqrt_price, U128_MAX)
        for name in (
            "base_reserve",
            "quote_reserve",
            "protocol_base_fee",
            "protocol_quote_fee",
            "trading_base_fee",
            "trading_quote_fee",
            "activation_point",
        ):
            _require_uint(name, getattr(self, name), U64_MAX)
        if not isinstance(self.pool_fees, PoolFees):
            raise TypeError("pool_fees must be PoolFees")

    def is_curve_complete(self, migration_quote_threshold: int) -> bool:
        return self.quote_reserve >= migration_quote_threshold


def strip_curve_padding(curve: Iterable[CurveSegment]) -> Tuple[CurveSegment, ...]:
    """Drop the zero-liquidity sentinel entries that pad on-chain curves to a fixed length."""
    segments = list(curve)
    while segments and segments[-1].liquidity == 0:
        segments.pop()
    return tuple(segments)


@dataclass(frozen=True)
class PoolConfig:
    """
    Static pool parameters.

    `curve` may be given with on-chain sentinel padding; it is stored without
    it. Bounds must be strictly ascending and above `sqrt_start_price`, and
    every remaining segment must carry liquidity.
    """

    curve: Tuple[CurveSegment, ...]
    migration_quote_threshold: int
    collect_fee_mode: int = int(CollectFeeMode.QUOTE_TOKEN)
    activation_type: int = int(ActivationType.SLOT)
    sqrt_start_price: int = MIN_SQRT_PRICE

    def __post_init__(self) -> None:
        raw = tuple(self.curve)
        for segment in raw:
            if not isinstance(segment, CurveSegment):
                raise TypeError("curve entries must be CurveSegment")
        if len(raw) > MAX_CURVE_POINT:
            raise InvalidInputError(f"curve has more than {MAX_CURVE_POINT} points: {len(raw)}")
        curve = strip_curve_padding(raw)
        if not curve:
            raise InvalidInputError("curve must contain at least one funded segment")

        _require_uint("migration_quote_threshold", self.migration_quote_threshold, U64_MAX)
        _require_uint("collect_fee_mode", int(self.collect_fee_mode), U8_MAX)
        _require_uint("activation_type", int(self.activation_type), U8_MAX)
        _require_uint("sqrt_start_price", self.sqrt_start_price, U128_MAX)

        previous = self.sqrt_start_price
        for i, segment in enumerate(curve):
            if segment.sqrt_price <= previous:
                raise InvalidInputError(
                    f"curve[{i}].sqrt_price must exceed {previous}: {segment.sqrt_price}"
                )
            if segment.sqrt_price > MAX_SQRT_PRICE:
                raise InvalidInputError(f"curve[{i}].sqrt_price above MAX_SQRT_PRICE")
            if segment.liquidity == 0:
                raise InvalidInputError(f"curve[{i}] has zero liquidity between funded segments")
            previous = segment.sqrt_price

        object.__setattr__(self, "curve", curve)

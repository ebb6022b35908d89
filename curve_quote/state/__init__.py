"""
Pool snapshot types and loaders.
"""

from .pool import (
    MAX_CURVE_POINT,
    MAX_SQRT_PRICE,
    MIN_SQRT_PRICE,
    ActivationType,
    BaseFeeParams,
    CollectFeeMode,
    CurveSegment,
    DynamicFeeTracker,
    FeeSchedulerMode,
    PoolConfig,
    PoolFees,
    PoolState,
    TradeDirection,
    strip_curve_padding,
)
from .snapshot import (
    load_snapshot,
    pool_config_from_dict,
    pool_config_to_dict,
    pool_fees_from_dict,
    pool_state_from_dict,
    pool_state_to_dict,
)

__all__ = [
    "MAX_CURVE_POINT",
    "MAX_SQRT_PRICE",
    "MIN_SQRT_PRICE",
    "ActivationType",
    "BaseFeeParams",
    "CollectFeeMode",
    "CurveSegment",
    "DynamicFeeTracker",
    "FeeSchedulerMode",
    "PoolConfig",
    "PoolFees",
    "PoolState",
    "TradeDirection",
    "strip_curve_padding",
    "load_snapshot",
    "pool_config_from_dict",
    "pool_config_to_dict",
    "pool_fees_from_dict",
    "pool_state_from_dict",
    "pool_state_to_dict",
]

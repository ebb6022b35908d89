"""
curve_quote: bit-exact swap quotes for segmented bonding-curve pools.
"""

from .core.quote import (
    ExactOutQuote,
    PriceChange,
    QuoteAttempt,
    QuoteResult,
    apply_quote,
    quote_exact_in,
    quote_exact_out,
    resolve_current_point,
    try_quote_exact_in,
)
from .core.fees import FeeBreakdown
from .errors import (
    AmountIsZeroError,
    CurveQuoteError,
    DivisionByZeroError,
    InvalidCollectFeeModeError,
    InvalidInputError,
    InvalidPriceError,
    MathOverflowError,
    NotEnoughLiquidityError,
    PoolIsCompletedError,
)
from .state import (
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
    load_snapshot,
)

__all__ = [
    "ExactOutQuote",
    "PriceChange",
    "QuoteAttempt",
    "QuoteResult",
    "apply_quote",
    "quote_exact_in",
    "quote_exact_out",
    "resolve_current_point",
    "try_quote_exact_in",
    "FeeBreakdown",
    "AmountIsZeroError",
    "CurveQuoteError",
    "DivisionByZeroError",
    "InvalidCollectFeeModeError",
    "InvalidInputError",
    "InvalidPriceError",
    "MathOverflowError",
    "NotEnoughLiquidityError",
    "PoolIsCompletedError",
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
    "load_snapshot",
]

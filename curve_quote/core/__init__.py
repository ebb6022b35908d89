"""
Core quoting algorithms
"""

from .curve import SwapAmount, SwapInput, get_swap_amount
from .fees import (
    FEE_DENOMINATOR,
    MAX_FEE_NUMERATOR,
    FeeBreakdown,
    FeeMode,
    FeeOnAmount,
    calculate_fees,
    get_current_base_fee_numerator,
    get_fee_in_period,
    get_fee_mode,
    get_included_fee_amount,
    get_total_trading_fee,
    get_variable_fee,
)
from .price_math import get_price_from_id, sqrt_price_to_price, sqrt_price_to_raw_price
from .quote import QuoteResult, ExactOutQuote, quote_exact_in, quote_exact_out, try_quote_exact_in

__all__ = [
    "SwapAmount",
    "SwapInput",
    "get_swap_amount",
    "FEE_DENOMINATOR",
    "MAX_FEE_NUMERATOR",
    "FeeBreakdown",
    "FeeMode",
    "FeeOnAmount",
    "calculate_fees",
    "get_current_base_fee_numerator",
    "get_fee_in_period",
    "get_fee_mode",
    "get_included_fee_amount",
    "get_total_trading_fee",
    "get_variable_fee",
    "get_price_from_id",
    "sqrt_price_to_price",
    "sqrt_price_to_raw_price",
    "QuoteResult",
    "ExactOutQuote",
    "quote_exact_in",
    "quote_exact_out",
    "try_quote_exact_in",
]

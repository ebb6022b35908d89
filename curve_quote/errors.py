"""Exception types for the curve quote engine.

Every failure carries a stable ``code`` string so callers that prefer a tagged
result (see ``try_quote_exact_in()`` in ``core/quote.py``) can report it
without string matching on messages.
"""

from __future__ import annotations


class CurveQuoteError(Exception):
    """Base class for all quote failures."""

    code = "CurveQuoteError"


class MathOverflowError(CurveQuoteError):
    """Raised when an intermediate or result leaves its fixed-width range."""

    code = "MathOverflow"


class InvalidPriceError(CurveQuoteError):
    """Raised when a price interval is empty or inverted."""

    code = "InvalidPrice"


class DivisionByZeroError(CurveQuoteError, ZeroDivisionError):
    code = "DivisionByZero"


class InvalidCollectFeeModeError(CurveQuoteError):
    code = "InvalidCollectFeeMode"


class InvalidInputError(CurveQuoteError, ValueError):
    """Raised for malformed parameters (bad types, out-of-range fields)."""

    code = "InvalidInput"


class PoolIsCompletedError(CurveQuoteError):
    """Raised when the pool has reached its migration quote threshold."""

    code = "PoolIsCompleted"


class AmountIsZeroError(CurveQuoteError):
    code = "AmountIsZero"


class NotEnoughLiquidityError(CurveQuoteError):
    """Raised when the curve cannot absorb the whole trade."""

    code = "NotEnoughLiquidity"

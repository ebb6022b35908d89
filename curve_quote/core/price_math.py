"""Price conversions: bin ids to Q64.64 prices, and sqrt prices to display values."""

from __future__ import annotations

from decimal import Decimal, localcontext

from ..errors import MathOverflowError
from ..kernels.python.q64_math import BASIS_POINT_MAX, ONE, RESOLUTION, _require_int, pow


def get_price_from_id(active_id: int, bin_step: int) -> int:
    """
    Q64.64 price of bin `active_id`: `(1 + bin_step / 10_000) ** active_id`.

    Pool start prices are configured this way, so the result is also used
    directly as a starting sqrt price in fixtures.
    """
    _require_int("active_id", active_id)
    _require_int("bin_step", bin_step)
    bps = (bin_step << RESOLUTION) // BASIS_POINT_MAX
    price = pow(ONE + bps, active_id)
    if price is None:
        raise MathOverflowError(f"price overflow for bin {active_id} (bin_step={bin_step})")
    return price


def sqrt_price_to_raw_price(sqrt_price: int) -> int:
    """Integer quote-per-base price, `sqrt_price**2 >> 128`."""
    _require_int("sqrt_price", sqrt_price)
    return (sqrt_price * sqrt_price) >> (RESOLUTION * 2)


def sqrt_price_to_price(sqrt_price: int, base_decimals: int = 0, quote_decimals: int = 0) -> Decimal:
    """
    Human-readable price in quote UI units per base UI unit.

    Display only; never feed the result back into quoting.
    """
    _require_int("sqrt_price", sqrt_price)
    with localcontext() as ctx:
        ctx.prec = 60
        raw = Decimal(sqrt_price * sqrt_price) / Decimal(1 << (RESOLUTION * 2))
        return raw.scaleb(base_decimals - quote_decimals)

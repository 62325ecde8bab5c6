"""Price/size to maker/taker token amount conversion.

The exchange validates amounts against the market's tick size, so every
rounding step here mirrors its validator exactly:

- price is rounded half-toward-zero to the tick's price precision,
- sizes are truncated to the size precision,
- derived amounts are clamped to the amount precision (see ``fix_amount_rounding``),
- the result is scaled to 6-decimal token units.

Maker/taker assignment:
  BUY:  maker = USDC (quote), taker = outcome shares (base)
  SELL: maker = outcome shares (base), taker = USDC (quote)
"""

from decimal import (
    Context,
    Decimal,
    ROUND_DOWN,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
    ROUND_UP,
    localcontext,
)

from .constants import MAX_TOKEN_UNITS, TOKEN_SCALE
from .errors import AmountOverflowError, InvalidOrderError
from .types import Limit, MarketBuy, MarketSell, OrderKind, OrderSide, RoundConfig, TickSize

# 28 significant digits, independent of the caller's decimal context
_CONTEXT = Context(prec=28, rounding=ROUND_HALF_EVEN)


def to_decimal(value) -> Decimal:
    """Coerce a price or quantity to Decimal (floats go through str())."""
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, float):
        d = Decimal(str(value))
    else:
        try:
            d = Decimal(value)
        except (ArithmeticError, TypeError, ValueError):
            raise InvalidOrderError(f"Not a decimal value: {value!r}") from None
    if not d.is_finite():
        raise InvalidOrderError(f"Not a finite decimal value: {value!r}")
    return d


def _scale(value: Decimal) -> int:
    """Number of digits after the decimal point, trailing zeros included."""
    return max(-value.as_tuple().exponent, 0)


def _round_dp(value: Decimal, dp: int, rounding: str) -> Decimal:
    """Round to *dp* places; values already within *dp* are left untouched."""
    if _scale(value) <= dp:
        return value
    return value.quantize(Decimal(1).scaleb(-dp), rounding=rounding)


def fix_amount_rounding(amount: Decimal, round_config: RoundConfig) -> Decimal:
    """Bring a derived amount within ``amount_decimals`` places.

    Rounds away from zero four digits past the limit first, so representation
    noise like ``...99999999`` lands on the intended value before truncation.
    """
    limit = round_config.amount_decimals
    if _scale(amount) > limit:
        amount = _round_dp(amount, limit + 4, ROUND_UP)
        if _scale(amount) > limit:
            amount = _round_dp(amount, limit, ROUND_DOWN)
    return amount


def to_token_units(amount: Decimal) -> int:
    """Scale a decimal amount to integer token units (6 decimals)."""
    with localcontext(_CONTEXT):
        scaled = TOKEN_SCALE * amount
        if _scale(scaled) > 0:
            scaled = _round_dp(scaled, 0, ROUND_HALF_DOWN)
    units = int(scaled)
    if units < 0 or units > MAX_TOKEN_UNITS:
        raise AmountOverflowError(
            f"Amount {amount} is outside the token unit range [0, {MAX_TOKEN_UNITS}]"
        )
    return units


def round_price(price, tick_size: TickSize | str) -> Decimal:
    """Round *price* half-toward-zero to the tick's price precision."""
    cfg = TickSize.parse(tick_size).round_config
    with localcontext(_CONTEXT):
        return _round_dp(to_decimal(price), cfg.price_decimals, ROUND_HALF_DOWN)


def calculate_order_amounts(
    price,
    side: OrderSide,
    kind: OrderKind,
    tick_size: TickSize | str,
) -> tuple[int, int]:
    """Return ``(maker_amount, taker_amount)`` in token units.

    An unsupported (kind, side) pairing, e.g. ``MarketBuy`` with SELL,
    yields ``(0, 0)``; callers are expected to never build one.
    """
    side = OrderSide.parse(side)
    cfg = TickSize.parse(tick_size).round_config

    with localcontext(_CONTEXT):
        rounded_price = round_price(price, tick_size)

        if isinstance(kind, Limit) and side is OrderSide.BUY:
            taker = _round_dp(to_decimal(kind.size), cfg.size_decimals, ROUND_DOWN)
            maker = fix_amount_rounding(taker * rounded_price, cfg)
        elif isinstance(kind, Limit) and side is OrderSide.SELL:
            maker = _round_dp(to_decimal(kind.size), cfg.size_decimals, ROUND_DOWN)
            taker = fix_amount_rounding(maker * rounded_price, cfg)
        elif isinstance(kind, MarketBuy) and side is OrderSide.BUY:
            if rounded_price <= 0:
                raise InvalidOrderError(f"Market buy needs a positive price, got {price!r}")
            maker = _round_dp(to_decimal(kind.quote_amount), cfg.size_decimals, ROUND_DOWN)
            taker = fix_amount_rounding(maker / rounded_price, cfg)
        elif isinstance(kind, MarketSell) and side is OrderSide.SELL:
            maker = _round_dp(to_decimal(kind.base_amount), cfg.size_decimals, ROUND_DOWN)
            taker = fix_amount_rounding(maker * rounded_price, cfg)
        else:
            return 0, 0

    return to_token_units(maker), to_token_units(taker)

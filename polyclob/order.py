"""Polymarket CLOB order construction and EIP-712 signing."""

import logging
import random
import re
import time
from collections.abc import Callable

from eth_account import Account

from .amounts import calculate_order_amounts, round_price
from .constants import (
    CHAIN_ID,
    CTF_EXCHANGE,
    NEG_RISK_CTF_EXCHANGE,
    ORDER_DOMAIN_NAME,
    ORDER_DOMAIN_VERSION,
    ORDER_FIELDS,
    ZERO_ADDRESS,
)
from .eip712 import sign_typed_data
from .errors import InvalidOrderError, InvalidTokenIdError, SigningError
from .types import (
    Order,
    OrderKind,
    OrderSide,
    SignatureType,
    SignedOrderRequest,
    TickSize,
)

logger = logging.getLogger(__name__)

_MAX_UINT256 = 2**256 - 1
_DECIMAL_RE = re.compile(r"[0-9]+")


def generate_salt(
    timestamp: int | None = None,
    rng: Callable[[], float] = random.random,
) -> int:
    """Pseudo-random order salt: ``floor(timestamp * U)`` with U in [0, 1).

    Only an anti-collision aid; the signed order is authorized by all of its
    fields, not by the salt.
    """
    if timestamp is None:
        timestamp = int(time.time())
    return int(timestamp * rng())


def exchange_address(neg_risk: bool) -> str:
    """Settlement contract used as the order's verifying contract."""
    return NEG_RISK_CTF_EXCHANGE if neg_risk else CTF_EXCHANGE


def order_domain(neg_risk: bool = False) -> dict:
    return {
        "name": ORDER_DOMAIN_NAME,
        "version": ORDER_DOMAIN_VERSION,
        "chainId": CHAIN_ID,
        "verifyingContract": exchange_address(neg_risk),
    }


def parse_token_id(token_id: str) -> int:
    """Parse a decimal token id string into a uint256."""
    if not isinstance(token_id, str) or not _DECIMAL_RE.fullmatch(token_id):
        raise InvalidTokenIdError(f"Invalid token_id: {token_id!r}")
    value = int(token_id, 10)
    if value > _MAX_UINT256:
        raise InvalidTokenIdError(f"Invalid token_id: {token_id!r} exceeds uint256")
    return value


def validate_price(price, tick_size: TickSize | str) -> None:
    """Prices must round to a value in [tick, 1 - tick]."""
    tick = TickSize.parse(tick_size).as_decimal
    rounded = round_price(price, tick_size)
    if rounded < tick or rounded > 1 - tick:
        raise InvalidOrderError(
            f"Price {price} (rounded {rounded}) outside [{tick}, {1 - tick}] "
            f"for tick size {tick}"
        )


def build_order(
    maker: str,
    signer: str,
    token_id: str,
    price,
    side: OrderSide | str,
    kind: OrderKind,
    tick_size: TickSize | str,
    fee_rate_bps: int = 0,
    expiration: int = 0,
    nonce: int = 0,
    taker: str = ZERO_ADDRESS,
    signature_type: SignatureType = SignatureType.EOA,
    salt: int | None = None,
) -> Order:
    """Construct the canonical Order record ready for EIP-712 signing.

    Args:
        maker: Funding address (proxy/safe for non-EOA signature types).
        signer: Address of the key that signs the order.
        token_id: Conditional token id as a decimal string.
        price: Price per share; rounded to the tick's price precision.
        side: BUY or SELL.
        kind: Limit, MarketBuy or MarketSell quantity.
        tick_size: Market tick size ("0.1", "0.01", "0.001" or "0.0001").
        fee_rate_bps: Fee rate in basis points.
        expiration: Unix timestamp expiration (0 = no expiry).
        nonce: Exchange nonce.
        taker: Taker address (zero address = open order).
        signature_type: Wallet custody model of the signer.
        salt: Fixed salt; generated when omitted.
    """
    side = OrderSide.parse(side)
    tick_size = TickSize.parse(tick_size)
    token = parse_token_id(token_id)
    maker_amount, taker_amount = calculate_order_amounts(price, side, kind, tick_size)

    return Order(
        salt=generate_salt() if salt is None else salt,
        maker=maker,
        signer=signer,
        taker=taker,
        token_id=token,
        maker_amount=maker_amount,
        taker_amount=taker_amount,
        expiration=expiration,
        nonce=nonce,
        fee_rate_bps=fee_rate_bps,
        side=side.code,
        signature_type=int(SignatureType(signature_type)),
    )


def sign_order(order: Order, private_key: str, neg_risk: bool = False) -> str:
    """Sign an Order via EIP-712 and return the 0x-prefixed hex signature."""
    return sign_typed_data(
        private_key,
        order_domain(neg_risk),
        "Order",
        ORDER_FIELDS,
        order.as_message(),
    )


def create_order(
    private_key: str,
    token_id: str,
    price,
    side: OrderSide | str,
    kind: OrderKind,
    tick_size: TickSize | str,
    *,
    nonce: int = 0,
    fee_rate_bps: int = 0,
    expiration: int = 0,
    taker: str = ZERO_ADDRESS,
    funder: str | None = None,
    signature_type: SignatureType = SignatureType.EOA,
    neg_risk: bool = False,
    timestamp: int | None = None,
) -> SignedOrderRequest:
    """Build and sign an order in one step.

    ``funder`` defaults to the signing key's own address. ``neg_risk``
    selects the neg-risk exchange as verifying contract; it is never inferred.
    """
    try:
        signer = Account.from_key(private_key).address
    except Exception as exc:
        raise SigningError(f"Unusable private key: {exc}") from exc

    validate_price(price, tick_size)
    order = build_order(
        maker=funder or signer,
        signer=signer,
        token_id=token_id,
        price=price,
        side=side,
        kind=kind,
        tick_size=tick_size,
        fee_rate_bps=fee_rate_bps,
        expiration=expiration,
        nonce=nonce,
        taker=taker,
        signature_type=signature_type,
        salt=generate_salt(timestamp),
    )
    signature = sign_order(order, private_key, neg_risk=neg_risk)
    logger.debug(
        "Signed %s order token=%s maker_amount=%d taker_amount=%d neg_risk=%s",
        OrderSide.parse(side).value, token_id[:16], order.maker_amount,
        order.taker_amount, neg_risk,
    )
    return SignedOrderRequest.from_order(order, signature)

"""Polymarket CLOB client — order amounts, EIP-712 order signing, L1/L2 auth."""

from .amounts import calculate_order_amounts
from .auth import build_hmac_signature, create_l1_headers, create_l2_headers
from .client import AuthClient, TradingClient
from .markets import Market, MarketClient
from .order import create_order
from .types import (
    Credentials,
    Limit,
    MarketBuy,
    MarketSell,
    OrderSide,
    OrderType,
    SignatureType,
    SignedOrderRequest,
    TickSize,
)

__all__ = [
    "AuthClient",
    "Credentials",
    "Limit",
    "Market",
    "MarketBuy",
    "MarketClient",
    "MarketSell",
    "OrderSide",
    "OrderType",
    "SignatureType",
    "SignedOrderRequest",
    "TickSize",
    "TradingClient",
    "build_hmac_signature",
    "calculate_order_amounts",
    "create_l1_headers",
    "create_l2_headers",
    "create_order",
]

"""Polymarket CLOB CLI — run with: python3 -m polyclob <command>"""

import argparse
import json
import logging
import sys
from decimal import Decimal

import httpx

from .amounts import calculate_order_amounts
from .client import AuthClient, TradingClient, check_health
from .config import Config
from .markets import MarketClient
from .order import create_order
from .types import Limit, MarketBuy, MarketSell, OrderSide, OrderType

logger = logging.getLogger(__name__)


def _order_kind(kind: str, side: OrderSide, amount: Decimal):
    """Map CLI (kind, side, amount) to an order kind variant."""
    if kind == "limit":
        return Limit(size=amount)
    if side is OrderSide.BUY:
        return MarketBuy(quote_amount=amount)
    return MarketSell(base_amount=amount)


def _require_key(cfg: Config) -> str:
    if not cfg.private_key:
        print("Error: set POLY_PRIVATE_KEY env var or pass --private-key")
        sys.exit(1)
    return cfg.private_key


def _get_public_http(cfg: Config):
    """Lightweight httpx client for public (no-auth) endpoints."""
    return httpx.Client(base_url=cfg.clob_url, timeout=cfg.request_timeout)


def _trading_client(cfg: Config, config_dir: str) -> TradingClient:
    """Full authenticated client — saved creds, else obtained via L1 auth."""
    key = _require_key(cfg)
    creds = cfg.load_credentials(config_dir)
    if creds is None:
        logger.info("No saved API creds, obtaining them via L1 auth")
        with AuthClient(key, base_url=cfg.clob_url, chain_id=cfg.chain_id,
                        timeout=cfg.request_timeout) as auth:
            creds = auth.create_or_derive_api_key()
    return TradingClient(key, creds, base_url=cfg.clob_url, timeout=cfg.request_timeout)


def _signed_order(cfg: Config, args):
    side = OrderSide.parse(args.side)
    return create_order(
        _require_key(cfg),
        args.token_id,
        args.price,
        side,
        _order_kind(args.kind, side, args.size),
        args.tick_size,
        nonce=args.nonce,
        fee_rate_bps=args.fee_rate_bps,
        expiration=args.expiration,
        neg_risk=args.neg_risk,
    )


# -- Commands ----------------------------------------------------------------

def cmd_amounts(cfg, args):
    """Show maker/taker token amounts for an order (offline)."""
    side = OrderSide.parse(args.side)
    maker, taker = calculate_order_amounts(
        args.price, side, _order_kind(args.kind, side, args.size), args.tick_size,
    )
    print(json.dumps({"makerAmount": str(maker), "takerAmount": str(taker)}, indent=2))


def cmd_sign(cfg, args):
    """Build and sign an order without submitting it (offline)."""
    print(json.dumps(_signed_order(cfg, args).to_dict(), indent=2))


def cmd_order(cfg, args):
    """Build, sign and submit an order."""
    signed = _signed_order(cfg, args)
    with _trading_client(cfg, args.config_dir) as client:
        result = client.post_order(signed, order_type=OrderType(args.order_type))
    print(json.dumps(result, indent=2))


def cmd_cancel(cfg, args):
    """Cancel an order or all orders."""
    with _trading_client(cfg, args.config_dir) as client:
        if args.order_id == "all":
            result = client.cancel_all()
        else:
            result = client.cancel_order(args.order_id)
    print(json.dumps(result, indent=2))


def cmd_orders(cfg, args):
    """List open orders."""
    with _trading_client(cfg, args.config_dir) as client:
        orders = client.get_open_orders()
    if not orders:
        print("No open orders.")
        return
    for o in orders:
        print(f"  {o.get('id', '?')}  {o.get('side', '?')}  "
              f"price={o.get('price', '?')}  size={o.get('original_size', '?')}")
    print(f"\n{len(orders)} open order(s)")


def cmd_derive(cfg, args):
    """Create or derive API credentials from the private key (L1 auth)."""
    key = _require_key(cfg)
    with AuthClient(key, base_url=cfg.clob_url, chain_id=cfg.chain_id,
                    timeout=cfg.request_timeout) as auth:
        creds = auth.create_or_derive_api_key(nonce=args.nonce)
    print(json.dumps({"apiKey": creds.api_key, "passphrase": creds.passphrase}, indent=2))

    if args.save:
        path = cfg.save_credentials(creds, args.save)
        print(f"\nSaved to {path}")


def cmd_market(cfg, args):
    """Look up a market by slug (public, no auth needed)."""
    with MarketClient(base_url=cfg.gamma_url, timeout=cfg.request_timeout) as markets:
        m = markets.get_market_by_slug(args.slug)
    print(f"  condition: {m.condition_id}")
    print(f"  slug:      {m.slug}")
    print(f"  prices:    {', '.join(str(p) for p in m.outcome_prices)}")
    print(f"  tokens:    {', '.join(m.clob_token_ids)}")
    print(f"  ends:      {m.end_date.isoformat() if m.end_date else '-'}")


def cmd_ok(cfg, args):
    """CLOB health check."""
    with _get_public_http(cfg) as http:
        print(check_health(http))


# -- CLI setup ---------------------------------------------------------------

def _add_order_args(p):
    p.add_argument("token_id")
    p.add_argument("side", choices=["buy", "sell", "BUY", "SELL"])
    p.add_argument("price", type=Decimal)
    p.add_argument("size", type=Decimal, help="Shares (limit / market sell) or USDC (market buy)")
    p.add_argument("--kind", choices=["limit", "market"], default="limit")
    p.add_argument("--tick-size", default="0.01", choices=["0.1", "0.01", "0.001", "0.0001"])
    p.add_argument("--neg-risk", action="store_true")
    p.add_argument("--nonce", type=int, default=0)
    p.add_argument("--fee-rate-bps", type=int, default=0)
    p.add_argument("--expiration", type=int, default=0)


def main():
    parser = argparse.ArgumentParser(
        prog="python3 -m polyclob",
        description="Polymarket CLOB order signing client",
    )
    parser.add_argument("--private-key", help="Ethereum private key (or set POLY_PRIVATE_KEY)")
    parser.add_argument("--config-dir", default=".", help="Directory holding config.json")
    sub = parser.add_subparsers(dest="command", required=True)

    # amounts
    p = sub.add_parser("amounts", help="Compute maker/taker amounts")
    p.add_argument("side", choices=["buy", "sell", "BUY", "SELL"])
    p.add_argument("price", type=Decimal)
    p.add_argument("size", type=Decimal)
    p.add_argument("--kind", choices=["limit", "market"], default="limit")
    p.add_argument("--tick-size", default="0.01", choices=["0.1", "0.01", "0.001", "0.0001"])
    p.set_defaults(func=cmd_amounts)

    # sign
    p = sub.add_parser("sign", help="Sign an order without posting it")
    _add_order_args(p)
    p.set_defaults(func=cmd_sign)

    # order
    p = sub.add_parser("order", help="Sign and post an order")
    _add_order_args(p)
    p.add_argument("--order-type", choices=[t.value for t in OrderType], default="GTC")
    p.set_defaults(func=cmd_order)

    # cancel
    p = sub.add_parser("cancel", help="Cancel order(s)")
    p.add_argument("order_id", help="Order ID or 'all'")
    p.set_defaults(func=cmd_cancel)

    # orders
    p = sub.add_parser("orders", help="List open orders")
    p.set_defaults(func=cmd_orders)

    # derive
    p = sub.add_parser("derive", help="Create or derive API creds from private key")
    p.add_argument("--nonce", type=int, default=0)
    p.add_argument("--save", metavar="FILE", help="Save creds to JSON file")
    p.set_defaults(func=cmd_derive)

    # market
    p = sub.add_parser("market", help="Look up a market by slug")
    p.add_argument("slug")
    p.set_defaults(func=cmd_market)

    # ok
    p = sub.add_parser("ok", help="CLOB health check")
    p.set_defaults(func=cmd_ok)

    args = parser.parse_args()

    cfg = Config.load(args.config_dir)
    if args.private_key:
        cfg.private_key = args.private_key

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(message)s",
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
    )
    args.func(cfg, args)


if __name__ == "__main__":
    main()

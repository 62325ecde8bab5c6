"""Polymarket CLOB REST clients — L1 credential derivation and L2 trading calls."""

import logging

import httpx
from eth_account import Account

from .auth import compact_json, create_l1_headers, create_l2_headers
from .constants import CHAIN_ID, CLOB_BASE_URL
from .errors import ClobApiError, SigningError
from .order import create_order
from .types import Credentials, OrderType, SignedOrderRequest

logger = logging.getLogger(__name__)

_BASE_HEADERS = {
    "Content-Type": "application/json",
    "User-Agent": "py_clob_client",
    "Accept": "*/*",
    "Connection": "keep-alive",
}


def unwrap_response(resp: httpx.Response):
    """Return the body of a 2xx response (JSON, or text if not JSON).

    Any other status raises ClobApiError with the raw response text.
    """
    if not 200 <= resp.status_code < 300:
        raise ClobApiError(resp.status_code, resp.text)
    try:
        return resp.json()
    except ValueError:
        return resp.text


def check_health(http: httpx.Client):
    """CLOB health check (``GET /ok``, no auth); returns the response body."""
    return unwrap_response(http.get("/ok"))


def _load_account(private_key: str):
    try:
        return Account.from_key(private_key)
    except Exception as exc:
        raise SigningError(f"Unusable private key: {exc}") from exc


class AuthClient:
    """Obtains API credentials with L1 (wallet signature) authentication.

    Args:
        private_key: Ethereum private key (hex string with 0x prefix).
        base_url: CLOB API base URL.
        chain_id: Chain id included in the ClobAuth signature.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        private_key: str,
        base_url: str = CLOB_BASE_URL,
        chain_id: int = CHAIN_ID,
        timeout: float = 15,
    ):
        self._private_key = private_key
        self.address = _load_account(private_key).address
        self.chain_id = chain_id
        self._http = httpx.Client(base_url=base_url, timeout=timeout)

    def __repr__(self) -> str:
        return f"AuthClient(address={self.address})"

    def _l1_request(self, method: str, path: str, nonce: int) -> Credentials:
        headers = {
            **_BASE_HEADERS,
            **create_l1_headers(self._private_key, self.chain_id, nonce),
        }
        logger.debug("CLOB %s %s (L1)", method, path)
        resp = self._http.request(method, path, headers=headers)
        return Credentials.from_dict(unwrap_response(resp))

    def create_api_key(self, nonce: int = 0) -> Credentials:
        """Create a new API key for this wallet."""
        creds = self._l1_request("POST", "/auth/api-key", nonce)
        logger.info("Created API key %s for %s", creds.api_key, self.address)
        return creds

    def derive_api_key(self, nonce: int = 0) -> Credentials:
        """Derive the existing API key for this wallet and nonce."""
        creds = self._l1_request("GET", "/auth/derive-api-key", nonce)
        logger.info("Derived API key %s for %s", creds.api_key, self.address)
        return creds

    def create_or_derive_api_key(self, nonce: int = 0) -> Credentials:
        """Try creating first, fall back to deriving the existing key."""
        try:
            return self.create_api_key(nonce)
        except ClobApiError as exc:
            logger.info("API key creation refused (%d), deriving existing key", exc.status_code)
            return self.derive_api_key(nonce)

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class TradingClient:
    """Synchronous client for L2-authenticated CLOB trading calls.

    Args:
        private_key: Ethereum private key (hex string with 0x prefix).
        creds: API credentials obtained via ``AuthClient``.
        base_url: CLOB API base URL.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        private_key: str,
        creds: Credentials,
        base_url: str = CLOB_BASE_URL,
        timeout: float = 15,
    ):
        self._private_key = private_key
        self.address = _load_account(private_key).address
        self._creds = creds
        self._http = httpx.Client(base_url=base_url, timeout=timeout)

    def __repr__(self) -> str:
        return f"TradingClient(address={self.address})"

    # ------------------------------------------------------------------
    # Low-level request
    # ------------------------------------------------------------------

    def _request(
        self, method: str, path: str, body=None, auth: bool = True, params: dict | None = None
    ):
        # Serialize once: the HMAC must cover exactly the bytes on the wire
        body_str = compact_json(body) if body is not None else None
        headers = dict(_BASE_HEADERS)
        if auth:
            headers.update(
                create_l2_headers(
                    self._private_key, self._creds, method, path, serialized_body=body_str
                )
            )
        logger.debug("CLOB %s %s", method, path)
        resp = self._http.request(
            method,
            path,
            params=params,
            content=body_str.encode() if body_str is not None else None,
            headers=headers,
        )
        return unwrap_response(resp)

    # ------------------------------------------------------------------
    # Market metadata
    # ------------------------------------------------------------------

    def ok(self):
        """Health check."""
        return check_health(self._http)

    def get_tick_size(self, token_id: str) -> str:
        """Fetch the minimum tick size for a token."""
        resp = self._request("GET", "/tick-size", auth=False, params={"token_id": token_id})
        return str(resp["minimum_tick_size"])

    def is_neg_risk(self, token_id: str) -> bool:
        """Check if a token settles through the neg-risk exchange."""
        resp = self._request("GET", "/neg-risk", auth=False, params={"token_id": token_id})
        return bool(resp.get("neg_risk", False))

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def post_order(
        self,
        order: SignedOrderRequest,
        order_type: OrderType = OrderType.GTC,
        defer_exec: bool = False,
    ) -> dict:
        """Submit a signed order to the CLOB."""
        body = {
            "order": order.to_dict(),
            "owner": self._creds.api_key,
            "orderType": OrderType(order_type).value,
            "deferExec": defer_exec,
        }
        result = self._request("POST", "/order", body=body)
        logger.info(
            "Posted %s order maker_amount=%s taker_amount=%s type=%s",
            order.side.value, order.maker_amount, order.taker_amount, body["orderType"],
        )
        return result

    def create_and_post_order(
        self,
        token_id: str,
        price,
        side,
        kind,
        tick_size: str | None = None,
        neg_risk: bool | None = None,
        order_type: OrderType = OrderType.GTC,
        **kwargs,
    ) -> dict:
        """Build, sign, and submit an order.

        Tick size and neg-risk flag are looked up when not supplied.
        """
        if tick_size is None:
            tick_size = self.get_tick_size(token_id)
        if neg_risk is None:
            neg_risk = self.is_neg_risk(token_id)
            logger.info("Looked up neg_risk=%s for token %s", neg_risk, token_id[:16])
        signed = create_order(
            self._private_key,
            token_id,
            price,
            side,
            kind,
            tick_size,
            neg_risk=neg_risk,
            **kwargs,
        )
        return self.post_order(signed, order_type=order_type)

    def cancel_order(self, order_id: str) -> dict:
        """Cancel an open order by its ID."""
        return self._request("DELETE", "/order", body={"orderID": order_id})

    def cancel_all(self) -> dict:
        """Cancel all open orders."""
        return self._request("DELETE", "/cancel-all")

    def get_open_orders(self, **filters) -> list[dict]:
        """Fetch all open orders for the authenticated user."""
        return self._request("GET", "/data/orders", params=filters or None)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

"""Gamma API market lookup — read-only market metadata.

The Gamma API returns list-valued fields (``outcomePrices``,
``clobTokenIds``) as JSON strings holding a JSON array, e.g.
``"[\\"0.60\\", \\"0.40\\"]"``; they are decoded twice before use.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation

import httpx

from .client import unwrap_response
from .constants import GAMMA_BASE_URL
from .errors import MarketFormatError

logger = logging.getLogger(__name__)


@dataclass
class Market:
    """Single market as returned by the Gamma API."""

    id: str
    condition_id: str
    slug: str | None = None
    outcome_prices: list[Decimal] = field(default_factory=list)
    start_date: datetime | None = None
    end_date: datetime | None = None
    clob_token_ids: list[str] = field(default_factory=list)


class MarketClient:
    """Read-only client for the Polymarket Gamma API."""

    def __init__(self, base_url: str = GAMMA_BASE_URL, timeout: float = 15):
        self._http = httpx.Client(base_url=base_url, timeout=timeout)

    def get_market_by_slug(self, slug: str) -> Market:
        """Fetch a single market by its URL slug."""
        resp = self._http.get(f"/markets/slug/{slug}")
        market = parse_market(unwrap_response(resp))
        logger.debug(
            "Gamma: market %s condition=%s tokens=%d",
            slug, market.condition_id[:16], len(market.clob_token_ids),
        )
        return market

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def _decode_list(raw, name: str) -> list:
    """Decode a JSON-string-encoded array; plain lists pass through."""
    if raw is None:
        return []
    if isinstance(raw, list):
        return raw
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MarketFormatError(f"Failed to parse {name} JSON array: {exc}") from exc
        if isinstance(decoded, list):
            return decoded
    raise MarketFormatError(f"Expected a JSON array for {name}, got {raw!r}")


def _parse_decimals(raw, name: str) -> list[Decimal]:
    out = []
    for item in _decode_list(raw, name):
        try:
            out.append(Decimal(str(item)))
        except InvalidOperation:
            raise MarketFormatError(
                f"Failed to parse decimal from {item!r} in {name}"
            ) from None
    return out


def _parse_datetime(raw: str | None, name: str) -> datetime | None:
    if not raw:
        return None
    try:
        # fromisoformat() before 3.11 rejects the "Z" suffix
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise MarketFormatError(f"Invalid {name} timestamp {raw!r}: {exc}") from exc


def parse_market(m: dict) -> Market:
    """Parse a raw Gamma API market dict into a Market."""
    return Market(
        id=str(m.get("id", "")),
        condition_id=m.get("conditionId", ""),
        slug=m.get("slug"),
        outcome_prices=_parse_decimals(m.get("outcomePrices"), "outcomePrices"),
        start_date=_parse_datetime(m.get("startDate"), "startDate"),
        end_date=_parse_datetime(m.get("endDate"), "endDate"),
        clob_token_ids=[str(t) for t in _decode_list(m.get("clobTokenIds"), "clobTokenIds")],
    )

"""Order, tick-size and credential types shared across the CLOB client."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, IntEnum

from .errors import InvalidTickSizeError


class OrderSide(Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def code(self) -> int:
        """On-chain encoding: BUY = 0, SELL = 1."""
        return 0 if self is OrderSide.BUY else 1

    @classmethod
    def parse(cls, value: "OrderSide | str") -> "OrderSide":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Invalid order side: {value!r}") from None


class SignatureType(IntEnum):
    """Wallet custody model that produced the order signature."""

    EOA = 0
    POLY_PROXY = 1
    POLY_GNOSIS_SAFE = 2


class OrderType(Enum):
    GTC = "GTC"  # Good-Til-Cancelled
    FOK = "FOK"  # Fill-Or-Kill
    FAK = "FAK"  # Fill-And-Kill
    GTD = "GTD"  # Good-Til-Date


@dataclass(frozen=True)
class RoundConfig:
    """Decimal places allowed for price, size and amount at one tick size."""

    price_decimals: int
    size_decimals: int
    amount_decimals: int


class TickSize(Enum):
    TENTH = "0.1"
    HUNDREDTH = "0.01"
    THOUSANDTH = "0.001"
    TEN_THOUSANDTH = "0.0001"

    @classmethod
    def parse(cls, value: "TickSize | str") -> "TickSize":
        """Accept exactly "0.1", "0.01", "0.001" or "0.0001"."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidTickSizeError(f"Invalid tick size: {value!r}") from None

    @property
    def as_decimal(self) -> Decimal:
        return Decimal(self.value)

    @property
    def round_config(self) -> RoundConfig:
        return _ROUND_CONFIGS[self]


_ROUND_CONFIGS = {
    TickSize.TENTH: RoundConfig(price_decimals=1, size_decimals=2, amount_decimals=3),
    TickSize.HUNDREDTH: RoundConfig(price_decimals=2, size_decimals=2, amount_decimals=4),
    TickSize.THOUSANDTH: RoundConfig(price_decimals=3, size_decimals=2, amount_decimals=5),
    TickSize.TEN_THOUSANDTH: RoundConfig(price_decimals=4, size_decimals=2, amount_decimals=6),
}


# -- Order kinds --------------------------------------------------------------
# Each variant carries its quantity under a distinct name so base and quote
# amounts cannot be swapped silently.

@dataclass(frozen=True)
class Limit:
    """Limit order for an exact number of outcome shares (base units)."""

    size: Decimal


@dataclass(frozen=True)
class MarketBuy:
    """Market buy spending an exact USDC amount (quote units)."""

    quote_amount: Decimal


@dataclass(frozen=True)
class MarketSell:
    """Market sell of an exact number of outcome shares (base units)."""

    base_amount: Decimal


OrderKind = Limit | MarketBuy | MarketSell


@dataclass(frozen=True)
class Order:
    """Canonical order record covered by the EIP-712 signature."""

    salt: int
    maker: str
    signer: str
    taker: str
    token_id: int
    maker_amount: int
    taker_amount: int
    expiration: int
    nonce: int
    fee_rate_bps: int
    side: int
    signature_type: int

    def as_message(self) -> dict:
        """Field values keyed by their EIP-712 names."""
        return {
            "salt": self.salt,
            "maker": self.maker,
            "signer": self.signer,
            "taker": self.taker,
            "tokenId": self.token_id,
            "makerAmount": self.maker_amount,
            "takerAmount": self.taker_amount,
            "expiration": self.expiration,
            "nonce": self.nonce,
            "feeRateBps": self.fee_rate_bps,
            "side": self.side,
            "signatureType": self.signature_type,
        }


@dataclass(frozen=True)
class SignedOrderRequest:
    """Wire form of a signed order: numeric fields as decimal strings."""

    salt: str
    maker: str
    signer: str
    taker: str
    token_id: str
    maker_amount: str
    taker_amount: str
    expiration: str
    nonce: str
    fee_rate_bps: str
    side: OrderSide
    signature_type: int
    signature: str

    @classmethod
    def from_order(cls, order: Order, signature: str) -> "SignedOrderRequest":
        return cls(
            salt=str(order.salt),
            maker=order.maker,
            signer=order.signer,
            taker=order.taker,
            token_id=str(order.token_id),
            maker_amount=str(order.maker_amount),
            taker_amount=str(order.taker_amount),
            expiration=str(order.expiration),
            nonce=str(order.nonce),
            fee_rate_bps=str(order.fee_rate_bps),
            side=OrderSide.BUY if order.side == OrderSide.BUY.code else OrderSide.SELL,
            signature_type=int(order.signature_type),
            signature=signature,
        )

    def to_dict(self) -> dict:
        # Key order is part of the HMAC'd body; keep it stable
        return {
            "salt": self.salt,
            "maker": self.maker,
            "signer": self.signer,
            "taker": self.taker,
            "tokenId": self.token_id,
            "makerAmount": self.maker_amount,
            "takerAmount": self.taker_amount,
            "expiration": self.expiration,
            "nonce": self.nonce,
            "feeRateBps": self.fee_rate_bps,
            "side": self.side.value,
            "signatureType": self.signature_type,
            "signature": self.signature,
        }


@dataclass(frozen=True)
class Credentials:
    """API credentials returned by the L1 create/derive endpoints."""

    api_key: str
    secret: str
    passphrase: str

    @classmethod
    def from_dict(cls, data: dict) -> "Credentials":
        return cls(
            api_key=data["apiKey"],
            secret=data["secret"],
            passphrase=data["passphrase"],
        )

    def to_dict(self) -> dict:
        return {"apiKey": self.api_key, "secret": self.secret, "passphrase": self.passphrase}

    def __repr__(self) -> str:
        return f"Credentials(api_key={self.api_key!r})"

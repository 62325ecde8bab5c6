"""Tests for polyclob.order — order construction and EIP-712 signing."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from polyclob.constants import CTF_EXCHANGE, NEG_RISK_CTF_EXCHANGE, ORDER_FIELDS, ZERO_ADDRESS
from polyclob.eip712 import domain_fields
from polyclob.errors import (
    InvalidOrderError,
    InvalidTickSizeError,
    InvalidTokenIdError,
    SigningError,
)
from polyclob.order import (
    build_order,
    create_order,
    exchange_address,
    generate_salt,
    order_domain,
    parse_token_id,
    sign_order,
    validate_price,
)
from polyclob.types import Limit, MarketBuy, OrderSide, SignatureType

# Deterministic test key (DO NOT use with real funds)
_TEST_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
_TEST_ADDRESS = Account.from_key(_TEST_KEY).address
_TEST_TOKEN_ID = "71321045679252212594626385532706912750332728571942532289631379312455583992563"
_FUNDER = "0x1234567890123456789012345678901234567890"


def _recover(signed, neg_risk=False):
    """Recover the signer address of a SignedOrderRequest."""
    domain = order_domain(neg_risk)
    wire = signed.to_dict()
    message = {f["name"]: wire[f["name"]] for f in ORDER_FIELDS}
    for name in ("salt", "tokenId", "makerAmount", "takerAmount", "expiration",
                 "nonce", "feeRateBps"):
        message[name] = int(message[name])
    message["side"] = 0 if wire["side"] == "BUY" else 1
    signable = encode_typed_data(full_message={
        "types": {"EIP712Domain": domain_fields(domain), "Order": ORDER_FIELDS},
        "primaryType": "Order",
        "domain": domain,
        "message": message,
    })
    return Account.recover_message(signable, signature=signed.signature)


class TestGenerateSalt:
    def test_scales_timestamp(self):
        assert generate_salt(1700000000, rng=lambda: 0.5) == 850000000

    def test_zero_draw(self):
        assert generate_salt(1700000000, rng=lambda: 0.0) == 0

    def test_bounded_by_timestamp(self):
        for _ in range(50):
            assert 0 <= generate_salt(1700000000) < 1700000000

    @patch("polyclob.order.time")
    def test_defaults_to_now(self, mock_time):
        mock_time.time.return_value = 1000.9
        assert generate_salt(rng=lambda: 0.5) == 500


class TestParseTokenId:
    def test_large_token_id(self):
        assert parse_token_id(_TEST_TOKEN_ID) == int(_TEST_TOKEN_ID)

    @pytest.mark.parametrize("value", ["", "0x1f", "-1", "12 3", "1.5", "١٢٣", str(2**256)])
    def test_rejects(self, value):
        with pytest.raises(InvalidTokenIdError):
            parse_token_id(value)

    def test_rejects_int(self):
        with pytest.raises(InvalidTokenIdError):
            parse_token_id(123)

    def test_is_invalid_order(self):
        with pytest.raises(InvalidOrderError):
            parse_token_id("abc")


class TestValidatePrice:
    def test_bounds_inclusive(self):
        validate_price(Decimal("0.01"), "0.01")
        validate_price(Decimal("0.99"), "0.01")

    @pytest.mark.parametrize("price", ["0", "0.005", "0.996", "1"])
    def test_out_of_range(self, price):
        with pytest.raises(InvalidOrderError):
            validate_price(Decimal(price), "0.01")

    @pytest.mark.parametrize("price", ["0.991", "0.995", "0.0051", "0.009"])
    def test_checked_after_tick_rounding(self, price):
        validate_price(Decimal(price), "0.01")

    def test_finer_tick_widens_range(self):
        validate_price(Decimal("0.0001"), "0.0001")


class TestExchangeAddress:
    def test_standard(self):
        assert exchange_address(False) == CTF_EXCHANGE
        assert order_domain()["verifyingContract"] == CTF_EXCHANGE

    def test_neg_risk(self):
        assert exchange_address(True) == NEG_RISK_CTF_EXCHANGE
        assert order_domain(True)["verifyingContract"] == NEG_RISK_CTF_EXCHANGE

    def test_domain_constants(self):
        domain = order_domain()
        assert domain["name"] == "Polymarket CTF Exchange"
        assert domain["version"] == "1"
        assert domain["chainId"] == 137


class TestBuildOrder:
    def test_buy_amounts(self):
        order = build_order(
            maker=_TEST_ADDRESS,
            signer=_TEST_ADDRESS,
            token_id=_TEST_TOKEN_ID,
            price=Decimal("0.65"),
            side="BUY",
            kind=Limit(size=Decimal("500")),
            tick_size="0.01",
            salt=1,
        )
        assert order.maker_amount == 325_000_000
        assert order.taker_amount == 500_000_000
        assert order.side == 0
        assert order.token_id == int(_TEST_TOKEN_ID)

    def test_defaults(self):
        order = build_order(
            _TEST_ADDRESS, _TEST_ADDRESS, _TEST_TOKEN_ID, Decimal("0.5"), OrderSide.SELL,
            Limit(size=Decimal("10")), "0.01", salt=42,
        )
        assert order.salt == 42
        assert order.taker == ZERO_ADDRESS
        assert order.expiration == 0
        assert order.nonce == 0
        assert order.fee_rate_bps == 0
        assert order.side == 1
        assert order.signature_type == 0

    @patch("polyclob.order.generate_salt", return_value=777)
    def test_generates_salt_when_omitted(self, mock_salt):
        order = build_order(
            _TEST_ADDRESS, _TEST_ADDRESS, _TEST_TOKEN_ID, Decimal("0.5"), "BUY",
            Limit(size=Decimal("10")), "0.01",
        )
        assert order.salt == 777
        mock_salt.assert_called_once_with()

    def test_invalid_tick(self):
        with pytest.raises(InvalidTickSizeError):
            build_order(
                _TEST_ADDRESS, _TEST_ADDRESS, _TEST_TOKEN_ID, Decimal("0.5"), "BUY",
                Limit(size=Decimal("10")), "0.02", salt=1,
            )


class TestCreateOrder:
    def test_defaults(self):
        signed = create_order(
            _TEST_KEY, _TEST_TOKEN_ID, Decimal("0.65"), OrderSide.BUY,
            Limit(size=Decimal("500")), "0.01",
        )
        assert signed.maker == _TEST_ADDRESS
        assert signed.signer == _TEST_ADDRESS
        assert signed.taker == ZERO_ADDRESS
        assert signed.maker_amount == "325000000"
        assert signed.taker_amount == "500000000"
        assert signed.side is OrderSide.BUY
        assert signed.signature_type == 0
        assert signed.signature.startswith("0x")
        assert len(signed.signature) == 132

    def test_funder_overrides_maker(self):
        signed = create_order(
            _TEST_KEY, _TEST_TOKEN_ID, Decimal("0.5"), "SELL", Limit(size=Decimal("10")),
            "0.01", funder=_FUNDER, signature_type=SignatureType.POLY_PROXY,
        )
        assert signed.maker == _FUNDER
        assert signed.signer == _TEST_ADDRESS
        assert signed.side is OrderSide.SELL
        assert signed.to_dict()["signatureType"] == 1

    def test_salt_from_timestamp(self):
        with patch("polyclob.order.generate_salt", return_value=999) as mock_salt:
            signed = create_order(
                _TEST_KEY, _TEST_TOKEN_ID, Decimal("0.5"), "BUY", Limit(size=Decimal("10")),
                "0.01", timestamp=1700000000,
            )
        mock_salt.assert_called_once_with(1700000000)
        assert signed.salt == "999"

    @patch("polyclob.order.generate_salt", return_value=999)
    def test_deterministic_with_fixed_salt(self, _):
        args = (_TEST_KEY, _TEST_TOKEN_ID, Decimal("0.5"), "BUY",
                MarketBuy(quote_amount=Decimal("25")), "0.01")
        assert create_order(*args) == create_order(*args)

    @patch("polyclob.order.generate_salt", return_value=999)
    def test_neg_risk_changes_signature(self, _):
        args = (_TEST_KEY, _TEST_TOKEN_ID, Decimal("0.5"), "BUY",
                Limit(size=Decimal("10")), "0.01")
        standard = create_order(*args)
        neg_risk = create_order(*args, neg_risk=True)
        assert standard.signature != neg_risk.signature
        assert standard.to_dict() | {"signature": ""} == neg_risk.to_dict() | {"signature": ""}

    def test_signature_recovers_signer(self):
        signed = create_order(
            _TEST_KEY, _TEST_TOKEN_ID, Decimal("0.42"), "SELL", Limit(size=Decimal("12.5")),
            "0.01", nonce=3, fee_rate_bps=10, expiration=1800000000,
        )
        assert _recover(signed) == _TEST_ADDRESS

    def test_neg_risk_signature_recovers_under_neg_risk_domain(self):
        signed = create_order(
            _TEST_KEY, _TEST_TOKEN_ID, Decimal("0.42"), "BUY", Limit(size=Decimal("5")),
            "0.001", neg_risk=True,
        )
        assert _recover(signed, neg_risk=True) == _TEST_ADDRESS
        assert _recover(signed, neg_risk=False) != _TEST_ADDRESS

    def test_sign_order_matches_create(self):
        with patch("polyclob.order.generate_salt", return_value=5):
            signed = create_order(
                _TEST_KEY, _TEST_TOKEN_ID, Decimal("0.5"), "BUY", Limit(size=Decimal("10")),
                "0.01",
            )
        order = build_order(
            _TEST_ADDRESS, _TEST_ADDRESS, _TEST_TOKEN_ID, Decimal("0.5"), "BUY",
            Limit(size=Decimal("10")), "0.01", salt=5,
        )
        assert sign_order(order, _TEST_KEY) == signed.signature

    def test_price_out_of_range(self):
        with pytest.raises(InvalidOrderError):
            create_order(
                _TEST_KEY, _TEST_TOKEN_ID, Decimal("0.996"), "BUY", Limit(size=Decimal("10")),
                "0.01",
            )

    def test_invalid_token_id(self):
        with pytest.raises(InvalidTokenIdError):
            create_order(
                _TEST_KEY, "not-a-number", Decimal("0.5"), "BUY", Limit(size=Decimal("10")),
                "0.01",
            )

    def test_bad_key(self):
        with pytest.raises(SigningError):
            create_order(
                "0x1234", _TEST_TOKEN_ID, Decimal("0.5"), "BUY", Limit(size=Decimal("10")),
                "0.01",
            )

    def test_price_rounding_into_range_accepted(self):
        signed = create_order(
            _TEST_KEY, _TEST_TOKEN_ID, Decimal("0.991"), "BUY", Limit(size=Decimal("10")),
            "0.01",
        )
        assert signed.maker_amount == "9900000"
        assert signed.taker_amount == "10000000"

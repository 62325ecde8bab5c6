"""Polymarket CLOB constants — addresses, URLs, header names, EIP-712 types."""

from decimal import Decimal

# URLs
CLOB_BASE_URL = "https://clob.polymarket.com"
GAMMA_BASE_URL = "https://gamma-api.polymarket.com"

# Contract addresses (Polygon)
CTF_EXCHANGE = "0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E"
NEG_RISK_CTF_EXCHANGE = "0xC5d563A36AE78145C45a50134d48A1215220f80a"

CHAIN_ID = 137  # Polygon

# Zero address used as default taker (anyone can fill)
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# USDC and outcome tokens both use 6 decimals
TOKEN_DECIMALS = 6
TOKEN_SCALE = Decimal(10**TOKEN_DECIMALS)

# Amounts accepted by the exchange validator fit in a uint32
MAX_TOKEN_UNITS = 2**32 - 1

# Auth headers
POLY_ADDRESS = "POLY_ADDRESS"
POLY_SIGNATURE = "POLY_SIGNATURE"
POLY_TIMESTAMP = "POLY_TIMESTAMP"
POLY_NONCE = "POLY_NONCE"
POLY_API_KEY = "POLY_API_KEY"
POLY_PASSPHRASE = "POLY_PASSPHRASE"

# EIP-712 domain for orders (verifyingContract is chosen per market)
ORDER_DOMAIN_NAME = "Polymarket CTF Exchange"
ORDER_DOMAIN_VERSION = "1"

# EIP-712 Order type (12 fields)
ORDER_FIELDS = [
    {"name": "salt", "type": "uint256"},
    {"name": "maker", "type": "address"},
    {"name": "signer", "type": "address"},
    {"name": "taker", "type": "address"},
    {"name": "tokenId", "type": "uint256"},
    {"name": "makerAmount", "type": "uint256"},
    {"name": "takerAmount", "type": "uint256"},
    {"name": "expiration", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "feeRateBps", "type": "uint256"},
    {"name": "side", "type": "uint8"},
    {"name": "signatureType", "type": "uint8"},
]

# EIP-712 domain and type for the L1 auth message
AUTH_DOMAIN_NAME = "ClobAuthDomain"
AUTH_DOMAIN_VERSION = "1"

CLOB_AUTH_FIELDS = [
    {"name": "address", "type": "address"},
    {"name": "timestamp", "type": "string"},
    {"name": "nonce", "type": "uint256"},
    {"name": "message", "type": "string"},
]

# Must match the server's copy byte for byte
CLOB_AUTH_MESSAGE = "This message attests that I control the given wallet"

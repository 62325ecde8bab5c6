"""Polymarket CLOB authentication — L1 wallet-signed headers + L2 HMAC request signing."""

import base64
import binascii
import hashlib
import hmac
import json
import time

from eth_account import Account

from .constants import (
    AUTH_DOMAIN_NAME,
    AUTH_DOMAIN_VERSION,
    CHAIN_ID,
    CLOB_AUTH_FIELDS,
    CLOB_AUTH_MESSAGE,
    POLY_ADDRESS,
    POLY_API_KEY,
    POLY_NONCE,
    POLY_PASSPHRASE,
    POLY_SIGNATURE,
    POLY_TIMESTAMP,
)
from .eip712 import sign_typed_data
from .errors import SecretDecodeError, SigningError
from .types import Credentials


def compact_json(obj) -> str:
    """Compact JSON matching the official client (critical for HMAC validation)."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def _address_of(private_key: str) -> str:
    try:
        return Account.from_key(private_key).address
    except Exception as exc:
        raise SigningError(f"Unusable private key: {exc}") from exc


# ----------------------------------------------------------------------
# L1: EIP-712 ClobAuth signature, used to create/derive API credentials
# ----------------------------------------------------------------------

def sign_clob_auth_message(
    private_key: str, timestamp: str, nonce: int = 0, chain_id: int = CHAIN_ID
) -> str:
    """Sign the ClobAuth attestation for the key's own address."""
    message = {
        "address": _address_of(private_key),
        "timestamp": timestamp,
        "nonce": nonce,
        "message": CLOB_AUTH_MESSAGE,
    }
    domain = {
        "name": AUTH_DOMAIN_NAME,
        "version": AUTH_DOMAIN_VERSION,
        "chainId": chain_id,
    }
    return sign_typed_data(private_key, domain, "ClobAuth", CLOB_AUTH_FIELDS, message)


def create_l1_headers(
    private_key: str,
    chain_id: int = CHAIN_ID,
    nonce: int | None = None,
    timestamp: int | None = None,
) -> dict:
    """Build the wallet-signed headers for the credential endpoints."""
    ts = str(int(time.time()) if timestamp is None else timestamp)
    nonce = 0 if nonce is None else nonce
    return {
        POLY_ADDRESS: _address_of(private_key),
        POLY_SIGNATURE: sign_clob_auth_message(private_key, ts, nonce, chain_id),
        POLY_TIMESTAMP: ts,
        POLY_NONCE: str(nonce),
    }


# ----------------------------------------------------------------------
# L2: HMAC-SHA256 over timestamp + method + path + body
# ----------------------------------------------------------------------

def _decode_secret(secret: str) -> bytes:
    padded = secret + "=" * (-len(secret) % 4)
    try:
        return base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError) as exc:
        raise SecretDecodeError(f"Failed to decode secret: {exc}") from exc


def _hmac_over(
    secret: str, timestamp: int | str, method: str, path: str, serialized_body: str | None
) -> str:
    key = _decode_secret(secret)
    message = f"{timestamp}{method}{path}"
    if serialized_body is not None:
        message += serialized_body
    sig = hmac.new(key, message.encode(), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(sig).decode()


def build_hmac_signature(
    secret: str, timestamp: int | str, method: str, path: str, body=None
) -> str:
    """Compute HMAC-SHA256 signature for L2 request authentication.

    *body* is any JSON-serializable value (strings included) and is signed
    as its compact JSON encoding. Output is padded URL-safe base64.
    """
    serialized = compact_json(body) if body is not None else None
    return _hmac_over(secret, timestamp, method, path, serialized)


def create_l2_headers(
    private_key: str,
    creds: Credentials,
    method: str,
    path: str,
    body=None,
    timestamp: int | None = None,
    *,
    serialized_body: str | None = None,
) -> dict:
    """Build the full set of L2 authentication headers for a CLOB request.

    ``serialized_body`` is the exact JSON text being sent; when given it is
    signed verbatim and *body* is ignored.
    """
    ts = str(int(time.time()) if timestamp is None else timestamp)
    if serialized_body is None and body is not None:
        serialized_body = compact_json(body)
    return {
        POLY_ADDRESS: _address_of(private_key),
        POLY_SIGNATURE: _hmac_over(creds.secret, ts, method, path, serialized_body),
        POLY_TIMESTAMP: ts,
        POLY_API_KEY: creds.api_key,
        POLY_PASSPHRASE: creds.passphrase,
    }

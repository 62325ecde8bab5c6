"""EIP-712 typed structured data hashing and signing.

Covers the flat structs the CLOB uses (Order, ClobAuth): atomic field types
only, no nested structs or arrays. Field schemas use the same
``[{"name": ..., "type": ...}]`` layout as ``eth_account``'s typed-data helpers.
"""

import re

from eth_abi import encode
from eth_account import Account
from eth_utils import keccak, to_bytes, to_checksum_address, to_hex

from .errors import SigningError

_INT_RE = re.compile(r"^u?int(\d*)$")
_BYTES_RE = re.compile(r"^bytes(\d+)$")

# Canonical order of the optional EIP712Domain members
_DOMAIN_FIELDS = [
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
]


def encode_type(primary_type: str, fields: list[dict]) -> str:
    """e.g. ``Mail(address from,string contents)``."""
    members = ",".join(f"{f['type']} {f['name']}" for f in fields)
    return f"{primary_type}({members})"


def type_hash(primary_type: str, fields: list[dict]) -> bytes:
    return keccak(text=encode_type(primary_type, fields))


def _encode_field(type_: str, value) -> tuple[str, object]:
    """Map one field to its (abi type, abi value) for ``encodeData``."""
    if type_ == "string":
        return "bytes32", keccak(text=value)
    if type_ == "bytes":
        data = to_bytes(hexstr=value) if isinstance(value, str) else bytes(value)
        return "bytes32", keccak(data)
    if type_ == "address":
        return "address", to_checksum_address(value)
    if type_ == "bool":
        return "bool", bool(value)
    if _INT_RE.match(type_):
        return type_, int(value)
    if _BYTES_RE.match(type_):
        data = to_bytes(hexstr=value) if isinstance(value, str) else bytes(value)
        return type_, data
    raise ValueError(f"Unsupported EIP-712 field type: {type_}")


def hash_struct(primary_type: str, fields: list[dict], message: dict) -> bytes:
    """keccak256(typeHash ‖ encodeData(message))."""
    abi_types = ["bytes32"]
    values: list = [type_hash(primary_type, fields)]
    for f in fields:
        abi_type, value = _encode_field(f["type"], message[f["name"]])
        abi_types.append(abi_type)
        values.append(value)
    return keccak(encode(abi_types, values))


def domain_fields(domain: dict) -> list[dict]:
    """EIP712Domain members present in *domain*, in canonical order."""
    return [{"name": n, "type": t} for n, t in _DOMAIN_FIELDS if n in domain]


def hash_domain(domain: dict) -> bytes:
    """Compute the EIP-712 domain separator."""
    return hash_struct("EIP712Domain", domain_fields(domain), domain)


def signing_hash(domain: dict, primary_type: str, fields: list[dict], message: dict) -> bytes:
    """EIP-712 digest: keccak256("\\x19\\x01" ‖ domainSeparator ‖ structHash)."""
    return keccak(
        b"\x19\x01" + hash_domain(domain) + hash_struct(primary_type, fields, message)
    )


def sign_hash(private_key: str, digest: bytes) -> str:
    """Sign a 32-byte digest and return the 0x-prefixed r‖s‖v signature."""
    try:
        acct = Account.from_key(private_key)
        signed = acct.unsafe_sign_hash(digest)
    except Exception as exc:
        raise SigningError(f"Failed to sign typed data: {exc}") from exc
    return to_hex(signed.signature)


def sign_typed_data(
    private_key: str,
    domain: dict,
    primary_type: str,
    fields: list[dict],
    message: dict,
) -> str:
    """Hash *message* under *domain* and sign it with *private_key*."""
    return sign_hash(private_key, signing_hash(domain, primary_type, fields, message))

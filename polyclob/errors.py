"""Exceptions raised by the order, signing, and auth layers."""


class ClobError(Exception):
    """Base class for all polyclob errors."""


class InvalidOrderError(ClobError, ValueError):
    """Raised when order inputs cannot produce a valid order."""


class InvalidTickSizeError(InvalidOrderError):
    """Raised for a tick size outside the four supported values."""


class InvalidTokenIdError(InvalidOrderError):
    """Raised when a token id is not a decimal uint256."""


class AmountOverflowError(ClobError, OverflowError):
    """Raised when a converted amount does not fit the exchange's uint32 range."""


class SigningError(ClobError):
    """Raised when the private key cannot produce a signature."""


class SecretDecodeError(ClobError, ValueError):
    """Raised when an API secret is not valid URL-safe base64."""


class MarketFormatError(ClobError, ValueError):
    """Raised when market metadata cannot be decoded."""


class ClobApiError(ClobError):
    """Raised for a non-success HTTP response from the CLOB or Gamma API."""

    def __init__(self, status_code: int, text: str):
        self.status_code = status_code
        self.text = text
        super().__init__(f"API error {status_code}: {text}")

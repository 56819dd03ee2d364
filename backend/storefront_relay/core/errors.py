"""
Exception types raised by relay services.

Routes translate these into HTTP responses; nothing below the route layer
knows about status codes.
"""
from typing import Optional


class RelayError(Exception):
    """Base class for relay service errors."""
    pass


class ConfigurationError(RelayError):
    """Raised when a required credential or setting is missing."""
    pass


class AffiliateAPIError(RelayError):
    """Raised when the affiliate API call fails or returns an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CheckoutError(RelayError):
    """Raised when a payment provider session cannot be created."""
    pass

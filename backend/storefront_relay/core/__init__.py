"""
Core application modules.
Contains configuration, logging, metrics, tracing and error types.
"""
from .config import Settings, get_settings
from .errors import RelayError, ConfigurationError, AffiliateAPIError, CheckoutError

__all__ = [
    "Settings",
    "get_settings",
    "RelayError",
    "ConfigurationError",
    "AffiliateAPIError",
    "CheckoutError",
]

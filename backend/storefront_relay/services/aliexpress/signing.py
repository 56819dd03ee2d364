"""
Request signing for the AliExpress affiliate (TOP) API.

The signature is an upper-case hex HMAC-SHA256 over the concatenation of
``key + value`` for every parameter, keys in lexicographic order. The same
ordering is used for the query string, with ``sign`` appended last.
"""
import hashlib
import hmac
from typing import Any, Mapping
from urllib.parse import quote

DEFAULT_BASE_URL = "https://api-sg.aliexpress.com/sync"

# Characters left unescaped by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def format_param(value: Any) -> str:
    """Render a parameter value the way the upstream gateway expects it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_sign_string(params: Mapping[str, Any]) -> str:
    return "".join(f"{key}{format_param(params[key])}" for key in sorted(params))


def sign_params(params: Mapping[str, Any], secret: str) -> str:
    """
    Compute the request signature.

    Args:
        params: Request parameters, excluding ``sign``
        secret: Application secret

    Returns:
        Upper-case hex HMAC-SHA256 digest
    """
    digest = hmac.new(
        secret.encode("utf-8"),
        build_sign_string(params).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return digest.upper()


def generate_signed_url(
    params: Mapping[str, Any],
    secret: str,
    base_url: str = DEFAULT_BASE_URL,
) -> str:
    """
    Build a fully signed GET URL for the affiliate gateway.

    >>> generate_signed_url({"b": 2, "a": "x y"}, "s").split("&sign=")[0]
    'https://api-sg.aliexpress.com/sync?a=x%20y&b=2'
    """
    query = "&".join(
        f"{key}={quote(format_param(params[key]), safe=_URI_COMPONENT_SAFE)}"
        for key in sorted(params)
    )
    return f"{base_url}?{query}&sign={sign_params(params, secret)}"

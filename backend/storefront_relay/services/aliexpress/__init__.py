"""AliExpress affiliate API: request signing and the async client."""

from .client import AliExpressClient, get_aliexpress_client
from .signing import generate_signed_url, sign_params

__all__ = ["AliExpressClient", "get_aliexpress_client", "generate_signed_url", "sign_params"]

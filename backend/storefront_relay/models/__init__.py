"""Pydantic models for API requests and responses."""

from .catalog import ProductSearchResult, SearchResponse, ShippingInfo, SkuDetail, SkuDetailsRequest
from .checkout import CartCheckoutRequest, CheckoutSessionResponse, WalletCart, WalletCheckoutResponse

__all__ = [
    "ProductSearchResult",
    "SearchResponse",
    "ShippingInfo",
    "SkuDetail",
    "SkuDetailsRequest",
    "CartCheckoutRequest",
    "CheckoutSessionResponse",
    "WalletCart",
    "WalletCheckoutResponse",
]

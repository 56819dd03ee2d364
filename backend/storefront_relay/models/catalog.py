"""
Catalog models: search results and affiliate enrichment lookups.

These are transient DTOs. They are built per request and discarded once
the response is sent.
"""
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DeliveryDays = Union[int, str]


def _to_str(value):
    if value is None:
        return value
    return str(value)


class ShippingInfo(BaseModel):
    """Shipping quote for a single product, with zero-value defaults."""
    shipping_fee: str = "0"
    min_delivery_days: DeliveryDays = "N/A"
    max_delivery_days: DeliveryDays = "N/A"


class SkuDetail(BaseModel):
    """Color and image of one SKU variant."""
    model_config = ConfigDict(populate_by_name=True)

    color: str = ""
    sku_image: str = Field("", alias="skuImage")


class SkuDetailsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId")
    sku_id: Optional[str] = Field(None, alias="skuId")

    @field_validator("product_id", "sku_id", mode="before")
    @classmethod
    def stringify_ids(cls, value):
        return _to_str(value)


class ProductSearchResult(BaseModel):
    """A catalog product shaped for the storefront, price already marked up."""
    id: str
    sku_id: Optional[str] = None
    tax_rate: Optional[str] = None
    target_sale_price: Optional[str] = None
    title: str = ""
    price: str
    image: Optional[str] = None
    shipping_fee: str = "0"
    min_delivery_days: DeliveryDays = "N/A"
    max_delivery_days: DeliveryDays = "N/A"

    @field_validator("id", "sku_id", "tax_rate", "target_sale_price", mode="before")
    @classmethod
    def stringify_upstream_values(cls, value):
        return _to_str(value)


class SearchResponse(BaseModel):
    query: str
    results: List[ProductSearchResult]

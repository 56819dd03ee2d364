"""
Checkout request and response models.

Amounts sent by the storefront may arrive as numbers or numeric strings.
They must be finite and non-negative; anything else is rejected before a
payment provider is contacted.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CartCheckoutRequest(BaseModel):
    """Single-item cart submitted by the storefront."""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    price: float = Field(..., ge=0, allow_inf_nan=False)
    shipping_fee: float = Field(0.0, ge=0, allow_inf_nan=False)
    sales_tax: float = Field(0.0, ge=0, allow_inf_nan=False)
    image: str = ""
    product_id: str = Field(..., alias="productId")
    sku_id: Optional[str] = Field(None, alias="skuId")

    @field_validator("shipping_fee", "sales_tax", mode="before")
    @classmethod
    def blank_amount_is_zero(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0.0
        return value

    @field_validator("image", mode="before")
    @classmethod
    def blank_image(cls, value):
        return value or ""

    @field_validator("product_id", "sku_id", mode="before")
    @classmethod
    def stringify_ids(cls, value):
        if value is None:
            return value
        return str(value)


class CheckoutSessionResponse(BaseModel):
    url: str


class WalletCart(BaseModel):
    """Cart summary rendered by the wallet checkout flow."""
    model_config = ConfigDict(populate_by_name=True)

    title: str
    product_id: str = Field(..., alias="productId")
    color: str = ""
    image: str = ""
    price: float
    shipping: float
    total: float
    discount_total: str = Field(..., alias="discountTotal")


class WalletCheckoutResponse(BaseModel):
    cart: WalletCart

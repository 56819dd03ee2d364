"""
Checkout endpoints.

POST /api/cart/add            -> Stripe hosted checkout, returns {url}
POST /api/metamask-checkout   -> wallet cart summary, returns {cart}

Both look up the SKU first so the line item carries the chosen color and
variant image.
"""
from fastapi import APIRouter, Depends, HTTPException

from storefront_relay.core.config import Settings, get_settings
from storefront_relay.core.logging import get_logger
from storefront_relay.models.checkout import (
    CartCheckoutRequest,
    CheckoutSessionResponse,
    WalletCheckoutResponse,
)
from storefront_relay.services.aliexpress.client import AliExpressClient, get_aliexpress_client
from storefront_relay.services.checkout.stripe_checkout import create_card_checkout
from storefront_relay.services.checkout.wallet import build_wallet_cart

logger = get_logger(__name__)

router = APIRouter()


@router.post("/cart/add", response_model=CheckoutSessionResponse)
async def card_checkout(
    body: CartCheckoutRequest,
    client: AliExpressClient = Depends(get_aliexpress_client),
    settings: Settings = Depends(get_settings),
):
    """Create a Stripe checkout session for a single cart item."""
    try:
        sku_detail = await client.get_sku_details(body.product_id, body.sku_id)
        url = await create_card_checkout(body, sku_detail, settings)
    except Exception as e:
        logger.error(
            "card_checkout_error",
            product_id=body.product_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(status_code=500, detail="Failed to create checkout session")
    return CheckoutSessionResponse(url=url)


@router.post("/metamask-checkout", response_model=WalletCheckoutResponse)
async def wallet_checkout(
    body: CartCheckoutRequest,
    client: AliExpressClient = Depends(get_aliexpress_client),
    settings: Settings = Depends(get_settings),
):
    """Build the discounted cart shown by the wallet checkout flow."""
    try:
        sku_detail = await client.get_sku_details(body.product_id, body.sku_id)
        cart = build_wallet_cart(body, sku_detail, settings.wallet_discount_rate)
    except Exception as e:
        logger.error(
            "wallet_checkout_error",
            product_id=body.product_id,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Failed to build MetaMask checkout cart")
    return WalletCheckoutResponse(cart=cart)

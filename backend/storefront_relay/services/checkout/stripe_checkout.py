"""
Stripe hosted checkout for single-item card payments.

The Stripe SDK is synchronous; session creation runs in the threadpool.
"""
from typing import Any, Dict

import stripe
from starlette.concurrency import run_in_threadpool

from storefront_relay.core.config import Settings
from storefront_relay.core.errors import CheckoutError, ConfigurationError
from storefront_relay.core.logging import get_logger
from storefront_relay.core.metrics import record_checkout
from storefront_relay.models.catalog import SkuDetail
from storefront_relay.models.checkout import CartCheckoutRequest

from .pricing import card_total, to_minor_units

logger = get_logger(__name__)

CURRENCY = "usd"


def line_item_name(request: CartCheckoutRequest, color: str) -> str:
    name = f"{request.title} {request.product_id}"
    if color:
        name = f"{name} | {color}"
    return name


def build_session_params(
    request: CartCheckoutRequest,
    sku_detail: SkuDetail,
    settings: Settings,
) -> Dict[str, Any]:
    """Keyword arguments for ``stripe.checkout.Session.create``."""
    color = sku_detail.color or ""
    image = sku_detail.sku_image or request.image
    total = card_total(request.price, request.shipping_fee, request.sales_tax)

    product_data: Dict[str, Any] = {"name": line_item_name(request, color)}
    if image:
        product_data["images"] = [image]

    return {
        "payment_method_types": ["card"],
        "line_items": [
            {
                "price_data": {
                    "currency": CURRENCY,
                    "product_data": product_data,
                    "unit_amount": to_minor_units(total),
                },
                "quantity": 1,
            }
        ],
        "mode": "payment",
        "success_url": settings.success_url,
        "cancel_url": settings.cancel_url,
    }


async def create_card_checkout(
    request: CartCheckoutRequest,
    sku_detail: SkuDetail,
    settings: Settings,
) -> str:
    """
    Create a Stripe checkout session and return its hosted page URL.

    Raises:
        ConfigurationError: STRIPE_SECRET_KEY is not set
        CheckoutError: session creation failed for any reason
    """
    if not settings.stripe_secret_key:
        record_checkout("stripe", "not_configured")
        raise ConfigurationError("Stripe secret key is not configured")

    params = build_session_params(request, sku_detail, settings)
    try:
        session = await run_in_threadpool(
            stripe.checkout.Session.create,
            api_key=settings.stripe_secret_key,
            **params,
        )
    except Exception as exc:
        record_checkout("stripe", "error")
        logger.error(
            "stripe_session_failed",
            product_id=request.product_id,
            error=str(exc),
            error_type=type(exc).__name__,
            # traceback only for non-Stripe failures
            exc_info=not isinstance(exc, stripe.StripeError),
        )
        raise CheckoutError("Failed to create checkout session") from exc

    record_checkout("stripe", "created")
    logger.info(
        "stripe_session_created",
        product_id=request.product_id,
        session_id=getattr(session, "id", None),
        unit_amount=params["line_items"][0]["price_data"]["unit_amount"],
    )
    return session.url

"""
Wallet (MetaMask) checkout cart.

The wallet UI only renders plain https image links, so the SKU image is
normalized before it is sent back.
"""
from decimal import Decimal

from storefront_relay.core.logging import get_logger
from storefront_relay.core.metrics import record_checkout
from storefront_relay.models.catalog import SkuDetail
from storefront_relay.models.checkout import CartCheckoutRequest, WalletCart

from .pricing import wallet_totals

logger = get_logger(__name__)


def normalize_image_url(url: str) -> str:
    """
    Strip the query string, force an https scheme on protocol-relative
    links and escape spaces.

    >>> normalize_image_url("//ae01.alicdn.com/kf/a b.jpg?x=1")
    'https://ae01.alicdn.com/kf/a%20b.jpg'
    """
    if not url:
        return ""
    url = url.split("?")[0]
    if not url.startswith("http"):
        url = f"https:{url}"
    return url.replace(" ", "%20")


def build_wallet_cart(
    request: CartCheckoutRequest,
    sku_detail: SkuDetail,
    discount_rate: float = 0.10,
) -> WalletCart:
    color = sku_detail.color or ""
    image = normalize_image_url(sku_detail.sku_image or request.image)
    discount_total, total = wallet_totals(
        request.price,
        request.shipping_fee,
        Decimal(str(discount_rate)),
    )

    cart = WalletCart(
        title=request.title,
        product_id=request.product_id,
        color=color,
        image=image,
        price=request.price,
        shipping=request.shipping_fee,
        total=float(total),
        discount_total=f"{discount_total:.2f}",
    )
    record_checkout("wallet", "created")
    logger.info(
        "wallet_cart_built",
        product_id=request.product_id,
        total=cart.total,
        discount_total=cart.discount_total,
    )
    return cart

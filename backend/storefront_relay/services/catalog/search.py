"""
Catalog search pipeline.

query -> affiliate product search -> category filter -> concurrent shipping
lookups -> price markup and response shaping.

Shipping lookups are fanned out with asyncio.gather and awaited together.
Products whose enrichment fails, or whose sale price cannot be read, are
dropped; the relative upstream order of the survivors is preserved.
"""
import asyncio
import time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple

from storefront_relay.core.logging import get_logger
from storefront_relay.core.metrics import record_search_filtered, record_search_results
from storefront_relay.models.catalog import ProductSearchResult, ShippingInfo
from storefront_relay.services.aliexpress.client import AliExpressClient

logger = get_logger(__name__)

DEFAULT_MARKUP = 1.5
DEFAULT_EXCLUDED_FIRST_LEVEL = ("Shoes", "Clothing")
DEFAULT_EXCLUDED_SECOND_LEVEL = ("Clothing",)

_CENT = Decimal("0.01")


def is_excluded(
    item: Dict[str, Any],
    excluded_first_level: Iterable[str] = DEFAULT_EXCLUDED_FIRST_LEVEL,
    excluded_second_level: Iterable[str] = DEFAULT_EXCLUDED_SECOND_LEVEL,
) -> bool:
    """True when either category name contains an excluded term (case-sensitive substring)."""
    first_level = item.get("first_level_category_name") or ""
    second_level = item.get("second_level_category_name") or ""
    return any(term in first_level for term in excluded_first_level) or any(
        term in second_level for term in excluded_second_level
    )


def filter_categories(
    items: List[Dict[str, Any]],
    excluded_first_level: Iterable[str] = DEFAULT_EXCLUDED_FIRST_LEVEL,
    excluded_second_level: Iterable[str] = DEFAULT_EXCLUDED_SECOND_LEVEL,
) -> List[Dict[str, Any]]:
    excluded_first_level = tuple(excluded_first_level)
    excluded_second_level = tuple(excluded_second_level)
    return [
        item for item in items
        if not is_excluded(item, excluded_first_level, excluded_second_level)
    ]


def marked_up_price(sale_price: Any, markup: float = DEFAULT_MARKUP) -> Optional[str]:
    """
    Apply the storefront markup and render with two decimals.

    Returns None when the sale price is missing or not a finite number.
    """
    try:
        value = Decimal(str(sale_price).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    marked_up = (value * Decimal(str(markup))).quantize(_CENT, rounding=ROUND_HALF_UP)
    return f"{marked_up:.2f}"


def shape_product(
    item: Dict[str, Any],
    shipping: ShippingInfo,
    markup: float = DEFAULT_MARKUP,
) -> Optional[ProductSearchResult]:
    """Build the storefront result for one upstream product, or None if it must be dropped."""
    if not shipping.shipping_fee:
        return None
    price = marked_up_price(item.get("target_sale_price"), markup)
    if price is None or item.get("product_id") is None:
        return None
    return ProductSearchResult(
        id=item.get("product_id"),
        sku_id=item.get("sku_id"),
        tax_rate=item.get("tax_rate"),
        target_sale_price=item.get("target_sale_price"),
        title=item.get("product_title") or "",
        price=price,
        image=item.get("product_main_image_url"),
        shipping_fee=shipping.shipping_fee,
        min_delivery_days=shipping.min_delivery_days,
        max_delivery_days=shipping.max_delivery_days,
    )


async def enrich_with_shipping(
    client: AliExpressClient,
    items: List[Dict[str, Any]],
) -> List[Tuple[Dict[str, Any], Optional[ShippingInfo]]]:
    """
    Look up shipping for every item concurrently.

    A lookup that raises pairs its item with None instead of failing the batch.
    """
    outcomes = await asyncio.gather(
        *(client.get_shipping_info(item) for item in items),
        return_exceptions=True,
    )
    paired = []
    for item, outcome in zip(items, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning(
                "search_enrichment_failed",
                product_id=item.get("product_id"),
                error=str(outcome),
                error_type=type(outcome).__name__,
            )
            paired.append((item, None))
        else:
            paired.append((item, outcome))
    return paired


async def search_catalog(
    query: str,
    client: AliExpressClient,
    markup: float = DEFAULT_MARKUP,
    excluded_first_level: Iterable[str] = DEFAULT_EXCLUDED_FIRST_LEVEL,
    excluded_second_level: Iterable[str] = DEFAULT_EXCLUDED_SECOND_LEVEL,
) -> List[ProductSearchResult]:
    """
    Search the affiliate catalog and return storefront-ready products.

    Raises:
        ConfigurationError, AffiliateAPIError: the product search itself failed
    """
    start_time = time.time()
    items = await client.search_products(query)
    upstream_count = len(items)

    kept = filter_categories(items, excluded_first_level, excluded_second_level)
    record_search_filtered("category", upstream_count - len(kept))

    results: List[ProductSearchResult] = []
    enrichment_dropped = 0
    price_dropped = 0
    for item, shipping in await enrich_with_shipping(client, kept):
        if shipping is None or not shipping.shipping_fee:
            enrichment_dropped += 1
            continue
        product = shape_product(item, shipping, markup)
        if product is None:
            price_dropped += 1
            continue
        results.append(product)

    record_search_filtered("enrichment", enrichment_dropped)
    record_search_filtered("price", price_dropped)
    record_search_results(len(results))

    logger.info(
        "catalog_search_completed",
        query=query,
        upstream_count=upstream_count,
        category_filtered=upstream_count - len(kept),
        enrichment_dropped=enrichment_dropped,
        price_dropped=price_dropped,
        results_count=len(results),
        latency_ms=int((time.time() - start_time) * 1000),
    )
    return results

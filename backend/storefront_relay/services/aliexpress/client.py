"""
Async client for the AliExpress affiliate API.

Every call is a signed GET against the sync gateway. Product search
propagates failures as ``AffiliateAPIError``; the enrichment lookups
(shipping, SKU detail) degrade to zero-value fallbacks instead.

Environment configuration (see core.config):
- ALIEXPRESS_APP_KEY / ALIEXPRESS_APP_SECRET: application credentials
- ALIEXPRESS_BASE_URL: gateway URL (default: https://api-sg.aliexpress.com/sync)
- ALIEXPRESS_TIMEOUT_SECONDS: per-call timeout (default: 10.0)
"""
import math
import time
from typing import Any, Dict, List, Optional, Union

import httpx
from structlog.contextvars import bound_contextvars

from storefront_relay.core.config import Settings, get_settings
from storefront_relay.core.errors import AffiliateAPIError, ConfigurationError
from storefront_relay.core.logging import get_logger
from storefront_relay.core.metrics import record_affiliate_call, record_affiliate_fallback
from storefront_relay.core.tracing import get_tracer, record_exception
from storefront_relay.models.catalog import ShippingInfo, SkuDetail

from .signing import generate_signed_url

logger = get_logger(__name__)

PRODUCT_QUERY_METHOD = "aliexpress.affiliate.product.query"
SHIPPING_METHOD = "aliexpress.affiliate.product.shipping.get"
SKU_DETAIL_METHOD = "aliexpress.affiliate.product.sku.detail.get"

SEARCH_FIELDS = (
    "commission_rate,sale_price,sku_id,tax_rate,"
    "first_level_category_name,second_level_category_name"
)


def delivery_days(value: Any) -> Union[int, str]:
    """
    Normalise an upstream delivery estimate to an int or a string.

    Integral numbers become ints, other scalars keep their text form and
    anything missing or structured becomes "N/A".
    """
    if value is None or isinstance(value, bool):
        return "N/A"
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return "N/A"
        return int(value) if value.is_integer() else str(value)
    if isinstance(value, str):
        return value.strip() or "N/A"
    return "N/A"


def dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for step in path:
        if isinstance(current, dict):
            current = current.get(step)
        elif isinstance(current, list) and isinstance(step, int):
            current = current[step] if -len(current) <= step < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


class AliExpressClient:
    """Signed HTTP client for the affiliate product, shipping and SKU methods."""

    def __init__(
        self,
        app_key: Optional[str],
        app_secret: Optional[str],
        base_url: str,
        timeout_seconds: float = 10.0,
        ship_to_country: str = "US",
        target_currency: str = "USD",
        target_language: str = "EN",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app_key = app_key
        self.app_secret = app_secret
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.ship_to_country = ship_to_country
        self.target_currency = target_currency
        self.target_language = target_language
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "AliExpressClient":
        return cls(
            app_key=settings.aliexpress_app_key,
            app_secret=settings.aliexpress_app_secret,
            base_url=settings.aliexpress_base_url,
            timeout_seconds=settings.aliexpress_timeout_seconds,
            ship_to_country=settings.ship_to_country,
            target_currency=settings.target_currency,
            target_language=settings.target_language,
            **kwargs,
        )

    @property
    def configured(self) -> bool:
        return bool(self.app_key and self.app_secret)

    def build_params(self, method: str, **extra: Any) -> Dict[str, Any]:
        """System and locale parameters shared by every affiliate method."""
        params: Dict[str, Any] = {
            "app_key": self.app_key,
            "app_signature": "placeholder",
            "method": method,
            "ship_to_country": self.ship_to_country,
            "target_currency": self.target_currency,
            "target_language": self.target_language,
            "sign_method": "sha256",
            "timestamp": str(int(time.time() * 1000)),
        }
        params.update(extra)
        return params

    async def _get(self, url: str) -> httpx.Response:
        """Low-level GET helper."""
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            return await client.get(url)

    async def call(self, method: str, **extra: Any) -> Dict[str, Any]:
        """
        Invoke one affiliate method and return the decoded JSON body.

        Raises:
            ConfigurationError: credentials are not configured
            AffiliateAPIError: transport failure, non-2xx status or non-JSON body
        """
        if not self.configured:
            raise ConfigurationError("AliExpress app key or secret is not configured")

        url = generate_signed_url(self.build_params(method, **extra), self.app_secret, self.base_url)

        with bound_contextvars(affiliate_method=method), get_tracer().start_as_current_span(
            "aliexpress.call"
        ) as span:
            span.set_attribute("aliexpress.method", method)
            start = time.time()
            try:
                response = await self._get(url)
            except httpx.TimeoutException as exc:
                record_affiliate_call(method, "timeout", time.time() - start)
                record_exception(exc)
                logger.warning("affiliate_timeout", method=method, error=str(exc))
                raise AffiliateAPIError(f"AliExpress API timeout calling {method}") from exc
            except httpx.HTTPError as exc:
                record_affiliate_call(method, "request_error", time.time() - start)
                record_exception(exc)
                logger.warning(
                    "affiliate_request_error",
                    method=method,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                raise AffiliateAPIError(f"AliExpress API request failed calling {method}") from exc

            duration = time.time() - start
            span.set_attribute("http.status_code", response.status_code)

            if response.is_error:
                record_affiliate_call(method, "http_error", duration)
                logger.warning("affiliate_http_error", method=method, status_code=response.status_code)
                raise AffiliateAPIError(
                    f"AliExpress API error: {response.status_code}",
                    status_code=response.status_code,
                )

            try:
                data = response.json()
            except ValueError as exc:
                record_affiliate_call(method, "json_error", duration)
                logger.warning("affiliate_invalid_json", method=method, body=response.text[:200])
                raise AffiliateAPIError("Invalid JSON response from AliExpress") from exc

            record_affiliate_call(method, "success", duration)
            logger.debug("affiliate_call_completed", method=method, latency_ms=int(duration * 1000))
            return data if isinstance(data, dict) else {}

    async def search_products(
        self,
        query: str,
        page_no: int = 1,
        page_size: int = 20,
    ) -> List[Dict[str, Any]]:
        """
        Run a keyword product query sorted by ascending sale price.

        Returns:
            Raw product dicts as returned by the gateway (possibly empty)
        """
        data = await self.call(
            PRODUCT_QUERY_METHOD,
            category_ids="111,222,333",
            delivery_days=3,
            fields=SEARCH_FIELDS,
            keywords=query,
            page_no=page_no,
            page_size=page_size,
            platform_product_type="ALL",
            promotion_name="Business Top Sellers with Exclusive Price",
            sort="SALE_PRICE_ASC",
        )
        products = dig(
            data,
            "aliexpress_affiliate_product_query_response",
            "resp_result",
            "result",
            "products",
            "product",
        )
        return products if isinstance(products, list) else []

    async def get_shipping_info(self, product: Dict[str, Any]) -> ShippingInfo:
        """
        Look up the shipping quote for one search result.

        Never raises: any failure yields ``ShippingInfo()`` (fee "0", days "N/A").
        """
        try:
            data = await self.call(
                SHIPPING_METHOD,
                product_id=product.get("product_id"),
                sku_id=product.get("sku_id") or "",
                target_sale_price=product.get("target_sale_price"),
                tax_rate=product.get("tax_rate") or 0,
            )
        except Exception as exc:
            record_affiliate_fallback(SHIPPING_METHOD)
            logger.warning(
                "shipping_lookup_failed",
                product_id=product.get("product_id"),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ShippingInfo()

        result = dig(
            data,
            "aliexpress_affiliate_product_shipping_get_response",
            "resp_result",
            "result",
        )
        if not isinstance(result, dict):
            result = {}
        return ShippingInfo(
            shipping_fee=str(result.get("shipping_fee") or "0"),
            min_delivery_days=delivery_days(result.get("min_delivery_days")),
            max_delivery_days=delivery_days(result.get("max_delivery_days")),
        )

    async def get_sku_details(self, product_id: str, sku_id: Optional[str]) -> SkuDetail:
        """
        Fetch color and image for a SKU. Not cached.

        Never raises: any failure yields an empty ``SkuDetail``.
        """
        try:
            data = await self.call(
                SKU_DETAIL_METHOD,
                product_id=product_id,
                sku_ids=sku_id,
                need_deliver_info="No",
            )
        except Exception as exc:
            record_affiliate_fallback(SKU_DETAIL_METHOD)
            logger.error(
                "sku_details_failed",
                product_id=product_id,
                sku_id=sku_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return SkuDetail()

        sku_info = dig(
            data,
            "aliexpress_affiliate_product_sku_detail_get_response",
            "result",
            "result",
            "ae_item_sku_info",
            "traffic_sku_info_list",
            0,
        )
        if not isinstance(sku_info, dict):
            sku_info = {}
        return SkuDetail(
            color=str(sku_info.get("color") or ""),
            sku_image=str(sku_info.get("sku_image_link") or ""),
        )


_aliexpress_client: Optional[AliExpressClient] = None


def get_aliexpress_client() -> AliExpressClient:
    """
    Get the process-wide affiliate client, built from settings on first use.
    """
    global _aliexpress_client
    if _aliexpress_client is None:
        _aliexpress_client = AliExpressClient.from_settings(get_settings())
    return _aliexpress_client


def reset_aliexpress_client() -> None:
    global _aliexpress_client
    _aliexpress_client = None

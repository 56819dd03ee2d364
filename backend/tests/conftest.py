"""
Shared fixtures: a mocked affiliate gateway served through httpx.MockTransport.
"""
import json

import httpx
import pytest
import structlog

from storefront_relay.core.config import Settings
from storefront_relay.services.aliexpress.client import (
    AliExpressClient,
    PRODUCT_QUERY_METHOD,
    SHIPPING_METHOD,
    SKU_DETAIL_METHOD,
)

SAMPLE_PRODUCTS = [
    {
        "product_id": 1001,
        "sku_id": "2001",
        "tax_rate": "0.1",
        "target_sale_price": "10.00",
        "product_title": "LED Desk Lamp",
        "product_main_image_url": "https://ae01.alicdn.com/kf/lamp.jpg",
        "first_level_category_name": "Home & Garden",
        "second_level_category_name": "Lamps",
    },
    {
        "product_id": 1002,
        "sku_id": "2002",
        "target_sale_price": "25.00",
        "product_title": "Running Shoes",
        "first_level_category_name": "Shoes",
        "second_level_category_name": "Sneakers",
    },
    {
        "product_id": 1003,
        "sku_id": "2003",
        "target_sale_price": "8.00",
        "product_title": "Summer Dress",
        "first_level_category_name": "Women",
        "second_level_category_name": "Women's Clothing",
    },
    {
        "product_id": 1004,
        "sku_id": "2004",
        "target_sale_price": "3.33",
        "product_title": "Phone Stand",
        "product_main_image_url": "https://ae01.alicdn.com/kf/stand.jpg",
    },
]


def search_body(products):
    return {
        "aliexpress_affiliate_product_query_response": {
            "resp_result": {"result": {"products": {"product": products}}}
        }
    }


def shipping_body(fee="2.50", min_days=5, max_days=12):
    return {
        "aliexpress_affiliate_product_shipping_get_response": {
            "resp_result": {
                "result": {
                    "shipping_fee": fee,
                    "min_delivery_days": min_days,
                    "max_delivery_days": max_days,
                }
            }
        }
    }


def sku_body(color="Black", image="//ae01.alicdn.com/kf/black lamp.jpg?w=640"):
    return {
        "aliexpress_affiliate_product_sku_detail_get_response": {
            "result": {
                "result": {
                    "ae_item_sku_info": {
                        "traffic_sku_info_list": [
                            {"color": color, "sku_image_link": image},
                        ]
                    }
                }
            }
        }
    }


class FakeGateway:
    """
    Routes signed GET requests by their ``method`` parameter.

    Per-method overrides may be a JSON-able dict, an httpx.Response, or an
    exception instance to raise. Every request is recorded together with
    the structlog context bound while it was sent.
    """

    def __init__(self):
        self.requests = []
        self.responses = {
            PRODUCT_QUERY_METHOD: search_body(SAMPLE_PRODUCTS),
            SHIPPING_METHOD: shipping_body(),
            SKU_DETAIL_METHOD: sku_body(),
        }
        self.shipping_failures = set()
        self.log_contexts = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.log_contexts.append(structlog.contextvars.get_contextvars())
        method = request.url.params.get("method")

        if method == SHIPPING_METHOD and request.url.params.get("product_id") in self.shipping_failures:
            return httpx.Response(500, text="upstream exploded")

        outcome = self.responses.get(method)
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, httpx.Response):
            return outcome
        if outcome is None:
            return httpx.Response(404, text="unknown method")
        return httpx.Response(200, content=json.dumps(outcome).encode("utf-8"))

    def calls(self, method):
        return [r for r in self.requests if r.url.params.get("method") == method]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def test_settings():
    return Settings(
        aliexpress_app_key="test-key",
        aliexpress_app_secret="test-secret",
        aliexpress_base_url="https://gateway.test/sync",
        stripe_secret_key="sk_test_123",
        public_base_url="https://shop.test",
    )


@pytest.fixture
def aliexpress_client(gateway, test_settings):
    return AliExpressClient.from_settings(test_settings, transport=httpx.MockTransport(gateway))

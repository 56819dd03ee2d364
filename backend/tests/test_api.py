"""
Integration tests for the relay HTTP API with a mocked affiliate gateway
and a patched Stripe SDK.
"""
from unittest.mock import MagicMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from storefront_relay.core.config import get_settings
from storefront_relay.main import app
from storefront_relay.services.aliexpress.client import (
    PRODUCT_QUERY_METHOD,
    SKU_DETAIL_METHOD,
    get_aliexpress_client,
)


@pytest.fixture
def client(aliexpress_client, test_settings):
    """Test client wired to the mocked gateway and test settings."""
    app.dependency_overrides[get_aliexpress_client] = lambda: aliexpress_client
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()


CART_BODY = {
    "title": "LED Desk Lamp",
    "price": "15.00",
    "shipping_fee": "2.50",
    "image": "https://ae01.alicdn.com/kf/lamp.jpg",
    "productId": "1001",
    "skuId": "2001",
}


class TestSearchEndpoint:

    def test_search_returns_shaped_results(self, client):
        response = client.get("/api/search", params={"q": "desk lamp"})

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "desk lamp"
        assert [r["id"] for r in data["results"]] == ["1001", "1004"]

        lamp = data["results"][0]
        assert lamp == {
            "id": "1001",
            "sku_id": "2001",
            "tax_rate": "0.1",
            "target_sale_price": "10.00",
            "title": "LED Desk Lamp",
            "price": "15.00",
            "image": "https://ae01.alicdn.com/kf/lamp.jpg",
            "shipping_fee": "2.50",
            "min_delivery_days": 5,
            "max_delivery_days": 12,
        }

    def test_search_empty_query(self, client):
        response = client.get("/api/search?q=")

        assert response.status_code == 400
        assert response.json()["error"] == "Query is required"

    def test_search_missing_query(self, client):
        response = client.get("/api/search")

        assert response.status_code == 400
        assert response.json()["detail"] == "Query is required"

    def test_search_upstream_failure(self, client, gateway):
        gateway.responses[PRODUCT_QUERY_METHOD] = httpx.Response(500, text="boom")

        response = client.get("/api/search", params={"q": "lamp"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to fetch products"
        assert body["status_code"] == 500
        assert "X-Trace-ID" in response.headers

    def test_search_applies_configured_markup(self, client, test_settings):
        app.dependency_overrides[get_settings] = lambda: test_settings.model_copy(
            update={"price_markup": 2.0}
        )

        response = client.get("/api/search", params={"q": "lamp"})

        assert response.json()["results"][0]["price"] == "20.00"


class TestSkuDetailsEndpoint:

    def test_sku_details(self, client):
        response = client.post("/api/sku-details", json={"productId": "1001", "skuId": "2001"})

        assert response.status_code == 200
        assert response.json() == {
            "color": "Black",
            "skuImage": "//ae01.alicdn.com/kf/black lamp.jpg?w=640",
        }

    def test_sku_details_upstream_failure_is_empty(self, client, gateway):
        gateway.responses[SKU_DETAIL_METHOD] = httpx.Response(500, text="boom")

        response = client.post("/api/sku-details", json={"productId": 1001, "skuId": 2001})

        assert response.status_code == 200
        assert response.json() == {"color": "", "skuImage": ""}

    def test_sku_details_unexpected_failure_returns_empty_detail(self, client, aliexpress_client):
        with patch.object(aliexpress_client, "get_sku_details", side_effect=RuntimeError("boom")):
            response = client.post("/api/sku-details", json={"productId": "1001", "skuId": "2001"})

        assert response.status_code == 500
        assert response.json() == {"color": "", "skuImage": ""}

    def test_sku_details_requires_product_id(self, client):
        response = client.post("/api/sku-details", json={"skuId": "2001"})

        assert response.status_code == 422


class TestCardCheckoutEndpoint:

    def test_cart_add_returns_session_url(self, client):
        session = MagicMock(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

        with patch("stripe.checkout.Session.create", return_value=session) as mock_create:
            response = client.post("/api/cart/add", json=CART_BODY)

        assert response.status_code == 200
        assert response.json() == {"url": "https://checkout.stripe.com/c/pay/cs_test_1"}

        kwargs = mock_create.call_args.kwargs
        price_data = kwargs["line_items"][0]["price_data"]
        assert price_data["unit_amount"] == 1750
        assert price_data["product_data"]["name"] == "LED Desk Lamp 1001 | Black"
        assert price_data["product_data"]["images"] == ["//ae01.alicdn.com/kf/black lamp.jpg?w=640"]
        assert kwargs["success_url"] == "https://shop.test/success.html"

    def test_cart_add_stripe_failure(self, client):
        with patch("stripe.checkout.Session.create", side_effect=RuntimeError("stripe down")):
            response = client.post("/api/cart/add", json=CART_BODY)

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to create checkout session"

    def test_cart_add_rejects_negative_price(self, client):
        with patch("stripe.checkout.Session.create") as mock_create:
            response = client.post("/api/cart/add", json=dict(CART_BODY, price="-5"))

        assert response.status_code == 422
        assert response.json()["errors"][0]["loc"][-1] == "price"
        mock_create.assert_not_called()


class TestWalletCheckoutEndpoint:

    def test_metamask_checkout_builds_cart(self, client):
        response = client.post("/api/metamask-checkout", json=CART_BODY)

        assert response.status_code == 200
        assert response.json() == {
            "cart": {
                "title": "LED Desk Lamp",
                "productId": "1001",
                "color": "Black",
                "image": "https://ae01.alicdn.com/kf/black%20lamp.jpg",
                "price": 15.0,
                "shipping": 2.5,
                "total": 16.0,
                "discountTotal": "13.50",
            }
        }

    def test_metamask_checkout_without_sku_details(self, client, gateway):
        gateway.responses[SKU_DETAIL_METHOD] = httpx.Response(500, text="boom")

        response = client.post("/api/metamask-checkout", json=dict(CART_BODY, shipping_fee=""))

        cart = response.json()["cart"]
        assert cart["color"] == ""
        assert cart["image"] == "https://ae01.alicdn.com/kf/lamp.jpg"
        assert cart["shipping"] == 0.0
        assert cart["total"] == 13.5

    def test_metamask_checkout_rejects_non_numeric_price(self, client):
        response = client.post("/api/metamask-checkout", json=dict(CART_BODY, price="free"))

        assert response.status_code == 422


    def test_metamask_checkout_failure(self, client):
        with patch(
            "storefront_relay.routes.checkout.build_wallet_cart",
            side_effect=ValueError("bad cart"),
        ):
            response = client.post("/api/metamask-checkout", json=CART_BODY)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to build MetaMask checkout cart"
        assert body["trace_id"] == response.headers["X-Trace-ID"]

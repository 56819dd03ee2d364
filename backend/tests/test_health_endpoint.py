"""
Integration tests for health, metrics and request-tracing behaviour.
"""
import pytest
from fastapi.testclient import TestClient
from prometheus_client import CONTENT_TYPE_LATEST

from storefront_relay.core.config import Settings, get_settings
from storefront_relay.main import app


@pytest.fixture
def client():
    """Create test client."""
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_basic_health_check(client):
    response = client.get("/health/")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "message" in data


def test_config_health_reports_missing_credentials(client):
    app.dependency_overrides[get_settings] = lambda: Settings(
        aliexpress_app_key="key",
        aliexpress_app_secret=None,
        stripe_secret_key=None,
    )

    response = client.get("/health/config")

    assert response.status_code == 200
    assert response.json() == {
        "status": "degraded",
        "credentials": {
            "ALIEXPRESS_APP_KEY": "OK",
            "ALIEXPRESS_APP_SECRET": "MISSING",
            "STRIPE_SECRET_KEY": "MISSING",
        },
    }


def test_config_health_never_exposes_values(client, test_settings):
    app.dependency_overrides[get_settings] = lambda: test_settings

    response = client.get("/health/config")

    assert response.json()["status"] == "ok"
    assert "test-secret" not in response.text
    assert "sk_test_123" not in response.text


def test_metrics_endpoint(client):
    client.get("/health/")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"] == CONTENT_TYPE_LATEST
    assert "http_requests_total" in response.text
    assert "affiliate_api_requests_total" in response.text


def test_trace_id_header_is_echoed(client):
    response = client.get("/health/", headers={"X-Trace-ID": "my-trace-id"})

    assert response.headers["X-Trace-ID"] == "my-trace-id"
    assert len(response.headers["X-Request-ID"]) == 36


def test_trace_id_from_traceparent(client):
    response = client.get(
        "/health/",
        headers={"traceparent": "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"},
    )

    assert response.headers["X-Trace-ID"] == "4bf92f35-77b3-4da6-a3ce-929d0e0e4736"


def test_trace_id_is_generated(client):
    response = client.get("/health/")

    assert len(response.headers["X-Trace-ID"]) == 36


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["status_code"] == 404
    assert body["error"] == "Not Found"
    assert body["trace_id"]


def test_unhandled_exception_keeps_trace_id():
    def broken_settings():
        raise RuntimeError("settings unavailable")

    app.dependency_overrides[get_settings] = broken_settings
    try:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/health/config", headers={"X-Trace-ID": "trace-for-500"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal server error",
        "detail": "Internal server error",
        "status_code": 500,
        "trace_id": "trace-for-500",
    }
    assert response.headers["X-Trace-ID"] == "trace-for-500"

"""
Prometheus metrics collection module.

Metrics Categories:
- RED Metrics: Rate, Errors, Duration of inbound HTTP requests
- Upstream Metrics: affiliate API calls, latency and fallbacks
- Business Metrics: search result sizes, category filtering, checkout sessions
- Resource Metrics: CPU, memory

All metrics follow Prometheus naming conventions:
- Counters: _total suffix
- Histograms: _seconds suffix for duration
- Gauges: No special suffix
"""
from typing import Optional

import psutil
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    generate_latest,
    REGISTRY,
    CONTENT_TYPE_LATEST,
)

from .logging import get_logger

logger = get_logger(__name__)

registry = REGISTRY

# ============================================================================
# RED METRICS - Rate, Errors, Duration
# ============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=registry,
)

http_errors_total = Counter(
    "http_errors_total",
    "Total number of HTTP errors",
    ["method", "endpoint", "status_code"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=registry,
)

# ============================================================================
# UPSTREAM (AFFILIATE API) METRICS
# ============================================================================

affiliate_api_requests_total = Counter(
    "affiliate_api_requests_total",
    "Total number of affiliate API calls",
    ["method", "status"],  # status: success, http_error, timeout, request_error, json_error
    registry=registry,
)

affiliate_api_latency_seconds = Histogram(
    "affiliate_api_latency_seconds",
    "Affiliate API call latency in seconds",
    ["method"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=registry,
)

affiliate_fallbacks_total = Counter(
    "affiliate_fallbacks_total",
    "Total number of enrichment lookups that fell back to default values",
    ["method"],
    registry=registry,
)

# ============================================================================
# BUSINESS METRICS
# ============================================================================

search_result_size = Histogram(
    "search_result_size",
    "Number of products returned per search",
    buckets=[0, 1, 2, 5, 10, 15, 20],
    registry=registry,
)

search_filtered_items_total = Counter(
    "search_filtered_items_total",
    "Total number of upstream products dropped by the search pipeline",
    ["reason"],  # "category", "enrichment", "price"
    registry=registry,
)

checkout_sessions_total = Counter(
    "checkout_sessions_total",
    "Total number of checkout attempts",
    ["provider", "status"],  # provider: stripe, wallet
    registry=registry,
)

# ============================================================================
# RESOURCE METRICS
# ============================================================================

system_cpu_usage_percent = Gauge(
    "system_cpu_usage_percent",
    "System CPU usage percentage",
    registry=registry,
)

system_memory_usage_bytes = Gauge(
    "system_memory_usage_bytes",
    "System memory usage in bytes",
    registry=registry,
)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def normalize_endpoint(path: str) -> str:
    """
    Normalize endpoint path for metrics.

    Examples:
        /api/search?q=lamp -> /api/search
        /health/ -> /health
    """
    if "?" in path:
        path = path.split("?")[0]
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def record_http_request(
    method: str,
    endpoint: str,
    status_code: int,
    duration_seconds: float,
) -> None:
    """
    Record HTTP request metrics (RED metrics).

    Args:
        method: HTTP method (GET, POST, etc.)
        endpoint: Request path
        status_code: HTTP status code
        duration_seconds: Request duration in seconds
    """
    normalized_endpoint = normalize_endpoint(endpoint)

    http_requests_total.labels(
        method=method,
        endpoint=normalized_endpoint,
        status=str(status_code),
    ).inc()

    if status_code >= 400:
        http_errors_total.labels(
            method=method,
            endpoint=normalized_endpoint,
            status_code=str(status_code),
        ).inc()

    http_request_duration_seconds.labels(
        method=method,
        endpoint=normalized_endpoint,
    ).observe(duration_seconds)


def record_affiliate_call(method: str, status: str, duration_seconds: Optional[float] = None) -> None:
    """
    Record one affiliate API call.

    Args:
        method: Affiliate API method name (e.g. aliexpress.affiliate.product.query)
        status: Outcome label
        duration_seconds: Call latency, when the call reached the network
    """
    affiliate_api_requests_total.labels(method=method, status=status).inc()
    if duration_seconds is not None:
        affiliate_api_latency_seconds.labels(method=method).observe(duration_seconds)


def record_affiliate_fallback(method: str) -> None:
    affiliate_fallbacks_total.labels(method=method).inc()


def record_search_results(count: int) -> None:
    search_result_size.observe(count)


def record_search_filtered(reason: str, count: int = 1) -> None:
    if count > 0:
        search_filtered_items_total.labels(reason=reason).inc(count)


def record_checkout(provider: str, status: str) -> None:
    checkout_sessions_total.labels(provider=provider, status=status).inc()


def update_resource_metrics() -> None:
    """
    Update system resource metrics (CPU, memory).

    Called on-demand when metrics are scraped.
    """
    try:
        cpu_percent = psutil.cpu_percent(interval=None)
        system_cpu_usage_percent.set(cpu_percent)

        memory = psutil.virtual_memory()
        system_memory_usage_bytes.set(memory.used)
    except Exception as e:
        logger.warning(
            "metrics_resource_update_failed",
            error=str(e),
            error_type=type(e).__name__,
        )


def get_metrics() -> bytes:
    """
    Get Prometheus metrics in text format.

    Returns:
        Prometheus metrics text format
    """
    update_resource_metrics()
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST

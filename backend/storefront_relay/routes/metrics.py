"""
GET /metrics: Prometheus exposition of the relay's HTTP, affiliate,
catalog and checkout metrics, with resource gauges refreshed per scrape.
"""
from fastapi import APIRouter, Response

from storefront_relay.core.metrics import get_metrics, get_metrics_content_type

router = APIRouter()


@router.get("", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=get_metrics(), media_type=get_metrics_content_type())

"""
Catalog search endpoint.

GET /api/search?q={query}
"""
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront_relay.core.config import Settings, get_settings
from storefront_relay.core.errors import RelayError
from storefront_relay.core.logging import get_logger
from storefront_relay.models.catalog import SearchResponse
from storefront_relay.services.aliexpress.client import AliExpressClient, get_aliexpress_client
from storefront_relay.services.catalog.search import search_catalog

logger = get_logger(__name__)

router = APIRouter()


@router.get("/search", response_model=SearchResponse)
async def search(
    q: Optional[str] = Query(None, description="Search keywords"),
    client: AliExpressClient = Depends(get_aliexpress_client),
    settings: Settings = Depends(get_settings),
):
    """
    Search the affiliate catalog.

    Results are category-filtered, enriched with shipping quotes and priced
    with the storefront markup.
    """
    start_time = time.time()
    query = q or ""

    if not query:
        logger.warning("search_query_empty", query=q)
        raise HTTPException(status_code=400, detail="Query is required")

    try:
        results = await search_catalog(
            query,
            client,
            markup=settings.price_markup,
            excluded_first_level=settings.excluded_first_level_categories,
            excluded_second_level=settings.excluded_second_level_categories,
        )
    except RelayError as e:
        logger.error(
            "search_error",
            query=query,
            error=str(e),
            error_type=type(e).__name__,
            latency_ms=int((time.time() - start_time) * 1000),
        )
        raise HTTPException(status_code=500, detail="Failed to fetch products")
    except Exception as e:
        logger.error(
            "search_error",
            query=query,
            error=str(e),
            error_type=type(e).__name__,
            latency_ms=int((time.time() - start_time) * 1000),
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Failed to fetch products")

    logger.info(
        "search_completed",
        query=query,
        results_count=len(results),
        latency_ms=int((time.time() - start_time) * 1000),
    )
    return SearchResponse(query=query, results=results)

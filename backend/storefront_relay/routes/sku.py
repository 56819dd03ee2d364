"""
SKU detail endpoint used by the storefront product page.

POST /api/sku-details {productId, skuId} -> {color, skuImage}
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront_relay.core.logging import get_logger
from storefront_relay.models.catalog import SkuDetail, SkuDetailsRequest
from storefront_relay.services.aliexpress.client import AliExpressClient, get_aliexpress_client

logger = get_logger(__name__)

router = APIRouter()


@router.post("/sku-details", response_model=SkuDetail)
async def sku_details(
    body: SkuDetailsRequest,
    client: AliExpressClient = Depends(get_aliexpress_client),
):
    try:
        return await client.get_sku_details(body.product_id, body.sku_id)
    except Exception as e:
        logger.error(
            "sku_details_endpoint_error",
            product_id=body.product_id,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return JSONResponse(status_code=500, content=SkuDetail().model_dump(by_alias=True))

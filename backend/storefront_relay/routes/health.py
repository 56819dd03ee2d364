"""
Health check endpoints.
"""
from fastapi import APIRouter, Depends

from storefront_relay.core.config import Settings, get_settings
from storefront_relay.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def health_check():
    """
    Basic health check endpoint.
    """
    return {
        "status": "ok",
        "message": "API is running"
    }


@router.get("/config")
async def config_health(settings: Settings = Depends(get_settings)):
    """
    Report which upstream credentials are configured.

    Returns:
        - status: "ok" when every credential is present, otherwise "degraded"
        - credentials: credential name -> "OK" | "MISSING" (values are never exposed)
    """
    credentials = settings.credential_status()
    all_present = all(value == "OK" for value in credentials.values())
    return {
        "status": "ok" if all_present else "degraded",
        "credentials": credentials,
    }

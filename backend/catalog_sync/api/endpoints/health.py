"""
Health endpoint for monitoring.
"""

import logging
from typing import Dict

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from catalog_sync.core.config import get_settings
from catalog_sync.db.session import get_async_engine

router = APIRouter()
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    environment: str
    components: Dict[str, str]


async def check_database() -> str:
    try:
        async with get_async_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return "ok"
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return "unavailable"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check with configuration and database status.

    Returns:
        Health status per component
    """
    settings = get_settings()
    components = {
        "api": "ok",
        "database": await check_database(),
        "shopify": "configured" if settings.shopify_shop and settings.shopify_admin_api_token else "missing",
        "hubspot": "configured" if settings.hubspot_access_token else "missing",
        "email": "configured" if settings.smtp_host and settings.summary_email_to else "disabled",
    }
    healthy = components["database"] == "ok" and "missing" not in components.values()

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        environment=settings.app_env,
        components=components,
    )

"""
Shopify Product Webhooks.

- POST /webhooks/product          products/create, products/update
- POST /webhooks/product/delete   products/delete
"""

import logging
from typing import Annotated, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict

from catalog_sync.api.endpoints.sync import get_sync_orchestrator
from catalog_sync.integrations.shopify.processors import product_gid
from catalog_sync.models.catalog import SyncSuccess
from catalog_sync.services.catalog_sync import CatalogSyncOrchestrator

router = APIRouter()
logger = logging.getLogger(__name__)


class ProductWebhook(BaseModel):
    """Shopify product webhook payload (only the identifiers are used)."""
    model_config = ConfigDict(extra="allow")

    id: Union[int, str, None] = None
    admin_graphql_api_id: Optional[str] = None

    @property
    def product_gid(self) -> Optional[str]:
        if self.admin_graphql_api_id:
            return self.admin_graphql_api_id
        if self.id is not None and str(self.id).strip():
            return product_gid(str(self.id))
        return None


class WebhookResponse(BaseModel):
    status: str
    message: str


@router.post("/product", response_model=WebhookResponse)
async def product_created_or_updated(
    payload: ProductWebhook,
    orchestrator: Annotated[CatalogSyncOrchestrator, Depends(get_sync_orchestrator)],
) -> WebhookResponse:
    """Re-fetch the product from Shopify and create or update it in HubSpot."""
    record_id = payload.product_gid
    logger.info(f"🚀 Webhook received for product create/update: {record_id}")
    if not record_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook payload has no product id",
        )

    outcome = await orchestrator.reconcile_single(record_id)
    if isinstance(outcome, SyncSuccess):
        return WebhookResponse(
            status=outcome.status,
            message=f"Product {outcome.sku} {outcome.status} in HubSpot.",
        )

    # Record-level failures are acknowledged so Shopify does not redeliver
    logger.warning(f"⚠️ Webhook sync failed (SKU: {outcome.sku}) - {outcome.reason}")
    return WebhookResponse(status="failed", message=f"SKU: {outcome.sku} - {outcome.reason}")


@router.post("/product/delete", response_model=WebhookResponse)
async def product_deleted(
    payload: ProductWebhook,
    orchestrator: Annotated[CatalogSyncOrchestrator, Depends(get_sync_orchestrator)],
) -> WebhookResponse:
    """Archive the HubSpot product mirroring a deleted Shopify product."""
    source_id = payload.product_gid
    logger.info(f"🚀 Webhook received for product deletion: {source_id}")
    if not source_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Webhook payload has no product id",
        )

    try:
        archived = await orchestrator.archive_by_source_id(source_id)
    except Exception as e:
        logger.error(f"❌ Error deleting product (Shopify ID: {source_id}): {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error processing product deletion webhook.",
        )

    if archived:
        return WebhookResponse(status="archived", message="Product deletion processed.")
    return WebhookResponse(status="not_found", message="No matching HubSpot product found.")

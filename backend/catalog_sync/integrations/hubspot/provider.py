"""
HubSpot Product Sink Implementation.

Writes catalog products into HubSpot's product object.
"""

import logging
from typing import Any, Dict, Optional

from catalog_sync.core.interfaces.catalog import CRMSink
from catalog_sync.integrations.hubspot.client import HubSpotClient

logger = logging.getLogger(__name__)

PRODUCTS_ENDPOINT = "/crm/v3/objects/products"
SKU_PROPERTY = "hs_sku"
SOURCE_ID_PROPERTY = "shopify_id"


class HubSpotProductSink(CRMSink):
    """HubSpot products as the CRM sink."""

    def __init__(self, client: HubSpotClient):
        self.client = client

    async def find_by_key(self, key: str) -> Optional[str]:
        return await self._search(SKU_PROPERTY, key)

    async def find_by_source_id(self, source_id: str) -> Optional[str]:
        return await self._search(SOURCE_ID_PROPERTY, source_id)

    async def create(self, properties: Dict[str, Any]) -> str:
        response = await self.client.post(PRODUCTS_ENDPOINT, json={"properties": properties})
        product_id = str(response.get("id", ""))
        logger.debug(f"Created HubSpot product {product_id}")
        return product_id

    async def update(self, destination_id: str, properties: Dict[str, Any]) -> None:
        await self.client.patch(
            f"{PRODUCTS_ENDPOINT}/{destination_id}",
            json={"properties": properties},
        )
        logger.debug(f"Updated HubSpot product {destination_id}")

    async def archive(self, destination_id: str) -> None:
        await self.client.delete(f"{PRODUCTS_ENDPOINT}/{destination_id}")

    async def _search(self, property_name: str, value: str) -> Optional[str]:
        """First product whose property equals value, or None."""
        body = {
            "filterGroups": [
                {
                    "filters": [
                        {"propertyName": property_name, "operator": "EQ", "value": value}
                    ]
                }
            ],
            "properties": [SKU_PROPERTY, SOURCE_ID_PROPERTY],
            "limit": 1,
        }
        response = await self.client.post(f"{PRODUCTS_ENDPOINT}/search", json=body)
        results = response.get("results") or []
        if not results:
            return None
        return str(results[0].get("id"))

    async def close(self) -> None:
        await self.client.close()

"""
Shopify Catalog Source Implementation.

Reads products by id, by SKU, page by page, or by date range.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from catalog_sync.core.interfaces.catalog import CatalogSource
from catalog_sync.integrations.shopify.client import ShopifyAPIError, ShopifyClient
from catalog_sync.integrations.shopify.processors import parse_product, product_gid
from catalog_sync.integrations.shopify.queries import (
    PRODUCT_BY_ID_QUERY,
    PRODUCT_BY_SKU_QUERY,
    PRODUCTS_PAGE_QUERY,
)
from catalog_sync.models.catalog import SourcePage, SourceRecord

logger = logging.getLogger(__name__)

# Variants fetched per SKU search; the search is fuzzy and may rank near matches first
SKU_MATCH_CANDIDATES = 10


def _search_value(value: str) -> str:
    """Quote a value for Shopify's search syntax."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _iso_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_date_range_query(start: datetime, end: datetime) -> str:
    """Search filter: created or updated within [start, end]."""
    lower, upper = _iso_utc(start), _iso_utc(end)
    return (
        f"(created_at:>='{lower}' AND created_at:<='{upper}') OR "
        f"(updated_at:>='{lower}' AND updated_at:<='{upper}')"
    )


class ShopifyCatalogSource(CatalogSource):
    """Shopify Admin API as the catalog source."""

    def __init__(self, client: ShopifyClient, page_size: int = 100):
        """
        Initialize Shopify catalog source.

        Args:
            client: Configured ShopifyClient
            page_size: Products per page (Shopify allows up to 250)
        """
        self.client = client
        self.page_size = page_size

    async def fetch_by_id(self, record_id: str) -> Optional[SourceRecord]:
        data = await self.client.graphql(PRODUCT_BY_ID_QUERY, {"id": product_gid(record_id)})
        node = data.get("product")
        if not node:
            logger.warning(f"⚠️ Shopify product {record_id} not found")
            return None
        return parse_product(node)

    async def fetch_by_key(self, key: str) -> Optional[SourceRecord]:
        data = await self.client.graphql(
            PRODUCT_BY_SKU_QUERY,
            {"query": f"sku:{_search_value(key)}", "first": SKU_MATCH_CANDIDATES},
        )
        for edge in (data.get("productVariants") or {}).get("edges") or []:
            node = edge.get("node") or {}
            # Search is fuzzy; only accept an exact SKU match
            if (node.get("sku") or "").strip() == key and node.get("product"):
                return parse_product(node["product"])
        return None

    async def fetch_page(self, cursor: Optional[str] = None) -> SourcePage:
        return await self._fetch_products(cursor, None)

    async def fetch_page_by_date_range(
        self,
        start: datetime,
        end: datetime,
        cursor: Optional[str] = None,
    ) -> SourcePage:
        return await self._fetch_products(cursor, build_date_range_query(start, end))

    async def _fetch_products(self, cursor: Optional[str], search: Optional[str]) -> SourcePage:
        variables: Dict[str, Any] = {"first": self.page_size, "cursor": cursor, "query": search}
        data = await self.client.graphql(PRODUCTS_PAGE_QUERY, variables)

        products = data.get("products")
        if products is None:
            raise ShopifyAPIError("Shopify response missing expected 'products' data.")

        edges = products.get("edges") or []
        records = [parse_product(edge["node"], edge.get("cursor")) for edge in edges if edge.get("node")]

        has_next_page = bool((products.get("pageInfo") or {}).get("hasNextPage"))
        next_cursor = edges[-1].get("cursor") if has_next_page and edges else None

        return SourcePage(records=records, next_cursor=next_cursor)

    async def close(self) -> None:
        await self.client.close()

"""
Response Processing for Shopify.

Converts GraphQL product nodes into SourceRecord objects.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from catalog_sync.models.catalog import Attribute, SourceRecord, Variant

logger = logging.getLogger(__name__)


def _edges(connection: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Nodes of a GraphQL connection, skipping null entries."""
    if not connection:
        return []
    return [edge["node"] for edge in connection.get("edges") or [] if edge and edge.get("node")]


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        # Shopify uses a trailing Z for UTC
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable Shopify timestamp: {value}")
        return None


def parse_product(node: Dict[str, Any], cursor: Optional[str] = None) -> SourceRecord:
    """
    Build a SourceRecord from a Shopify product node.

    Args:
        node: Product object from the GraphQL response
        cursor: Pagination cursor of the edge holding this node

    Returns:
        SourceRecord (variants keep Shopify's order, first image only)
    """
    variants = [
        Variant(
            id=str(v.get("id") or ""),
            title=v.get("title") or "",
            sku=v.get("sku"),
            price=str(v["price"]) if v.get("price") is not None else None,
        )
        for v in _edges(node.get("variants"))
    ]

    attributes = [
        Attribute(
            namespace=m.get("namespace") or "",
            key=m.get("key") or "",
            value=m.get("value"),
        )
        for m in _edges(node.get("metafields"))
    ]

    images = _edges(node.get("images"))

    return SourceRecord(
        id=str(node.get("id") or ""),
        title=node.get("title") or "",
        description=node.get("descriptionHtml") or "",
        url=node.get("onlineStoreUrl"),
        image_url=images[0].get("src") if images else None,
        variants=variants,
        attributes=attributes,
        status=node.get("status"),
        created_at=_parse_timestamp(node.get("createdAt")),
        updated_at=_parse_timestamp(node.get("updatedAt")),
        cursor=cursor,
    )


def product_gid(product_id: str) -> str:
    """Normalize a numeric id or GID to a Product GID."""
    product_id = str(product_id)
    if product_id.startswith("gid://"):
        return product_id
    return f"gid://shopify/Product/{product_id.rsplit('/', 1)[-1]}"

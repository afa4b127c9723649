"""
Record Mapper for Catalog Products.

Turns a SourceRecord into the flat property set the CRM accepts:
- Identity fields (name, description, URL, image, SKU, price, status)
- Allow-listed metafields as <namespace>__<key>
- Null / blank value filtering
"""

import logging
from typing import Any, Dict, Iterable, Optional

from catalog_sync.core.config import DEFAULT_METAFIELD_NAMESPACES
from catalog_sync.models.catalog import SourceRecord

logger = logging.getLogger(__name__)

ALLOWED_NAMESPACES = frozenset(DEFAULT_METAFIELD_NAMESPACES.split(","))

# Joins namespace and key into a single CRM property name
FIELD_SEPARATOR = "__"


def is_present(value: Any) -> bool:
    """True unless value is None or a blank string."""
    if value is None:
        return False
    if isinstance(value, str) and value.strip() == "":
        return False
    return True


def filter_empty_properties(properties: Dict[str, Any]) -> Dict[str, Any]:
    """Removes keys whose value is None or a blank string."""
    return {key: value for key, value in properties.items() if is_present(value)}


def extract_sku(record: SourceRecord) -> str:
    """
    SKU of the record's first variant, stripped.

    Returns an empty string when the record has no variants or the first
    variant carries no SKU.
    """
    variant = record.first_variant
    if variant is None or variant.sku is None:
        return ""
    return str(variant.sku).strip()


class RecordMapper:
    """
    Maps catalog products to CRM product properties.

    Pure and deterministic: no I/O, no shared state. The mapper assumes the
    record has a SKU; rejecting records without one is the caller's job.
    """

    def __init__(self, allowed_namespaces: Optional[Iterable[str]] = None):
        """
        Initialize record mapper.

        Args:
            allowed_namespaces: Metafield namespaces copied to the CRM
                                (defaults to ALLOWED_NAMESPACES)
        """
        self.allowed_namespaces = (
            frozenset(allowed_namespaces) if allowed_namespaces is not None else ALLOWED_NAMESPACES
        )

    def normalize(self, record: SourceRecord) -> Dict[str, Any]:
        """
        Build the CRM property set for one record.

        Args:
            record: Catalog product

        Returns:
            Properties with no None or blank-string values

        Example:
            >>> mapper = RecordMapper()
            >>> mapper.normalize(record)
            {"name": "Ring", "hs_sku": "ABC123", "price": "100.00", "custom__metal": "gold"}
        """
        variant = record.first_variant

        raw_properties = {
            "name": record.title,
            "description": record.description,
            "shopify_id": record.id,
            "hs_url": record.url,
            "hs_images": record.image_url,
            "hs_sku": extract_sku(record),
            "price": variant.price if variant else None,
            "status": record.status,
        }
        raw_properties.update(self.extract_attributes(record))

        return filter_empty_properties(raw_properties)

    def extract_attributes(self, record: SourceRecord) -> Dict[str, Any]:
        """
        Allow-listed metafields keyed as <namespace>__<key>.

        Later duplicates of the same namespace/key win.
        """
        attributes = {}

        for attribute in record.attributes:
            if attribute.namespace not in self.allowed_namespaces:
                continue
            if not is_present(attribute.value):
                continue
            field_name = f"{attribute.namespace}{FIELD_SEPARATOR}{attribute.key}"
            attributes[field_name] = attribute.value

        return attributes

"""
Catalog domain types shared by the adapters and the sync core.

SourceRecord is what the catalog source hands over; SyncOutcome is what
the orchestrator produces for each record it reconciles.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

# Marker used when a failure cannot be tied to a SKU
UNKNOWN_SKU = "Unknown SKU"


@dataclass(frozen=True)
class Variant:
    """One purchasable variant of a catalog product."""
    id: str
    title: str = ""
    sku: Optional[str] = None
    price: Optional[str] = None


@dataclass(frozen=True)
class Attribute:
    """Typed attribute (Shopify metafield) attached to a product."""
    namespace: str
    key: str
    value: Optional[str] = None


@dataclass
class SourceRecord:
    """
    Product as read from the upstream catalog.

    Read-only to the sync core. The record's SKU is the SKU of its
    first variant.
    """
    id: str
    title: str = ""
    description: str = ""
    url: Optional[str] = None
    image_url: Optional[str] = None
    variants: List[Variant] = field(default_factory=list)
    attributes: List[Attribute] = field(default_factory=list)
    status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    cursor: Optional[str] = None

    @property
    def first_variant(self) -> Optional[Variant]:
        return self.variants[0] if self.variants else None


@dataclass
class SourcePage:
    """One page of catalog records plus the continuation cursor."""
    records: List[SourceRecord]
    next_cursor: Optional[str] = None

    @property
    def has_next_page(self) -> bool:
        return self.next_cursor is not None


@dataclass(frozen=True)
class SyncSuccess:
    """Record written to the CRM."""
    sku: str
    title: str
    status: str

    def to_dict(self) -> dict:
        return {"sku": self.sku, "title": self.title, "status": self.status}


@dataclass(frozen=True)
class SyncFailure:
    """Record that could not be written; reason is human readable."""
    sku: str
    reason: str

    def to_dict(self) -> dict:
        return {"sku": self.sku, "reason": self.reason}


SyncOutcome = Union[SyncSuccess, SyncFailure]


@dataclass
class ProgressState:
    """
    Per-run progress counters.

    processed only grows; total grows as further pages are discovered.
    """
    processed: int = 0
    total: int = 0

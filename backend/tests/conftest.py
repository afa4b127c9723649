"""
Shared fakes for the catalog sync tests.

In-memory stand-ins for the Shopify source, the HubSpot sink and the
result sink, so orchestrator scenarios run without any network.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from catalog_sync.core.interfaces import CatalogSource, CRMSink, ResultSink
from catalog_sync.integrations.shopify.client import ShopifyAPIError
from catalog_sync.models.catalog import (
    Attribute,
    SourcePage,
    SourceRecord,
    SyncFailure,
    SyncSuccess,
    Variant,
)
from catalog_sync.models.sync_history import SyncHistoryEntry


def make_record(
    sku: Optional[str],
    title: Optional[str] = None,
    record_id: Optional[str] = None,
    price: Optional[str] = "100.00",
    attributes: Optional[List[Attribute]] = None,
) -> SourceRecord:
    """Product with a single variant carrying the given SKU."""
    variants = [] if sku is None else [Variant(id=f"gid://shopify/ProductVariant/{sku}", sku=sku, price=price)]
    return SourceRecord(
        id=record_id or f"gid://shopify/Product/{sku or 'none'}",
        title=title or f"Product {sku}",
        description="<p>Description</p>",
        url=f"https://shop.example.com/products/{sku}",
        image_url="https://cdn.example.com/image.jpg",
        variants=variants,
        attributes=attributes or [],
        status="ACTIVE",
    )


def make_page(prefix: str, count: int) -> List[SourceRecord]:
    return [make_record(f"{prefix}{i:03d}") for i in range(count)]


class FakeCatalogSource(CatalogSource):
    """
    Pages are addressed by their index; the cursor is the next index as a string.

    Page indexes listed in fail_on_pages raise ShopifyAPIError.
    """

    def __init__(
        self,
        pages: Optional[List[List[SourceRecord]]] = None,
        records: Optional[Sequence[SourceRecord]] = None,
        fail_on_pages: Sequence[int] = (),
    ):
        self.pages = pages if pages is not None else [[]]
        self.records = list(records or [])
        for page in self.pages:
            self.records.extend(page)
        self.fail_on_pages = set(fail_on_pages)
        self.page_calls: List[Optional[str]] = []
        self.date_ranges: List[Tuple[Any, Any]] = []

    async def fetch_by_id(self, record_id: str) -> Optional[SourceRecord]:
        return next((r for r in self.records if r.id == record_id), None)

    async def fetch_by_key(self, key: str) -> Optional[SourceRecord]:
        for record in self.records:
            if any(v.sku == key for v in record.variants):
                return record
        return None

    async def fetch_page(self, cursor: Optional[str] = None) -> SourcePage:
        self.page_calls.append(cursor)
        index = 0 if cursor is None else int(cursor)
        if index in self.fail_on_pages:
            raise ShopifyAPIError("Shopify API error: 503 - Service Unavailable", status_code=503)
        next_cursor = str(index + 1) if index + 1 < len(self.pages) else None
        return SourcePage(records=list(self.pages[index]), next_cursor=next_cursor)

    async def fetch_page_by_date_range(self, start, end, cursor: Optional[str] = None) -> SourcePage:
        self.date_ranges.append((start, end))
        return await self.fetch_page(cursor)


class FakeCRMSink(CRMSink):
    """
    HubSpot products kept in a dict keyed by destination id.

    write_errors maps a SKU to the exception raised when creating or
    updating it.
    """

    def __init__(self, write_errors: Optional[Dict[str, Exception]] = None):
        self.products: Dict[str, Dict[str, Any]] = {}
        self.write_errors = write_errors or {}
        self.calls: List[Tuple[str, Any]] = []
        self.archived: List[str] = []
        self._next_id = 1

    def seed(self, properties: Dict[str, Any]) -> str:
        destination_id = str(self._next_id)
        self._next_id += 1
        self.products[destination_id] = dict(properties)
        return destination_id

    def called_skus(self) -> List[str]:
        return [arg for name, arg in self.calls if name == "find_by_key"]

    async def find_by_key(self, sku: str) -> Optional[str]:
        self.calls.append(("find_by_key", sku))
        return next((i for i, p in self.products.items() if p.get("hs_sku") == sku), None)

    async def find_by_source_id(self, source_id: str) -> Optional[str]:
        self.calls.append(("find_by_source_id", source_id))
        return next((i for i, p in self.products.items() if p.get("shopify_id") == source_id), None)

    async def create(self, properties: Dict[str, Any]) -> str:
        self.calls.append(("create", properties.get("hs_sku")))
        self._raise_for(properties)
        return self.seed(properties)

    async def update(self, destination_id: str, properties: Dict[str, Any]) -> None:
        self.calls.append(("update", destination_id))
        self._raise_for(properties)
        self.products[destination_id].update(properties)

    async def archive(self, destination_id: str) -> None:
        self.calls.append(("archive", destination_id))
        self.archived.append(destination_id)
        self.products.pop(destination_id, None)

    def _raise_for(self, properties: Dict[str, Any]) -> None:
        error = self.write_errors.get(properties.get("hs_sku"))
        if error is not None:
            raise error


class RecordingResultSink(ResultSink):
    """Keeps every persisted entry and notification."""

    def __init__(self, fail_persist: bool = False, fail_notify: bool = False):
        self.entries: List[SyncHistoryEntry] = []
        self.notifications: List[Tuple[List[SyncSuccess], List[SyncFailure]]] = []
        self.fail_persist = fail_persist
        self.fail_notify = fail_notify

    async def persist(self, entry: SyncHistoryEntry) -> None:
        if self.fail_persist:
            raise RuntimeError("database unavailable")
        self.entries.append(entry)

    async def notify(self, successes, failures) -> None:
        if self.fail_notify:
            raise RuntimeError("SMTP connection refused")
        self.notifications.append((list(successes), list(failures)))


@pytest.fixture
def sink() -> FakeCRMSink:
    return FakeCRMSink()


@pytest.fixture
def result_sink() -> RecordingResultSink:
    return RecordingResultSink()

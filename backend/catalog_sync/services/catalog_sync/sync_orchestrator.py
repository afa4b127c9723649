"""
Catalog Sync Orchestrator.

Coordinates the catalog → CRM synchronization workflow.
"""

import asyncio
import logging
import re
from datetime import date, datetime, time, timezone
from typing import AsyncIterator, Iterable, List, Optional, Sequence, Tuple, Union

from catalog_sync.core.interfaces.catalog import CatalogSource, CRMSink
from catalog_sync.core.interfaces.results import ResultSink
from catalog_sync.models.catalog import (
    UNKNOWN_SKU,
    SourceRecord,
    SyncFailure,
    SyncOutcome,
    SyncSuccess,
)
from catalog_sync.models.sync_history import SyncHistoryEntry
from catalog_sync.services.catalog_sync.error_classifier import ErrorClassifier
from catalog_sync.services.catalog_sync.record_mapper import RecordMapper, extract_sku
from catalog_sync.services.catalog_sync.run_guard import RunGuard, SyncMode
from catalog_sync.services.catalog_sync.sync_run import SyncRun

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5
DEFAULT_KEY_BATCH_SIZE = 100
DEFAULT_RESULT_SINK_TIMEOUT = 60.0

MISSING_SKU_REASON = "missing SKU"
UPSTREAM_NOT_FOUND_REASON = "Product not found in Shopify"

STATUS_CREATED = "created"
STATUS_UPDATED = "updated"

_WHITESPACE = re.compile(r"\s+")


def normalize_keys(raw: Union[str, Iterable[str], None]) -> List[str]:
    """
    Flatten SKU input into a list of keys.

    Each entry is split on whitespace; a blank entry is kept as one blank
    key so that it is reported as a failure instead of vanishing.
    Duplicates are kept.

    Example:
        >>> normalize_keys(["ABC123 DEF456", ""])
        ["ABC123", "DEF456", ""]
    """
    if raw is None:
        return []
    entries = [raw] if isinstance(raw, str) else list(raw)

    keys: List[str] = []
    for entry in entries:
        text = str(entry or "").strip()
        if not text:
            keys.append("")
            continue
        keys.extend(_WHITESPACE.split(text))
    return keys


def _as_date(value: Union[str, date], name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValueError(f"{name} must be a date in the format YYYY-MM-DD, got {value!r}") from None


def parse_date_range(
    start: Union[str, date],
    end: Union[str, date],
) -> Tuple[datetime, datetime]:
    """
    Calendar-day range → inclusive UTC bounds.

    Returns:
        (start 00:00:00 UTC, end 23:59:59 UTC)

    Raises:
        ValueError: Malformed dates or start after end
    """
    start_day = _as_date(start, "startDate")
    end_day = _as_date(end, "endDate")
    if start_day > end_day:
        raise ValueError(f"startDate {start_day} is after endDate {end_day}")
    return (
        datetime.combine(start_day, time(0, 0, 0), tzinfo=timezone.utc),
        datetime.combine(end_day, time(23, 59, 59), tzinfo=timezone.utc),
    )


class CatalogSyncOrchestrator:
    """
    Orchestrates catalog → CRM sync runs.

    Responsibilities:
    - Create one SyncRun per invocation (by SKUs, full catalog, date range)
    - Reconcile single records (search, then create or update)
    - Contain every per-record error as a classified failure
    - Hand results to the result sink without letting it fail a run

    The orchestrator itself is stateless between runs; the shared RunGuard
    is the only state two runs have in common.
    """

    def __init__(
        self,
        source: CatalogSource,
        sink: CRMSink,
        result_sink: Optional[ResultSink] = None,
        run_guard: Optional[RunGuard] = None,
        mapper: Optional[RecordMapper] = None,
        classifier: Optional[ErrorClassifier] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        key_batch_size: int = DEFAULT_KEY_BATCH_SIZE,
        result_sink_timeout: float = DEFAULT_RESULT_SINK_TIMEOUT,
    ):
        """
        Initialize catalog sync orchestrator.

        Args:
            source: Catalog source adapter (Shopify)
            sink: CRM sink adapter (HubSpot)
            result_sink: Receives history and summary (optional)
            run_guard: Shared single-flight guard (a private one if omitted)
            mapper: Record → CRM property mapper
            classifier: Sink error classifier
            concurrency: Maximum reconciliations in flight per run
            key_batch_size: SKUs dispatched per batch in by-SKU runs
            result_sink_timeout: Seconds allowed for each of persist and notify
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.source = source
        self.sink = sink
        self.result_sink = result_sink
        self.run_guard = run_guard or RunGuard()
        self.mapper = mapper or RecordMapper()
        self.classifier = classifier or ErrorClassifier()
        self.concurrency = concurrency
        self.key_batch_size = max(1, key_batch_size)
        self.result_sink_timeout = result_sink_timeout

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run_by_keys(self, keys: Union[str, Iterable[str]]) -> SyncRun:
        """Sync the products owning the given SKUs."""
        key_list = normalize_keys(keys)

        async def batches() -> AsyncIterator[Sequence[str]]:
            for i in range(0, len(key_list), self.key_batch_size):
                yield key_list[i:i + self.key_batch_size]

        return SyncRun(
            self,
            SyncMode.BY_KEYS,
            batches,
            self.reconcile_key,
            start_message=f"🔁 Starting sync of {len(key_list)} SKU(s)...",
            total=len(key_list),
        )

    def run_full_catalog(self) -> SyncRun:
        """Sync every product in the catalog."""
        return SyncRun(
            self,
            SyncMode.FULL_CATALOG,
            lambda: self._paginate(self.source.fetch_page),
            self.reconcile_record,
            start_message="🔁 Starting sync of all products...",
        )

    def run_by_date_range(self, start: Union[str, date], end: Union[str, date]) -> SyncRun:
        """
        Sync products created or modified between two calendar days (inclusive).

        Raises:
            ValueError: If the dates are malformed or out of order
        """
        start_at, end_at = parse_date_range(start, end)

        async def fetch(cursor: Optional[str]):
            return await self.source.fetch_page_by_date_range(start_at, end_at, cursor)

        return SyncRun(
            self,
            SyncMode.DATE_RANGE,
            lambda: self._paginate(fetch),
            self.reconcile_record,
            start_message=(
                f"🔁 Starting sync of products between "
                f"{start_at.date().isoformat()} and {end_at.date().isoformat()}..."
            ),
        )

    async def _paginate(self, fetch) -> AsyncIterator[List[SourceRecord]]:
        """Follow next_cursor until the source reports the last page."""
        cursor: Optional[str] = None
        page_number = 1

        while True:
            page = await fetch(cursor)
            logger.info(f"📄 Page {page_number}: fetched {len(page.records)} products")
            yield page.records

            if not page.has_next_page:
                break
            if page.next_cursor == cursor:
                logger.warning(f"⚠️ Source returned the same cursor twice, stopping at page {page_number}")
                break
            cursor = page.next_cursor
            page_number += 1

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def reconcile_key(self, key: str) -> SyncOutcome:
        """Resolve a SKU upstream, then reconcile the record it belongs to."""
        key = (key or "").strip()
        if not key:
            logger.warning("⚠️ Blank SKU in request. Skipping HubSpot sync...")
            return SyncFailure(sku=UNKNOWN_SKU, reason=MISSING_SKU_REASON)

        try:
            record = await self.source.fetch_by_key(key)
        except Exception as e:
            logger.error(f"❌ Could not look up SKU {key} in Shopify: {e}")
            return SyncFailure(sku=key, reason=f"Shopify lookup failed: {e}")

        if record is None:
            logger.warning(f"❌ Could not find product for SKU: {key}")
            return SyncFailure(sku=key, reason=UPSTREAM_NOT_FOUND_REASON)

        outcome = await self.reconcile_record(record)
        if isinstance(outcome, SyncFailure) and outcome.sku == UNKNOWN_SKU:
            return SyncFailure(sku=key, reason=outcome.reason)
        return outcome

    async def reconcile_record(self, record: SourceRecord) -> SyncOutcome:
        """
        Search the CRM by SKU, then update the match or create a new product.

        Never raises: every error becomes a SyncFailure.
        """
        sku = extract_sku(record)
        if not sku:
            logger.warning(f"⚠️ No SKU for product \"{record.title}\". Skipping HubSpot sync...")
            return SyncFailure(sku=UNKNOWN_SKU, reason=MISSING_SKU_REASON)

        logger.debug(f"🔄 Processing product: {record.title} (SKU: {sku})")
        try:
            properties = self.mapper.normalize(record)
            destination_id = await self.sink.find_by_key(sku)

            if destination_id:
                await self.sink.update(destination_id, properties)
                return SyncSuccess(sku=sku, title=record.title, status=STATUS_UPDATED)

            await self.sink.create(properties)
            return SyncSuccess(sku=sku, title=record.title, status=STATUS_CREATED)

        except Exception as e:
            classified = self.classifier.classify(e)
            logger.error(
                f"❌ Failed (SKU: {sku}) - {classified.message}",
                extra={"sku": sku, "category": classified.category.value},
            )
            return SyncFailure(sku=sku, reason=classified.message)

    async def reconcile_single(self, record_id: str) -> SyncOutcome:
        """
        Reconcile one product outside of any run (webhook path).

        Returns:
            The record's outcome; a missing upstream record is a failure
        """
        try:
            record = await self.source.fetch_by_id(record_id)
        except Exception as e:
            logger.error(f"❌ Could not fetch product {record_id} from Shopify: {e}", exc_info=True)
            return SyncFailure(sku=UNKNOWN_SKU, reason=f"Shopify lookup failed: {e}")

        if record is None:
            return SyncFailure(sku=UNKNOWN_SKU, reason=UPSTREAM_NOT_FOUND_REASON)
        return await self.reconcile_record(record)

    async def archive_by_source_id(self, source_id: str) -> bool:
        """
        Archive the CRM product mirroring a deleted catalog product.

        Returns:
            True if a CRM product was archived, False if none matched
        """
        if not source_id:
            logger.error("❌ No product id given. Cannot delete in HubSpot.")
            return False

        destination_id = await self.sink.find_by_source_id(source_id)
        if not destination_id:
            logger.info(f"No matching HubSpot product found for deletion (Shopify ID: {source_id}).")
            return False

        await self.sink.archive(destination_id)
        logger.info(f"🗑️ Deleted product from HubSpot. (Shopify ID: {source_id})")
        return True

    # ------------------------------------------------------------------
    # Result sink (best effort)
    # ------------------------------------------------------------------

    async def notify_results(
        self,
        successes: Sequence[SyncSuccess],
        failures: Sequence[SyncFailure],
    ) -> None:
        if self.result_sink is None:
            return
        try:
            await asyncio.wait_for(
                self.result_sink.notify(successes, failures),
                timeout=self.result_sink_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"⚠️ Summary email timed out after {self.result_sink_timeout}s")
        except Exception as e:
            logger.error(f"⚠️ Failed to send summary email: {e}", exc_info=True)

    async def persist_history(self, entry: SyncHistoryEntry) -> None:
        if self.result_sink is None:
            return
        try:
            await asyncio.wait_for(
                self.result_sink.persist(entry),
                timeout=self.result_sink_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"⚠️ Saving sync history timed out after {self.result_sink_timeout}s")
        except Exception as e:
            logger.error(f"⚠️ Failed to save sync history: {e}", exc_info=True)

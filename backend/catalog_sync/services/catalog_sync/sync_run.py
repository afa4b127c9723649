"""
Sync Run.

One invocation of the orchestrator: pages through the records selected by
its mode, reconciles them with bounded concurrency, streams progress and
hands the aggregate to the result sink.
"""

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    List,
    Optional,
    Sequence,
    Set,
)

from catalog_sync.models.catalog import (
    UNKNOWN_SKU,
    ProgressState,
    SyncFailure,
    SyncOutcome,
    SyncSuccess,
)
from catalog_sync.models.sync_history import SyncHistoryEntry
from catalog_sync.services.catalog_sync.events import SyncEvent
from catalog_sync.services.catalog_sync.run_guard import RunGuardRejected, SyncMode

if TYPE_CHECKING:
    from catalog_sync.services.catalog_sync.sync_orchestrator import CatalogSyncOrchestrator

logger = logging.getLogger(__name__)

BatchSource = Callable[[], AsyncIterator[Sequence[Any]]]
Reconciler = Callable[[Any], Awaitable[SyncOutcome]]


class RunState(str, Enum):
    """Lifecycle of a sync run."""
    IDLE = "idle"
    PAGING = "paging"
    RECONCILING = "reconciling"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FATAL_ERROR = "fatal_error"
    REJECTED = "rejected"


TERMINAL_STATES = frozenset({
    RunState.COMPLETED,
    RunState.CANCELLED,
    RunState.FATAL_ERROR,
    RunState.REJECTED,
})


@dataclass
class SyncRunResult:
    """Aggregate of a finished run."""
    mode: SyncMode
    state: RunState
    successes: List[SyncSuccess] = field(default_factory=list)
    failures: List[SyncFailure] = field(default_factory=list)
    processed: int = 0
    total: int = 0
    error: Optional[str] = None

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def outcome_count(self) -> int:
        return len(self.successes) + len(self.failures)


class SyncRun:
    """
    A single sync run.

    Owns every piece of per-run state (outcome lists, progress counters, the
    concurrency limiter and the event queue). Only the run guard is shared
    with other runs.

    Usage:
        run = orchestrator.run_full_catalog()
        async for event in run.events():
            ...
        result = await run.wait()

    Leaving the events() loop before the terminal event (or calling cancel())
    stops further dispatch and paging; reconciliations already in flight
    still finish and partial history is persisted.
    """

    def __init__(
        self,
        orchestrator: "CatalogSyncOrchestrator",
        mode: SyncMode,
        batches: BatchSource,
        reconcile: Reconciler,
        start_message: str,
        total: Optional[int] = None,
    ):
        self.mode = mode
        self.state = RunState.IDLE
        self.successes: List[SyncSuccess] = []
        self.failures: List[SyncFailure] = []
        self.progress = ProgressState(total=total or 0)
        self.error: Optional[str] = None
        self.started_at: Optional[datetime] = None

        self._orchestrator = orchestrator
        self._batches = batches
        self._reconcile = reconcile
        self._start_message = start_message
        self._total_known = total is not None

        self._cancel_requested = asyncio.Event()
        self._events: asyncio.Queue[SyncEvent] = asyncio.Queue()
        self._streaming = True
        self._consumer_attached = False
        self._limiter = asyncio.Semaphore(orchestrator.concurrency)
        self._in_flight: Set[asyncio.Task] = set()
        self._driver: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested.is_set()

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    def cancel(self) -> None:
        """Cooperative cancellation: stop dispatching and paging."""
        if not self._cancel_requested.is_set():
            logger.info(f"❌ Client disconnected. Stopping {self.mode.value} sync.")
            self._cancel_requested.set()

    def start(self) -> None:
        """Start the run in the background (idempotent)."""
        if self._driver is None:
            self._driver = asyncio.create_task(self._drive())

    async def events(self) -> AsyncIterator[SyncEvent]:
        """
        Lazy stream of progress events, ending with exactly one terminal event.

        Closing the iterator early cancels the run.
        """
        if not self._streaming:
            raise RuntimeError("Event stream of this run is already closed")
        self._consumer_attached = True
        self.start()
        try:
            while True:
                event = await self._events.get()
                yield event
                if event.is_terminal:
                    return
        finally:
            self._close_stream()
            if not self.done:
                self.cancel()

    async def wait(self) -> SyncRunResult:
        """
        Start the run if needed and wait until it is finalized.

        Without an attached events() consumer the run stops queueing events.
        """
        if not self._consumer_attached:
            self._close_stream()
        self.start()
        await asyncio.shield(self._driver)
        return self.result()

    def result(self) -> SyncRunResult:
        return SyncRunResult(
            mode=self.mode,
            state=self.state,
            successes=list(self.successes),
            failures=list(self.failures),
            processed=self.progress.processed,
            total=self.progress.total,
            error=self.error,
        )

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    async def _drive(self) -> None:
        guard = self._orchestrator.run_guard
        try:
            guard.acquire(self.mode)
        except RunGuardRejected as e:
            self.state = RunState.REJECTED
            self.error = e.message
            self._emit(SyncEvent.error(e.message))
            return

        self.started_at = datetime.now(timezone.utc)
        try:
            await self._dispatch_all()
        except asyncio.CancelledError:
            self.cancel()
            raise
        except Exception as e:
            logger.error(f"❌ {self.mode.value} sync aborted while fetching records: {e}", exc_info=True)
            self.error = str(e)
        finally:
            try:
                await self._settle_in_flight()
            finally:
                guard.release(self.mode)
            await self._finalize()

    async def _dispatch_all(self) -> None:
        self.state = RunState.PAGING
        self._emit(SyncEvent.log(self._start_message))

        async with aclosing(self._batches()) as batches:
            async for batch in batches:
                if self.cancelled:
                    break

                if not self._total_known:
                    self.progress.total += len(batch)
                self.state = RunState.RECONCILING

                for item in batch:
                    if self.cancelled:
                        break
                    await self._limiter.acquire()
                    if self.cancelled:
                        self._limiter.release()
                        break
                    task = asyncio.create_task(self._reconcile_and_record(item))
                    self._in_flight.add(task)
                    task.add_done_callback(self._in_flight.discard)

                if self.cancelled:
                    break
                self.state = RunState.PAGING

    async def _reconcile_and_record(self, item: Any) -> None:
        try:
            try:
                outcome = await self._reconcile(item)
            except Exception as e:
                logger.error(f"❌ Unexpected error reconciling {item!r}: {e}", exc_info=True)
                outcome = SyncFailure(sku=UNKNOWN_SKU, reason=f"Unexpected error: {e}")
            self._record(outcome)
        finally:
            self._limiter.release()

    def _record(self, outcome: SyncOutcome) -> None:
        # No await in here: outcome, counter and progress line land together
        if isinstance(outcome, SyncSuccess):
            self.successes.append(outcome)
            verb = "🔁 Updated" if outcome.status == "updated" else "✅ Created"
            self._emit(SyncEvent.log(f"{verb}: {outcome.title} (SKU: {outcome.sku})"))
        else:
            self.failures.append(outcome)
            self._emit(SyncEvent.log(f"❌ Failed (SKU: {outcome.sku}) - {outcome.reason}"))

        self.progress.processed += 1
        self._emit(SyncEvent.progress(self.progress.processed, self.progress.total))

    async def _settle_in_flight(self) -> None:
        if not self._in_flight:
            return
        logger.info(f"⏳ Waiting for {len(self._in_flight)} in-flight reconciliation(s)")
        await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def _finalize(self) -> None:
        self.state = RunState.FINALIZING
        processed = self.progress.processed

        if self.error is not None:
            final_state = RunState.FATAL_ERROR
            terminal = SyncEvent.error(f"❌ Error syncing products: {self.error}")
        elif self.cancelled:
            final_state = RunState.CANCELLED
            terminal = SyncEvent.cancelled()
        else:
            final_state = RunState.COMPLETED
            message = f"Synced {processed} products to HubSpot."
            self._emit(SyncEvent.log(f"✅ {message}"))
            terminal = SyncEvent.final(message, failed_count=len(self.failures))

        self.state = final_state
        logger.info(
            f"🏁 {self.mode.value} sync {final_state.value}: "
            f"{len(self.successes)} succeeded, {len(self.failures)} failed"
        )
        self._emit(terminal)

        # After the terminal event: bounded by result_sink_timeout, never raise
        if final_state == RunState.COMPLETED:
            await self._orchestrator.notify_results(self.successes, self.failures)
        await self._orchestrator.persist_history(self._history_entry(final_state))

    def _history_entry(self, state: RunState) -> SyncHistoryEntry:
        return SyncHistoryEntry(
            mode=self.mode.value,
            timestamp=self.started_at or datetime.now(timezone.utc),
            successes=[s.to_dict() for s in self.successes],
            failures=[f.to_dict() for f in self.failures],
            state=state.value,
        )

    def _emit(self, event: SyncEvent) -> None:
        if not event.is_terminal:
            logger.info(event.message)
        if self._streaming:
            self._events.put_nowait(event)

    def _close_stream(self) -> None:
        self._streaming = False
        while not self._events.empty():
            self._events.get_nowait()

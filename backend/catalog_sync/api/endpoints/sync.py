"""
Catalog Sync API Endpoints.

Streams sync runs as Server-Sent Events:
- data: <line>          log and progress lines
- data: FINAL:<json>    terminal summary {message, failedCount} or {error}
"""

import asyncio
import json
import logging
from contextlib import aclosing
from typing import Annotated, Any, AsyncIterator, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from catalog_sync.services.catalog_sync import (
    CatalogSyncOrchestrator,
    RunGuard,
    SyncEvent,
    SyncMode,
    SyncRun,
)
from catalog_sync.services.provider_factory import (
    ProviderConfigError,
    get_history_store,
    get_orchestrator,
    get_run_guard,
)
from catalog_sync.services.result_sink import SqlHistoryStore

router = APIRouter()
logger = logging.getLogger(__name__)

DISCONNECT_POLL_SECONDS = 0.5

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class SkuSyncRequest(BaseModel):
    """Body of POST /sync/skus."""
    skus: Union[str, List[str], None] = None


class GuardStatusResponse(BaseModel):
    """Full-catalog run guard status."""
    mode: str
    active: bool
    retry_after_seconds: float


def get_sync_orchestrator() -> CatalogSyncOrchestrator:
    """Orchestrator dependency; 503 while Shopify or HubSpot is not configured."""
    try:
        return get_orchestrator()
    except ProviderConfigError as e:
        logger.error(f"❌ Sync not available: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Sync is not configured: {e}",
        )


# =============================================================================
# Event stream formatting
# =============================================================================

def format_event(event: SyncEvent) -> str:
    """One SSE frame for a sync event."""
    if event.is_terminal:
        return f"data: FINAL:{json.dumps(event.payload(), ensure_ascii=False)}\n\n"
    return f"data: {event.message}\n\n"


async def _single_error(message: str) -> AsyncIterator[str]:
    logger.warning(f"⚠️ {message}")
    yield format_event(SyncEvent.error(message))


async def stream_run(run: SyncRun, request: Request) -> AsyncIterator[str]:
    """
    Relay a run's events to the client.

    A disconnect (polled) or the response task being cancelled both cancel
    the run; work already in flight still finishes and is persisted.
    """

    async def watch_disconnect() -> None:
        while not run.done:
            if await request.is_disconnected():
                run.cancel()
                return
            await asyncio.sleep(DISCONNECT_POLL_SECONDS)

    watcher = asyncio.create_task(watch_disconnect())
    try:
        async with aclosing(run.events()) as events:
            async for event in events:
                yield format_event(event)
    finally:
        watcher.cancel()


def _event_stream(body: AsyncIterator[str]) -> StreamingResponse:
    return StreamingResponse(body, media_type="text/event-stream", headers=SSE_HEADERS)


# =============================================================================
# Sync runs
# =============================================================================

@router.post("/sync/skus")
async def sync_by_skus(
    body: SkuSyncRequest,
    request: Request,
    orchestrator: Annotated[CatalogSyncOrchestrator, Depends(get_sync_orchestrator)],
) -> StreamingResponse:
    """
    Sync the products owning the given SKUs.

    Example:
        POST /api/v1/sync/skus
        {"skus": ["ABC123", "DEF456 GHI789"]}
    """
    if not body.skus:
        return _event_stream(_single_error("❌ No SKUs provided."))

    run = orchestrator.run_by_keys(body.skus)
    logger.info(f"🔄 SKU sync requested ({run.progress.total} SKU(s))")
    return _event_stream(stream_run(run, request))


@router.get("/sync/all")
async def sync_all(
    request: Request,
    orchestrator: Annotated[CatalogSyncOrchestrator, Depends(get_sync_orchestrator)],
) -> StreamingResponse:
    """
    Sync the whole catalog.

    Limited to one active run per process and one start per cooldown
    window; a rejected request gets a single FINAL error event.
    """
    logger.info("🔄 Full catalog sync requested")
    run = orchestrator.run_full_catalog()
    return _event_stream(stream_run(run, request))


@router.get("/sync/dates")
async def sync_by_dates(
    request: Request,
    orchestrator: Annotated[CatalogSyncOrchestrator, Depends(get_sync_orchestrator)],
    start_date: Annotated[Optional[str], Query(alias="startDate")] = None,
    end_date: Annotated[Optional[str], Query(alias="endDate")] = None,
) -> StreamingResponse:
    """
    Sync products created or modified between two days (inclusive).

    Example:
        GET /api/v1/sync/dates?startDate=2024-01-01&endDate=2024-01-31
    """
    if not start_date or not end_date:
        return _event_stream(_single_error("❌ Start and end date are required."))

    try:
        run = orchestrator.run_by_date_range(start_date, end_date)
    except ValueError as e:
        return _event_stream(_single_error(f"❌ Invalid date range: {e}"))

    logger.info(f"🔄 Date range sync requested ({start_date} → {end_date})")
    return _event_stream(stream_run(run, request))


# =============================================================================
# History & guard status
# =============================================================================

@router.get("/sync/history")
async def sync_history(
    history_store: Annotated[SqlHistoryStore, Depends(get_history_store)],
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> List[Dict[str, Any]]:
    """Most recent sync runs, newest first."""
    try:
        return await history_store.list_recent(limit)
    except Exception as e:
        logger.error(f"❌ Failed to read sync history: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to read sync history: {str(e)}",
        )


@router.get("/sync/guard", response_model=GuardStatusResponse)
async def sync_guard_status(
    run_guard: Annotated[RunGuard, Depends(get_run_guard)],
) -> GuardStatusResponse:
    """Whether a full-catalog run is active and when the next may start."""
    guard_status = run_guard.status(SyncMode.FULL_CATALOG)
    return GuardStatusResponse(
        mode=guard_status.mode.value,
        active=guard_status.active,
        retry_after_seconds=round(guard_status.retry_after_seconds, 1),
    )

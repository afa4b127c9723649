"""
Catalog Sync Services.

Modular services for catalog → CRM synchronization.
"""

from .record_mapper import RecordMapper, extract_sku, filter_empty_properties
from .error_classifier import ClassifiedError, ErrorCategory, ErrorClassifier
from .run_guard import RunGuard, RunGuardRejected, SyncMode
from .events import EventKind, SyncEvent
from .sync_run import RunState, SyncRun, SyncRunResult
from .sync_orchestrator import CatalogSyncOrchestrator, normalize_keys, parse_date_range

__all__ = [
    "RecordMapper",
    "extract_sku",
    "filter_empty_properties",
    "ClassifiedError",
    "ErrorCategory",
    "ErrorClassifier",
    "RunGuard",
    "RunGuardRejected",
    "SyncMode",
    "EventKind",
    "SyncEvent",
    "RunState",
    "SyncRun",
    "SyncRunResult",
    "CatalogSyncOrchestrator",
    "normalize_keys",
    "parse_date_range",
]

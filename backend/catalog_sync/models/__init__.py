from .catalog import (
    UNKNOWN_SKU,
    Attribute,
    ProgressState,
    SourcePage,
    SourceRecord,
    SyncFailure,
    SyncOutcome,
    SyncSuccess,
    Variant,
)
from .sync_history import SyncHistoryEntry, SyncHistoryRecord

__all__ = [
    "UNKNOWN_SKU",
    "Attribute",
    "ProgressState",
    "SourcePage",
    "SourceRecord",
    "SyncFailure",
    "SyncOutcome",
    "SyncSuccess",
    "Variant",
    "SyncHistoryEntry",
    "SyncHistoryRecord",
]

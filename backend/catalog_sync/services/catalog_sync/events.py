"""
Progress events emitted by a sync run.

A run yields plain log lines while it works and ends with exactly one
terminal event: a final summary, a cancellation notice, or an error.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class EventKind(str, Enum):
    LOG = "log"
    PROGRESS = "progress"
    FINAL = "final"
    CANCELLED = "cancelled"
    ERROR = "error"


TERMINAL_KINDS = frozenset({EventKind.FINAL, EventKind.CANCELLED, EventKind.ERROR})


@dataclass(frozen=True)
class SyncEvent:
    """One line of the run's progress stream."""
    kind: EventKind
    message: str
    failed_count: Optional[int] = None
    processed: Optional[int] = None
    total: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind in TERMINAL_KINDS

    def payload(self) -> Dict[str, Any]:
        """Structured body of a terminal summary or error event."""
        if self.kind == EventKind.ERROR:
            return {"error": self.message}
        return {"message": self.message, "failedCount": self.failed_count or 0}

    @classmethod
    def log(cls, message: str) -> "SyncEvent":
        return cls(EventKind.LOG, message)

    @classmethod
    def progress(cls, processed: int, total: int) -> "SyncEvent":
        return cls(
            EventKind.PROGRESS,
            f"📦 Progress: {processed} / {total}",
            processed=processed,
            total=total,
        )

    @classmethod
    def final(cls, message: str, failed_count: int) -> "SyncEvent":
        return cls(EventKind.FINAL, message, failed_count=failed_count)

    @classmethod
    def cancelled(cls, message: str = "⛔ Sync cancelled by user.") -> "SyncEvent":
        return cls(EventKind.CANCELLED, message)

    @classmethod
    def error(cls, message: str) -> "SyncEvent":
        return cls(EventKind.ERROR, message)

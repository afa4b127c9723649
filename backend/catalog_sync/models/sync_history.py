"""
Sync history - one row per finished sync run.

SyncHistoryEntry is the in-memory payload handed to the result sink;
SyncHistoryRecord is its persisted form.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import JSON, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from catalog_sync.db.base import Base


@dataclass
class SyncHistoryEntry:
    """Aggregated outcome lists of one run."""
    mode: str
    timestamp: datetime
    successes: List[Dict[str, Any]] = field(default_factory=list)
    failures: List[Dict[str, Any]] = field(default_factory=list)
    state: str = "completed"

    @property
    def total(self) -> int:
        return len(self.successes) + len(self.failures)

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


class SyncHistoryRecord(Base):
    """
    SQLAlchemy model for sync history.

    Outcome lists are stored as JSON; counts are denormalized so the
    history page can list runs without loading them.
    """

    __tablename__ = "sync_history"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    mode: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        index=True,
        comment="Run mode: sku, all or dates",
    )

    state: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Terminal state of the run",
    )

    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    success_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failure_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    successes: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    failures: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    @classmethod
    def from_entry(cls, entry: SyncHistoryEntry) -> "SyncHistoryRecord":
        return cls(
            mode=entry.mode,
            state=entry.state,
            started_at=entry.timestamp,
            total=entry.total,
            success_count=entry.success_count,
            failure_count=entry.failure_count,
            successes=entry.successes,
            failures=entry.failures,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "type": self.mode,
            "state": self.state,
            "timestamp": self.started_at.isoformat(),
            "total": self.total,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "successes": self.successes,
            "failures": self.failures,
        }

    def __repr__(self) -> str:
        return f"<SyncHistoryRecord(mode={self.mode}, state={self.state}, total={self.total})>"

"""
Abstract Result Sink Interface.
Receives the aggregate of every sync run: history persistence plus a
summary notification.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from catalog_sync.models.catalog import SyncFailure, SyncSuccess
from catalog_sync.models.sync_history import SyncHistoryEntry


class ResultSink(ABC):
    """
    Destination for finished runs.

    The orchestrator awaits both calls but only logs their failures; a
    broken history store or mail server never changes a run's outcome.
    """

    @abstractmethod
    async def persist(self, entry: SyncHistoryEntry) -> None:
        """Stores the run in the sync history."""
        pass

    @abstractmethod
    async def notify(
        self,
        successes: Sequence[SyncSuccess],
        failures: Sequence[SyncFailure],
    ) -> None:
        """Sends the run summary (e.g. by email)."""
        pass

"""
Run Guard for Full-Catalog Syncs.

Keeps at most one full-catalog run active per process and enforces a
cooldown between the starts of two full-catalog runs. Other modes pass
straight through.
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = timedelta(minutes=15)


class SyncMode(str, Enum):
    """How a run selects the records to reconcile."""
    BY_KEYS = "sku"
    FULL_CATALOG = "all"
    DATE_RANGE = "dates"


class RunGuardRejected(Exception):
    """Raised when a run may not start yet."""

    def __init__(self, message: str, retry_after_seconds: float = 0.0):
        super().__init__(message)
        self.message = message
        self.retry_after_seconds = retry_after_seconds


@dataclass
class GuardStatus:
    """Snapshot of the guard for one mode."""
    mode: SyncMode
    active: bool
    retry_after_seconds: float


class RunGuard:
    """
    Process-wide single-flight guard.

    Share one instance between all orchestrators of a process. Acquire and
    release contain no await, so they are atomic under asyncio.
    """

    GUARDED_MODES = frozenset({SyncMode.FULL_CATALOG})

    def __init__(
        self,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize run guard.

        Args:
            cooldown: Minimum time between two guarded run starts
            clock: Monotonic clock in seconds (injectable for tests)
        """
        self.cooldown_seconds = cooldown.total_seconds()
        self._clock = clock
        self._active: Dict[SyncMode, bool] = {}
        self._last_started_at: Dict[SyncMode, float] = {}

    def is_guarded(self, mode: SyncMode) -> bool:
        return mode in self.GUARDED_MODES

    def acquire(self, mode: SyncMode) -> None:
        """
        Mark a run of this mode as active.

        Raises:
            RunGuardRejected: A run is already active or the cooldown has not elapsed
        """
        if not self.is_guarded(mode):
            return

        if self._active.get(mode):
            logger.warning(f"⚠️ Rejected {mode.value} sync: another run is in progress")
            raise RunGuardRejected("⏳ A sync of all products is already running.")

        retry_after = self.retry_after(mode)
        if retry_after > 0:
            minutes = max(1, math.ceil(retry_after / 60))
            cooldown_minutes = int(self.cooldown_seconds // 60)
            logger.warning(f"⚠️ Rejected {mode.value} sync: cooldown ({retry_after:.0f}s left)")
            raise RunGuardRejected(
                f"⏳ You can sync all products only once every {cooldown_minutes} minutes. "
                f"Please wait {minutes} more minute{'s' if minutes != 1 else ''}.",
                retry_after_seconds=retry_after,
            )

        self._active[mode] = True
        self._last_started_at[mode] = self._clock()
        logger.info(f"🔒 Run guard acquired for {mode.value} sync")

    def try_acquire(self, mode: SyncMode) -> bool:
        """acquire() as a boolean."""
        try:
            self.acquire(mode)
        except RunGuardRejected:
            return False
        return True

    def release(self, mode: SyncMode) -> None:
        """Clear the active flag. Safe to call when not held."""
        if not self.is_guarded(mode):
            return
        if self._active.pop(mode, False):
            logger.info(f"🔓 Run guard released for {mode.value} sync")

    def retry_after(self, mode: SyncMode) -> float:
        """Seconds until the next start of this mode is permitted."""
        last_started_at: Optional[float] = self._last_started_at.get(mode)
        if last_started_at is None:
            return 0.0
        elapsed = self._clock() - last_started_at
        return max(0.0, self.cooldown_seconds - elapsed)

    def status(self, mode: SyncMode = SyncMode.FULL_CATALOG) -> GuardStatus:
        return GuardStatus(
            mode=mode,
            active=bool(self._active.get(mode)),
            retry_after_seconds=self.retry_after(mode) if self.is_guarded(mode) else 0.0,
        )

"""
Tests for the Run Guard.
"""

from datetime import timedelta

import pytest

from catalog_sync.services.catalog_sync import RunGuard, RunGuardRejected, SyncMode


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestRunGuard:
    """Tests for RunGuard."""

    def test_second_full_run_rejected_while_active(self):
        guard = RunGuard(clock=FakeClock())
        guard.acquire(SyncMode.FULL_CATALOG)

        with pytest.raises(RunGuardRejected) as exc_info:
            guard.acquire(SyncMode.FULL_CATALOG)

        assert "already running" in exc_info.value.message

    def test_cooldown_counts_from_run_start(self):
        """The cooldown is measured from the previous start, not its end."""
        clock = FakeClock()
        guard = RunGuard(cooldown=timedelta(minutes=15), clock=clock)

        guard.acquire(SyncMode.FULL_CATALOG)
        clock.advance(10 * 60)
        guard.release(SyncMode.FULL_CATALOG)

        with pytest.raises(RunGuardRejected) as exc_info:
            guard.acquire(SyncMode.FULL_CATALOG)

        assert exc_info.value.retry_after_seconds == pytest.approx(5 * 60)
        assert exc_info.value.message == (
            "⏳ You can sync all products only once every 15 minutes. "
            "Please wait 5 more minutes."
        )

        clock.advance(5 * 60)
        assert guard.try_acquire(SyncMode.FULL_CATALOG)

    def test_singular_minute(self):
        clock = FakeClock()
        guard = RunGuard(clock=clock)
        guard.acquire(SyncMode.FULL_CATALOG)
        guard.release(SyncMode.FULL_CATALOG)
        clock.advance(14 * 60 + 30)

        with pytest.raises(RunGuardRejected) as exc_info:
            guard.acquire(SyncMode.FULL_CATALOG)

        assert exc_info.value.message.endswith("Please wait 1 more minute.")

    def test_other_modes_are_not_guarded(self):
        guard = RunGuard(clock=FakeClock())
        guard.acquire(SyncMode.FULL_CATALOG)

        assert guard.try_acquire(SyncMode.BY_KEYS)
        assert guard.try_acquire(SyncMode.BY_KEYS)
        assert guard.try_acquire(SyncMode.DATE_RANGE)

    def test_release_is_idempotent(self):
        guard = RunGuard(clock=FakeClock())

        guard.release(SyncMode.FULL_CATALOG)
        guard.acquire(SyncMode.FULL_CATALOG)
        guard.release(SyncMode.FULL_CATALOG)
        guard.release(SyncMode.FULL_CATALOG)

        assert not guard.status().active

    def test_status(self):
        clock = FakeClock()
        guard = RunGuard(cooldown=timedelta(minutes=15), clock=clock)

        assert guard.status().active is False
        assert guard.status().retry_after_seconds == 0.0

        guard.acquire(SyncMode.FULL_CATALOG)
        clock.advance(60)

        status = guard.status(SyncMode.FULL_CATALOG)
        assert status.active is True
        assert status.retry_after_seconds == pytest.approx(14 * 60)
        assert guard.status(SyncMode.BY_KEYS).retry_after_seconds == 0.0

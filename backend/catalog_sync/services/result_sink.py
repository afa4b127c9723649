"""
Result Sink Implementations.

- SqlHistoryStore: sync history in PostgreSQL (SQLAlchemy async)
- EmailSummaryNotifier: plain-text summary over SMTP
- CompositeResultSink: both behind one ResultSink
"""

import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_sync.core.config import Settings
from catalog_sync.core.interfaces.results import ResultSink
from catalog_sync.models.catalog import SyncFailure, SyncSuccess
from catalog_sync.models.sync_history import SyncHistoryEntry, SyncHistoryRecord

logger = logging.getLogger(__name__)


class SqlHistoryStore:
    """Sync history persisted through SQLAlchemy."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        """
        Initialize history store.

        Args:
            session_maker: Async session factory
        """
        self.session_maker = session_maker

    async def save(self, entry: SyncHistoryEntry) -> None:
        """Insert one history row."""
        async with self.session_maker() as session:
            session.add(SyncHistoryRecord.from_entry(entry))
            await session.commit()
        logger.info(
            f"📝 Saved {entry.mode} sync history "
            f"({entry.success_count} succeeded, {entry.failure_count} failed)"
        )

    async def list_recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Most recent runs first."""
        async with self.session_maker() as session:
            result = await session.execute(
                select(SyncHistoryRecord)
                .order_by(SyncHistoryRecord.started_at.desc())
                .limit(limit)
            )
            return [record.to_dict() for record in result.scalars().all()]


class EmailSummaryNotifier:
    """
    Sends the run summary by email.

    Does nothing when SMTP is not configured or when the run produced no
    outcomes at all.
    """

    def __init__(
        self,
        host: Optional[str],
        port: int,
        user: Optional[str],
        password: Optional[str],
        sender: str,
        recipient: Optional[str],
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.recipient = recipient
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailSummaryNotifier":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_pass,
            sender=settings.summary_email_from,
            recipient=settings.summary_email_to,
            timeout=settings.smtp_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.recipient)

    async def send_summary(
        self,
        successes: Sequence[SyncSuccess],
        failures: Sequence[SyncFailure],
    ) -> bool:
        """
        Send the summary email.

        Returns:
            True if an email was sent, False if skipped

        Raises:
            smtplib.SMTPException / OSError: If sending fails
        """
        if not self.is_configured:
            logger.debug("Summary email skipped: SMTP_HOST / SUMMARY_EMAIL_TO not set")
            return False
        if not successes and not failures:
            logger.info("ℹ️ Summary email skipped: nothing was synced")
            return False

        message = MIMEText(build_summary_text(successes, failures), "plain")
        message["From"] = self.sender
        message["To"] = self.recipient
        message["Subject"] = build_summary_subject(successes, failures)

        await asyncio.to_thread(self._send, message)
        logger.info(f"📧 Summary email sent to {self.recipient}")
        return True

    def _send(self, message: MIMEText) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            if self.user:
                server.login(self.user, self.password or "")
            server.send_message(message)


def build_summary_subject(
    successes: Sequence[SyncSuccess],
    failures: Sequence[SyncFailure],
) -> str:
    if failures:
        return f"Product Sync: {len(failures)} failed SKU(s)"
    return f"Product Sync: {len(successes)} product(s) synced"


def build_summary_text(
    successes: Sequence[SyncSuccess],
    failures: Sequence[SyncFailure],
) -> str:
    """Plain-text body listing every failed SKU with its reason."""
    lines = [f"Synced {len(successes) + len(failures)} products to HubSpot.", ""]
    lines.append(f"Succeeded: {len(successes)}")
    lines.append(f"Failed: {len(failures)}")

    if failures:
        lines.append("")
        lines.append("The following products failed to update:")
        lines.append("")
        lines.extend(f"SKU: {f.sku} - Reason: {f.reason}" for f in failures)

    return "\n".join(lines) + "\n"


class CompositeResultSink(ResultSink):
    """History store and notifier behind one result sink."""

    def __init__(
        self,
        history_store: SqlHistoryStore,
        notifier: Optional[EmailSummaryNotifier] = None,
    ):
        self.history_store = history_store
        self.notifier = notifier

    async def persist(self, entry: SyncHistoryEntry) -> None:
        await self.history_store.save(entry)

    async def notify(
        self,
        successes: Sequence[SyncSuccess],
        failures: Sequence[SyncFailure],
    ) -> None:
        if self.notifier is None:
            return
        await self.notifier.send_summary(successes, failures)

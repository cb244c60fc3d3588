"""Progress documents for background jobs, doubling as single-instance leases."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from vocab_stats.config import settings
from vocab_stats.db.models.migration import MigrationProgress
from vocab_stats.db.transaction import transactional
from vocab_stats.utils.exceptions import LeaseLostError, MigrationAlreadyRunningError

LEGACY_STATUS_MIGRATION = "legacy_status_migration"
DB_MIGRATION = "db_migration"
ANALYSIS_STATS_REBUILD = "analysis_stats_rebuild"
LEARNER_STATS_REBUILD = "learner_stats_rebuild"

JOB_KEYS = (
    LEGACY_STATUS_MIGRATION,
    DB_MIGRATION,
    ANALYSIS_STATS_REBUILD,
    LEARNER_STATS_REBUILD,
)
# Jobs that check for cancellation between batches or steps
CANCELLABLE_JOB_KEYS = (LEGACY_STATUS_MIGRATION, DB_MIGRATION)

NOT_STARTED = "not_started"
RUNNING = "running"
COMPLETED = "completed"
ERROR = "error"
CANCELLED = "cancelled"
TERMINAL_STATUSES = frozenset({COMPLETED, ERROR, CANCELLED})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def serialize_progress(row: MigrationProgress) -> dict[str, Any]:
    """Flatten a progress row into the document shape returned to pollers."""

    document: dict[str, Any] = dict(row.details or {})
    document.update(
        key=row.key,
        status=row.status,
        error=row.error,
        cancel_requested=bool(row.cancel_requested),
        started_at=_as_aware(row.started_at),
        updated_at=_as_aware(row.updated_at),
        finished_at=_as_aware(row.finished_at),
    )
    return document


class ProgressTracker:
    """Read and write the progress document of one job kind.

    ``acquire`` turns the document into a lease held by a fresh owner token.
    Every later write checks that token, so a second instance started after
    the lease went stale cannot interleave its counters with the first one.
    """

    def __init__(
        self,
        db: Session,
        key: str,
        *,
        owner_token: str | None = None,
        lease_ttl_seconds: int | None = None,
    ) -> None:
        self.db = db
        self.key = key
        self.owner_token = owner_token
        self.lease_ttl = timedelta(
            seconds=lease_ttl_seconds
            if lease_ttl_seconds is not None
            else settings.MIGRATION_LEASE_TTL_SECONDS
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def read(self) -> dict[str, Any] | None:
        """Return the current document, or ``None`` if the job never ran."""

        row = self.db.get(MigrationProgress, self.key, populate_existing=True)
        if row is None:
            return None
        return serialize_progress(row)

    def cancel_requested(self) -> bool:
        requested = self.db.scalar(
            select(MigrationProgress.cancel_requested).where(MigrationProgress.key == self.key)
        )
        return bool(requested)

    def is_lease_live(self, row: MigrationProgress, now: datetime | None = None) -> bool:
        if row.status != RUNNING:
            return False
        heartbeat = _as_aware(row.updated_at) or _as_aware(row.started_at)
        if heartbeat is None:
            return False
        return (now or _utcnow()) - heartbeat < self.lease_ttl

    # ------------------------------------------------------------------
    # Lease lifecycle
    # ------------------------------------------------------------------
    @transactional
    def acquire(self, details: dict[str, Any]) -> str:
        """Reset the document to ``running`` and take ownership of it.

        Raises :class:`MigrationAlreadyRunningError` while another instance
        holds a lease that has been refreshed within the lease TTL.
        """

        now = _utcnow()
        row = self._locked_row()
        if row is not None and self.is_lease_live(row, now):
            raise MigrationAlreadyRunningError(
                f"Job '{self.key}' is already running",
                details={"key": self.key, "started_at": str(row.started_at)},
            )
        if row is None:
            row = MigrationProgress(key=self.key)
            self.db.add(row)
        elif row.status == RUNNING:
            logger.warning("Taking over stale job lease", key=self.key, owner=row.owner_token)

        token = str(uuid.uuid4())
        row.status = RUNNING
        row.details = dict(details)
        row.error = None
        row.owner_token = token
        row.cancel_requested = False
        row.started_at = now
        row.updated_at = now
        row.finished_at = None
        self.db.flush()

        self.owner_token = token
        logger.info("Job lease acquired", key=self.key, owner=token)
        return token

    @transactional
    def update(self, **details: Any) -> None:
        """Merge counters into the document and refresh the lease heartbeat."""

        row = self._owned_row()
        row.details = {**(row.details or {}), **details}
        row.error = None
        row.updated_at = _utcnow()

    @transactional
    def complete(self, **details: Any) -> None:
        self._finish(COMPLETED, None, details)

    @transactional
    def cancel(self, **details: Any) -> None:
        self._finish(CANCELLED, None, details)

    @transactional
    def fail(self, message: str, **details: Any) -> None:
        self._finish(ERROR, message, details)

    @transactional
    def request_cancel(self) -> bool:
        """Flag a running job for cancellation; returns False if nothing runs."""

        row = self._locked_row()
        if row is None or row.status != RUNNING:
            return False
        row.cancel_requested = True
        logger.info("Job cancellation requested", key=self.key)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _locked_row(self) -> MigrationProgress | None:
        stmt = (
            select(MigrationProgress)
            .where(MigrationProgress.key == self.key)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def _owned_row(self) -> MigrationProgress:
        row = self._locked_row()
        if row is None or self.owner_token is None or row.owner_token != self.owner_token:
            raise LeaseLostError(
                f"Job '{self.key}' is no longer owned by this instance",
                details={"key": self.key, "owner": self.owner_token},
            )
        return row

    def _finish(self, status: str, error: str | None, details: dict[str, Any]) -> None:
        row = self._owned_row()
        now = _utcnow()
        row.status = status
        row.error = error
        row.details = {**(row.details or {}), **details}
        row.updated_at = now
        row.finished_at = now
        logger.info("Job finished", key=self.key, status=status, error=error)

"""Rewrite legacy string word statuses into the numeric 1..7 scale."""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Callable

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vocab_stats.config import settings
from vocab_stats.core.statuses import map_legacy_status
from vocab_stats.db.models.word import WordRecord
from vocab_stats.db.transaction import transactional
from vocab_stats.services.progress_tracker import ProgressTracker


@dataclass
class LegacyMigrationCounters:
    """Running totals reported to the progress document."""

    total: int = 0
    migrated_count: int = 0
    skipped_count: int = 0
    current_batch: int = 0
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return self.migrated_count + self.skipped_count

    def as_details(self) -> dict[str, Any]:
        details = asdict(self)
        details.pop("cancelled")
        return details


@dataclass(slots=True)
class BatchResult:
    size: int
    last_id: int | None
    migrated: int
    skipped: int


class LegacyStatusMigrationService:
    """Page through every word by id and convert non-numeric statuses.

    Words whose status is already numeric are skipped, which makes the job
    safe to re-run from the start after a failure or cancellation.
    """

    def __init__(
        self,
        db: Session,
        *,
        batch_size: int | None = None,
        batch_delay_seconds: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.db = db
        self.batch_size = batch_size or settings.LEGACY_MIGRATION_BATCH_SIZE
        self.batch_delay_seconds = (
            settings.LEGACY_MIGRATION_BATCH_DELAY_SECONDS
            if batch_delay_seconds is None
            else batch_delay_seconds
        )
        self._sleep = sleep

    def count_words(self) -> int:
        return int(self.db.scalar(select(func.count()).select_from(WordRecord)) or 0)

    @transactional
    def migrate_batch(self, after_id: int | None) -> BatchResult:
        """Convert the next batch of words following ``after_id``."""

        stmt = select(WordRecord).order_by(WordRecord.id).limit(self.batch_size).with_for_update()
        if after_id is not None:
            stmt = stmt.where(WordRecord.id > after_id)
        records = list(self.db.scalars(stmt.execution_options(populate_existing=True)))

        migrated = skipped = 0
        for record in records:
            if isinstance(record.status, int):
                skipped += 1
                continue
            legacy_tag = record.status
            record.status = map_legacy_status(legacy_tag)
            record.old_status = legacy_tag
            migrated += 1

        return BatchResult(
            size=len(records),
            last_id=records[-1].id if records else after_id,
            migrated=migrated,
            skipped=skipped,
        )

    def migrate(
        self,
        *,
        counters: LegacyMigrationCounters | None = None,
        on_progress: Callable[[LegacyMigrationCounters], None] | None = None,
        should_stop: Callable[[], bool] | None = None,
    ) -> LegacyMigrationCounters:
        counters = counters or LegacyMigrationCounters()
        counters.total = self.count_words()
        if on_progress:
            on_progress(counters)

        after_id: int | None = None
        while True:
            batch = self.migrate_batch(after_id)
            if batch.size == 0:
                break

            counters.current_batch += 1
            counters.migrated_count += batch.migrated
            counters.skipped_count += batch.skipped
            after_id = batch.last_id
            logger.info(
                "Legacy status batch processed",
                batch=counters.current_batch,
                migrated=batch.migrated,
                skipped=batch.skipped,
            )
            if on_progress:
                on_progress(counters)

            if batch.size < self.batch_size:
                break
            if should_stop and should_stop():
                counters.cancelled = True
                logger.info("Legacy status migration stopped on request", batch=counters.current_batch)
                break
            if self.batch_delay_seconds:
                self._sleep(self.batch_delay_seconds)

        return counters

    def run_job(self, tracker: ProgressTracker) -> LegacyMigrationCounters:
        """Run the migration while mirroring counters into ``tracker``."""

        logger.info("Legacy status migration started", key=tracker.key)
        counters = LegacyMigrationCounters()
        try:
            self.migrate(
                counters=counters,
                on_progress=lambda current: tracker.update(**current.as_details()),
                should_stop=tracker.cancel_requested,
            )
        except Exception as exc:
            self.db.rollback()
            logger.exception("Legacy status migration failed", batch=counters.current_batch)
            tracker.fail(str(exc) or exc.__class__.__name__, **counters.as_details())
            raise

        if counters.cancelled:
            tracker.cancel(**counters.as_details())
        else:
            tracker.complete(**counters.as_details())
        logger.info(
            "Legacy status migration finished",
            migrated=counters.migrated_count,
            skipped=counters.skipped_count,
            total=counters.total,
            cancelled=counters.cancelled,
        )
        return counters

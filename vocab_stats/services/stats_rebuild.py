"""Full recomputation of word status aggregates from canonical word data."""
from __future__ import annotations

import uuid
from typing import Callable, Iterator, Sequence, TypeVar

from loguru import logger
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from vocab_stats.config import settings
from vocab_stats.core.statuses import (
    STATUS_VALUES,
    StatusCounts,
    counts_to_json,
    empty_counts,
    tally_statuses,
)
from vocab_stats.db.models.analysis import Analysis, AnalysisWord
from vocab_stats.db.models.stats import UserWordStats
from vocab_stats.db.models.word import WordRecord
from vocab_stats.db.transaction import transactional
from vocab_stats.services.progress_tracker import ProgressTracker
from vocab_stats.services.user_directory import UserDirectory
from vocab_stats.utils.exceptions import NotFoundError

T = TypeVar("T")
ProgressCallback = Callable[[int, int], None]


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive slices of at most ``size`` items."""

    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class AnalysisStatsRebuilder:
    """Recount an analysis aggregate from its membership set."""

    def __init__(self, db: Session, *, chunk_size: int | None = None) -> None:
        self.db = db
        self.chunk_size = chunk_size or settings.STATUS_QUERY_CHUNK_SIZE

    def member_word_ids(self, analysis_id: int) -> list[int]:
        stmt = (
            select(AnalysisWord.word_id)
            .where(AnalysisWord.analysis_id == analysis_id)
            .order_by(AnalysisWord.word_id)
        )
        return list(self.db.scalars(stmt))

    def count_statuses(self, word_ids: Sequence[int]) -> StatusCounts:
        """Count ``word_ids`` per status with bounded ``IN`` filters."""

        counts = empty_counts()
        if not word_ids:
            return counts
        chunks = list(chunked(word_ids, self.chunk_size))
        for status in STATUS_VALUES:
            for chunk in chunks:
                stmt = (
                    select(func.count())
                    .select_from(WordRecord)
                    .where(WordRecord.id.in_(chunk), WordRecord.status == status)
                )
                counts[status] += int(self.db.scalar(stmt) or 0)
        return counts

    def rebuild_analysis(self, analysis_id: int) -> StatusCounts:
        self._clear(analysis_id)
        word_ids = self.member_word_ids(analysis_id)
        counts = self.count_statuses(word_ids)
        self._store(analysis_id, counts)
        logger.debug(
            "Analysis word stats rebuilt", analysis_id=analysis_id, members=len(word_ids)
        )
        return counts

    def rebuild_all(self, on_progress: ProgressCallback | None = None) -> int:
        analysis_ids = list(self.db.scalars(select(Analysis.id).order_by(Analysis.id)))
        total = len(analysis_ids)
        if on_progress:
            on_progress(0, total)
        for processed, analysis_id in enumerate(analysis_ids, start=1):
            self.rebuild_analysis(analysis_id)
            if on_progress:
                on_progress(processed, total)
        logger.info("Analysis word stats rebuild finished", processed=total)
        return total

    @transactional
    def clear_all(self) -> int:
        """Drop every analysis aggregate back to "not yet computed"."""

        result = self.db.execute(
            update(Analysis).values(word_stats=None).execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    @transactional
    def _clear(self, analysis_id: int) -> None:
        analysis = self.db.get(Analysis, analysis_id, with_for_update=True, populate_existing=True)
        if analysis is None:
            raise NotFoundError(f"Analysis {analysis_id} not found")
        analysis.word_stats = None

    @transactional
    def _store(self, analysis_id: int, counts: StatusCounts) -> None:
        analysis = self.db.get(Analysis, analysis_id, with_for_update=True, populate_existing=True)
        if analysis is None:
            raise NotFoundError(f"Analysis {analysis_id} not found")
        analysis.word_stats = counts_to_json(counts)


class LearnerStatsRebuilder:
    """Recount learner aggregates by tallying each owner's words."""

    def __init__(self, db: Session, *, directory: UserDirectory | None = None) -> None:
        self.db = db
        self.directory = directory or UserDirectory(db)

    def tally_owner(self, owner_id: uuid.UUID) -> StatusCounts:
        statuses = self.db.scalars(select(WordRecord.status).where(WordRecord.owner_id == owner_id))
        return tally_statuses(statuses)

    def rebuild_learner(self, owner_id: uuid.UUID) -> StatusCounts:
        counts = self.tally_owner(owner_id)
        self._store(owner_id, counts)
        return counts

    def rebuild_all(self, on_progress: ProgressCallback | None = None) -> int:
        users = self.directory.list_all_users()
        total = len(users)
        if on_progress:
            on_progress(0, total)
        for processed, user in enumerate(users, start=1):
            self.rebuild_learner(user.id)
            if on_progress:
                on_progress(processed, total)
        logger.info("Learner word stats rebuild finished", processed=total)
        return total

    @transactional
    def delete_all(self) -> int:
        result = self.db.execute(delete(UserWordStats))
        return result.rowcount or 0

    @transactional
    def _store(self, owner_id: uuid.UUID, counts: StatusCounts) -> None:
        row = self.db.get(UserWordStats, owner_id, with_for_update=True, populate_existing=True)
        if row is None:
            row = UserWordStats(user_id=owner_id, word_stats=counts_to_json(counts))
            self.db.add(row)
        else:
            row.word_stats = counts_to_json(counts)
        self.db.flush()


def run_rebuild_job(
    rebuilder: AnalysisStatsRebuilder | LearnerStatsRebuilder, tracker: ProgressTracker
) -> int:
    """Run a bulk rebuild under an acquired progress lease.

    Sub-units finished before a failure keep their rebuilt values; the
    document records the error and the exception propagates.
    """

    state = {"processed": 0, "total": 0}

    def report(processed: int, total: int) -> None:
        state.update(processed=processed, total=total)
        tracker.update(processed=processed, total=total)

    try:
        processed = rebuilder.rebuild_all(on_progress=report)
    except Exception as exc:
        rebuilder.db.rollback()
        logger.exception("Word stats rebuild failed", key=tracker.key, processed=state["processed"])
        tracker.fail(str(exc) or exc.__class__.__name__, **state)
        raise
    tracker.complete(processed=processed, total=processed)
    return processed

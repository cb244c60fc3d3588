"""Incremental maintenance of learner and analysis word status aggregates."""
from __future__ import annotations

import uuid

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from vocab_stats.core.statuses import (
    StatusCounts,
    apply_transition,
    counts_from_json,
    counts_to_json,
    empty_counts,
    is_valid_status,
)
from vocab_stats.db.models.analysis import Analysis, AnalysisWord
from vocab_stats.db.models.stats import UserWordStats
from vocab_stats.db.transaction import transactional
from vocab_stats.utils.exceptions import NotFoundError, ValidationError


class WordStatsService:
    """Apply single-word status transitions to the stored aggregates.

    Each aggregate document is updated in its own transaction. The learner
    aggregate is written first, then every analysis containing the word; a
    failure part way leaves the earlier documents updated and the rest stale
    until the next rebuild.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def apply_status_change(
        self,
        *,
        word_id: int,
        owner_id: uuid.UUID,
        old_status: int | None,
        new_status: int,
    ) -> int:
        """Move ``word_id`` from ``old_status`` to ``new_status`` everywhere.

        ``old_status=None`` means the word was not counted before (for example
        it still carried a legacy tag), so only ``new_status`` is incremented.
        Returns the number of analysis aggregates touched.
        """

        if old_status == new_status:
            return 0
        self._validate(new_status, field="new_status")
        if old_status is not None:
            self._validate(old_status, field="old_status")

        self._adjust_learner(owner_id, old_status, new_status)
        analysis_ids = self.analysis_ids_for_word(word_id)
        for analysis_id in analysis_ids:
            self._adjust_analysis(analysis_id, old_status, new_status)

        logger.info(
            "Word status aggregates updated",
            word_id=word_id,
            owner_id=str(owner_id),
            old_status=old_status,
            new_status=new_status,
            analyses=len(analysis_ids),
        )
        return len(analysis_ids)

    def apply_word_deletion(self, *, word_id: int, owner_id: uuid.UUID, old_status: int) -> int:
        """Remove a word from all aggregates that count it.

        Words are deleted by the word-editing collaborator that owns them, not
        by this service. That caller invokes this hook with the word's last
        numeric status before it deletes the row, since membership rows go
        with it. Words still carrying a legacy tag were never counted and need
        no call.
        """

        self._validate(old_status, field="old_status")
        self._adjust_learner(owner_id, old_status, None)
        analysis_ids = self.analysis_ids_for_word(word_id)
        for analysis_id in analysis_ids:
            self._adjust_analysis(analysis_id, old_status, None)

        logger.info(
            "Word deletion applied to aggregates",
            word_id=word_id,
            owner_id=str(owner_id),
            old_status=old_status,
            analyses=len(analysis_ids),
        )
        return len(analysis_ids)

    def analysis_ids_for_word(self, word_id: int) -> list[int]:
        stmt = (
            select(AnalysisWord.analysis_id)
            .where(AnalysisWord.word_id == word_id)
            .order_by(AnalysisWord.analysis_id)
        )
        return list(self.db.scalars(stmt))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_learner_stats(self, user_id: uuid.UUID) -> StatusCounts | None:
        row = self.db.get(UserWordStats, user_id, populate_existing=True)
        if row is None:
            return None
        return counts_from_json(row.word_stats)

    def get_analysis_stats(self, analysis_id: int) -> StatusCounts | None:
        analysis = self.db.get(Analysis, analysis_id, populate_existing=True)
        if analysis is None:
            raise NotFoundError(f"Analysis {analysis_id} not found")
        if analysis.word_stats is None:
            return None
        return counts_from_json(analysis.word_stats)

    def learner_stats_exist(self) -> bool:
        return self.db.scalar(select(UserWordStats.user_id).limit(1)) is not None

    # ------------------------------------------------------------------
    # Per-document transactions
    # ------------------------------------------------------------------
    @transactional
    def _adjust_learner(
        self, owner_id: uuid.UUID, old_status: int | None, new_status: int | None
    ) -> StatusCounts:
        row = self.db.get(UserWordStats, owner_id, with_for_update=True, populate_existing=True)
        if row is None:
            row = UserWordStats(user_id=owner_id, word_stats=counts_to_json(empty_counts()))
            self.db.add(row)
        counts = apply_transition(
            counts_from_json(row.word_stats), old_status=old_status, new_status=new_status
        )
        row.word_stats = counts_to_json(counts)
        self.db.flush()
        return counts

    @transactional
    def _adjust_analysis(
        self, analysis_id: int, old_status: int | None, new_status: int | None
    ) -> StatusCounts | None:
        analysis = self.db.get(Analysis, analysis_id, with_for_update=True, populate_existing=True)
        if analysis is None:
            return None
        counts = apply_transition(
            counts_from_json(analysis.word_stats), old_status=old_status, new_status=new_status
        )
        analysis.word_stats = counts_to_json(counts)
        return counts

    @staticmethod
    def _validate(value: int, *, field: str) -> None:
        if not is_valid_status(value):
            raise ValidationError(
                f"{field} must be an integer between 1 and 7",
                details={field: value},
            )

"""Read access to stored word status aggregates."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError

from vocab_stats.api import deps
from vocab_stats.schemas import AnalysisStatsRead, LearnerStatsRead
from vocab_stats.services.word_stats import WordStatsService
from vocab_stats.utils.exceptions import (
    NotFoundError,
    handle_database_error,
    handle_not_found_error,
)


router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/users/{user_id}", response_model=LearnerStatsRead)
def read_learner_stats(
    *,
    user_id: uuid.UUID,
    service: WordStatsService = Depends(deps.get_word_stats_service),
) -> LearnerStatsRead:
    """Return the learner's per-status counts as currently stored."""

    try:
        counts = service.get_learner_stats(user_id)
    except SQLAlchemyError as exc:
        raise handle_database_error(exc) from exc
    return LearnerStatsRead(
        user_id=user_id,
        word_stats=counts,
        total=sum(counts.values()) if counts is not None else None,
    )


@router.get("/analyses/{analysis_id}", response_model=AnalysisStatsRead)
def read_analysis_stats(
    *,
    analysis_id: int,
    service: WordStatsService = Depends(deps.get_word_stats_service),
) -> AnalysisStatsRead:
    """Return the analysis' per-status counts as currently stored."""

    try:
        counts = service.get_analysis_stats(analysis_id)
    except NotFoundError as exc:
        raise handle_not_found_error(exc) from exc
    except SQLAlchemyError as exc:
        raise handle_database_error(exc) from exc
    return AnalysisStatsRead(
        analysis_id=analysis_id,
        word_stats=counts,
        total=sum(counts.values()) if counts is not None else None,
    )

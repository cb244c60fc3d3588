"""Word status updates that keep the aggregates in step."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from loguru import logger

from vocab_stats.api import deps
from vocab_stats.core.statuses import is_valid_status
from vocab_stats.schemas import WordStatusChangeResponse, WordStatusUpdate
from vocab_stats.services.word_stats import WordStatsService
from vocab_stats.services.words import WordService
from vocab_stats.utils.exceptions import (
    DatabaseError,
    NotFoundError,
    ValidationError,
    handle_database_error,
    handle_not_found_error,
    handle_validation_error,
)


router = APIRouter(prefix="/words", tags=["words"])


@router.patch("/{word_id}/status", response_model=WordStatusChangeResponse)
def update_word_status(
    *,
    word_id: int,
    payload: WordStatusUpdate,
    words: WordService = Depends(deps.get_word_service),
    stats: WordStatsService = Depends(deps.get_word_stats_service),
) -> WordStatusChangeResponse:
    """Store a new status, then apply the transition to the aggregates.

    A failed aggregate update is logged and reported but does not undo the
    status write; a later rebuild reconciles the counts.
    """

    try:
        word, previous = words.change_status(word_id, payload.status)
    except NotFoundError as exc:
        raise handle_not_found_error(exc) from exc
    except ValidationError as exc:
        raise handle_validation_error(exc) from exc
    except DatabaseError as exc:
        raise handle_database_error(exc) from exc

    stats_updated = True
    try:
        stats.apply_status_change(
            word_id=word.id,
            owner_id=word.owner_id,
            old_status=previous if is_valid_status(previous) else None,
            new_status=payload.status,
        )
    except Exception:
        stats_updated = False
        logger.exception("Aggregate update after status change failed", word_id=word_id)

    return WordStatusChangeResponse(
        id=word.id,
        status=payload.status,
        previous_status=previous,
        stats_updated=stats_updated,
    )

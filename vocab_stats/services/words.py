"""Canonical word status writes."""
from __future__ import annotations

from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocab_stats.core.statuses import is_valid_status
from vocab_stats.db.models.word import WordRecord
from vocab_stats.db.transaction import transactional
from vocab_stats.utils.exceptions import DatabaseError, NotFoundError, ValidationError


class WordService:
    """Write the status stored on a word record."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def change_status(self, word_id: int, new_status: int) -> tuple[WordRecord, Any]:
        """Set ``new_status`` and return the word with the status it replaced."""

        if not is_valid_status(new_status):
            raise ValidationError(
                "status must be an integer between 1 and 7", details={"status": new_status}
            )
        try:
            return self._write_status(word_id, new_status)
        except SQLAlchemyError as exc:
            raise DatabaseError(
                f"Could not update status of word {word_id}", details={"error": str(exc)}
            ) from exc

    @transactional
    def _write_status(self, word_id: int, new_status: int) -> tuple[WordRecord, Any]:
        word = self.db.get(WordRecord, word_id, with_for_update=True, populate_existing=True)
        if word is None:
            raise NotFoundError(f"Word {word_id} not found")

        previous = word.status
        word.status = new_status
        logger.debug("Word status written", word_id=word_id, old=previous, new=new_status)
        return word, previous

"""Shared API dependencies."""
from __future__ import annotations

from typing import Generator

from fastapi import Depends
from loguru import logger
from sqlalchemy.orm import Session

from vocab_stats.db.session import SessionLocal
from vocab_stats.services.word_stats import WordStatsService
from vocab_stats.services.words import WordService


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for request lifetime."""

    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def get_word_stats_service(db: Session = Depends(get_db)) -> WordStatsService:
    return WordStatsService(db)


def get_word_service(db: Session = Depends(get_db)) -> WordService:
    return WordService(db)

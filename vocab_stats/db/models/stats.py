"""Learner-level word status aggregate."""
from sqlalchemy import Column, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from vocab_stats.db.base import Base


class UserWordStats(Base):
    """Count of a learner's words per status; absent until first computed."""

    __tablename__ = "user_word_stats"

    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    word_stats = Column(JSONB().with_variant(JSON(), "sqlite"), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

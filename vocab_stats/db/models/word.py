"""Word record model."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from vocab_stats.db.base import Base
from vocab_stats.db.types import WordStatusType


class WordRecord(Base):
    """A word saved by a learner together with its learning status."""

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    owner_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    word = Column(String(255), nullable=False)

    # 1..7 once migrated; may still hold a legacy tag such as "to_learn"
    status = Column(WordStatusType(), nullable=False, default=1, index=True)
    old_status = Column(String(32), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<WordRecord id={self.id} word={self.word!r} status={self.status!r}>"

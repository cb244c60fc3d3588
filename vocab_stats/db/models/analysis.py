"""Saved text analyses and their word membership."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from vocab_stats.db.base import Base


class Analysis(Base):
    """A saved text analysis with its denormalized per-status word counts."""

    __tablename__ = "analyses"

    id = Column(Integer, primary_key=True)
    owner_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)

    # NULL means the aggregate has not been computed yet
    word_stats = Column(
        JSONB(none_as_null=True).with_variant(JSON(none_as_null=True), "sqlite"), nullable=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    members = relationship(
        "AnalysisWord", back_populates="analysis", cascade="all, delete-orphan"
    )


class AnalysisWord(Base):
    """Membership of one word in one analysis."""

    __tablename__ = "analysis_words"
    __table_args__ = (UniqueConstraint("analysis_id", "word_id", name="uq_analysis_words_pair"),)

    id = Column(Integer, primary_key=True)
    analysis_id = Column(
        Integer, ForeignKey("analyses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    word_id = Column(Integer, ForeignKey("words.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    analysis = relationship("Analysis", back_populates="members")

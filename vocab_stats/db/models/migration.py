"""Progress documents written by maintenance jobs."""
from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from vocab_stats.db.base import Base


class MigrationProgress(Base):
    """Single mutable record polled by clients to follow a background job.

    While ``status`` is ``running`` the row also acts as a lease: only the
    holder of ``owner_token`` may write to it.
    """

    __tablename__ = "migration_progress"

    key = Column(String(64), primary_key=True)
    status = Column(String(20), nullable=False, default="not_started")
    details = Column(JSONB().with_variant(JSON(), "sqlite"), nullable=False, default=dict)
    error = Column(Text, nullable=True)

    owner_token = Column(String(36), nullable=True)
    cancel_requested = Column(Boolean, nullable=False, default=False)

    started_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
    finished_at = Column(DateTime(timezone=True))

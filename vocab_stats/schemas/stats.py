"""Pydantic models for word status aggregates."""
from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class LearnerStatsRead(BaseModel):
    """Per-status word counts of one learner."""

    user_id: uuid.UUID
    word_stats: Optional[Dict[int, int]] = Field(
        default=None, description="Status -> count; null when not yet computed"
    )
    total: Optional[int] = None


class AnalysisStatsRead(BaseModel):
    """Per-status word counts of one saved analysis."""

    analysis_id: int
    word_stats: Optional[Dict[int, int]] = None
    total: Optional[int] = None


class LearnerStatsExistsResponse(BaseModel):
    exists: bool


class WordStatusUpdate(BaseModel):
    """New status for a word."""

    status: int = Field(ge=1, le=7)


class WordStatusChangeResponse(BaseModel):
    """Result of a canonical status write and its aggregate update."""

    id: int
    status: int
    previous_status: Optional[Any] = None
    stats_updated: bool

"""Pydantic schemas package."""

from vocab_stats.schemas.migration import (
    CancelResponse,
    MigrationProgressRead,
    MigrationStartResponse,
    MigrationStepRead,
    RebuildResponse,
)
from vocab_stats.schemas.stats import (
    AnalysisStatsRead,
    LearnerStatsExistsResponse,
    LearnerStatsRead,
    WordStatusChangeResponse,
    WordStatusUpdate,
)

__all__ = [
    "AnalysisStatsRead",
    "CancelResponse",
    "LearnerStatsExistsResponse",
    "LearnerStatsRead",
    "MigrationProgressRead",
    "MigrationStartResponse",
    "MigrationStepRead",
    "RebuildResponse",
    "WordStatusChangeResponse",
    "WordStatusUpdate",
]

"""Utility helpers package."""

from vocab_stats.utils.exceptions import (
    DatabaseError,
    LeaseLostError,
    MigrationAlreadyRunningError,
    MigrationError,
    NotFoundError,
    ValidationError,
    VocabStatsException,
)

__all__ = [
    "DatabaseError",
    "LeaseLostError",
    "MigrationAlreadyRunningError",
    "MigrationError",
    "NotFoundError",
    "ValidationError",
    "VocabStatsException",
]

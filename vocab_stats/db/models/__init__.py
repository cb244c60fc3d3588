"""Database models package."""
from vocab_stats.db.models.user import User
from vocab_stats.db.models.word import WordRecord
from vocab_stats.db.models.analysis import Analysis, AnalysisWord
from vocab_stats.db.models.stats import UserWordStats
from vocab_stats.db.models.migration import MigrationProgress

__all__ = [
    "User",
    "WordRecord",
    "Analysis",
    "AnalysisWord",
    "UserWordStats",
    "MigrationProgress",
]

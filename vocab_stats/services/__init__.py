"""Domain services for word status aggregates and their maintenance jobs."""

from vocab_stats.services.legacy_status_migration import (
    LegacyMigrationCounters,
    LegacyStatusMigrationService,
)
from vocab_stats.services.multi_step_migration import MigrationStep, MultiStepMigration
from vocab_stats.services.progress_tracker import ProgressTracker
from vocab_stats.services.stats_rebuild import AnalysisStatsRebuilder, LearnerStatsRebuilder
from vocab_stats.services.user_directory import UserDirectory, UserPage
from vocab_stats.services.word_stats import WordStatsService
from vocab_stats.services.words import WordService

__all__ = [
    "AnalysisStatsRebuilder",
    "LearnerStatsRebuilder",
    "LegacyMigrationCounters",
    "LegacyStatusMigrationService",
    "MigrationStep",
    "MultiStepMigration",
    "ProgressTracker",
    "UserDirectory",
    "UserPage",
    "WordService",
    "WordStatsService",
]

"""Celery tasks running word status migrations and aggregate rebuilds.

Every task expects the caller to have acquired the job's progress lease and
to pass the resulting owner token.
"""
from __future__ import annotations

from loguru import logger

from vocab_stats.celery_app import celery_app
from vocab_stats.db.session import SessionLocal
from vocab_stats.services.legacy_status_migration import LegacyStatusMigrationService
from vocab_stats.services.multi_step_migration import MultiStepMigration
from vocab_stats.services.progress_tracker import (
    ANALYSIS_STATS_REBUILD,
    DB_MIGRATION,
    LEARNER_STATS_REBUILD,
    LEGACY_STATUS_MIGRATION,
    ProgressTracker,
)
from vocab_stats.services.stats_rebuild import (
    AnalysisStatsRebuilder,
    LearnerStatsRebuilder,
    run_rebuild_job,
)


@celery_app.task(name="vocab_stats.tasks.migrations.run_legacy_status_migration")
def run_legacy_status_migration(owner_token: str) -> dict[str, int | bool]:
    """Convert legacy string statuses to numeric ones."""

    db = SessionLocal()
    try:
        tracker = ProgressTracker(db, LEGACY_STATUS_MIGRATION, owner_token=owner_token)
        counters = LegacyStatusMigrationService(db).run_job(tracker)
        return {**counters.as_details(), "cancelled": counters.cancelled}
    except Exception as exc:
        logger.error("Legacy status migration task failed", error=str(exc))
        raise
    finally:
        db.close()


@celery_app.task(name="vocab_stats.tasks.migrations.run_multi_step_migration")
def run_multi_step_migration(owner_token: str) -> dict[str, list]:
    """Run the full database migration sequence."""

    db = SessionLocal()
    try:
        tracker = ProgressTracker(db, DB_MIGRATION, owner_token=owner_token)
        steps = MultiStepMigration(db, tracker).run()
        return {"steps": steps}
    except Exception as exc:
        logger.error("Multi-step migration task failed", error=str(exc))
        raise
    finally:
        db.close()


@celery_app.task(name="vocab_stats.tasks.migrations.rebuild_all_analysis_stats")
def rebuild_all_analysis_stats(owner_token: str) -> dict[str, int]:
    """Recompute the word stats of every analysis."""

    db = SessionLocal()
    try:
        tracker = ProgressTracker(db, ANALYSIS_STATS_REBUILD, owner_token=owner_token)
        processed = run_rebuild_job(AnalysisStatsRebuilder(db), tracker)
        return {"processed": processed}
    except Exception as exc:
        logger.error("Analysis stats rebuild task failed", error=str(exc))
        raise
    finally:
        db.close()


@celery_app.task(name="vocab_stats.tasks.migrations.rebuild_all_learner_stats")
def rebuild_all_learner_stats(owner_token: str) -> dict[str, int]:
    """Recompute the word stats of every learner."""

    db = SessionLocal()
    try:
        tracker = ProgressTracker(db, LEARNER_STATS_REBUILD, owner_token=owner_token)
        processed = run_rebuild_job(LearnerStatsRebuilder(db), tracker)
        return {"processed": processed}
    except Exception as exc:
        logger.error("Learner stats rebuild task failed", error=str(exc))
        raise
    finally:
        db.close()

"""Administrative triggers and progress polling for maintenance jobs."""

from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException, Response, status
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocab_stats.api import deps
from vocab_stats.schemas import (
    CancelResponse,
    LearnerStatsExistsResponse,
    MigrationProgressRead,
    MigrationStartResponse,
    RebuildResponse,
)
from vocab_stats.services.legacy_status_migration import LegacyMigrationCounters
from vocab_stats.services.multi_step_migration import MultiStepMigration
from vocab_stats.services.progress_tracker import (
    ANALYSIS_STATS_REBUILD,
    CANCELLABLE_JOB_KEYS,
    DB_MIGRATION,
    JOB_KEYS,
    LEARNER_STATS_REBUILD,
    LEGACY_STATUS_MIGRATION,
    NOT_STARTED,
    ProgressTracker,
)
from vocab_stats.services.stats_rebuild import (
    AnalysisStatsRebuilder,
    LearnerStatsRebuilder,
    run_rebuild_job,
)
from vocab_stats.services.word_stats import WordStatsService
from vocab_stats.tasks import migrations as migration_tasks
from vocab_stats.utils.exceptions import MigrationAlreadyRunningError


router = APIRouter(prefix="/admin", tags=["admin"])


def _start_background_job(
    db: Session,
    response: Response,
    *,
    key: str,
    details: dict[str, Any],
    dispatch: Callable[[str], Any],
) -> MigrationStartResponse:
    tracker = ProgressTracker(db, key)
    try:
        token = tracker.acquire(details)
    except MigrationAlreadyRunningError as exc:
        response.status_code = status.HTTP_409_CONFLICT
        return MigrationStartResponse(started=False, error=exc.message)
    except SQLAlchemyError as exc:
        logger.error("Could not initialise job progress", key=key, error=str(exc))
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return MigrationStartResponse(started=False, error=str(exc))

    try:
        dispatch(token)
    except Exception as exc:
        logger.exception("Could not dispatch background job", key=key)
        tracker.fail(f"Dispatch failed: {exc}")
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return MigrationStartResponse(started=False, error=str(exc))

    logger.info("Background job dispatched", key=key)
    return MigrationStartResponse(started=True)


def _run_rebuild(
    db: Session,
    response: Response,
    *,
    key: str,
    rebuilder: AnalysisStatsRebuilder | LearnerStatsRebuilder,
) -> RebuildResponse:
    tracker = ProgressTracker(db, key)
    try:
        tracker.acquire({"processed": 0, "total": 0})
    except MigrationAlreadyRunningError as exc:
        response.status_code = status.HTTP_409_CONFLICT
        return RebuildResponse(success=False, error=exc.message)

    try:
        processed = run_rebuild_job(rebuilder, tracker)
    except Exception as exc:
        document = tracker.read() or {}
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return RebuildResponse(
            success=False,
            processed=int(document.get("processed") or 0),
            error=str(exc) or exc.__class__.__name__,
        )
    return RebuildResponse(success=True, processed=processed)


def _read_progress(db: Session, key: str) -> MigrationProgressRead:
    document = ProgressTracker(db, key).read()
    if document is None:
        return MigrationProgressRead(status=NOT_STARTED)
    return MigrationProgressRead.model_validate(document)


@router.post("/legacy-status-migration/start", response_model=MigrationStartResponse)
def start_legacy_status_migration(
    *, response: Response, db: Session = Depends(deps.get_db)
) -> MigrationStartResponse:
    """Start converting legacy string statuses in the background."""

    return _start_background_job(
        db,
        response,
        key=LEGACY_STATUS_MIGRATION,
        details=LegacyMigrationCounters().as_details(),
        dispatch=migration_tasks.run_legacy_status_migration.delay,
    )


@router.get(
    "/legacy-status-migration/progress",
    response_model=MigrationProgressRead,
    response_model_exclude_none=True,
)
def read_legacy_status_migration_progress(
    *, db: Session = Depends(deps.get_db)
) -> MigrationProgressRead:
    return _read_progress(db, LEGACY_STATUS_MIGRATION)


@router.post("/analysis-stats/rebuild", response_model=RebuildResponse)
def rebuild_analysis_stats(
    *, response: Response, db: Session = Depends(deps.get_db)
) -> RebuildResponse:
    """Recompute every analysis aggregate before responding."""

    return _run_rebuild(
        db, response, key=ANALYSIS_STATS_REBUILD, rebuilder=AnalysisStatsRebuilder(db)
    )


@router.post("/learner-stats/rebuild", response_model=RebuildResponse)
def rebuild_learner_stats(
    *, response: Response, db: Session = Depends(deps.get_db)
) -> RebuildResponse:
    """Recompute every learner aggregate before responding."""

    return _run_rebuild(
        db, response, key=LEARNER_STATS_REBUILD, rebuilder=LearnerStatsRebuilder(db)
    )


@router.get("/learner-stats/exists", response_model=LearnerStatsExistsResponse)
def learner_stats_exist(
    *, service: WordStatsService = Depends(deps.get_word_stats_service)
) -> LearnerStatsExistsResponse:
    return LearnerStatsExistsResponse(exists=service.learner_stats_exist())


@router.post("/db-migration/start", response_model=MigrationStartResponse)
def start_db_migration(
    *, response: Response, db: Session = Depends(deps.get_db)
) -> MigrationStartResponse:
    """Start the multi-step migration in the background."""

    migration = MultiStepMigration(db, ProgressTracker(db, DB_MIGRATION))
    return _start_background_job(
        db,
        response,
        key=DB_MIGRATION,
        details=migration.initial_details(),
        dispatch=migration_tasks.run_multi_step_migration.delay,
    )


@router.get(
    "/db-migration/progress",
    response_model=MigrationProgressRead,
    response_model_exclude_none=True,
)
def read_db_migration_progress(*, db: Session = Depends(deps.get_db)) -> MigrationProgressRead:
    return _read_progress(db, DB_MIGRATION)


@router.get(
    "/migrations/{key}",
    response_model=MigrationProgressRead,
    response_model_exclude_none=True,
)
def read_job_progress(*, key: str, db: Session = Depends(deps.get_db)) -> MigrationProgressRead:
    """Return the progress document of any job kind."""

    if key not in JOB_KEYS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown job '{key}'")
    return _read_progress(db, key)


@router.post("/migrations/{key}/cancel", response_model=CancelResponse)
def cancel_job(*, key: str, db: Session = Depends(deps.get_db)) -> CancelResponse:
    """Ask a running job to stop at its next checkpoint."""

    if key not in JOB_KEYS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown job '{key}'")
    if key not in CANCELLABLE_JOB_KEYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Job '{key}' cannot be cancelled"
        )
    return CancelResponse(cancelled=ProgressTracker(db, key).request_cancel())

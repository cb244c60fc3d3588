"""CLI script to manually run a word status migration or aggregate rebuild."""
from __future__ import annotations

import argparse
import json
import sys
import time

from vocab_stats.config import settings
from vocab_stats.db.session import SessionLocal
from vocab_stats.services.legacy_status_migration import LegacyMigrationCounters
from vocab_stats.services.multi_step_migration import MultiStepMigration
from vocab_stats.services.progress_tracker import (
    ANALYSIS_STATS_REBUILD,
    DB_MIGRATION,
    LEARNER_STATS_REBUILD,
    LEGACY_STATUS_MIGRATION,
    TERMINAL_STATUSES,
    ProgressTracker,
)
from vocab_stats.tasks.migrations import (
    rebuild_all_analysis_stats,
    rebuild_all_learner_stats,
    run_legacy_status_migration,
    run_multi_step_migration,
)
from vocab_stats.utils.exceptions import MigrationAlreadyRunningError

JOBS = {
    "legacy-statuses": (LEGACY_STATUS_MIGRATION, run_legacy_status_migration),
    "db-migration": (DB_MIGRATION, run_multi_step_migration),
    "analysis-stats": (ANALYSIS_STATS_REBUILD, rebuild_all_analysis_stats),
    "learner-stats": (LEARNER_STATS_REBUILD, rebuild_all_learner_stats),
}


def _initial_details(key: str, tracker: ProgressTracker) -> dict:
    if key == LEGACY_STATUS_MIGRATION:
        return LegacyMigrationCounters().as_details()
    if key == DB_MIGRATION:
        return MultiStepMigration(tracker.db, tracker).initial_details()
    return {"processed": 0, "total": 0}


def acquire_lease(key: str) -> str:
    db = SessionLocal()
    try:
        tracker = ProgressTracker(db, key)
        return tracker.acquire(_initial_details(key, tracker))
    finally:
        db.close()


def wait_for(key: str, interval: float) -> dict:
    """Poll the progress document until the job reaches a terminal status."""

    while True:
        db = SessionLocal()
        try:
            document = ProgressTracker(db, key).read() or {"status": "not_started"}
        finally:
            db.close()
        summary = {k: v for k, v in document.items() if k not in ("started_at", "updated_at", "finished_at")}
        print(json.dumps(summary, default=str))
        if document["status"] in TERMINAL_STATUSES:
            return document
        time.sleep(interval)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Manually run a word status migration or aggregate rebuild",
    )
    parser.add_argument("job", choices=sorted(JOBS), help="Job to run")
    parser.add_argument(
        "--async",
        action="store_true",
        dest="use_async",
        help="Queue task asynchronously instead of running immediately",
    )
    parser.add_argument(
        "--wait",
        action="store_true",
        help="With --async, poll the progress document until the job finishes",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.PROGRESS_POLL_INTERVAL_SECONDS,
        help="Seconds between progress polls",
    )

    args = parser.parse_args()
    key, task = JOBS[args.job]

    try:
        token = acquire_lease(key)
    except MigrationAlreadyRunningError as exc:
        print(exc.message, file=sys.stderr)
        sys.exit(1)
    print(f"Lease acquired for {key}")
    if args.use_async:
        queued = task.apply_async(args=(token,))
        print(f"Task queued: {queued.id}")
        if args.wait:
            document = wait_for(key, args.interval)
            print(f"Finished with status {document['status']}")
    else:
        result = task.run(token)
        print(f"Result: {result}")


if __name__ == "__main__":
    main()

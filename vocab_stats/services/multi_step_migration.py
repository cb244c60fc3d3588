"""Sequencer running several maintenance jobs against one progress document."""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger
from sqlalchemy.orm import Session

from vocab_stats.services.legacy_status_migration import (
    LegacyMigrationCounters,
    LegacyStatusMigrationService,
)
from vocab_stats.services.progress_tracker import COMPLETED, ERROR, RUNNING, ProgressTracker
from vocab_stats.services.stats_rebuild import AnalysisStatsRebuilder, LearnerStatsRebuilder

PENDING = "pending"

StepReporter = Callable[[int, int], None]


@dataclass(frozen=True)
class MigrationStep:
    """A named unit of work; ``run`` receives the session and a progress reporter."""

    name: str
    run: Callable[[Session, StepReporter], Any]


def _migrate_legacy_statuses(db: Session, report: StepReporter) -> None:
    def on_progress(counters: LegacyMigrationCounters) -> None:
        report(counters.processed, counters.total)

    LegacyStatusMigrationService(db).migrate(on_progress=on_progress)


def _clean_up_old_structure(db: Session, report: StepReporter) -> None:
    report(0, 2)
    cleared = AnalysisStatsRebuilder(db).clear_all()
    report(1, 2)
    deleted = LearnerStatsRebuilder(db).delete_all()
    report(2, 2)
    logger.info("Old word stats removed", analyses_cleared=cleared, learner_stats_deleted=deleted)


def _rebuild_analysis_stats(db: Session, report: StepReporter) -> None:
    AnalysisStatsRebuilder(db).rebuild_all(on_progress=report)


def _rebuild_learner_stats(db: Session, report: StepReporter) -> None:
    LearnerStatsRebuilder(db).rebuild_all(on_progress=report)


def default_steps() -> list[MigrationStep]:
    return [
        MigrationStep("Migrate legacy word statuses", _migrate_legacy_statuses),
        MigrationStep("Clean up old structure", _clean_up_old_structure),
        MigrationStep("Rebuild analysis word stats", _rebuild_analysis_stats),
        MigrationStep("Rebuild learner word stats", _rebuild_learner_stats),
    ]


def initial_step_entries(steps: list[MigrationStep]) -> list[dict[str, Any]]:
    return [
        {"name": step.name, "status": PENDING, "processed": 0, "total": 0} for step in steps
    ]


class MultiStepMigration:
    """Run ``steps`` in order, stopping at the first failure.

    Steps after a failing one keep their ``pending`` status. Cancellation is
    honoured between steps only.
    """

    def __init__(
        self,
        db: Session,
        tracker: ProgressTracker,
        steps: list[MigrationStep] | None = None,
    ) -> None:
        self.db = db
        self.tracker = tracker
        self.steps = steps if steps is not None else default_steps()
        self.entries = initial_step_entries(self.steps)

    def initial_details(self) -> dict[str, Any]:
        return {"current_step": 0, "steps": copy.deepcopy(self.entries)}

    def start(self) -> str:
        """Acquire the shared progress document for a new run."""

        return self.tracker.acquire(self.initial_details())

    def run(self) -> list[dict[str, Any]]:
        logger.info("Multi-step migration started", steps=len(self.steps))
        for index, step in enumerate(self.steps, start=1):
            if self.tracker.cancel_requested():
                logger.info("Multi-step migration stopped on request", before_step=index)
                self.tracker.cancel(current_step=index - 1, steps=self._snapshot())
                return self._snapshot()

            entry = self.entries[index - 1]
            entry["status"] = RUNNING
            self.tracker.update(current_step=index, steps=self._snapshot())
            logger.info("Migration step started", step=index, name=step.name)

            try:
                step.run(self.db, self._reporter(entry))
            except Exception as exc:
                self.db.rollback()
                entry["status"] = ERROR
                logger.exception("Migration step failed", step=index, name=step.name)
                self.tracker.fail(
                    str(exc) or exc.__class__.__name__,
                    current_step=index,
                    steps=self._snapshot(),
                )
                raise

            entry["status"] = COMPLETED
            self.tracker.update(current_step=index, steps=self._snapshot())
            logger.info(
                "Migration step completed",
                step=index,
                name=step.name,
                processed=entry["processed"],
            )

        self.tracker.complete(current_step=len(self.steps), steps=self._snapshot())
        logger.info("Multi-step migration completed", steps=len(self.steps))
        return self._snapshot()

    def _reporter(self, entry: dict[str, Any]) -> StepReporter:
        def report(processed: int, total: int) -> None:
            entry["processed"] = processed
            entry["total"] = total
            self.tracker.update(steps=self._snapshot())

        return report

    def _snapshot(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.entries)

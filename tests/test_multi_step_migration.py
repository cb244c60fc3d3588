"""Tests for the multi-step migration sequencer."""
from __future__ import annotations

import pytest

from vocab_stats.db.models.analysis import Analysis
from vocab_stats.db.models.stats import UserWordStats
from vocab_stats.services.multi_step_migration import (
    PENDING,
    MigrationStep,
    MultiStepMigration,
    default_steps,
)
from vocab_stats.services.progress_tracker import (
    CANCELLED,
    COMPLETED,
    DB_MIGRATION,
    ERROR,
    ProgressTracker,
)


def started(db_session, steps=None) -> MultiStepMigration:
    migration = MultiStepMigration(db_session, ProgressTracker(db_session, DB_MIGRATION), steps)
    migration.start()
    return migration


def test_default_steps_run_in_order():
    assert [step.name for step in default_steps()] == [
        "Migrate legacy word statuses",
        "Clean up old structure",
        "Rebuild analysis word stats",
        "Rebuild learner word stats",
    ]


def test_initial_document_lists_pending_steps(db_session):
    migration = started(db_session)

    document = migration.tracker.read()
    assert document["current_step"] == 0
    assert [entry["status"] for entry in document["steps"]] == [PENDING] * 4


def test_full_migration_rebuilds_every_aggregate(
    db_session, learner, add_words, make_analysis
):
    words = add_words(learner, ["to_learn", "well_known", 3, "want_repeat"])
    analysis = make_analysis(learner, words, word_stats={"1": 40})
    db_session.add(UserWordStats(user_id=learner.id, word_stats={"2": 17}))
    db_session.commit()

    steps = started(db_session).run()

    assert [entry["status"] for entry in steps] == [COMPLETED] * 4
    assert steps[0]["processed"] == steps[0]["total"] == 4
    assert steps[1]["processed"] == 2
    assert steps[2]["processed"] == steps[2]["total"] == 1
    assert steps[3]["processed"] == steps[3]["total"] == 1

    db_session.expire_all()
    expected = {"1": 1, "2": 0, "3": 1, "4": 1, "5": 0, "6": 1, "7": 0}
    assert db_session.get(Analysis, analysis.id).word_stats == expected
    assert db_session.get(UserWordStats, learner.id).word_stats == expected

    document = ProgressTracker(db_session, DB_MIGRATION).read()
    assert document["status"] == COMPLETED
    assert document["current_step"] == 4


def test_failing_step_stops_the_sequence(db_session):
    ran: list[str] = []

    def ok(db, report):
        ran.append("ok")
        report(1, 1)

    def broken(db, report):
        report(0, 5)
        raise RuntimeError("rebuild exploded")

    def never(db, report):
        ran.append("never")

    migration = started(
        db_session,
        [MigrationStep("one", ok), MigrationStep("two", broken), MigrationStep("three", never)],
    )

    with pytest.raises(RuntimeError):
        migration.run()

    assert ran == ["ok"]
    document = migration.tracker.read()
    assert document["status"] == ERROR
    assert document["error"] == "rebuild exploded"
    assert document["current_step"] == 2
    assert [entry["status"] for entry in document["steps"]] == [COMPLETED, ERROR, PENDING]
    assert document["steps"][1]["total"] == 5


def test_cancel_stops_before_next_step(db_session):
    def first(db, report):
        migration.tracker.request_cancel()

    def second(db, report):
        raise AssertionError("should not run")

    migration = started(db_session, [MigrationStep("first", first), MigrationStep("second", second)])

    steps = migration.run()

    assert [entry["status"] for entry in steps] == [COMPLETED, PENDING]
    assert migration.tracker.read()["status"] == CANCELLED

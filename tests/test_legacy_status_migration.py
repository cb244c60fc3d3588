"""Tests for the legacy word status migration job."""
from __future__ import annotations

from unittest.mock import patch

import pytest

from vocab_stats.core.statuses import LEGACY_STATUS_MAP, map_legacy_status
from vocab_stats.db.models.word import WordRecord
from vocab_stats.services.legacy_status_migration import (
    LegacyMigrationCounters,
    LegacyStatusMigrationService,
)
from vocab_stats.services.progress_tracker import (
    CANCELLED,
    COMPLETED,
    ERROR,
    LEGACY_STATUS_MIGRATION,
    ProgressTracker,
)


def statuses_by_word(db_session) -> dict[str, object]:
    db_session.expire_all()
    return {word.word: word.status for word in db_session.query(WordRecord).all()}


def started_tracker(db_session) -> ProgressTracker:
    tracker = ProgressTracker(db_session, LEGACY_STATUS_MIGRATION)
    tracker.acquire(LegacyMigrationCounters().as_details())
    return tracker


def test_legacy_tags_map_to_numeric_statuses():
    assert LEGACY_STATUS_MAP == {"to_learn": 1, "want_repeat": 4, "well_known": 6, "unset": 1}
    assert map_legacy_status("want_repeat") == 4
    assert map_legacy_status("something_else") == 1
    assert map_legacy_status(None) == 1


def test_migration_scenario(db_session, learner, add_words):
    add_words(learner, ["to_learn", "want_repeat", "well_known", "unset", 3])
    tracker = started_tracker(db_session)

    counters = LegacyStatusMigrationService(db_session).run_job(tracker)

    assert (counters.migrated_count, counters.skipped_count, counters.total) == (4, 1, 5)
    assert statuses_by_word(db_session) == {
        "word-0": 1,
        "word-1": 4,
        "word-2": 6,
        "word-3": 1,
        "word-4": 3,
    }
    audit = {word.word: word.old_status for word in db_session.query(WordRecord).all()}
    assert audit["word-1"] == "want_repeat"
    assert audit["word-4"] is None

    document = tracker.read()
    assert document["status"] == COMPLETED
    assert document["migrated_count"] == 4
    assert document["skipped_count"] == 1
    assert document["total"] == 5
    assert document["current_batch"] == 1
    assert document["error"] is None


def test_unknown_tag_defaults_to_first_status(db_session, learner, add_words):
    add_words(learner, ["mystery"])

    counters = LegacyStatusMigrationService(db_session).migrate()

    assert counters.migrated_count == 1
    assert statuses_by_word(db_session) == {"word-0": 1}


def test_non_ascii_digit_tag_is_treated_as_unknown(db_session, learner, add_words):
    add_words(learner, ["to_learn", "²"])

    counters = LegacyStatusMigrationService(db_session).migrate()

    assert (counters.migrated_count, counters.skipped_count) == (2, 0)
    assert statuses_by_word(db_session) == {"word-0": 1, "word-1": 1}
    audit = {word.word: word.old_status for word in db_session.query(WordRecord).all()}
    assert audit["word-1"] == "²"


def test_second_run_skips_everything(db_session, learner, add_words):
    add_words(learner, ["to_learn", "well_known", 2] * 9)
    service = LegacyStatusMigrationService(db_session, batch_size=10)

    service.migrate()
    second = service.migrate()

    assert second.migrated_count == 0
    assert second.skipped_count == second.total == 27


def test_batches_follow_id_order_and_stop_on_short_batch(db_session, learner, add_words):
    add_words(learner, ["to_learn"] * 25)
    seen: list[tuple[int, int]] = []
    sleep_calls: list[float] = []
    service = LegacyStatusMigrationService(
        db_session, batch_size=10, batch_delay_seconds=0.5, sleep=sleep_calls.append
    )

    counters = service.migrate(
        on_progress=lambda current: seen.append((current.current_batch, current.processed))
    )

    assert counters.current_batch == 3
    assert seen == [(0, 0), (1, 10), (2, 20), (3, 25)]
    assert sleep_calls == [0.5, 0.5]


def test_interrupted_run_resumes_to_same_result(db_session, learner, add_words):
    tags = ["to_learn", "want_repeat", "well_known", "unset", 5, "odd"] * 4
    add_words(learner, tags)
    service = LegacyStatusMigrationService(db_session, batch_size=10)

    first = service.migrate(should_stop=lambda: True)
    assert first.cancelled is True
    assert first.processed == 10
    partial = statuses_by_word(db_session)
    assert sum(isinstance(status, str) for status in partial.values()) > 0

    service.migrate()

    expected = {
        f"word-{index}": tag if isinstance(tag, int) else map_legacy_status(tag)
        for index, tag in enumerate(tags)
    }
    assert statuses_by_word(db_session) == expected


def test_cancellation_is_checked_between_batches(db_session, learner, add_words):
    add_words(learner, ["to_learn"] * 30)
    tracker = started_tracker(db_session)
    tracker.request_cancel()

    counters = LegacyStatusMigrationService(db_session, batch_size=10).run_job(tracker)

    assert counters.cancelled is True
    assert counters.migrated_count == 10
    document = tracker.read()
    assert document["status"] == CANCELLED
    assert document["migrated_count"] == 10
    assert document["current_batch"] == 1


def test_failure_is_recorded_and_earlier_batches_kept(db_session, learner, add_words):
    add_words(learner, ["to_learn"] * 15)
    tracker = started_tracker(db_session)
    service = LegacyStatusMigrationService(db_session, batch_size=10)
    real_batch = service.migrate_batch
    calls = {"n": 0}

    def flaky_batch(after_id):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("store unavailable")
        return real_batch(after_id)

    with patch.object(service, "migrate_batch", side_effect=flaky_batch):
        with pytest.raises(RuntimeError):
            service.run_job(tracker)

    document = tracker.read()
    assert document["status"] == ERROR
    assert document["error"] == "store unavailable"
    assert document["migrated_count"] == 10
    assert sum(status == 1 for status in statuses_by_word(db_session).values()) == 10

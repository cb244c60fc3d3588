"""Tests for full recomputation of word status aggregates."""
from __future__ import annotations

from collections import Counter

import pytest

from vocab_stats.db.models.analysis import Analysis
from vocab_stats.db.models.stats import UserWordStats
from vocab_stats.services.stats_rebuild import (
    AnalysisStatsRebuilder,
    LearnerStatsRebuilder,
    chunked,
)
from vocab_stats.services.user_directory import UserDirectory
from vocab_stats.utils.exceptions import ValidationError


def test_chunked_splits_into_bounded_slices():
    assert list(chunked(list(range(23)), 10)) == [
        list(range(10)),
        list(range(10, 20)),
        [20, 21, 22],
    ]
    assert list(chunked([], 10)) == []
    with pytest.raises(ValueError):
        list(chunked([1], 0))


def test_learner_rebuild_tallies_statuses(db_session, learner, add_words):
    add_words(learner, [1, 1, 4, 6, 6, 6])

    counts = LearnerStatsRebuilder(db_session).rebuild_learner(learner.id)

    assert counts == {1: 2, 2: 0, 3: 0, 4: 1, 5: 0, 6: 3, 7: 0}
    stored = db_session.get(UserWordStats, learner.id)
    assert stored.word_stats == {"1": 2, "2": 0, "3": 0, "4": 1, "5": 0, "6": 3, "7": 0}


def test_learner_rebuild_ignores_legacy_tags_and_overwrites(db_session, learner, add_words):
    add_words(learner, [2, "want_repeat", 7])
    db_session.add(UserWordStats(user_id=learner.id, word_stats={"1": 99}))
    db_session.commit()

    counts = LearnerStatsRebuilder(db_session).rebuild_learner(learner.id)

    assert counts[1] == 0
    assert counts[2] == 1
    assert counts[7] == 1
    assert sum(counts.values()) == 2


def test_analysis_rebuild_chunks_match_unchunked_scan(
    db_session, learner, add_words, make_analysis
):
    statuses = [(index % 7) + 1 for index in range(23)] + ["to_learn", "unset"]
    words = add_words(learner, statuses)
    analysis = make_analysis(learner, words, word_stats={"1": 500})

    chunked_counts = AnalysisStatsRebuilder(db_session, chunk_size=10).rebuild_analysis(
        analysis.id
    )
    single_scan = AnalysisStatsRebuilder(db_session, chunk_size=1000).count_statuses(
        [word.id for word in words]
    )

    expected = Counter(status for status in statuses if isinstance(status, int))
    assert chunked_counts == single_scan
    assert chunked_counts == {status: expected[status] for status in range(1, 8)}
    db_session.expire_all()
    assert db_session.get(Analysis, analysis.id).word_stats["1"] == expected[1]


def test_analysis_rebuild_all_reports_progress(
    db_session, make_user, add_words, make_analysis
):
    owner = make_user()
    words = add_words(owner, [1, 3, 3, 5])
    first = make_analysis(owner, words[:2])
    second = make_analysis(owner, words[1:])
    empty = make_analysis(owner, [])
    calls: list[tuple[int, int]] = []

    processed = AnalysisStatsRebuilder(db_session).rebuild_all(
        on_progress=lambda done, total: calls.append((done, total))
    )

    assert processed == 3
    assert calls == [(0, 3), (1, 3), (2, 3), (3, 3)]
    db_session.expire_all()
    assert sum(db_session.get(Analysis, first.id).word_stats.values()) == 2
    assert sum(db_session.get(Analysis, second.id).word_stats.values()) == 3
    assert sum(db_session.get(Analysis, empty.id).word_stats.values()) == 0


def test_learner_rebuild_all_covers_every_page(db_session, make_user, add_words):
    users = [make_user() for _ in range(5)]
    for index, user in enumerate(users):
        add_words(user, [1] * index + [7])
    rebuilder = LearnerStatsRebuilder(
        db_session, directory=UserDirectory(db_session, page_size=2)
    )

    processed = rebuilder.rebuild_all()

    assert processed == 5
    db_session.expire_all()
    for index, user in enumerate(users):
        stats = db_session.get(UserWordStats, user.id).word_stats
        assert stats["1"] == index
        assert stats["7"] == 1
        assert sum(stats.values()) == index + 1


def test_clear_and_delete_all(db_session, learner, add_words, make_analysis):
    words = add_words(learner, [1, 2])
    analysis = make_analysis(learner, words, word_stats={"1": 1, "2": 1})
    LearnerStatsRebuilder(db_session).rebuild_learner(learner.id)

    assert AnalysisStatsRebuilder(db_session).clear_all() == 1
    assert LearnerStatsRebuilder(db_session).delete_all() == 1

    db_session.expire_all()
    assert db_session.get(Analysis, analysis.id).word_stats is None
    assert db_session.query(UserWordStats).count() == 0


def test_user_directory_pages_by_token(db_session, make_user):
    users = sorted((make_user() for _ in range(4)), key=lambda user: user.id)
    directory = UserDirectory(db_session, page_size=3)

    first = directory.list_users()
    second = directory.list_users(page_token=first.page_token)

    assert [user.id for user in first.users] == [user.id for user in users[:3]]
    assert first.page_token == str(users[2].id)
    assert [user.id for user in second.users] == [users[3].id]
    assert second.page_token is None
    assert len(directory.list_all_users()) == 4


def test_user_directory_rejects_malformed_token(db_session):
    with pytest.raises(ValidationError):
        UserDirectory(db_session).list_users(page_token="not-a-uuid")

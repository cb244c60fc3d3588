"""Tests for the manual migration trigger script."""
from __future__ import annotations

import importlib.util
from pathlib import Path
from unittest.mock import patch

import pytest

from vocab_stats.services.progress_tracker import LEGACY_STATUS_MIGRATION, ProgressTracker

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "trigger_migration.py"


@pytest.fixture()
def trigger_script():
    module_spec = importlib.util.spec_from_file_location("trigger_migration", SCRIPT)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def test_duplicate_start_exits_with_message(
    db_session, task_session_factory, trigger_script, capsys
):
    ProgressTracker(db_session, LEGACY_STATUS_MIGRATION).acquire({"migrated_count": 0})

    with patch.object(trigger_script, "SessionLocal", side_effect=task_session_factory), patch(
        "sys.argv", ["trigger_migration.py", "legacy-statuses"]
    ):
        with pytest.raises(SystemExit) as exit_info:
            trigger_script.main()

    assert exit_info.value.code == 1
    assert "already running" in capsys.readouterr().err


def test_inline_run_uses_acquired_lease(
    db_session, task_session_factory, trigger_script, learner, add_words, capsys
):
    add_words(learner, ["well_known"])

    with patch.object(trigger_script, "SessionLocal", side_effect=task_session_factory), patch(
        "vocab_stats.tasks.migrations.SessionLocal", side_effect=task_session_factory
    ), patch("sys.argv", ["trigger_migration.py", "legacy-statuses"]):
        trigger_script.main()

    output = capsys.readouterr().out
    assert f"Lease acquired for {LEGACY_STATUS_MIGRATION}" in output
    assert "'migrated_count': 1" in output

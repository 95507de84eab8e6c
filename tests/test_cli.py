# tests/test_cli.py

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

import theme
from cli import cli

runner = CliRunner()


@pytest.fixture()
def tasks_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, clock) -> Path:
    """Fresh tasks file location with the clock frozen at 2026-01-01 12:00."""
    monkeypatch.setenv("COLUMNS", "200")
    monkeypatch.setattr(theme, "_ENABLE", False)
    monkeypatch.delenv("ATOR_LOG_LEVEL", raising=False)
    monkeypatch.delenv("ATOR_LOG_FILE", raising=False)
    return tmp_path / "tasks.json"


def _run(path: Path, *args: str):
    return runner.invoke(cli, ["--file", str(path), *args])


def _saved(path: Path) -> list:
    return json.loads(path.read_text())


class TestAdd:
    def test_add_each_kind(self, tasks_path: Path) -> None:
        assert _run(tasks_path, "add", "due", "Pay rent", "2026-01-02").exit_code == 0
        assert _run(tasks_path, "add", "timestamp", "Start laundry", "2026-01-01 14:00").exit_code == 0
        assert _run(tasks_path, "add", "interval", "Trip", "2026-01-03", "2026-01-05").exit_code == 0
        result = _run(tasks_path, "add", "followup", "Fold laundry", "1")
        assert result.exit_code == 0, result.output
        assert "Added task 3, following task 1." in result.output

        data = _saved(tasks_path)
        assert [d["Name"] for d in data] == ["Pay rent", "Start laundry", "Trip", "Fold laundry"]
        assert data[0]["End"] == "2026-01-02T00:00:00"
        assert data[3]["PrecedentTaskID"] == 1

    def test_past_date_is_reported(self, tasks_path: Path) -> None:
        result = _run(tasks_path, "add", "due", "Too late", "2025-12-31")
        assert result.exit_code == 1
        assert "End must be in the future" in result.output
        assert not tasks_path.exists()

    def test_followup_of_missing_position(self, tasks_path: Path) -> None:
        result = _run(tasks_path, "add", "followup", "Orphan", "0")
        assert result.exit_code == 1
        assert "No task at position 0" in result.output


class TestList:
    def test_empty(self, tasks_path: Path) -> None:
        result = _run(tasks_path)
        assert result.exit_code == 0
        assert "(no tasks)" in result.output

    def test_rows_show_kind_and_state(self, tasks_path: Path, clock) -> None:
        _run(tasks_path, "add", "due", "Pay rent", "2026-01-01 13:00")
        _run(tasks_path, "add", "followup", "Celebrate", "0")
        clock.advance(hours=2)
        result = _run(tasks_path, "list")
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].split() == ["#", "ID", "KIND", "NAME", "START", "END", "STATE"]
        assert "Pay rent" in lines[2] and lines[2].rstrip().endswith("late")
        assert "after 0" in lines[3] and lines[3].rstrip().endswith("late")

    def test_show(self, tasks_path: Path) -> None:
        _run(tasks_path, "add", "due", "Pay rent", "2026-01-02")
        result = _run(tasks_path, "show", "0")
        assert result.exit_code == 0
        assert "Name: Pay rent," in result.output
        assert _run(tasks_path, "show", "7").exit_code == 1


class TestMutations:
    def test_complete_followup_after_precedent(self, tasks_path: Path, clock) -> None:
        _run(tasks_path, "add", "timestamp", "Start laundry", "2026-01-01 14:00")
        _run(tasks_path, "add", "followup", "Fold laundry", "0")

        result = _run(tasks_path, "complete", "1")
        assert "cannot be completed yet" in result.output

        clock.advance(hours=3)
        assert "Task 0 completed." in _run(tasks_path, "complete", "0").output
        assert "Task 1 completed." in _run(tasks_path, "complete", "1").output
        assert [d["Completed"] for d in _saved(tasks_path)] == [True, True]

    def test_rename(self, tasks_path: Path) -> None:
        _run(tasks_path, "add", "due", "Pay rent", "2026-01-02")
        assert _run(tasks_path, "rename", "0", "Pay", "the", "rent").exit_code == 0
        assert _saved(tasks_path)[0]["Name"] == "Pay the rent"

    def test_set_and_clear_dates(self, tasks_path: Path) -> None:
        _run(tasks_path, "add", "due", "Pay rent", "2026-01-03")
        result = _run(tasks_path, "set-start", "0", "2026-01-02")
        assert "Task 0 kind: interval." in result.output
        result = _run(tasks_path, "set-end", "0", "--clear")
        assert result.exit_code == 0
        saved = _saved(tasks_path)[0]
        assert saved["Start"] == "2026-01-02T00:00:00"
        assert saved["End"] is None

    def test_clearing_last_date_fails(self, tasks_path: Path) -> None:
        _run(tasks_path, "add", "due", "Pay rent", "2026-01-03")
        result = _run(tasks_path, "set-end", "0", "--clear")
        assert result.exit_code == 1
        assert "needs a start or end date" in result.output

    def test_followup_cannot_get_dates(self, tasks_path: Path) -> None:
        _run(tasks_path, "add", "due", "Pay rent", "2026-01-03")
        _run(tasks_path, "add", "followup", "Celebrate", "0")
        result = _run(tasks_path, "set-start", "1", "2026-01-02")
        assert result.exit_code == 1
        assert "followup" in result.output

    def test_date_or_clear_required(self, tasks_path: Path) -> None:
        _run(tasks_path, "add", "due", "Pay rent", "2026-01-03")
        assert _run(tasks_path, "set-start", "0").exit_code == 2


@pytest.mark.parametrize("content", [b'[{"Name": "a"}]', b'[{"Name": "\xff\xfe"}]'])
def test_corrupt_file_is_reported(tasks_path: Path, content: bytes) -> None:
    tasks_path.write_bytes(content)
    result = _run(tasks_path)
    assert result.exit_code == 1
    assert "Cannot load" in result.output


class TestLogging:
    def test_log_file_receives_debug_lines(self, tasks_path: Path, tmp_path: Path) -> None:
        log_path = tmp_path / "logs" / "ator.log"
        result = runner.invoke(cli, ["--file", str(tasks_path), "--log-file", str(log_path),
                                     "add", "due", "Pay rent", "2026-01-02"])
        assert result.exit_code == 0, result.output
        text = log_path.read_text(encoding="utf-8")
        assert "Saved 1 tasks" in text
        assert "DEBUG" in text

    def test_log_file_from_env(self, tasks_path: Path, tmp_path: Path,
                               monkeypatch: pytest.MonkeyPatch) -> None:
        log_path = tmp_path / "env.log"
        monkeypatch.setenv("ATOR_LOG_FILE", str(log_path))
        assert _run(tasks_path, "add", "due", "Pay rent", "2026-01-02").exit_code == 0
        assert "Saved 1 tasks" in log_path.read_text(encoding="utf-8")

    def test_verbose_sets_debug_level(self, tasks_path: Path) -> None:
        result = runner.invoke(cli, ["--verbose", "--file", str(tasks_path), "list"])
        assert result.exit_code == 0
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert all(h.level == logging.DEBUG for h in root.handlers)

    def test_default_level_is_warning(self, tasks_path: Path) -> None:
        assert _run(tasks_path, "list").exit_code == 0
        assert logging.getLogger().level == logging.WARNING

"""Unit tests for taskflow.engine.logging — LogEntry, FileLogger, entry builders."""

import json
import logging
from datetime import date, datetime, timedelta, timezone

import pytest

import taskflow.engine.logging as logging_mod
from taskflow.engine.logging import (
    OBJECT_TYPE_CATEGORIES,
    FileLogger,
    LogEntry,
    configure_logging,
    log_permission_denied,
    log_score_calculation,
    log_system_event,
    log_transition_decision,
)


@pytest.fixture
def file_logger(tmp_path):
    return FileLogger(log_dir=str(tmp_path / "logs"))


class TestObjectTypeCategories:
    """Verify the category mapping."""

    def test_types(self):
        assert set(OBJECT_TYPE_CATEGORIES) == {"transitions", "permissions", "scoring", "system"}

    def test_transitions_split_by_outcome(self):
        assert OBJECT_TYPE_CATEGORIES["transitions"] == ["execution", "security"]


class TestLogEntry:
    def test_creation(self):
        entry = LogEntry("system", "execution", {"key": "value"})
        assert entry.object_type == "system"
        assert entry.data == {"key": "value"}

    def test_unknown_target(self):
        with pytest.raises(ValueError, match="Unknown log target"):
            LogEntry("scoring", "security", {})

    def test_to_json_compact(self):
        raw = LogEntry("system", "execution", {"a": 1, "b": "x"}).to_json()
        assert raw == '{"a":1,"b":"x"}'


class TestBuilders:
    """Entry builders route to the right file."""

    def test_allowed_transition(self):
        entry = log_transition_decision("NEW", "ACCEPTED", "u1", "EMPLOYEE", True, task_id="t1")
        assert (entry.object_type, entry.category) == ("transitions", "execution")
        assert entry.data["event"] == "transition_allowed"
        assert entry.data["task_id"] == "t1"
        assert "code" not in entry.data

    def test_denied_transition(self):
        entry = log_transition_decision(
            "NEW", "CLOSED_APPROVED", "u1", "EMPLOYEE", False,
            code="invalid_transition", error="Invalid transition from NEW to CLOSED_APPROVED",
        )
        assert entry.category == "security"
        assert entry.data["level"] == "WARNING"
        assert entry.data["code"] == "invalid_transition"

    def test_permission_denied(self):
        entry = log_permission_denied("EMPLOYEE", "task:delete", user_id="u1")
        assert (entry.object_type, entry.category) == ("permissions", "security")
        assert "task_id" not in entry.data

    def test_score_calculation(self):
        entry = log_score_calculation("u1", {"composite": 0.5}, "2026-02-02", "2026-03-01")
        assert entry.data["event"] == "productivity_calculated"
        assert "duration_ms" not in entry.data

    def test_system_event(self):
        entry = log_system_event("config_loaded", details={"path": "taskflow.yaml"})
        assert entry.data["details"] == {"path": "taskflow.yaml"}
        assert entry.data["level"] == "INFO"

    def test_configure_logging(self):
        configure_logging("debug")
        assert logging.getLogger("taskflow").level == logging.DEBUG
        configure_logging("INFO")


class TestFileLogger:
    """JSONL sink."""

    def test_creates_directories(self, file_logger):
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                assert (file_logger.log_dir / obj_type / cat).is_dir()

    def test_write_and_read_file(self, file_logger):
        file_logger.write(log_system_event("started"))
        path = file_logger.log_dir / "system" / "execution" / f"{datetime.now(timezone.utc).date().isoformat()}.jsonl"
        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["event"] == "started"

    def test_write_batch_groups_files(self, file_logger):
        file_logger.write_batch([
            log_transition_decision("NEW", "ACCEPTED", "u1", "EMPLOYEE", True),
            log_transition_decision("NEW", "DONE", "u1", "EMPLOYEE", False),
            log_transition_decision("ACCEPTED", "IN_PROGRESS", "u1", "EMPLOYEE", True),
        ])
        assert len(file_logger.query("transitions", "execution")) == 2
        assert len(file_logger.query("transitions", "security")) == 1

    def test_query_filters(self, file_logger):
        file_logger.write_batch([
            log_permission_denied("EMPLOYEE", "task:delete", user_id="u1"),
            log_permission_denied("MANAGER", "user:manage", user_id="u2"),
        ])
        rows = file_logger.query("permissions", "security", filters={"user_id": "u2"})
        assert [r["permission"] for r in rows] == ["user:manage"]

    def test_query_limit(self, file_logger):
        file_logger.write_batch([log_system_event(f"e{i}") for i in range(10)])
        rows = file_logger.query("system", "execution", limit=3)
        assert [r["event"] for r in rows] == ["e0", "e1", "e2"]

    def test_query_date_range(self, file_logger):
        file_logger.write(log_system_event("today"))
        yesterday = datetime.now(timezone.utc).date() - timedelta(days=1)
        assert file_logger.query("system", "execution", end_date=yesterday) == []

    def test_files_named_by_utc_date(self, file_logger, monkeypatch):
        monkeypatch.setattr(logging_mod, "_utc_today", lambda: date(2026, 1, 1))
        file_logger.write(log_system_event("new year"))
        assert (file_logger.log_dir / "system" / "execution" / "2026-01-01.jsonl").exists()
        assert [r["event"] for r in file_logger.query("system", "execution")] == ["new year"]

    def test_query_unknown_type(self, file_logger):
        assert file_logger.query("nothing", "execution") == []

    def test_malformed_lines_skipped(self, file_logger, caplog):
        file_logger.write(log_system_event("good"))
        path = file_logger.log_dir / "system" / "execution" / f"{datetime.now(timezone.utc).date().isoformat()}.jsonl"
        with open(path, "a", encoding="utf-8") as f:
            f.write("{not json\n")
        with caplog.at_level(logging.WARNING, logger="taskflow.engine.logging"):
            rows = file_logger.query("system", "execution")
        assert [r["event"] for r in rows] == ["good"]
        assert "malformed" in caplog.text

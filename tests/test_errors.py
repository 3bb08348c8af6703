"""Unit tests for taskflow.engine.errors — Error hierarchy & serialization."""

import json

import pytest

from taskflow.engine.errors import (
    TaskflowConfigError,
    TaskflowError,
    TaskflowPermissionError,
    TaskflowValidationError,
    TransitionDeniedError,
)


class TestTaskflowError:
    """Base error class tests."""

    def test_basic_creation(self):
        err = TaskflowError("something broke")
        assert err.message == "something broke"
        assert str(err) == "something broke"
        assert err.error_type == "TaskflowError"
        assert err.task_id is None
        assert err.user_id is None

    def test_to_dict(self):
        err = TaskflowError("fail", task_id="t1", user_id="u1", extra=3)
        d = err.to_dict()
        assert d["error_type"] == "TaskflowError"
        assert d["task_id"] == "t1"
        assert d["user_id"] == "u1"
        assert d["context"] == {"extra": "3"}
        assert "timestamp" in d

    def test_to_json(self):
        parsed = json.loads(TaskflowError("fail").to_json())
        assert parsed["message"] == "fail"

    def test_repr(self):
        r = repr(TaskflowError("fail", task_id="t1", user_id="u1"))
        assert r == "TaskflowError: fail | task_id=t1 | user_id=u1"


class TestSubclasses:
    """Each subclass carries its own context fields."""

    @pytest.mark.parametrize(
        "cls",
        [TaskflowConfigError, TaskflowValidationError, TaskflowPermissionError, TransitionDeniedError],
    )
    def test_hierarchy(self, cls):
        err = cls("x")
        assert isinstance(err, TaskflowError)
        assert err.error_type == cls.__name__

    def test_config_error(self):
        err = TaskflowConfigError("bad", config_path="/x/taskflow.yaml")
        assert err.config_path == "/x/taskflow.yaml"

    def test_validation_error(self):
        err = TaskflowValidationError("bad", field="status", validation_errors=["e1"])
        d = err.to_dict()
        assert d["field"] == "status"
        assert d["validation_errors"] == ["e1"]

    def test_permission_error(self):
        err = TaskflowPermissionError("no", role="EMPLOYEE", required_permission="task:delete")
        d = err.to_dict()
        assert d["role"] == "EMPLOYEE"
        assert d["required_permission"] == "task:delete"

    def test_transition_denied(self):
        err = TransitionDeniedError(
            "no", from_status="NEW", to_status="CLOSED_APPROVED", code="invalid_transition",
        )
        d = err.to_dict()
        assert d["from_status"] == "NEW"
        assert d["to_status"] == "CLOSED_APPROVED"
        assert d["code"] == "invalid_transition"

    def test_catchable_as_base(self):
        with pytest.raises(TaskflowError):
            raise TransitionDeniedError("no")

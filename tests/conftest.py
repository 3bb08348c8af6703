"""
Taskflow Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from taskflow.productivity.models import ScoredTask
from taskflow.workflow.state_machine import TransitionContext
from taskflow.workflow.statuses import Role, TaskSize, TaskStatus

# 2026-02-02 is a Monday
MONDAY = datetime(2026, 2, 2, tzinfo=timezone.utc)

OWNER_ID = "user_owner"
MANAGER_ID = "user_manager"
OTHER_ID = "user_other"


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    """Reset the cached config and keep CWD away from any real taskflow.yaml."""
    import taskflow.engine.config as cfg_mod

    cfg_mod._config = None
    monkeypatch.chdir(tmp_path)
    yield
    cfg_mod._config = None


@pytest.fixture
def owner_ctx():
    """Factory for a context where the requester owns the task."""
    def _make(role: Role = Role.EMPLOYEE, **kwargs) -> TransitionContext:
        return TransitionContext(
            task_owner_id=OWNER_ID,
            current_user_id=OWNER_ID,
            current_user_role=role,
            **kwargs,
        )
    return _make


@pytest.fixture
def reviewer_ctx():
    """Factory for a context where someone other than the owner acts."""
    def _make(
        role: Role = Role.MANAGER,
        is_manager: bool = True,
        user_id: str = MANAGER_ID,
        **kwargs,
    ) -> TransitionContext:
        return TransitionContext(
            task_owner_id=OWNER_ID,
            current_user_id=user_id,
            current_user_role=role,
            is_manager=is_manager,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_task():
    """Factory for a ScoredTask closed at the given time."""
    counter = {"n": 0}

    def _make(
        completed_at: datetime | None = MONDAY,
        status: TaskStatus = TaskStatus.CLOSED_APPROVED,
        size: TaskSize = TaskSize.MEDIUM,
        **kwargs,
    ) -> ScoredTask:
        counter["n"] += 1
        task_id = kwargs.pop("id", f"task_{counter['n']}")
        return ScoredTask(
            id=task_id,
            status=status,
            size=size,
            completed_at=completed_at,
            **kwargs,
        )
    return _make

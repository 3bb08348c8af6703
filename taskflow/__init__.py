"""
Taskflow — Workflow core for a role-based task tracker.

Pure, synchronous building blocks shared by route handlers and the UI:

    taskflow.workflow.state_machine   status transitions gated by role + ownership
    taskflow.workflow.kanban          four-column board projection of the table
    taskflow.security.permissions     role capabilities and hierarchy checks
    taskflow.productivity             pillar scores and composite productivity

Nothing here performs I/O except the opt-in FileLogger and config loader
in taskflow.engine.
"""

__version__ = "1.0.0"
__all__ = ["engine", "workflow", "security", "productivity"]

from taskflow.workflow.statuses import Role, TaskPriority, TaskSize, TaskStatus  # noqa: F401,E402
from taskflow.workflow.state_machine import (  # noqa: F401,E402
    TransitionContext,
    ValidationResult,
    get_valid_transitions,
    transition_requires_reason,
    validate_transition,
)

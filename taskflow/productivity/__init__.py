"""Taskflow Productivity — pillar scores over a user's task history."""

from taskflow.productivity.calculate import calculate_for_users, calculate_productivity  # noqa: F401
from taskflow.productivity.models import ProductivityResult, ScoredTask, StatusTransition  # noqa: F401

__all__ = [
    "calculate_productivity",
    "calculate_for_users",
    "ProductivityResult",
    "ScoredTask",
    "StatusTransition",
]

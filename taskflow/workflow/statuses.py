"""
Task vocabulary — statuses, roles, sizes and priorities.

All enums are str-valued so that plain strings read from the persistence
layer compare equal to the members.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Union

from taskflow.engine.errors import TaskflowValidationError


class TaskStatus(str, Enum):
    NEW = "NEW"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    ON_HOLD = "ON_HOLD"
    COMPLETED_PENDING_REVIEW = "COMPLETED_PENDING_REVIEW"
    CLOSED_APPROVED = "CLOSED_APPROVED"
    REOPENED = "REOPENED"


class Role(str, Enum):
    """Roles in ascending order of authority."""
    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    DEPARTMENT_HEAD = "DEPARTMENT_HEAD"
    ADMIN = "ADMIN"


class TaskSize(str, Enum):
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"
    XLARGE = "XLARGE"


class TaskPriority(str, Enum):
    """Eisenhower quadrants, P1 through P4."""
    URGENT_IMPORTANT = "URGENT_IMPORTANT"
    URGENT_NOT_IMPORTANT = "URGENT_NOT_IMPORTANT"
    NOT_URGENT_IMPORTANT = "NOT_URGENT_IMPORTANT"
    NOT_URGENT_NOT_IMPORTANT = "NOT_URGENT_NOT_IMPORTANT"


ROLE_RANK: Dict[Role, int] = {
    Role.EMPLOYEE: 0,
    Role.MANAGER: 1,
    Role.DEPARTMENT_HEAD: 2,
    Role.ADMIN: 3,
}

STATUS_LABELS: Dict[TaskStatus, str] = {
    TaskStatus.NEW: "New",
    TaskStatus.ACCEPTED: "Accepted",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.ON_HOLD: "On Hold",
    TaskStatus.COMPLETED_PENDING_REVIEW: "Pending Review",
    TaskStatus.CLOSED_APPROVED: "Completed",
    TaskStatus.REOPENED: "Reopened",
}


def coerce_status(value: Union[TaskStatus, str]) -> TaskStatus:
    """Return the TaskStatus for a member or its string value."""
    try:
        return TaskStatus(value)
    except ValueError:
        raise TaskflowValidationError(
            f"Unknown task status: {value!r}",
            field="status",
            validation_errors=[f"expected one of {[s.value for s in TaskStatus]}"],
        ) from None


def coerce_role(value: Union[Role, str]) -> Role:
    """Return the Role for a member or its string value."""
    try:
        return Role(value)
    except ValueError:
        raise TaskflowValidationError(
            f"Unknown role: {value!r}",
            field="role",
            validation_errors=[f"expected one of {[r.value for r in Role]}"],
        ) from None


def role_rank(role: Union[Role, str]) -> int:
    return ROLE_RANK[coerce_role(role)]


def has_authority_of(role: Union[Role, str], minimum: Role) -> bool:
    """True if role ranks at or above minimum."""
    return role_rank(role) >= ROLE_RANK[minimum]


def get_status_label(status: Union[TaskStatus, str]) -> str:
    return STATUS_LABELS[coerce_status(status)]

"""
Taskflow Permissions — role capabilities plus ownership/hierarchy checks.

Two layers:

Static (role → capability):
    ROLE_PERMISSIONS is cumulative by authority rank. Each role holds every
    grant of the roles below it plus its own additions, so
    ADMIN ⊇ DEPARTMENT_HEAD ⊇ MANAGER ⊇ EMPLOYEE.

Relational (who may act on whose task):
    canViewTask / canApproveTask style predicates. The caller supplies every
    relational fact (subordinate ids, the owner's manager id). Department
    scoping for DEPARTMENT_HEAD is assumed to be applied by the caller's query.

Every function is pure and defined for every Role.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Collection, Dict, FrozenSet, List, Optional, Union

from taskflow.engine.errors import TaskflowPermissionError
from taskflow.engine.logging import LogEntry, log_permission_denied
from taskflow.workflow.statuses import ROLE_RANK, Role, coerce_role, has_authority_of

logger = logging.getLogger("taskflow.security.permissions")


class Permission(str, Enum):
    TASK_CREATE = "task:create"
    TASK_VIEW_OWN = "task:view_own"
    TASK_VIEW_TEAM = "task:view_team"
    TASK_VIEW_DEPARTMENT = "task:view_department"
    TASK_EDIT_OWN = "task:edit_own"
    TASK_ASSIGN = "task:assign"
    TASK_APPROVE = "task:approve"
    TASK_REOPEN = "task:reopen"
    TASK_DELETE = "task:delete"
    USER_VIEW_TEAM = "user:view_team"
    USER_VIEW_DEPARTMENT = "user:view_department"
    USER_MANAGE = "user:manage"
    RADAR_VIEW = "radar:view"
    KPI_MANAGE = "kpi:manage"
    ANNOUNCEMENT_CREATE = "announcement:create"
    PRODUCTIVITY_VIEW = "productivity:view"
    PRODUCTIVITY_MANAGE = "productivity:manage"


# Grants a role adds on top of everything the lower roles hold
_ROLE_GRANTS: Dict[Role, FrozenSet[Permission]] = {
    Role.EMPLOYEE: frozenset({
        Permission.TASK_CREATE,
        Permission.TASK_VIEW_OWN,
        Permission.TASK_EDIT_OWN,
    }),
    Role.MANAGER: frozenset({
        Permission.TASK_VIEW_TEAM,
        Permission.TASK_ASSIGN,
        Permission.TASK_APPROVE,
        Permission.TASK_REOPEN,
        Permission.USER_VIEW_TEAM,
        Permission.RADAR_VIEW,
        Permission.PRODUCTIVITY_VIEW,
    }),
    Role.DEPARTMENT_HEAD: frozenset({
        Permission.TASK_VIEW_DEPARTMENT,
        Permission.USER_VIEW_DEPARTMENT,
        Permission.KPI_MANAGE,
    }),
    Role.ADMIN: frozenset({
        Permission.TASK_DELETE,
        Permission.USER_MANAGE,
        Permission.ANNOUNCEMENT_CREATE,
        Permission.PRODUCTIVITY_MANAGE,
    }),
}


def _build_role_permissions() -> Dict[Role, FrozenSet[Permission]]:
    result: Dict[Role, FrozenSet[Permission]] = {}
    inherited: FrozenSet[Permission] = frozenset()
    for role in sorted(Role, key=ROLE_RANK.__getitem__):
        inherited = inherited | _ROLE_GRANTS[role]
        result[role] = inherited
    return result


ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = _build_role_permissions()


def _coerce_permission(permission: Union[Permission, str]) -> Optional[Permission]:
    try:
        return Permission(permission)
    except ValueError:
        return None


def has_permission(role: Union[Role, str], permission: Union[Permission, str]) -> bool:
    """Table lookup. Unknown permission keys are never granted."""
    perm = _coerce_permission(permission)
    if perm is None:
        logger.warning("Unknown permission key %r", permission)
        return False
    return perm in ROLE_PERMISSIONS[coerce_role(role)]


def get_permissions(role: Union[Role, str]) -> List[Permission]:
    return sorted(ROLE_PERMISSIONS[coerce_role(role)], key=lambda p: p.value)


def require_permission(
    role: Union[Role, str],
    permission: Union[Permission, str],
    user_id: Optional[str] = None,
) -> None:
    """
    Raise TaskflowPermissionError if role lacks permission.
    For route handlers that prefer exceptions over a boolean.
    """
    if not has_permission(role, permission):
        entry = permission_denied_entry(role, permission, user_id)
        logger.warning("Permission denied: %s", entry.to_json())
        raise TaskflowPermissionError(
            f"Role {entry.data['role']} lacks permission {entry.data['permission']}",
            role=entry.data["role"],
            required_permission=entry.data["permission"],
            user_id=user_id,
        )


def permission_denied_entry(
    role: Union[Role, str],
    permission: Union[Permission, str],
    user_id: Optional[str] = None,
) -> LogEntry:
    return log_permission_denied(
        role=coerce_role(role).value,
        permission=str(getattr(permission, "value", permission)),
        user_id=user_id,
    )


def is_manager_or_above(role: Union[Role, str]) -> bool:
    return has_authority_of(role, Role.MANAGER)


def is_direct_manager(user_id: str, owner_manager_id: Optional[str]) -> bool:
    """True if user_id is the manager recorded on the task owner's profile."""
    return owner_manager_id is not None and owner_manager_id == user_id


def can_view_task(
    viewer_role: Union[Role, str],
    viewer_id: str,
    task_owner_id: str,
    viewer_subordinate_ids: Collection[str],
) -> bool:
    if viewer_id == task_owner_id:
        return True
    role = coerce_role(viewer_role)
    if role == Role.MANAGER:
        return task_owner_id in viewer_subordinate_ids
    return has_authority_of(role, Role.DEPARTMENT_HEAD)


def can_edit_task(editor_role: Union[Role, str], editor_id: str, task_owner_id: str) -> bool:
    """Only the owner edits a task, whatever their role."""
    coerce_role(editor_role)
    return editor_id == task_owner_id


def can_approve_task(
    approver_role: Union[Role, str],
    approver_id: str,
    task_owner_id: str,
    approver_subordinate_ids: Collection[str],
) -> bool:
    role = coerce_role(approver_role)
    if not is_manager_or_above(role):
        return False
    if approver_id == task_owner_id:
        return False
    if role == Role.MANAGER:
        return task_owner_id in approver_subordinate_ids
    return True


def can_reopen_task(
    reviewer_role: Union[Role, str],
    reviewer_id: str,
    task_owner_id: str,
    reviewer_subordinate_ids: Collection[str],
) -> bool:
    """Sending work back shares the approval scope and needs task:reopen."""
    return has_permission(reviewer_role, Permission.TASK_REOPEN) and can_approve_task(
        reviewer_role, reviewer_id, task_owner_id, reviewer_subordinate_ids
    )


def can_assign_tasks(role: Union[Role, str]) -> bool:
    return has_permission(role, Permission.TASK_ASSIGN)


def can_view_radar(role: Union[Role, str]) -> bool:
    return has_permission(role, Permission.RADAR_VIEW)


def can_view_productivity(role: Union[Role, str]) -> bool:
    return is_manager_or_above(role)

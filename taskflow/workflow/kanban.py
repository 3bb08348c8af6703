"""
Kanban Column Mapper — four-column board view over the seven task statuses.

Columns:
    TODO         NEW, ACCEPTED, REOPENED
    IN_PROGRESS  IN_PROGRESS, ON_HOLD
    IN_REVIEW    COMPLETED_PENDING_REVIEW
    DONE         CLOSED_APPROVED

Drop targets are projected from the authoritative transition table in
taskflow.workflow.state_machine. The board additionally offers a few moves
the state machine does not define; they are listed once in BOARD_ONLY_EDGES
so the difference stays visible and testable.

``requires_review`` selects the workflow mode. With review on, IN_PROGRESS
goes to COMPLETED_PENDING_REVIEW. With review off, that edge is replaced by
a direct IN_PROGRESS -> CLOSED_APPROVED close.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from taskflow.workflow.state_machine import outbound_rules
from taskflow.workflow.statuses import TaskStatus, coerce_status


class KanbanColumn(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    DONE = "DONE"


@dataclass(frozen=True)
class KanbanColumnConfig:
    id: KanbanColumn
    label: str
    statuses: Tuple[TaskStatus, ...]
    default_status: TaskStatus


@dataclass(frozen=True)
class DropTarget:
    status: TaskStatus
    requires_reason: bool


@dataclass(frozen=True)
class BoardEdge:
    """A drag-drop move that exists on the board but not in the state machine."""
    from_status: TaskStatus
    to_status: TaskStatus
    requires_reason: bool = False
    review_mode: Optional[bool] = None  # None: both modes; else only that mode


KANBAN_COLUMNS: Dict[KanbanColumn, KanbanColumnConfig] = {
    KanbanColumn.TODO: KanbanColumnConfig(
        KanbanColumn.TODO, "To Do",
        (TaskStatus.NEW, TaskStatus.ACCEPTED, TaskStatus.REOPENED),
        TaskStatus.NEW,
    ),
    KanbanColumn.IN_PROGRESS: KanbanColumnConfig(
        KanbanColumn.IN_PROGRESS, "In Progress",
        (TaskStatus.IN_PROGRESS, TaskStatus.ON_HOLD),
        TaskStatus.IN_PROGRESS,
    ),
    KanbanColumn.IN_REVIEW: KanbanColumnConfig(
        KanbanColumn.IN_REVIEW, "In Review",
        (TaskStatus.COMPLETED_PENDING_REVIEW,),
        TaskStatus.COMPLETED_PENDING_REVIEW,
    ),
    KanbanColumn.DONE: KanbanColumnConfig(
        KanbanColumn.DONE, "Done",
        (TaskStatus.CLOSED_APPROVED,),
        TaskStatus.CLOSED_APPROVED,
    ),
}

COLUMN_ORDER: Tuple[KanbanColumn, ...] = (
    KanbanColumn.TODO,
    KanbanColumn.IN_PROGRESS,
    KanbanColumn.IN_REVIEW,
    KanbanColumn.DONE,
)

_COLUMN_BY_STATUS: Dict[TaskStatus, KanbanColumn] = {
    status: column_id
    for column_id, config in KANBAN_COLUMNS.items()
    for status in config.statuses
}

# Moves the board allows that the state machine has no rule for.
# TODO: confirm with product whether reopening a closed task belongs in the
# state machine or should be removed from the board.
BOARD_ONLY_EDGES: Tuple[BoardEdge, ...] = (
    BoardEdge(TaskStatus.IN_PROGRESS, TaskStatus.ACCEPTED),
    BoardEdge(TaskStatus.IN_PROGRESS, TaskStatus.CLOSED_APPROVED, review_mode=False),
    BoardEdge(TaskStatus.COMPLETED_PENDING_REVIEW, TaskStatus.IN_PROGRESS),
    BoardEdge(TaskStatus.CLOSED_APPROVED, TaskStatus.REOPENED, requires_reason=True),
)

# Review-mode-only edges from the state machine table
_REVIEW_ONLY = {(TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED_PENDING_REVIEW)}


def get_column_for_status(status: Union[TaskStatus, str]) -> KanbanColumn:
    return _COLUMN_BY_STATUS[coerce_status(status)]


def get_default_status_for_column(column_id: Union[KanbanColumn, str]) -> TaskStatus:
    """Status a task takes when dropped on a column without further context."""
    return KANBAN_COLUMNS[KanbanColumn(column_id)].default_status


def get_column_config(column_id: Union[KanbanColumn, str]) -> KanbanColumnConfig:
    return KANBAN_COLUMNS[KanbanColumn(column_id)]


def get_status_badge(status: Union[TaskStatus, str]) -> Optional[Dict[str, str]]:
    """Badge shown on cards whose status is hidden inside a shared column."""
    status = coerce_status(status)
    if status == TaskStatus.ON_HOLD:
        return {"label": "On Hold", "variant": "warning"}
    if status == TaskStatus.REOPENED:
        return {"label": "Reopened", "variant": "danger"}
    return None


def get_board_only_edges() -> List[Tuple[TaskStatus, TaskStatus]]:
    return [(edge.from_status, edge.to_status) for edge in BOARD_ONLY_EDGES]


def get_valid_drop_targets(
    from_status: Union[TaskStatus, str],
    requires_review: bool = True,
) -> List[DropTarget]:
    """
    Statuses a card can be dragged to from from_status.

    State machine edges come first in table order, followed by board-only
    edges. Role and ownership are not considered here; the transition is
    validated again when the drop is submitted.
    """
    from_status = coerce_status(from_status)
    targets: List[DropTarget] = []

    for rule in outbound_rules(from_status):
        if not requires_review and rule.key in _REVIEW_ONLY:
            continue
        targets.append(DropTarget(rule.to_status, rule.requires_reason))

    for edge in BOARD_ONLY_EDGES:
        if edge.from_status != from_status:
            continue
        if edge.review_mode is not None and edge.review_mode != requires_review:
            continue
        targets.append(DropTarget(edge.to_status, edge.requires_reason))

    return targets


def is_valid_drop_target(
    from_status: Union[TaskStatus, str],
    to_column: Union[KanbanColumn, str],
    requires_review: bool = True,
) -> bool:
    return get_drop_target_status(from_status, to_column, requires_review) is not None


def get_drop_target_status(
    from_status: Union[TaskStatus, str],
    to_column: Union[KanbanColumn, str],
    requires_review: bool = True,
) -> Optional[DropTarget]:
    """Resolve a column drop to one concrete status. First matching target wins."""
    column_statuses = KANBAN_COLUMNS[KanbanColumn(to_column)].statuses
    for target in get_valid_drop_targets(from_status, requires_review):
        if target.status in column_statuses:
            return target
    return None

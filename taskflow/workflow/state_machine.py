"""
Task State Machine — the authoritative table of status transitions.

Every legal status change is one immutable TransitionRule keyed by
(from_status, to_status). A rule names the roles allowed to request it,
whether a reason must be supplied, whether it is a manager-approval step,
and an optional guard over the TransitionContext.

Verdicts are values, never exceptions:

    result = validate_transition(TaskStatus.IN_PROGRESS, TaskStatus.ON_HOLD, ctx)
    if not result.valid:
        return http_error(result.code, result.error)

Lifecycle:

    NEW ──> ACCEPTED ──> IN_PROGRESS ──> ON_HOLD ──> IN_PROGRESS
    NEW ──────────────> IN_PROGRESS ──> COMPLETED_PENDING_REVIEW
    COMPLETED_PENDING_REVIEW ──> CLOSED_APPROVED (terminal)
    COMPLETED_PENDING_REVIEW ──> REOPENED ──> IN_PROGRESS
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Tuple, Union

import networkx as nx

from taskflow.engine.errors import TransitionDeniedError
from taskflow.engine.logging import LogEntry, log_transition_decision
from taskflow.workflow.statuses import Role, TaskStatus, coerce_role, coerce_status

logger = logging.getLogger("taskflow.workflow.state_machine")

MIN_REASON_LENGTH = 10

ALL_ROLES: FrozenSet[Role] = frozenset(Role)
MANAGER_ROLES: FrozenSet[Role] = frozenset({Role.MANAGER, Role.DEPARTMENT_HEAD, Role.ADMIN})


class TransitionErrorCode(str, Enum):
    INVALID_TRANSITION = "invalid_transition"
    ROLE_NOT_PERMITTED = "role_not_permitted"
    NOT_OWNER = "not_owner"
    SELF_ACTION_FORBIDDEN = "self_action_forbidden"
    INSUFFICIENT_SCOPE = "insufficient_scope"
    REASON_TOO_SHORT = "reason_too_short"


@dataclass(frozen=True)
class TransitionContext:
    """Facts about one transition attempt. Built per request, used once."""
    task_owner_id: str
    current_user_id: str
    current_user_role: Role
    is_manager: bool = False  # current user is the owner's direct manager
    reason: Optional[str] = None
    on_hold_reason: Optional[str] = None

    @property
    def is_owner(self) -> bool:
        return self.task_owner_id == self.current_user_id


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None
    code: Optional[TransitionErrorCode] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, code: TransitionErrorCode, error: str) -> "ValidationResult":
        return cls(valid=False, error=error, code=code)

    def raise_for_error(self, **context) -> None:
        """Raise TransitionDeniedError if this verdict is a failure."""
        if not self.valid:
            raise TransitionDeniedError(
                self.error or "Transition denied",
                code=self.code.value if self.code else None,
                **context,
            )


Guard = Callable[[TransitionContext], ValidationResult]


@dataclass(frozen=True)
class TransitionRule:
    from_status: TaskStatus
    to_status: TaskStatus
    allowed_roles: FrozenSet[Role]
    requires_reason: bool = False
    requires_manager_approval: bool = False
    guard: Optional[Guard] = None

    @property
    def key(self) -> Tuple[TaskStatus, TaskStatus]:
        return (self.from_status, self.to_status)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def _has_reason(text: Optional[str]) -> bool:
    return bool(text) and len(text.strip()) >= MIN_REASON_LENGTH


def _owner_only(action: str) -> Guard:
    def guard(ctx: TransitionContext) -> ValidationResult:
        if not ctx.is_owner:
            return ValidationResult.fail(
                TransitionErrorCode.NOT_OWNER, f"Only task owner can {action}"
            )
        return ValidationResult.ok()
    return guard


def _guard_on_hold(ctx: TransitionContext) -> ValidationResult:
    if not ctx.is_owner:
        return ValidationResult.fail(
            TransitionErrorCode.NOT_OWNER, "Only task owner can put task on hold"
        )
    if not _has_reason(ctx.on_hold_reason):
        return ValidationResult.fail(
            TransitionErrorCode.REASON_TOO_SHORT,
            f"On-hold reason must be at least {MIN_REASON_LENGTH} characters",
        )
    return ValidationResult.ok()


def _review_scope(ctx: TransitionContext, verb: str) -> ValidationResult:
    """Reviewer must not be the owner; a plain MANAGER must be the owner's manager."""
    if ctx.is_owner:
        return ValidationResult.fail(
            TransitionErrorCode.SELF_ACTION_FORBIDDEN, f"Cannot {verb} your own task"
        )
    if ctx.current_user_role == Role.MANAGER and not ctx.is_manager:
        return ValidationResult.fail(
            TransitionErrorCode.INSUFFICIENT_SCOPE,
            f"Only the employee's manager can {verb}",
        )
    return ValidationResult.ok()


def _guard_approve(ctx: TransitionContext) -> ValidationResult:
    return _review_scope(ctx, "approve")


def _guard_reject(ctx: TransitionContext) -> ValidationResult:
    scope = _review_scope(ctx, "reject")
    if not scope.valid:
        return scope
    if not _has_reason(ctx.reason):
        return ValidationResult.fail(
            TransitionErrorCode.REASON_TOO_SHORT,
            f"Rejection reason must be at least {MIN_REASON_LENGTH} characters",
        )
    return ValidationResult.ok()


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------

TRANSITIONS: Tuple[TransitionRule, ...] = (
    TransitionRule(
        TaskStatus.NEW, TaskStatus.ACCEPTED, ALL_ROLES,
        guard=_owner_only("accept the task"),
    ),
    TransitionRule(
        TaskStatus.ACCEPTED, TaskStatus.IN_PROGRESS, ALL_ROLES,
        guard=_owner_only("start the task"),
    ),
    # Self-assigned tasks may skip ACCEPTED
    TransitionRule(
        TaskStatus.NEW, TaskStatus.IN_PROGRESS, ALL_ROLES,
        guard=_owner_only("start the task"),
    ),
    TransitionRule(
        TaskStatus.IN_PROGRESS, TaskStatus.ON_HOLD, ALL_ROLES,
        requires_reason=True,
        guard=_guard_on_hold,
    ),
    TransitionRule(
        TaskStatus.ON_HOLD, TaskStatus.IN_PROGRESS, ALL_ROLES,
        guard=_owner_only("resume the task"),
    ),
    TransitionRule(
        TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED_PENDING_REVIEW, ALL_ROLES,
        guard=_owner_only("mark task for review"),
    ),
    TransitionRule(
        TaskStatus.COMPLETED_PENDING_REVIEW, TaskStatus.CLOSED_APPROVED, MANAGER_ROLES,
        requires_manager_approval=True,
        guard=_guard_approve,
    ),
    TransitionRule(
        TaskStatus.COMPLETED_PENDING_REVIEW, TaskStatus.REOPENED, MANAGER_ROLES,
        requires_reason=True,
        requires_manager_approval=True,
        guard=_guard_reject,
    ),
    TransitionRule(
        TaskStatus.REOPENED, TaskStatus.IN_PROGRESS, ALL_ROLES,
        guard=_owner_only("resume reopened task"),
    ),
)


def _index_rules(rules: Tuple[TransitionRule, ...]) -> Dict[Tuple[TaskStatus, TaskStatus], TransitionRule]:
    index: Dict[Tuple[TaskStatus, TaskStatus], TransitionRule] = {}
    for rule in rules:
        if rule.key in index:
            raise ValueError(
                f"Duplicate transition {rule.from_status.value} -> {rule.to_status.value}"
            )
        index[rule.key] = rule
    return index


_RULES_BY_KEY = _index_rules(TRANSITIONS)


def _build_graph(rules: Tuple[TransitionRule, ...]) -> nx.DiGraph:
    graph = nx.DiGraph()
    graph.add_nodes_from(TaskStatus)
    for rule in rules:
        graph.add_edge(
            rule.from_status,
            rule.to_status,
            allowed_roles=rule.allowed_roles,
            requires_reason=rule.requires_reason,
            requires_manager_approval=rule.requires_manager_approval,
        )
    return graph


_GRAPH = _build_graph(TRANSITIONS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_transition_config(
    from_status: Union[TaskStatus, str],
    to_status: Union[TaskStatus, str],
) -> Optional[TransitionRule]:
    return _RULES_BY_KEY.get((coerce_status(from_status), coerce_status(to_status)))


def validate_transition(
    from_status: Union[TaskStatus, str],
    to_status: Union[TaskStatus, str],
    context: TransitionContext,
) -> ValidationResult:
    """
    Decide whether the requested status change is legal.

    Checks, in order: a rule exists for the exact pair, the requester's role
    is allowed by that rule, then the rule's guard.
    """
    from_status = coerce_status(from_status)
    to_status = coerce_status(to_status)
    role = coerce_role(context.current_user_role)

    rule = _RULES_BY_KEY.get((from_status, to_status))
    if rule is None:
        result = ValidationResult.fail(
            TransitionErrorCode.INVALID_TRANSITION,
            f"Invalid transition from {from_status.value} to {to_status.value}",
        )
    elif role not in rule.allowed_roles:
        result = ValidationResult.fail(
            TransitionErrorCode.ROLE_NOT_PERMITTED,
            f"Role {role.value} cannot perform this transition",
        )
    elif rule.guard is not None:
        result = rule.guard(context)
    else:
        result = ValidationResult.ok()

    logger.debug(
        "transition %s -> %s by %s (%s): %s",
        from_status.value, to_status.value, context.current_user_id, role.value,
        "allowed" if result.valid else result.code.value,
    )
    return result


def get_valid_transitions(
    current_status: Union[TaskStatus, str],
    context: TransitionContext,
) -> List[TaskStatus]:
    """Destinations the requester could move the task to right now, in table order."""
    current_status = coerce_status(current_status)
    role = coerce_role(context.current_user_role)
    return [
        rule.to_status
        for rule in TRANSITIONS
        if rule.from_status == current_status
        and role in rule.allowed_roles
        and (rule.guard is None or rule.guard(context).valid)
    ]


def transition_requires_reason(
    from_status: Union[TaskStatus, str],
    to_status: Union[TaskStatus, str],
) -> bool:
    rule = get_transition_config(from_status, to_status)
    return rule.requires_reason if rule else False


def transition_requires_manager_approval(
    from_status: Union[TaskStatus, str],
    to_status: Union[TaskStatus, str],
) -> bool:
    rule = get_transition_config(from_status, to_status)
    return rule.requires_manager_approval if rule else False


def outbound_rules(from_status: Union[TaskStatus, str]) -> List[TransitionRule]:
    """Rules leaving a status, in table order, without any context filtering."""
    from_status = coerce_status(from_status)
    return [rule for rule in TRANSITIONS if rule.from_status == from_status]


def transition_graph() -> nx.DiGraph:
    """A copy of the transition table as a directed graph over TaskStatus."""
    return _GRAPH.copy()


def get_reachable_statuses(status: Union[TaskStatus, str]) -> Set[TaskStatus]:
    """Every status reachable from status through one or more transitions."""
    return set(nx.descendants(_GRAPH, coerce_status(status)))


def is_terminal(status: Union[TaskStatus, str]) -> bool:
    return _GRAPH.out_degree(coerce_status(status)) == 0


def transition_log_entry(
    from_status: Union[TaskStatus, str],
    to_status: Union[TaskStatus, str],
    context: TransitionContext,
    result: ValidationResult,
    task_id: Optional[str] = None,
) -> LogEntry:
    """Structured audit entry for a verdict, ready for FileLogger.write."""
    return log_transition_decision(
        from_status=coerce_status(from_status).value,
        to_status=coerce_status(to_status).value,
        user_id=context.current_user_id,
        role=coerce_role(context.current_user_role).value,
        valid=result.valid,
        task_id=task_id,
        code=result.code.value if result.code else None,
        error=result.error,
    )

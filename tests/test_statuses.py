"""Unit tests for taskflow.workflow.statuses — vocabulary and role ranks."""

import pytest

from taskflow.engine.errors import TaskflowValidationError
from taskflow.workflow.statuses import (
    Role,
    TaskStatus,
    coerce_role,
    coerce_status,
    get_status_label,
    has_authority_of,
    role_rank,
)


class TestCoercion:
    def test_status_from_string(self):
        assert coerce_status("ON_HOLD") is TaskStatus.ON_HOLD

    def test_status_passthrough(self):
        assert coerce_status(TaskStatus.NEW) is TaskStatus.NEW

    def test_str_enum_equals_raw_value(self):
        assert TaskStatus.REOPENED == "REOPENED"

    def test_unknown_status(self):
        with pytest.raises(TaskflowValidationError, match="Unknown task status") as exc_info:
            coerce_status("ARCHIVED")
        assert exc_info.value.field == "status"

    def test_unknown_role(self):
        with pytest.raises(TaskflowValidationError) as exc_info:
            coerce_role("OWNER")
        assert exc_info.value.field == "role"


class TestRoleRank:
    def test_ordering(self):
        ranks = [role_rank(r) for r in (Role.EMPLOYEE, Role.MANAGER, Role.DEPARTMENT_HEAD, Role.ADMIN)]
        assert ranks == [0, 1, 2, 3]

    def test_has_authority_of(self):
        assert has_authority_of(Role.ADMIN, Role.MANAGER)
        assert has_authority_of(Role.MANAGER, Role.MANAGER)
        assert not has_authority_of(Role.EMPLOYEE, Role.MANAGER)
        assert has_authority_of("DEPARTMENT_HEAD", Role.MANAGER)


class TestLabels:
    @pytest.mark.parametrize(
        "status,label",
        [
            (TaskStatus.NEW, "New"),
            (TaskStatus.COMPLETED_PENDING_REVIEW, "Pending Review"),
            (TaskStatus.CLOSED_APPROVED, "Completed"),
        ],
    )
    def test_label(self, status, label):
        assert get_status_label(status) == label

    def test_every_status_labelled(self):
        for status in TaskStatus:
            assert get_status_label(status)

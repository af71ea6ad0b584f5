"""Unit tests for the task status lifecycle."""

from __future__ import annotations

import pytest

from project_hub_service.core.exceptions import InvalidTransition, ValidationFailed
from project_hub_service.services.task_status import (
    LIFECYCLE,
    TERMINAL_STATUSES,
    TaskStatus,
    TaskStatusStateMachine,
    parse_status,
)
from tests.helpers import make_task

NON_TERMINAL = [status for status in TaskStatus if status not in TERMINAL_STATUSES]


@pytest.fixture
def machine() -> TaskStatusStateMachine:
    return TaskStatusStateMachine()


@pytest.mark.unit
def test_forward_skips_stop_at_completed(machine) -> None:
    assert machine.allowed_targets(TaskStatus.PENDING) == frozenset(
        {
            TaskStatus.IN_PROGRESS,
            TaskStatus.UNDER_REVIEW,
            TaskStatus.COMPLETED,
            TaskStatus.CANCELLED,
        }
    )
    assert machine.allowed_targets(TaskStatus.UNDER_REVIEW) == frozenset(
        {TaskStatus.COMPLETED, TaskStatus.CANCELLED}
    )


@pytest.mark.unit
def test_billing_statuses_follow_completion(machine) -> None:
    assert machine.allowed_targets(TaskStatus.COMPLETED) == frozenset(
        {TaskStatus.INVOICEABLE, TaskStatus.INVOICED, TaskStatus.CANCELLED}
    )
    assert machine.allowed_targets(TaskStatus.INVOICEABLE) == frozenset(
        {TaskStatus.INVOICED, TaskStatus.CANCELLED}
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "current", [TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.UNDER_REVIEW]
)
@pytest.mark.parametrize("target", [TaskStatus.INVOICEABLE, TaskStatus.INVOICED])
def test_billing_statuses_cannot_bypass_completion(machine, current, target) -> None:
    with pytest.raises(InvalidTransition) as exc_info:
        machine.transition(make_task(status=current.value), target)

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"current": current.value, "requested": target.value}


@pytest.mark.unit
def test_backward_and_same_state_moves_are_invalid(machine) -> None:
    for index, current in enumerate(LIFECYCLE):
        for target in LIFECYCLE[: index + 1]:
            assert not machine.can_transition(current, target)


@pytest.mark.unit
def test_completed_to_pending_raises(machine) -> None:
    task = make_task(status="completed")

    with pytest.raises(InvalidTransition) as exc_info:
        machine.transition(task, TaskStatus.PENDING)

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"current": "completed", "requested": "pending"}


@pytest.mark.unit
@pytest.mark.parametrize("current", NON_TERMINAL)
def test_cancel_is_valid_from_every_non_terminal_status(machine, current) -> None:
    task = make_task(status=current.value)

    cancelled = machine.transition(task, TaskStatus.CANCELLED)

    assert cancelled.status == "cancelled"
    assert task.status == current.value


@pytest.mark.unit
@pytest.mark.parametrize("current", sorted(TERMINAL_STATUSES))
def test_terminal_statuses_have_no_exits(machine, current) -> None:
    assert machine.allowed_targets(current) == frozenset()


@pytest.mark.unit
def test_legacy_review_status_is_never_a_target(machine) -> None:
    for current in TaskStatus:
        assert TaskStatus.REVIEW not in machine.allowed_targets(current)
    assert machine.allowed_targets(TaskStatus.REVIEW) == frozenset({TaskStatus.CANCELLED})


@pytest.mark.unit
def test_parse_status() -> None:
    assert parse_status("in-progress") is TaskStatus.IN_PROGRESS
    with pytest.raises(ValidationFailed, match="Please provide a status"):
        parse_status(None)
    with pytest.raises(ValidationFailed, match="Unknown status"):
        parse_status("done")

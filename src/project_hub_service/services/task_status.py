"""Task status lifecycle."""

from __future__ import annotations

import dataclasses
from enum import StrEnum
from typing import TYPE_CHECKING

from project_hub_service.core.exceptions import InvalidTransition, ValidationFailed

if TYPE_CHECKING:
    from project_hub_service.domain import Task


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    UNDER_REVIEW = "under-review"
    COMPLETED = "completed"
    INVOICEABLE = "invoiceable"
    INVOICED = "invoiced"
    CANCELLED = "cancelled"
    # Legacy duplicate of under-review; kept so stored values stay readable.
    REVIEW = "review"


LIFECYCLE: tuple[TaskStatus, ...] = (
    TaskStatus.PENDING,
    TaskStatus.IN_PROGRESS,
    TaskStatus.UNDER_REVIEW,
    TaskStatus.COMPLETED,
    TaskStatus.INVOICEABLE,
    TaskStatus.INVOICED,
)

TERMINAL_STATUSES: frozenset[TaskStatus] = frozenset({TaskStatus.INVOICED, TaskStatus.CANCELLED})

INITIAL_STATUS = TaskStatus.PENDING


def parse_status(raw: object) -> TaskStatus:
    """Parse a requested status, raising ValidationFailed for unknown values."""
    if not isinstance(raw, str) or raw == "":
        raise ValidationFailed("Please provide a status")
    try:
        return TaskStatus(raw)
    except ValueError as exc:
        allowed = ", ".join(status.value for status in TaskStatus)
        raise ValidationFailed(f"Unknown status '{raw}'. Must be one of: {allowed}") from exc


class TaskStatusStateMachine:
    """
    Validates status changes.

    Moves go forward along ``LIFECYCLE``; going back or staying put is not
    allowed. Skipping ahead never passes ``completed``, so every billed task
    was completed first. ``cancelled`` is reachable from every non-terminal
    status. ``review`` has no way in and its only way out is ``cancelled``.
    """

    def allowed_targets(self, current: TaskStatus) -> frozenset[TaskStatus]:
        """Statuses reachable from ``current`` in one request."""
        if current in TERMINAL_STATUSES:
            return frozenset()

        targets = {TaskStatus.CANCELLED}
        if current in LIFECYCLE:
            position = LIFECYCLE.index(current)
            completed = LIFECYCLE.index(TaskStatus.COMPLETED)
            end = completed + 1 if position < completed else len(LIFECYCLE)
            targets.update(LIFECYCLE[position + 1 : end])
        return frozenset(targets)

    def can_transition(self, current: TaskStatus, requested: TaskStatus) -> bool:
        return requested in self.allowed_targets(current)

    def transition(self, task: Task, requested: TaskStatus) -> Task:
        """Return a copy of ``task`` in ``requested`` status, or raise InvalidTransition."""
        current = TaskStatus(task.status)
        if not self.can_transition(current, requested):
            raise InvalidTransition(current.value, requested.value)
        return dataclasses.replace(task, status=requested.value)

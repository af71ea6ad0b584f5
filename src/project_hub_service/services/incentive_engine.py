"""Incentive computation and the exactly-once award on task completion."""

from __future__ import annotations

import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from project_hub_service.core.exceptions import AlreadyAwarded
from project_hub_service.domain import Incentive, IncentiveType, now_iso
from project_hub_service.logging import get_logger

if TYPE_CHECKING:
    from project_hub_service.domain import Task
    from project_hub_service.services.task_store import TaskStore

_CENT = Decimal("0.01")


def compute_incentive_amount(amount: float, percentage: float) -> Decimal:
    """``amount * percentage / 100`` rounded half-up to cents."""
    value = Decimal(str(amount)) * Decimal(str(percentage)) / Decimal(100)
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


class TaskIncentiveEngine:
    """
    Awards the Task and Verification incentives of a completed task.

    The award is recorded at most once per task: the store flips
    ``incentive_awarded`` with a compare-and-set in the same transaction that
    appends the records, so a second or concurrent call writes nothing.
    """

    def __init__(self, store: TaskStore) -> None:
        self._store = store
        self._logger = get_logger(__name__)

    def compute(self, task: Task, verifier_id: str | None = None) -> list[Incentive]:
        """Build the incentive records for ``task`` without persisting them."""
        date = now_iso()
        components: list[tuple[str | None, float, IncentiveType]] = [
            (task.assigned_to, task.task_incentive_percentage, IncentiveType.TASK),
        ]
        if verifier_id is not None and verifier_id != task.assigned_to:
            components.append(
                (verifier_id, task.verification_incentive_percentage, IncentiveType.VERIFICATION)
            )

        incentives: list[Incentive] = []
        for user_id, percentage, incentive_type in components:
            if not user_id:
                continue
            value = compute_incentive_amount(task.amount, percentage)
            if value <= 0:
                continue
            incentives.append(
                Incentive(
                    incentive_id=f"inc-{uuid.uuid4()}",
                    user_id=user_id,
                    task_id=task.task_id,
                    project_id=task.project_id,
                    task_amount=task.amount,
                    incentive_amount=float(value),
                    incentive_type=incentive_type,
                    date=date,
                )
            )
        return incentives

    def award_incentives(self, task: Task, verifier_id: str | None = None) -> list[Incentive]:
        """
        Record the incentives for ``task`` and mark it awarded.

        Raises AlreadyAwarded if the task was awarded before, including by a
        concurrent call that won the race.
        """
        if task.incentive_awarded:
            raise AlreadyAwarded(task.task_id)

        incentives = self.compute(task, verifier_id)
        if not self._store.award_incentives(task.task_id, incentives):
            raise AlreadyAwarded(task.task_id)

        self._logger.info(
            "Incentives awarded",
            extra={
                "task_id": task.task_id,
                "incentive_count": len(incentives),
                "recipients": [incentive.user_id for incentive in incentives],
            },
        )
        return incentives

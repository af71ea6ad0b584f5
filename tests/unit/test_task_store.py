"""Unit tests for TaskStore."""

from __future__ import annotations

import pytest

from project_hub_service.domain import Incentive, IncentiveType, TagDocument
from project_hub_service.services.database import Database
from project_hub_service.services.task_store import DuplicateTaskError, TaskStore
from tests.helpers import ALICE, BOB, make_task


@pytest.fixture
def store(tmp_path):
    database = Database(str(tmp_path / "tasks.db"))
    yield TaskStore(database)
    database.close()


def _incentive(incentive_id: str, user_id: str, amount: float, date: str) -> Incentive:
    return Incentive(
        incentive_id=incentive_id,
        user_id=user_id,
        task_id=None,
        project_id=None,
        task_amount=None,
        incentive_amount=amount,
        incentive_type=IncentiveType.TASK,
        date=date,
    )


@pytest.mark.unit
def test_insert_and_get_task_with_team(store) -> None:
    task = make_task(team=frozenset({ALICE.id, BOB.id}), verifier_id=BOB.id)
    store.insert_task(task)

    assert store.get_task("task-1") == task
    assert store.get_task("task-missing") is None


@pytest.mark.unit
def test_duplicate_task_id_raises(store) -> None:
    store.insert_task(make_task())

    with pytest.raises(DuplicateTaskError):
        store.insert_task(make_task())


@pytest.mark.unit
def test_update_status_is_conditional_on_previous_status(store) -> None:
    store.insert_task(make_task(status="pending"))

    changed = store.update_status(
        "task-1",
        "in-progress",
        expected_status="pending",
        updated_at="2026-01-02T00:00:00.000Z",
        started_at="2026-01-02T00:00:00.000Z",
    )
    assert changed == 1

    stale = store.update_status(
        "task-1", "cancelled", expected_status="pending", updated_at="2026-01-03T00:00:00.000Z"
    )
    assert stale == 0

    task = store.get_task("task-1")
    assert task is not None
    assert task.status == "in-progress"
    assert task.started_at == "2026-01-02T00:00:00.000Z"
    counts = store.count_tasks_by_status()
    assert counts["in-progress"] == 1
    assert counts["pending"] == 0
    assert counts["cancelled"] == 0


@pytest.mark.unit
def test_award_is_compare_and_set(store) -> None:
    store.insert_task(make_task())
    first = _incentive("inc-1", ALICE.id, 60.0, "2026-01-05T00:00:00.000Z")

    assert store.award_incentives("task-1", [first]) is True
    assert store.award_incentives("task-1", [first]) is False
    assert [record.incentive_id for record in store.list_incentives(user_id=ALICE.id)] == ["inc-1"]


@pytest.mark.unit
def test_monthly_totals_group_by_year_month(store) -> None:
    for task_id in ("task-1", "task-2", "task-3"):
        store.insert_task(make_task(task_id))
    store.award_incentives("task-1", [_incentive("inc-1", ALICE.id, 10.0, "2026-01-05T00:00:00Z")])
    store.award_incentives("task-2", [_incentive("inc-2", ALICE.id, 2.5, "2026-01-20T00:00:00Z")])
    store.award_incentives("task-3", [_incentive("inc-3", ALICE.id, 7.0, "2026-02-01T00:00:00Z")])

    assert store.incentive_totals_by_month(ALICE.id) == [("2026-01", 12.5), ("2026-02", 7.0)]
    assert store.incentive_totals_by_month(BOB.id) == []


@pytest.mark.unit
def test_set_tag_document_replaces_same_key(store) -> None:
    store.insert_task(make_task())
    first = TagDocument("a.pdf", "/uploads/a.pdf", "invoice", "q1", "2026-01-01T00:00:00Z")
    second = TagDocument("b.pdf", "/uploads/b.pdf", "invoice", "q1", "2026-01-02T00:00:00Z")

    assert store.set_tag_document("task-1", first) is None
    assert store.set_tag_document("task-1", second) == first

    assert store.get_tag_documents("task-1") == {"q1-invoice": second}
    task = store.get_task("task-1")
    assert task is not None
    assert task.tag_documents == {"q1-invoice": second}

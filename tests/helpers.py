"""Shared test helpers: requesters and record factories."""

from __future__ import annotations

from typing import Any

from project_hub_service.domain import Document, RequestContext, Task

ADMIN = RequestContext(id="u-admin", role="admin", name="Ada Admin", email="ada@example.com")
MANAGER = RequestContext(
    id="u-manager", role="manager", name="Max Manager", email="max@example.com"
)
ALICE = RequestContext(id="u-alice", role="member", name="Alice", email="alice@example.com")
BOB = RequestContext(id="u-bob", role="member", name="Bob", email="bob@example.com")
CAROL = RequestContext(id="u-carol", role="member", name="Carol", email="carol@example.com")

USERS_BY_TOKEN: dict[str, RequestContext] = {
    "admin-token": ADMIN,
    "manager-token": MANAGER,
    "alice-token": ALICE,
    "bob-token": BOB,
    "carol-token": CAROL,
}


def auth(token: str) -> dict[str, str]:
    """Authorization header for one of the tokens in USERS_BY_TOKEN."""
    return {"Authorization": f"Bearer {token}"}


def make_document(document_id: str = "doc-1", **overrides: Any) -> Document:
    values: dict[str, Any] = {
        "document_id": document_id,
        "name": f"Document {document_id}",
        "description": "Quarterly filing",
        "category": "general",
        "status": "active",
        "project_id": "prj-1",
        "task_id": None,
        "created_by": ALICE.id,
        "shared_with": frozenset(),
        "file_path": f"/uploads/documents/{document_id}.pdf",
        "file_type": "application/pdf",
        "file_size": 128,
        "tags": (),
        "deleted": False,
        "created_at": "2026-01-01T00:00:00.000Z",
        "updated_at": "2026-01-01T00:00:00.000Z",
    }
    values.update(overrides)
    return Document(**values)


def make_task(task_id: str = "task-1", **overrides: Any) -> Task:
    values: dict[str, Any] = {
        "task_id": task_id,
        "title": f"Task {task_id}",
        "description": None,
        "status": "pending",
        "amount": 1500.0,
        "task_incentive_percentage": 4.0,
        "verification_incentive_percentage": 1.0,
        "assigned_to": ALICE.id,
        "verifier_id": None,
        "created_by": MANAGER.id,
        "project_id": "prj-1",
        "team": frozenset({ALICE.id}),
        "incentive_awarded": False,
        "deleted": False,
        "created_at": "2026-01-01T00:00:00.000Z",
        "updated_at": "2026-01-01T00:00:00.000Z",
    }
    values.update(overrides)
    return Task(**values)

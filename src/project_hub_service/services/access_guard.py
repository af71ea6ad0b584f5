"""Per-resource authorization checks."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from project_hub_service.core.exceptions import Forbidden, NotFound

if TYPE_CHECKING:
    from project_hub_service.domain import Document, RequestContext, Task


class DocumentAction(StrEnum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    SHARE = "share"
    DOWNLOAD = "download"


_OWNER_ONLY_ACTIONS: frozenset[DocumentAction] = frozenset(
    {DocumentAction.UPDATE, DocumentAction.DELETE, DocumentAction.SHARE}
)


class DocumentAccessGuard:
    """
    Gates operations on a single document.

    Existence is checked first, so a missing document is always NOT_FOUND and
    FORBIDDEN implies the document exists.
    """

    def __init__(self, guard_downloads: bool) -> None:
        self._guard_downloads = guard_downloads

    def check(
        self,
        document: Document | None,
        requester: RequestContext,
        action: DocumentAction,
        document_id: str,
    ) -> Document:
        """Return the document if ``requester`` may perform ``action`` on it."""
        if document is None:
            raise NotFound(f"Document not found with id of {document_id}")

        if action == DocumentAction.DOWNLOAD and not self._guard_downloads:
            return document

        if requester.is_privileged or document.created_by == requester.id:
            return document

        if action in _OWNER_ONLY_ACTIONS:
            raise Forbidden(f"User not authorized to {action} this document")

        if requester.id in document.shared_with:
            return document

        raise Forbidden(f"User not authorized to {action} this document")


def check_task_status_access(task: Task | None, requester: RequestContext, task_id: str) -> Task:
    """Only an admin, the task's assignee or its verifier may change its status."""
    if task is None:
        raise NotFound(f"Task not found with id of {task_id}")
    if requester.role == "admin" or requester.id in (task.assigned_to, task.verifier_id):
        return task
    raise Forbidden("User not authorized to update this task")

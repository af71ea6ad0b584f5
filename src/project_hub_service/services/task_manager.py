"""Task lifecycle management: creation, status changes, tag documents, incentives."""

from __future__ import annotations

import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any

from project_hub_service.core.exceptions import (
    AlreadyAwarded,
    Forbidden,
    InvalidTransition,
    NotFound,
)
from project_hub_service.domain import TagDocument, Task, now_iso
from project_hub_service.logging import get_logger
from project_hub_service.services.access_guard import check_task_status_access
from project_hub_service.services.task_status import INITIAL_STATUS, TaskStatus, parse_status

if TYPE_CHECKING:
    from project_hub_service.domain import Incentive, RequestContext
    from project_hub_service.services.file_storage import FileStorage, UploadedFile
    from project_hub_service.services.incentive_engine import TaskIncentiveEngine
    from project_hub_service.services.project_store import ProjectStore
    from project_hub_service.services.task_status import TaskStatusStateMachine
    from project_hub_service.services.task_store import TaskStore

_DEFAULT_TAG = "general"
_DEFAULT_DOCUMENT_TYPE = "document"
_TAG_UPLOAD_FIELD = "file"


class TaskManager:
    """
    Manages tasks from creation through completion and invoicing.

    Delegates persistence to TaskStore, transition rules to
    TaskStatusStateMachine and the completion payout to TaskIncentiveEngine.
    """

    def __init__(
        self,
        store: TaskStore,
        project_store: ProjectStore,
        file_storage: FileStorage,
        state_machine: TaskStatusStateMachine,
        incentive_engine: TaskIncentiveEngine,
    ) -> None:
        self._store = store
        self._project_store = project_store
        self._file_storage = file_storage
        self._state_machine = state_machine
        self._incentive_engine = incentive_engine
        self._logger = get_logger(__name__)

    def _require_task(self, task_id: str) -> Task:
        task = self._store.get_task(task_id)
        if task is None:
            raise NotFound(f"Task not found with id of {task_id}")
        return task

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def create_task(self, requester: RequestContext, fields: dict[str, Any]) -> Task:
        project_id = fields.get("project_id")
        if project_id is not None and len(self._project_store.resolve_active({project_id})) == 0:
            raise NotFound(f"Project not found with id of {project_id}")

        timestamp = now_iso()
        task = Task(
            task_id=f"task-{uuid.uuid4()}",
            title=fields["title"],
            description=fields.get("description"),
            status=INITIAL_STATUS.value,
            amount=fields.get("amount", 0.0),
            task_incentive_percentage=fields.get("task_incentive_percentage", 4.0),
            verification_incentive_percentage=fields.get("verification_incentive_percentage", 1.0),
            assigned_to=fields.get("assigned_to"),
            verifier_id=fields.get("verifier_id"),
            created_by=requester.id,
            project_id=project_id,
            team=frozenset(fields.get("team") or ()),
            incentive_awarded=False,
            deleted=False,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self._store.insert_task(task)
        if project_id is not None:
            self._project_store.add_task(project_id, task.task_id)

        self._logger.info(
            "Task created",
            extra={"task_id": task.task_id, "project_id": project_id, "user_id": requester.id},
        )
        return task

    def get_task(self, task_id: str) -> Task:
        return self._require_task(task_id)

    def update_status(self, requester: RequestContext, task_id: str, raw_status: object) -> Task:
        """
        Move a task to a new status.

        Completing a task awards its incentives once. The verification share
        goes to the verifier named when the task was created.
        """
        requested = parse_status(raw_status)
        task = check_task_status_access(self._store.get_task(task_id), requester, task_id)
        updated = self._state_machine.transition(task, requested)

        timestamp = now_iso()
        started_at = None
        completed_at = None
        if requested == TaskStatus.COMPLETED:
            completed_at = timestamp
        elif requested == TaskStatus.IN_PROGRESS and task.status == TaskStatus.PENDING:
            started_at = timestamp

        affected = self._store.update_status(
            task_id,
            updated.status,
            expected_status=task.status,
            updated_at=timestamp,
            started_at=started_at,
            completed_at=completed_at,
        )
        if affected == 0:
            current = self._require_task(task_id)
            raise InvalidTransition(current.status, requested.value)

        self._logger.info(
            "Task status changed",
            extra={
                "task_id": task_id,
                "from_status": task.status,
                "to_status": updated.status,
                "user_id": requester.id,
            },
        )

        if requested == TaskStatus.COMPLETED:
            try:
                self._incentive_engine.award_incentives(updated, verifier_id=updated.verifier_id)
            except AlreadyAwarded:
                self._logger.info("Incentives already awarded", extra={"task_id": task_id})

        return self._require_task(task_id)

    # ------------------------------------------------------------------
    # Tag documents
    # ------------------------------------------------------------------

    def get_tag_documents(self, task_id: str) -> dict[str, TagDocument]:
        self._require_task(task_id)
        return self._store.get_tag_documents(task_id)

    def upload_tag_document(
        self,
        requester: RequestContext,
        task_id: str,
        upload: UploadedFile,
        tag: str | None,
        document_type: str | None,
    ) -> TagDocument:
        """Store a tag document; an upload under an existing key replaces the old file."""
        self._require_task(task_id)
        self._file_storage.validate_upload(upload.content, upload.content_type)

        file_path = self._file_storage.save(
            f"tagDocuments/{task_id}", _TAG_UPLOAD_FIELD, upload.filename, upload.content
        )
        document = TagDocument(
            file_name=upload.filename,
            file_path=file_path,
            document_type=document_type or _DEFAULT_DOCUMENT_TYPE,
            tag=tag or _DEFAULT_TAG,
            uploaded_at=now_iso(),
        )
        previous = self._store.set_tag_document(task_id, document)
        if previous is not None and previous.file_path != file_path:
            self._file_storage.delete(previous.file_path)

        self._logger.info(
            "Tag document uploaded",
            extra={
                "task_id": task_id,
                "doc_key": document.key,
                "replaced": previous is not None,
                "user_id": requester.id,
            },
        )
        return document

    # ------------------------------------------------------------------
    # Incentives
    # ------------------------------------------------------------------

    def _incentive_subject(self, requester: RequestContext, user_id: str | None) -> str | None:
        if requester.is_privileged:
            return user_id
        if user_id is not None and user_id != requester.id:
            raise Forbidden("User not authorized to view incentives of other users")
        return requester.id

    def list_incentives(
        self,
        requester: RequestContext,
        user_id: str | None = None,
        task_id: str | None = None,
    ) -> list[Incentive]:
        """Incentive records; non-privileged requesters only ever see their own."""
        subject = self._incentive_subject(requester, user_id)
        return self._store.list_incentives(user_id=subject, task_id=task_id)

    def incentive_summary(self, requester: RequestContext, user_id: str | None) -> dict[str, Any]:
        """Monthly incentive totals for one user, keyed ``YYYY-MM``."""
        subject = self._incentive_subject(requester, user_id) or requester.id
        months = {
            month: float(Decimal(str(total)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
            for month, total in self._store.incentive_totals_by_month(subject)
        }
        overall = sum((Decimal(str(value)) for value in months.values()), Decimal(0))
        return {"user_id": subject, "months": months, "total": float(overall)}

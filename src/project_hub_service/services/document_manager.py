"""Document listing, CRUD, sharing and download."""

from __future__ import annotations

import dataclasses
import uuid
from typing import TYPE_CHECKING, Any

from project_hub_service.core.exceptions import NotFound
from project_hub_service.domain import Document, now_iso
from project_hub_service.logging import get_logger
from project_hub_service.services.access_guard import DocumentAction
from project_hub_service.services.paginator import paginate

if TYPE_CHECKING:
    from pathlib import Path

    from project_hub_service.domain import RequestContext
    from project_hub_service.services.access_filter import AccessFilterBuilder, DocumentQuery
    from project_hub_service.services.access_guard import DocumentAccessGuard
    from project_hub_service.services.document_store import DocumentStore
    from project_hub_service.services.file_storage import FileStorage, UploadedFile
    from project_hub_service.services.paginator import PageWindow
    from project_hub_service.services.project_store import ProjectStore

_UPLOAD_FOLDER = "documents"
_UPLOAD_FIELD = "file"
_MAX_NAME_LENGTH = 100


class DocumentManager:
    """
    Coordinates document storage, access checks and the files behind them.

    Every per-document operation goes through ``DocumentAccessGuard`` first;
    listings are scoped by the predicate from ``AccessFilterBuilder``.
    """

    def __init__(
        self,
        store: DocumentStore,
        project_store: ProjectStore,
        file_storage: FileStorage,
        guard: DocumentAccessGuard,
        filter_builder: AccessFilterBuilder,
    ) -> None:
        self._store = store
        self._project_store = project_store
        self._file_storage = file_storage
        self._guard = guard
        self._filter_builder = filter_builder
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_project(self, project_id: str | None) -> None:
        if project_id is None:
            return
        if len(self._project_store.resolve_active({project_id})) == 0:
            raise NotFound(f"Project not found with id of {project_id}")

    def _with_project(
        self, document: Document, projects: dict[str, dict[str, str]]
    ) -> dict[str, Any]:
        data = document.to_dict()
        data["project"] = projects.get(document.project_id) if document.project_id else None
        return data

    def _load(
        self, requester: RequestContext, document_id: str, action: DocumentAction
    ) -> Document:
        return self._guard.check(
            self._store.get_document(document_id), requester, action, document_id
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_documents(
        self,
        requester: RequestContext,
        query: DocumentQuery,
        page: int,
        limit: int,
    ) -> tuple[list[dict[str, Any]], PageWindow]:
        """
        One page of the documents ``requester`` may see, newest first.

        Documents whose project no longer resolves are dropped after the
        fetch, so the page may hold fewer rows than ``window.total`` implies.
        """
        active_ids = None if query.project_id else self._project_store.active_project_ids()
        predicate = self._filter_builder.build(requester, query, active_ids)

        window = paginate(page, limit, self._store.count_documents(predicate))
        documents = self._store.find_documents(predicate, window.skip, window.limit)

        projects = self._project_store.resolve_active(
            {doc.project_id for doc in documents if doc.project_id}
        )
        visible = [
            self._with_project(doc, projects)
            for doc in documents
            if doc.project_id is not None and doc.project_id in projects
        ]
        return visible, window

    # ------------------------------------------------------------------
    # Single-document operations
    # ------------------------------------------------------------------

    def get_document(self, requester: RequestContext, document_id: str) -> dict[str, Any]:
        document = self._load(requester, document_id, DocumentAction.READ)
        projects = self._project_store.resolve_active(
            {document.project_id} if document.project_id else set()
        )
        return self._with_project(document, projects)

    def create_document(
        self,
        requester: RequestContext,
        fields: dict[str, Any],
        upload: UploadedFile,
    ) -> Document:
        """Store the uploaded file and record a document owned by ``requester``."""
        project_id = fields.get("project_id")
        self._require_project(project_id)
        self._file_storage.validate_upload(upload.content, upload.content_type)

        file_path = self._file_storage.save(
            _UPLOAD_FOLDER, _UPLOAD_FIELD, upload.filename, upload.content
        )
        timestamp = now_iso()
        document = Document(
            document_id=f"doc-{uuid.uuid4()}",
            name=fields.get("name") or upload.filename[:_MAX_NAME_LENGTH],
            description=fields.get("description"),
            category=fields.get("category") or "general",
            status=fields.get("status") or "active",
            project_id=project_id,
            task_id=fields.get("task_id"),
            created_by=requester.id,
            shared_with=frozenset(),
            file_path=file_path,
            file_type=upload.content_type,
            file_size=upload.size,
            tags=tuple(fields.get("tags") or ()),
            deleted=False,
            created_at=timestamp,
            updated_at=timestamp,
        )
        self._store.insert_document(document)
        if project_id is not None:
            self._project_store.add_document(project_id, document.document_id)

        self._logger.info(
            "Document created",
            extra={
                "document_id": document.document_id,
                "document_name": document.name,
                "user_id": requester.id,
            },
        )
        return document

    def update_document(
        self,
        requester: RequestContext,
        document_id: str,
        fields: dict[str, Any],
        upload: UploadedFile | None,
    ) -> Document:
        """Apply metadata changes; a new upload replaces the stored file."""
        document = self._load(requester, document_id, DocumentAction.UPDATE)

        updates = {key: value for key, value in fields.items() if value is not None}
        if "project_id" in updates:
            self._require_project(updates["project_id"])

        old_file_path: str | None = None
        if upload is not None:
            self._file_storage.validate_upload(upload.content, upload.content_type)
            updates["file_path"] = self._file_storage.save(
                _UPLOAD_FOLDER, _UPLOAD_FIELD, upload.filename, upload.content
            )
            updates["file_type"] = upload.content_type
            updates["file_size"] = upload.size
            updates.setdefault("name", upload.filename[:_MAX_NAME_LENGTH])
            old_file_path = document.file_path

        updates["updated_at"] = now_iso()
        self._store.update_document(document_id, updates)
        if old_file_path is not None:
            self._file_storage.delete(old_file_path)
        if "project_id" in updates:
            self._project_store.add_document(updates["project_id"], document_id)

        if "tags" in updates:
            updates["tags"] = tuple(updates["tags"])
        updated = dataclasses.replace(document, **updates)
        self._logger.info(
            "Document updated",
            extra={
                "document_id": document_id,
                "fields": sorted(updates),
                "user_id": requester.id,
            },
        )
        return updated

    def delete_document(self, requester: RequestContext, document_id: str) -> None:
        """Soft-delete the document and remove its file."""
        document = self._load(requester, document_id, DocumentAction.DELETE)
        self._store.soft_delete(document_id, now_iso())
        self._file_storage.delete(document.file_path)
        self._logger.info(
            "Document deleted",
            extra={
                "document_id": document_id,
                "document_name": document.name,
                "user_id": requester.id,
            },
        )

    def share_document(
        self, requester: RequestContext, document_id: str, user_ids: list[str]
    ) -> Document:
        """Replace the set of users the document is shared with."""
        document = self._load(requester, document_id, DocumentAction.SHARE)
        unique_ids = sorted(set(user_ids))
        timestamp = now_iso()
        self._store.replace_shares(document_id, unique_ids, timestamp)
        self._logger.info(
            "Document shared",
            extra={
                "document_id": document_id,
                "shared_with": unique_ids,
                "user_id": requester.id,
            },
        )
        return dataclasses.replace(
            document, shared_with=frozenset(unique_ids), updated_at=timestamp
        )

    def download_document(
        self, requester: RequestContext, document_id: str
    ) -> tuple[Path, str, str | None]:
        """Return ``(path on disk, download name, mime type)``."""
        document = self._load(requester, document_id, DocumentAction.DOWNLOAD)
        if not document.file_path:
            raise NotFound("No file found for this document")
        if not self._file_storage.exists(document.file_path):
            raise NotFound("File not found")

        self._logger.info(
            "Document downloaded",
            extra={"document_id": document_id, "user_id": requester.id},
        )
        return self._file_storage.resolve(document.file_path), document.name, document.file_type

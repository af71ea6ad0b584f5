"""Project creation, lookup and soft deletion."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from project_hub_service.core.exceptions import Forbidden, NotFound
from project_hub_service.domain import Project, now_iso
from project_hub_service.logging import get_logger

if TYPE_CHECKING:
    from project_hub_service.domain import RequestContext
    from project_hub_service.services.project_store import ProjectStore


class ProjectManager:
    """Projects scope document visibility; deleting one hides its documents."""

    def __init__(self, store: ProjectStore) -> None:
        self._store = store
        self._logger = get_logger(__name__)

    def create_project(self, requester: RequestContext, name: str) -> Project:
        project = Project(
            project_id=f"prj-{uuid.uuid4()}",
            name=name,
            created_by=requester.id,
            deleted=False,
            created_at=now_iso(),
        )
        self._store.insert_project(project)
        self._logger.info(
            "Project created",
            extra={"project_id": project.project_id, "created_by": requester.id},
        )
        return project

    def get_project(self, project_id: str) -> Project:
        project = self._store.get_project(project_id)
        if project is None or project.deleted:
            raise NotFound(f"Project not found with id of {project_id}")
        return project

    def delete_project(self, requester: RequestContext, project_id: str) -> None:
        """Soft delete. Only admins and managers may delete projects."""
        self.get_project(project_id)
        if not requester.is_privileged:
            raise Forbidden("User not authorized to delete this project")
        self._store.soft_delete(project_id)
        self._logger.info(
            "Project deleted", extra={"project_id": project_id, "deleted_by": requester.id}
        )

"""SQLite-backed project storage and project reference sets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from project_hub_service.domain import Project

if TYPE_CHECKING:
    import sqlite3

    from project_hub_service.services.database import Database


class ProjectStore:
    """Projects plus the document/task reference sets hanging off them."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def insert_project(self, project: Project) -> None:
        self._db.execute_write(
            "INSERT INTO projects (project_id, name, created_by, deleted, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                project.project_id,
                project.name,
                project.created_by,
                int(project.deleted),
                project.created_at,
            ),
        )

    def _row_to_project(self, row: sqlite3.Row) -> Project:
        project_id = str(row["project_id"])
        document_rows = self._db.fetch_all(
            "SELECT document_id FROM project_documents WHERE project_id = ?", (project_id,)
        )
        task_rows = self._db.fetch_all(
            "SELECT task_id FROM project_tasks WHERE project_id = ?", (project_id,)
        )
        return Project(
            project_id=project_id,
            name=row["name"],
            created_by=row["created_by"],
            deleted=bool(row["deleted"]),
            created_at=row["created_at"],
            document_ids=frozenset(str(r["document_id"]) for r in document_rows),
            task_ids=frozenset(str(r["task_id"]) for r in task_rows),
        )

    def get_project(self, project_id: str) -> Project | None:
        """Fetch a project by id, including soft-deleted ones."""
        row = self._db.fetch_one(
            "SELECT project_id, name, created_by, deleted, created_at "
            "FROM projects WHERE project_id = ?",
            (project_id,),
        )
        if row is None:
            return None
        return self._row_to_project(row)

    def active_project_ids(self) -> list[str]:
        """Ids of all projects that are not soft-deleted."""
        rows = self._db.fetch_all("SELECT project_id FROM projects WHERE deleted = 0", ())
        return [str(row["project_id"]) for row in rows]

    def resolve_active(self, project_ids: set[str]) -> dict[str, dict[str, str]]:
        """Map each id that still resolves to a live project onto a short summary."""
        if len(project_ids) == 0:
            return {}
        ordered = sorted(project_ids)
        placeholders = ", ".join("?" for _ in ordered)
        rows = self._db.fetch_all(
            "SELECT project_id, name FROM projects "  # nosec B608
            f"WHERE deleted = 0 AND project_id IN ({placeholders})",
            ordered,
        )
        return {
            str(row["project_id"]): {"project_id": str(row["project_id"]), "name": row["name"]}
            for row in rows
        }

    def soft_delete(self, project_id: str) -> int:
        return self._db.execute_write(
            "UPDATE projects SET deleted = 1 WHERE project_id = ? AND deleted = 0", (project_id,)
        )

    def add_document(self, project_id: str, document_id: str) -> None:
        """Set-union insert; re-adding an existing reference is a no-op."""
        self._db.execute_write(
            "INSERT OR IGNORE INTO project_documents (project_id, document_id) VALUES (?, ?)",
            (project_id, document_id),
        )

    def add_task(self, project_id: str, task_id: str) -> None:
        """Set-union insert; re-adding an existing reference is a no-op."""
        self._db.execute_write(
            "INSERT OR IGNORE INTO project_tasks (project_id, task_id) VALUES (?, ?)",
            (project_id, task_id),
        )

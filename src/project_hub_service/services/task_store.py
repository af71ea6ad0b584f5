"""SQLite-backed task, tag-document and incentive storage."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING, Any

from project_hub_service.domain import Incentive, IncentiveType, TagDocument, Task
from project_hub_service.services.task_status import LIFECYCLE, TaskStatus

if TYPE_CHECKING:
    from project_hub_service.services.database import Database


class DuplicateTaskError(Exception):
    """Raised when attempting to insert a task with a duplicate task_id."""


class TaskStore:
    """Tasks, their team and tag documents, and the incentive ledger."""

    _TASK_COLUMNS: tuple[str, ...] = (
        "task_id",
        "title",
        "description",
        "status",
        "amount",
        "task_incentive_percentage",
        "verification_incentive_percentage",
        "assigned_to",
        "verifier_id",
        "created_by",
        "project_id",
        "incentive_awarded",
        "deleted",
        "created_at",
        "updated_at",
        "started_at",
        "completed_at",
    )
    _TASK_COLUMNS_SQL = ", ".join(_TASK_COLUMNS)
    _INCENTIVE_COLUMNS_SQL = (
        "incentive_id, user_id, task_id, project_id, task_amount, incentive_amount, "
        "incentive_type, date"
    )

    def __init__(self, database: Database) -> None:
        self._db = database

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        task_id = str(row["task_id"])
        team_rows = self._db.fetch_all(
            "SELECT user_id FROM task_team WHERE task_id = ?", (task_id,)
        )
        return Task(
            task_id=task_id,
            title=row["title"],
            description=row["description"],
            status=row["status"],
            amount=float(row["amount"]),
            task_incentive_percentage=float(row["task_incentive_percentage"]),
            verification_incentive_percentage=float(row["verification_incentive_percentage"]),
            assigned_to=row["assigned_to"],
            verifier_id=row["verifier_id"],
            created_by=row["created_by"],
            project_id=row["project_id"],
            team=frozenset(str(r["user_id"]) for r in team_rows),
            incentive_awarded=bool(row["incentive_awarded"]),
            deleted=bool(row["deleted"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            tag_documents=self.get_tag_documents(task_id),
        )

    @staticmethod
    def _row_to_incentive(row: sqlite3.Row) -> Incentive:
        return Incentive(
            incentive_id=row["incentive_id"],
            user_id=row["user_id"],
            task_id=row["task_id"],
            project_id=row["project_id"],
            task_amount=row["task_amount"],
            incentive_amount=float(row["incentive_amount"]),
            incentive_type=IncentiveType(row["incentive_type"]),
            date=row["date"],
        )

    def insert_task(self, task: Task) -> None:
        """Insert a new task row together with its team."""
        values = {column: getattr(task, column) for column in self._TASK_COLUMNS}
        values["incentive_awarded"] = int(task.incentive_awarded)
        values["deleted"] = int(task.deleted)
        placeholders = ", ".join("?" for _ in self._TASK_COLUMNS)
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    f"INSERT INTO tasks ({self._TASK_COLUMNS_SQL}) "  # nosec B608
                    f"VALUES ({placeholders})",
                    tuple(values[column] for column in self._TASK_COLUMNS),
                )
                conn.executemany(
                    "INSERT OR IGNORE INTO task_team (task_id, user_id) VALUES (?, ?)",
                    [(task.task_id, user_id) for user_id in sorted(task.team)],
                )
        except sqlite3.IntegrityError as exc:
            if "unique" in str(exc).lower():
                raise DuplicateTaskError(
                    f"A task with task_id={task.task_id} already exists"
                ) from exc
            raise

    def get_task(self, task_id: str) -> Task | None:
        """Fetch a live task by ID."""
        row = self._db.fetch_one(
            f"SELECT {self._TASK_COLUMNS_SQL} FROM tasks "  # nosec B608
            "WHERE task_id = ? AND deleted = 0",
            (task_id,),
        )
        if row is None:
            return None
        return self._row_to_task(row)

    def update_status(
        self,
        task_id: str,
        new_status: str,
        *,
        expected_status: str,
        updated_at: str,
        started_at: str | None = None,
        completed_at: str | None = None,
    ) -> int:
        """
        Move a task to ``new_status`` only if it is still in ``expected_status``.

        Returns the number of affected rows; zero means another request changed
        the status first (or the task is gone).
        """
        updates: dict[str, Any] = {"status": new_status, "updated_at": updated_at}
        if started_at is not None:
            updates["started_at"] = started_at
        if completed_at is not None:
            updates["completed_at"] = completed_at

        set_clause = ", ".join(f"{column} = ?" for column in updates)
        return self._db.execute_write(
            "UPDATE tasks SET " + set_clause  # nosec B608
            + " WHERE task_id = ? AND status = ? AND deleted = 0",
            [*updates.values(), task_id, expected_status],
        )

    def award_incentives(self, task_id: str, incentives: list[Incentive]) -> bool:
        """
        Flip ``incentive_awarded`` and append the incentive records atomically.

        Returns False, writing nothing, when the task was already awarded.
        """
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE tasks SET incentive_awarded = 1 "
                "WHERE task_id = ? AND incentive_awarded = 0",
                (task_id,),
            )
            if cursor.rowcount == 0:
                return False
            conn.executemany(
                f"INSERT INTO incentives ({self._INCENTIVE_COLUMNS_SQL}) "  # nosec B608
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        incentive.incentive_id,
                        incentive.user_id,
                        incentive.task_id,
                        incentive.project_id,
                        incentive.task_amount,
                        incentive.incentive_amount,
                        str(incentive.incentive_type),
                        incentive.date,
                    )
                    for incentive in incentives
                ],
            )
        return True

    def list_incentives(
        self,
        *,
        user_id: str | None = None,
        task_id: str | None = None,
    ) -> list[Incentive]:
        """Incentive records filtered by user and/or task, newest first."""
        conditions: list[str] = []
        params: list[object] = []
        if user_id is not None:
            conditions.append("user_id = ?")
            params.append(user_id)
        if task_id is not None:
            conditions.append("task_id = ?")
            params.append(task_id)

        query = f"SELECT {self._INCENTIVE_COLUMNS_SQL} FROM incentives"  # nosec B608
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY date DESC, incentive_id"
        return [self._row_to_incentive(row) for row in self._db.fetch_all(query, params)]

    def incentive_totals_by_month(self, user_id: str) -> list[tuple[str, float]]:
        """``(YYYY-MM, total)`` pairs for a user, oldest month first."""
        rows = self._db.fetch_all(
            "SELECT substr(date, 1, 7) AS month, SUM(incentive_amount) AS total "
            "FROM incentives WHERE user_id = ? GROUP BY month ORDER BY month",
            (user_id,),
        )
        return [(str(row["month"]), float(row["total"])) for row in rows]

    def get_tag_documents(self, task_id: str) -> dict[str, TagDocument]:
        rows = self._db.fetch_all(
            "SELECT doc_key, file_name, file_path, document_type, tag, uploaded_at "
            "FROM task_tag_documents WHERE task_id = ? ORDER BY doc_key",
            (task_id,),
        )
        return {
            str(row["doc_key"]): TagDocument(
                file_name=row["file_name"],
                file_path=row["file_path"],
                document_type=row["document_type"],
                tag=row["tag"],
                uploaded_at=row["uploaded_at"],
            )
            for row in rows
        }

    def set_tag_document(self, task_id: str, document: TagDocument) -> TagDocument | None:
        """Store ``document`` under its key and return the entry it replaced, if any."""
        with self._db.transaction() as conn:
            row = conn.execute(
                "SELECT file_name, file_path, document_type, tag, uploaded_at "
                "FROM task_tag_documents WHERE task_id = ? AND doc_key = ?",
                (task_id, document.key),
            ).fetchone()
            conn.execute(
                "INSERT OR REPLACE INTO task_tag_documents "
                "(task_id, doc_key, file_name, file_path, document_type, tag, uploaded_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    task_id,
                    document.key,
                    document.file_name,
                    document.file_path,
                    document.document_type,
                    document.tag,
                    document.uploaded_at,
                ),
            )
        if row is None:
            return None
        return TagDocument(
            file_name=row["file_name"],
            file_path=row["file_path"],
            document_type=row["document_type"],
            tag=row["tag"],
            uploaded_at=row["uploaded_at"],
        )

    def count_tasks_by_status(self) -> dict[str, int]:
        rows = self._db.fetch_all(
            "SELECT status, COUNT(*) AS n FROM tasks WHERE deleted = 0 GROUP BY status", ()
        )
        counts = {status.value: 0 for status in (*LIFECYCLE, TaskStatus.CANCELLED)}
        for row in rows:
            counts[str(row["status"])] = int(row["n"])
        return counts

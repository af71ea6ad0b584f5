"""SQLite-backed event storage."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from project_hub_service.services.database import Database


class EventStore:
    """Events table. Rows are plain dicts; status is derived by the manager."""

    _COLUMNS: tuple[str, ...] = (
        "event_id",
        "title",
        "description",
        "start_date",
        "end_date",
        "created_by",
        "created_at",
        "updated_at",
    )
    _COLUMNS_SQL = ", ".join(_COLUMNS)
    _UPDATABLE: frozenset[str] = frozenset(
        {"title", "description", "start_date", "end_date", "updated_at"}
    )

    def __init__(self, database: Database) -> None:
        self._db = database

    def insert_event(self, event: dict[str, Any]) -> None:
        placeholders = ", ".join("?" for _ in self._COLUMNS)
        self._db.execute_write(
            f"INSERT INTO events ({self._COLUMNS_SQL}) VALUES ({placeholders})",  # nosec B608
            tuple(event[column] for column in self._COLUMNS),
        )

    def get_event(self, event_id: str) -> dict[str, Any] | None:
        row = self._db.fetch_one(
            f"SELECT {self._COLUMNS_SQL} FROM events WHERE event_id = ?",  # nosec B608
            (event_id,),
        )
        if row is None:
            return None
        return {column: row[column] for column in self._COLUMNS}

    def list_events(self, skip: int, limit: int) -> list[dict[str, Any]]:
        """Events ordered by start date, earliest first."""
        rows = self._db.fetch_all(
            f"SELECT {self._COLUMNS_SQL} FROM events "  # nosec B608
            "ORDER BY start_date ASC, event_id ASC LIMIT ? OFFSET ?",
            (limit, skip),
        )
        return [{column: row[column] for column in self._COLUMNS} for row in rows]

    def count_events(self) -> int:
        row = self._db.fetch_one("SELECT COUNT(*) FROM events", ())
        return int(row[0]) if row is not None else 0

    def update_event(self, event_id: str, updates: dict[str, Any]) -> int:
        if len(updates) == 0:
            return 0
        if any(column not in self._UPDATABLE for column in updates):
            msg = "Attempted to update unknown event column"
            raise ValueError(msg)
        set_clause = ", ".join(f"{column} = ?" for column in updates)
        return self._db.execute_write(
            "UPDATE events SET " + set_clause + " WHERE event_id = ?",  # nosec B608
            [*updates.values(), event_id],
        )

    def delete_event(self, event_id: str) -> int:
        return self._db.execute_write("DELETE FROM events WHERE event_id = ?", (event_id,))

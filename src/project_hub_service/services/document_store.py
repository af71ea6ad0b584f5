"""SQLite-backed document storage queried through predicates."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from project_hub_service.domain import Document
from project_hub_service.services.predicates import CollectionColumn, SqlPredicateCompiler

if TYPE_CHECKING:
    import sqlite3

    from project_hub_service.services.database import Database
    from project_hub_service.services.predicates import Predicate


class DocumentStore:
    """Documents and their shared-with sets. Soft-deleted rows are never returned."""

    _COLUMNS: tuple[str, ...] = (
        "document_id",
        "name",
        "description",
        "category",
        "status",
        "project_id",
        "task_id",
        "created_by",
        "file_path",
        "file_type",
        "file_size",
        "tags",
        "deleted",
        "created_at",
        "updated_at",
    )
    _UPDATABLE: frozenset[str] = frozenset(
        {
            "name",
            "description",
            "category",
            "status",
            "project_id",
            "task_id",
            "created_by",
            "file_path",
            "file_type",
            "file_size",
            "tags",
            "updated_at",
        }
    )
    _SELECT_SQL = "SELECT " + ", ".join(f"documents.{c}" for c in _COLUMNS) + " FROM documents"

    def __init__(self, database: Database) -> None:
        self._db = database
        self._compiler = SqlPredicateCompiler(
            table="documents",
            key_column="document_id",
            columns={
                column: column
                for column in self._COLUMNS
                if column not in ("tags", "deleted")
            },
            collections={
                "shared_with": CollectionColumn(
                    table="document_shares",
                    owner_column="document_id",
                    value_column="user_id",
                ),
            },
        )

    def _where(self, predicate: Predicate) -> tuple[str, list[Any]]:
        sql, params = self._compiler.compile(predicate)
        return f" WHERE documents.deleted = 0 AND {sql}", params

    def _shares_for(self, document_ids: list[str]) -> dict[str, set[str]]:
        shares: dict[str, set[str]] = {document_id: set() for document_id in document_ids}
        if len(document_ids) == 0:
            return shares
        placeholders = ", ".join("?" for _ in document_ids)
        rows = self._db.fetch_all(
            "SELECT document_id, user_id FROM document_shares "  # nosec B608
            f"WHERE document_id IN ({placeholders})",
            document_ids,
        )
        for row in rows:
            shares[str(row["document_id"])].add(str(row["user_id"]))
        return shares

    def _rows_to_documents(self, rows: list[sqlite3.Row]) -> list[Document]:
        shares = self._shares_for([str(row["document_id"]) for row in rows])
        return [
            Document(
                document_id=row["document_id"],
                name=row["name"],
                description=row["description"],
                category=row["category"],
                status=row["status"],
                project_id=row["project_id"],
                task_id=row["task_id"],
                created_by=row["created_by"],
                shared_with=frozenset(shares[str(row["document_id"])]),
                file_path=row["file_path"],
                file_type=row["file_type"],
                file_size=row["file_size"],
                tags=tuple(json.loads(row["tags"])),
                deleted=bool(row["deleted"]),
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    def insert_document(self, document: Document) -> None:
        """Insert a document row and its shares in one transaction."""
        values = {
            **{column: getattr(document, column) for column in self._COLUMNS},
            "tags": json.dumps(list(document.tags)),
            "deleted": int(document.deleted),
        }
        placeholders = ", ".join("?" for _ in self._COLUMNS)
        with self._db.transaction() as conn:
            conn.execute(
                f"INSERT INTO documents ({', '.join(self._COLUMNS)}) "  # nosec B608
                f"VALUES ({placeholders})",
                tuple(values[column] for column in self._COLUMNS),
            )
            conn.executemany(
                "INSERT OR IGNORE INTO document_shares (document_id, user_id) VALUES (?, ?)",
                [(document.document_id, user_id) for user_id in sorted(document.shared_with)],
            )

    def get_document(self, document_id: str) -> Document | None:
        rows = self._db.fetch_all(
            self._SELECT_SQL + " WHERE documents.document_id = ? AND documents.deleted = 0",
            (document_id,),
        )
        if len(rows) == 0:
            return None
        return self._rows_to_documents(rows)[0]

    def count_documents(self, predicate: Predicate) -> int:
        """Count live documents matching the predicate."""
        where, params = self._where(predicate)
        row = self._db.fetch_one("SELECT COUNT(*) FROM documents" + where, params)
        return int(row[0]) if row is not None else 0

    def find_documents(self, predicate: Predicate, skip: int, limit: int) -> list[Document]:
        """Live documents matching the predicate, newest first."""
        where, params = self._where(predicate)
        query = (
            self._SELECT_SQL
            + where
            + " ORDER BY documents.created_at DESC, documents.document_id DESC LIMIT ? OFFSET ?"
        )
        rows = self._db.fetch_all(query, [*params, limit, skip])
        return self._rows_to_documents(rows)

    def count_all(self) -> int:
        row = self._db.fetch_one("SELECT COUNT(*) FROM documents WHERE deleted = 0", ())
        return int(row[0]) if row is not None else 0

    def update_document(self, document_id: str, updates: dict[str, Any]) -> int:
        """Update document columns and return the number of affected rows."""
        if len(updates) == 0:
            return 0
        if any(column not in self._UPDATABLE for column in updates):
            msg = "Attempted to update unknown document column"
            raise ValueError(msg)

        values = dict(updates)
        if "tags" in values:
            values["tags"] = json.dumps(list(values["tags"]))
        set_clause = ", ".join(f"{column} = ?" for column in values)
        return self._db.execute_write(
            "UPDATE documents SET " + set_clause  # nosec B608
            + " WHERE document_id = ? AND deleted = 0",
            [*values.values(), document_id],
        )

    def replace_shares(self, document_id: str, user_ids: list[str], updated_at: str) -> None:
        """Overwrite the shared-with set of a document."""
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM document_shares WHERE document_id = ?", (document_id,))
            conn.executemany(
                "INSERT OR IGNORE INTO document_shares (document_id, user_id) VALUES (?, ?)",
                [(document_id, user_id) for user_id in user_ids],
            )
            conn.execute(
                "UPDATE documents SET updated_at = ? WHERE document_id = ?",
                (updated_at, document_id),
            )

    def soft_delete(self, document_id: str, updated_at: str) -> int:
        return self._db.execute_write(
            "UPDATE documents SET deleted = 1, updated_at = ? "
            "WHERE document_id = ? AND deleted = 0",
            (updated_at, document_id),
        )

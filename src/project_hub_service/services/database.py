"""Shared SQLite connection and schema."""

from __future__ import annotations

import contextlib
import sqlite3
from pathlib import Path
from threading import RLock
from typing import TYPE_CHECKING

from project_hub_service.services.predicates import register_sql_functions

if TYPE_CHECKING:
    from collections.abc import Iterator

_SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    project_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_by TEXT NOT NULL,
    deleted INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS project_documents (
    project_id TEXT NOT NULL,
    document_id TEXT NOT NULL,
    PRIMARY KEY (project_id, document_id)
);

CREATE TABLE IF NOT EXISTS project_tasks (
    project_id TEXT NOT NULL,
    task_id TEXT NOT NULL,
    PRIMARY KEY (project_id, task_id)
);

CREATE TABLE IF NOT EXISTS documents (
    document_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    category TEXT NOT NULL DEFAULT 'general',
    status TEXT NOT NULL DEFAULT 'active',
    project_id TEXT,
    task_id TEXT,
    created_by TEXT NOT NULL,
    file_path TEXT NOT NULL,
    file_type TEXT,
    file_size INTEGER,
    tags TEXT NOT NULL DEFAULT '[]',
    deleted INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS document_shares (
    document_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    PRIMARY KEY (document_id, user_id)
);

CREATE TABLE IF NOT EXISTS tasks (
    task_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    amount REAL NOT NULL DEFAULT 0,
    task_incentive_percentage REAL NOT NULL DEFAULT 4,
    verification_incentive_percentage REAL NOT NULL DEFAULT 1,
    assigned_to TEXT,
    verifier_id TEXT,
    created_by TEXT NOT NULL,
    project_id TEXT,
    incentive_awarded INTEGER NOT NULL DEFAULT 0,
    deleted INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    started_at TEXT,
    completed_at TEXT
);

CREATE TABLE IF NOT EXISTS task_team (
    task_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    PRIMARY KEY (task_id, user_id)
);

CREATE TABLE IF NOT EXISTS task_tag_documents (
    task_id TEXT NOT NULL,
    doc_key TEXT NOT NULL,
    file_name TEXT NOT NULL,
    file_path TEXT NOT NULL,
    document_type TEXT NOT NULL,
    tag TEXT NOT NULL,
    uploaded_at TEXT NOT NULL,
    PRIMARY KEY (task_id, doc_key)
);

CREATE TABLE IF NOT EXISTS incentives (
    incentive_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    task_id TEXT,
    project_id TEXT,
    task_amount REAL,
    incentive_amount REAL NOT NULL,
    incentive_type TEXT NOT NULL CHECK (incentive_type IN ('Task', 'Verification')),
    date TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_incentive_task_type
    ON incentives(task_id, incentive_type)
    WHERE task_id IS NOT NULL;

CREATE INDEX IF NOT EXISTS ix_incentives_user_date
    ON incentives(user_id, date);

CREATE INDEX IF NOT EXISTS ix_documents_project_created
    ON documents(project_id, created_at);

CREATE TABLE IF NOT EXISTS events (
    event_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT NOT NULL,
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL,
    created_by TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class Database:
    """
    One SQLite connection shared by the stores.

    All access goes through ``lock``. Multi-statement writes use
    ``transaction()``, which takes the SQLite write lock up front
    (BEGIN IMMEDIATE) so conditional updates cannot interleave across
    connections to the same file.
    """

    def __init__(self, db_path: str) -> None:
        self.lock = RLock()
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.connection = sqlite3.connect(db_path, check_same_thread=False)
        self.connection.row_factory = sqlite3.Row
        register_sql_functions(self.connection)
        self.connection.execute("PRAGMA journal_mode=WAL")
        self.connection.execute("PRAGMA busy_timeout=5000")
        with self.lock:
            self.connection.executescript(_SCHEMA)
            self.connection.commit()

    @contextlib.contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block inside BEGIN IMMEDIATE; commit on success, roll back on error."""
        with self.lock:
            self.connection.execute("BEGIN IMMEDIATE")
            try:
                yield self.connection
            except Exception:
                with contextlib.suppress(sqlite3.Error):
                    self.connection.execute("ROLLBACK")
                raise
            self.connection.commit()

    def execute_write(self, sql: str, params: tuple[object, ...] | list[object]) -> int:
        """Run one write statement, commit, and return the affected row count."""
        with self.lock:
            cursor = self.connection.execute(sql, params)
            self.connection.commit()
        return int(cursor.rowcount)

    def fetch_all(self, sql: str, params: tuple[object, ...] | list[object]) -> list[sqlite3.Row]:
        with self.lock:
            return self.connection.execute(sql, params).fetchall()

    def fetch_one(self, sql: str, params: tuple[object, ...] | list[object]) -> sqlite3.Row | None:
        with self.lock:
            row: sqlite3.Row | None = self.connection.execute(sql, params).fetchone()
        return row

    def close(self) -> None:
        """Close the database connection."""
        with self.lock:
            self.connection.close()

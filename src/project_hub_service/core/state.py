"""Application state management."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from project_hub_service.clients.identity_client import IdentityClient
    from project_hub_service.services.database import Database
    from project_hub_service.services.document_manager import DocumentManager
    from project_hub_service.services.document_store import DocumentStore
    from project_hub_service.services.event_manager import EventManager
    from project_hub_service.services.project_manager import ProjectManager
    from project_hub_service.services.task_manager import TaskManager
    from project_hub_service.services.task_store import TaskStore


@dataclass
class AppState:
    """Runtime application state."""

    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    database: Database | None = None
    identity_client: IdentityClient | None = None
    document_store: DocumentStore | None = None
    task_store: TaskStore | None = None
    document_manager: DocumentManager | None = None
    project_manager: ProjectManager | None = None
    task_manager: TaskManager | None = None
    event_manager: EventManager | None = None

    @property
    def uptime_seconds(self) -> float:
        """Calculate uptime in seconds."""
        return (datetime.now(UTC) - self.start_time).total_seconds()

    @property
    def started_at(self) -> str:
        """ISO format start time."""
        return self.start_time.isoformat(timespec="seconds").replace("+00:00", "Z")


# Global application state container
_state_container: dict[str, AppState | None] = {"app_state": None}


def get_app_state() -> AppState:
    """Get the current application state."""
    app_state = _state_container["app_state"]
    if app_state is None:
        msg = "Application state not initialized"
        raise RuntimeError(msg)
    return app_state


def init_app_state() -> AppState:
    """Initialize application state. Called during startup."""
    app_state = AppState()
    _state_container["app_state"] = app_state
    return app_state


def reset_app_state() -> None:
    """Reset application state. Used in testing."""
    _state_container["app_state"] = None

"""Application lifecycle management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from project_hub_service.clients.identity_client import IdentityClient
from project_hub_service.config import get_settings
from project_hub_service.core.state import init_app_state
from project_hub_service.logging import get_logger, setup_logging
from project_hub_service.services.access_filter import AccessFilterBuilder
from project_hub_service.services.access_guard import DocumentAccessGuard
from project_hub_service.services.database import Database
from project_hub_service.services.document_manager import DocumentManager
from project_hub_service.services.document_store import DocumentStore
from project_hub_service.services.event_manager import EventManager
from project_hub_service.services.event_store import EventStore
from project_hub_service.services.file_storage import FileStorage
from project_hub_service.services.incentive_engine import TaskIncentiveEngine
from project_hub_service.services.project_manager import ProjectManager
from project_hub_service.services.project_store import ProjectStore
from project_hub_service.services.task_manager import TaskManager
from project_hub_service.services.task_status import TaskStatusStateMachine
from project_hub_service.services.task_store import TaskStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    # === STARTUP ===
    settings = get_settings()

    setup_logging(settings.logging.level, settings.service.name, settings.logging.directory)
    logger = get_logger(__name__)

    state = init_app_state()

    database = Database(settings.database.path)
    state.database = database

    # Identity service client (bearer token -> RequestContext)
    identity_client = IdentityClient(
        base_url=settings.identity.base_url,
        resolve_path=settings.identity.resolve_path,
        timeout_seconds=settings.identity.timeout_seconds,
    )
    state.identity_client = identity_client

    file_storage = FileStorage(
        public_root=settings.storage.public_root,
        max_file_size=settings.storage.max_file_size,
    )

    document_store = DocumentStore(database)
    project_store = ProjectStore(database)
    task_store = TaskStore(database)
    state.document_store = document_store
    state.task_store = task_store

    state.document_manager = DocumentManager(
        store=document_store,
        project_store=project_store,
        file_storage=file_storage,
        guard=DocumentAccessGuard(guard_downloads=settings.documents.guard_downloads),
        filter_builder=AccessFilterBuilder(),
    )
    state.project_manager = ProjectManager(store=project_store)
    state.task_manager = TaskManager(
        store=task_store,
        project_store=project_store,
        file_storage=file_storage,
        state_machine=TaskStatusStateMachine(),
        incentive_engine=TaskIncentiveEngine(task_store),
    )
    state.event_manager = EventManager(store=EventStore(database))

    logger.info(
        "Service starting",
        extra={
            "service": settings.service.name,
            "version": settings.service.version,
            "port": settings.server.port,
            "db_path": settings.database.path,
            "public_root": settings.storage.public_root,
            "identity_base_url": settings.identity.base_url,
            "guard_downloads": settings.documents.guard_downloads,
        },
    )

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Service shutting down", extra={"uptime_seconds": state.uptime_seconds})

    database.close()
    await identity_client.close()

"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from project_hub_service.core.state import get_app_state
from project_hub_service.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health and return statistics."""
    state = get_app_state()
    total_documents = 0
    tasks_by_status: dict[str, int] = {}
    if state.document_store is not None:
        total_documents = state.document_store.count_all()
    if state.task_store is not None:
        tasks_by_status = state.task_store.count_tasks_by_status()
    return HealthResponse(
        status="ok",
        uptime_seconds=state.uptime_seconds,
        started_at=state.started_at,
        total_documents=total_documents,
        tasks_by_status=tasks_by_status,
    )

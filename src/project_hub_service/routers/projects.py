"""Project endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from project_hub_service.core.state import get_app_state
from project_hub_service.routers.validation import (
    parse_json_body,
    resolve_requester,
    validate_model,
)
from project_hub_service.schemas import CreateProjectRequest
from project_hub_service.services.project_manager import ProjectManager

router = APIRouter()


def _manager() -> ProjectManager:
    state = get_app_state()
    if state.project_manager is None:
        msg = "ProjectManager not initialized"
        raise RuntimeError(msg)
    return state.project_manager


@router.post("/projects", status_code=201)
async def create_project(request: Request) -> JSONResponse:
    """Create a project owned by the caller."""
    requester = await resolve_requester(request)
    body = await request.body()
    payload = validate_model(CreateProjectRequest, parse_json_body(body))

    project = _manager().create_project(requester, payload.name)
    return JSONResponse(status_code=201, content={"success": True, "data": project.to_dict()})


@router.get("/projects/{project_id}")
async def get_project(project_id: str, request: Request) -> dict[str, Any]:
    """Fetch a project with its document and task references."""
    await resolve_requester(request)
    return {"success": True, "data": _manager().get_project(project_id).to_dict()}


@router.delete("/projects/{project_id}")
async def delete_project(project_id: str, request: Request) -> dict[str, Any]:
    """Soft-delete a project. Its documents drop out of default listings."""
    requester = await resolve_requester(request)
    _manager().delete_project(requester, project_id)
    return {"success": True, "data": {}, "message": "Project deleted successfully"}

"""Task endpoints: creation, status changes and tag documents."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from project_hub_service.core.state import get_app_state
from project_hub_service.routers.validation import (
    parse_json_body,
    require_upload,
    resolve_requester,
    validate_model,
)
from project_hub_service.schemas import CreateTaskRequest
from project_hub_service.services.task_manager import TaskManager

router = APIRouter()


def _manager() -> TaskManager:
    state = get_app_state()
    if state.task_manager is None:
        msg = "TaskManager not initialized"
        raise RuntimeError(msg)
    return state.task_manager


# ---------------------------------------------------------------------------
# POST /tasks: create task
# ---------------------------------------------------------------------------


@router.post("/tasks", status_code=201)
async def create_task(request: Request) -> JSONResponse:
    """Create a task in ``pending`` status."""
    requester = await resolve_requester(request)
    body = await request.body()
    payload = validate_model(CreateTaskRequest, parse_json_body(body))

    task = _manager().create_task(requester, payload.model_dump())
    return JSONResponse(status_code=201, content={"success": True, "data": task.to_dict()})


@router.get("/tasks/{task_id}")
async def get_task(task_id: str, request: Request) -> dict[str, Any]:
    await resolve_requester(request)
    return {"success": True, "data": _manager().get_task(task_id).to_dict()}


# ---------------------------------------------------------------------------
# PUT /tasks/{task_id}/status: admin or assignee
# ---------------------------------------------------------------------------


@router.put("/tasks/{task_id}/status")
async def update_task_status(task_id: str, request: Request) -> dict[str, Any]:
    """Change a task's status; completing it awards incentives."""
    requester = await resolve_requester(request)
    body = await request.body()
    data = parse_json_body(body)

    task = _manager().update_status(requester, task_id, data.get("status"))
    return {"success": True, "data": task.to_dict()}


# ---------------------------------------------------------------------------
# Tag documents
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}/tag-documents")
async def get_tag_documents(task_id: str, request: Request) -> dict[str, Any]:
    await resolve_requester(request)
    documents = _manager().get_tag_documents(task_id)
    return {
        "success": True,
        "data": {key: document.to_dict() for key, document in documents.items()},
    }


@router.post("/tasks/{task_id}/tag-documents")
async def upload_tag_document(task_id: str, request: Request) -> dict[str, Any]:
    """Attach a file to a task under ``<tag>-<document_type>``."""
    requester = await resolve_requester(request)
    form = await request.form()
    upload = await require_upload(form, "file")
    tag = form.get("tag")
    document_type = form.get("document_type")

    document = _manager().upload_tag_document(
        requester,
        task_id,
        upload,
        tag=tag if isinstance(tag, str) else None,
        document_type=document_type if isinstance(document_type, str) else None,
    )
    return {"success": True, "data": document.to_dict()}

"""Event endpoints."""

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
from project_hub_service.schemas import CreateEventRequest, UpdateEventRequest
from project_hub_service.services.event_manager import EventManager
from project_hub_service.services.paginator import parse_page_params

router = APIRouter()


def _manager() -> EventManager:
    state = get_app_state()
    if state.event_manager is None:
        msg = "EventManager not initialized"
        raise RuntimeError(msg)
    return state.event_manager


@router.post("/events", status_code=201)
async def create_event(request: Request) -> JSONResponse:
    requester = await resolve_requester(request)
    body = await request.body()
    payload = validate_model(CreateEventRequest, parse_json_body(body))

    event = _manager().create_event(
        requester,
        title=payload.title,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    return JSONResponse(status_code=201, content={"status": "success", "data": event.to_dict()})


@router.get("/events")
async def list_events(request: Request) -> dict[str, Any]:
    """List events ordered by start date."""
    await resolve_requester(request)
    page, limit = parse_page_params(
        request.query_params.get("page"), request.query_params.get("limit")
    )
    events, window = _manager().list_events(page, limit)
    return {
        "status": "success",
        "data": [event.to_dict() for event in events],
        "total": window.total,
        "page": window.page,
        "totalPages": window.total_pages,
    }


@router.get("/events/{event_id}")
async def get_event(event_id: str, request: Request) -> dict[str, Any]:
    await resolve_requester(request)
    return {"status": "success", "data": _manager().get_event(event_id).to_dict()}


@router.put("/events/{event_id}")
async def update_event(event_id: str, request: Request) -> dict[str, Any]:
    """Partially update an event; its status is recomputed from the dates."""
    await resolve_requester(request)
    body = await request.body()
    payload = validate_model(UpdateEventRequest, parse_json_body(body))

    event = _manager().update_event(event_id, payload.model_dump(exclude_none=True))
    return {"status": "success", "data": event.to_dict()}


@router.delete("/events/{event_id}")
async def delete_event(event_id: str, request: Request) -> dict[str, Any]:
    await resolve_requester(request)
    _manager().delete_event(event_id)
    return {"status": "success", "message": "Event deleted successfully"}

"""Incentive ledger endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from project_hub_service.core.state import get_app_state
from project_hub_service.routers.validation import resolve_requester
from project_hub_service.services.task_manager import TaskManager

router = APIRouter()


def _manager() -> TaskManager:
    state = get_app_state()
    if state.task_manager is None:
        msg = "TaskManager not initialized"
        raise RuntimeError(msg)
    return state.task_manager


@router.get("/incentives")
async def list_incentives(request: Request) -> dict[str, Any]:
    """List incentive records, optionally filtered by user_id and task_id."""
    requester = await resolve_requester(request)
    incentives = _manager().list_incentives(
        requester,
        user_id=request.query_params.get("user_id"),
        task_id=request.query_params.get("task_id"),
    )
    return {
        "success": True,
        "count": len(incentives),
        "data": [incentive.to_dict() for incentive in incentives],
    }


@router.get("/incentives/summary")
async def incentive_summary(request: Request) -> dict[str, Any]:
    """Monthly incentive totals for one user (the caller by default)."""
    requester = await resolve_requester(request)
    summary = _manager().incentive_summary(requester, request.query_params.get("user_id"))
    return {"success": True, "data": summary}

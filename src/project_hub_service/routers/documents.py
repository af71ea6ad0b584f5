"""Document endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, JSONResponse

from project_hub_service.core.state import get_app_state
from project_hub_service.routers.validation import (
    form_fields,
    parse_json_body,
    read_upload,
    require_upload,
    resolve_requester,
    validate_model,
)
from project_hub_service.schemas import DocumentFields, ShareDocumentRequest
from project_hub_service.services.access_filter import DocumentQuery
from project_hub_service.services.document_manager import DocumentManager
from project_hub_service.services.paginator import parse_page_params

if TYPE_CHECKING:
    from starlette.datastructures import FormData

router = APIRouter()


def _manager() -> DocumentManager:
    state = get_app_state()
    if state.document_manager is None:
        msg = "DocumentManager not initialized"
        raise RuntimeError(msg)
    return state.document_manager


def _document_fields(form: FormData) -> dict[str, Any]:
    return form_fields(form, exclude="file", list_fields=("tags",))


# ---------------------------------------------------------------------------
# GET /documents: list visible documents
# ---------------------------------------------------------------------------


@router.get("/documents")
async def list_documents(request: Request) -> dict[str, Any]:
    """List the documents the caller may see, newest first."""
    requester = await resolve_requester(request)
    params = request.query_params
    query = DocumentQuery(
        category=params.get("category"),
        project_id=params.get("project_id"),
        status=params.get("status"),
        file_type=params.get("file_type"),
        uploaded_by=params.get("uploaded_by"),
        search=params.get("search"),
    )
    page, limit = parse_page_params(params.get("page"), params.get("limit"))

    documents, window = _manager().list_documents(requester, query, page, limit)
    return {
        "success": True,
        "count": len(documents),
        "pagination": window.links(),
        "total": window.total,
        "data": documents,
    }


# ---------------------------------------------------------------------------
# POST /documents: upload a document (multipart/form-data)
# ---------------------------------------------------------------------------


@router.post("/documents", status_code=201)
async def create_document(request: Request) -> JSONResponse:
    """Upload a file and record it as a document owned by the caller."""
    requester = await resolve_requester(request)
    form = await request.form()
    upload = await require_upload(form, "file")
    fields = validate_model(DocumentFields, _document_fields(form))

    document = _manager().create_document(
        requester, fields.model_dump(exclude_none=True), upload
    )
    return JSONResponse(status_code=201, content={"success": True, "data": document.to_dict()})


# ---------------------------------------------------------------------------
# Single-document endpoints
# ---------------------------------------------------------------------------


@router.get("/documents/{document_id}")
async def get_document(document_id: str, request: Request) -> dict[str, Any]:
    """Fetch one document."""
    requester = await resolve_requester(request)
    return {"success": True, "data": _manager().get_document(requester, document_id)}


@router.put("/documents/{document_id}")
async def update_document(document_id: str, request: Request) -> dict[str, Any]:
    """Update metadata; an attached file replaces the stored one."""
    requester = await resolve_requester(request)
    form = await request.form()
    upload = await read_upload(form, "file")
    fields = validate_model(DocumentFields, _document_fields(form))

    document = _manager().update_document(
        requester, document_id, fields.model_dump(exclude_none=True), upload
    )
    return {"success": True, "data": document.to_dict()}


@router.delete("/documents/{document_id}")
async def delete_document(document_id: str, request: Request) -> dict[str, Any]:
    """Delete a document and its stored file."""
    requester = await resolve_requester(request)
    _manager().delete_document(requester, document_id)
    return {"success": True, "data": {}, "message": "Document deleted successfully"}


@router.put("/documents/{document_id}/share")
async def share_document(document_id: str, request: Request) -> dict[str, Any]:
    """Replace the set of users a document is shared with."""
    requester = await resolve_requester(request)
    body = await request.body()
    data = parse_json_body(body)
    share = validate_model(ShareDocumentRequest, data)

    document = _manager().share_document(requester, document_id, share.user_ids)
    return {"success": True, "data": document.to_dict()}


@router.get("/documents/{document_id}/download")
async def download_document(document_id: str, request: Request) -> FileResponse:
    """Stream the stored file as an attachment."""
    requester = await resolve_requester(request)
    path, filename, media_type = _manager().download_document(requester, document_id)
    return FileResponse(
        path,
        media_type=media_type or "application/octet-stream",
        filename=filename,
    )

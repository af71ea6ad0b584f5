"""Shared request parsing helpers for the routers."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from project_hub_service.core.exceptions import ServiceError, Unauthorized, ValidationFailed
from project_hub_service.core.state import get_app_state
from project_hub_service.services.file_storage import UploadedFile

if TYPE_CHECKING:
    from fastapi import Request
    from starlette.datastructures import FormData

    from project_hub_service.domain import RequestContext

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_json_body(raw_body: bytes) -> dict[str, Any]:
    """Parse JSON body, raising ServiceError on failure."""
    try:
        data = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ServiceError(
            "INVALID_JSON",
            "Request body is not valid JSON",
            400,
            {},
        ) from exc

    if not isinstance(data, dict):
        raise ServiceError(
            "INVALID_JSON",
            "Request body must be a JSON object",
            400,
            {},
        )

    return data


def validate_model(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """Validate ``data`` against a request model, raising ValidationFailed."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ]
        first = errors[0]
        raise ValidationFailed(
            f"Invalid value for '{first['field']}': {first['message']}",
            {"errors": errors},
        ) from exc


def extract_bearer_token(authorization: str | None) -> str:
    """Extract the bearer token from the Authorization header."""
    if authorization is None:
        raise Unauthorized("Missing Authorization header")

    if not authorization.startswith("Bearer "):
        raise Unauthorized("Authorization header must use Bearer scheme")

    token = authorization[len("Bearer ") :]
    if not token:
        raise Unauthorized("Bearer token must not be empty")

    return token


async def resolve_requester(request: Request) -> RequestContext:
    """Resolve the calling user from the request's bearer token."""
    token = extract_bearer_token(request.headers.get("authorization"))

    state = get_app_state()
    if state.identity_client is None:
        msg = "IdentityClient not initialized"
        raise RuntimeError(msg)

    return await state.identity_client.resolve(token)


async def read_upload(form: FormData, field_name: str) -> UploadedFile | None:
    """Read one uploaded file out of a multipart form, or None if the field is absent."""
    upload_file = form.get(field_name)

    if upload_file is None:
        return None
    if not isinstance(upload_file, StarletteUploadFile):
        raise ValidationFailed("File field must be an uploaded file")

    content = await upload_file.read()
    return UploadedFile(
        filename=upload_file.filename or "unnamed",
        content_type=upload_file.content_type or "application/octet-stream",
        content=content,
    )


def form_fields(
    form: FormData, exclude: str, list_fields: tuple[str, ...] = ()
) -> dict[str, Any]:
    """
    Plain text fields of a multipart form, minus the file field.

    Fields named in ``list_fields`` keep every repeated value as a list;
    any other repeated field keeps its last value.
    """
    fields: dict[str, Any] = {
        key: value
        for key, value in form.multi_items()
        if key != exclude and isinstance(value, str)
    }
    for name in list_fields:
        values = [value for value in form.getlist(name) if isinstance(value, str)]
        if values:
            fields[name] = values
    return fields


async def require_upload(form: FormData, field_name: str) -> UploadedFile:
    upload = await read_upload(form, field_name)
    if upload is None:
        raise ValidationFailed("Please upload a file")
    return upload

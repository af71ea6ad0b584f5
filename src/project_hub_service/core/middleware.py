"""ASGI middleware for request validation."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, cast

from fastapi.responses import JSONResponse

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send


_JSON_VALIDATION_ENDPOINTS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("POST", re.compile(r"^/projects$")),
    ("POST", re.compile(r"^/tasks$")),
    ("PUT", re.compile(r"^/tasks/[^/]+/status$")),
    ("PUT", re.compile(r"^/documents/[^/]+/share$")),
    ("POST", re.compile(r"^/events$")),
    ("PUT", re.compile(r"^/events/[^/]+$")),
)
_FORM_VALIDATION_ENDPOINTS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("POST", re.compile(r"^/documents$")),
    ("PUT", re.compile(r"^/documents/[^/]+$")),
    ("POST", re.compile(r"^/tasks/[^/]+/tag-documents$")),
)
_FORM_CONTENT_TYPES: tuple[str, ...] = ("multipart/form-data", "application/x-www-form-urlencoded")


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": message, "details": {}},
    )


def _matches(
    endpoints: tuple[tuple[str, re.Pattern[str]], ...], method: str, path: str
) -> bool:
    return any(
        candidate_method == method and pattern.match(path) is not None
        for candidate_method, pattern in endpoints
    )


class RequestValidationMiddleware:
    """
    ASGI middleware that validates Content-Type and body size.

    Runs before FastAPI routes. Returns 415 for wrong content-type
    on POST/PUT/PATCH, and 413 for oversized request bodies.

    Two content types are supported:
    - application/json for the JSON endpoints
    - multipart/form-data for document and tag-document uploads; metadata-only
      document updates may also arrive as application/x-www-form-urlencoded

    For multipart/form-data requests, body size is NOT checked here;
    file size is validated by FileStorage once the upload is read.
    """

    def __init__(self, app: ASGIApp, max_body_size: int) -> None:
        self.app = app
        self.max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = cast("str", scope.get("method", "GET"))

        if method not in ("POST", "PUT", "PATCH"):
            await self.app(scope, receive, send)
            return

        # Extract path and headers
        path = cast("str", scope.get("path", ""))
        raw_headers = cast("list[tuple[bytes, bytes]]", scope.get("headers", []))
        headers: dict[bytes, bytes] = dict(raw_headers)
        content_type = headers.get(b"content-type", b"").decode().lower()

        expects_form = _matches(_FORM_VALIDATION_ENDPOINTS, method, path)
        expects_json = _matches(_JSON_VALIDATION_ENDPOINTS, method, path)

        # Unknown endpoint/method combos should be handled by router as 404/405.
        if not expects_form and not expects_json:
            await self.app(scope, receive, send)
            return

        if expects_form:
            # If Content-Type is omitted, let the router report the missing file.
            if content_type != "" and not content_type.startswith(_FORM_CONTENT_TYPES):
                response = _error_response(
                    415, "UNSUPPORTED_MEDIA_TYPE", "Content-Type must be multipart/form-data"
                )
                await response(scope, receive, send)
                return

            await self.app(scope, receive, send)
            return

        if not content_type.startswith("application/json"):
            response = _error_response(
                415, "UNSUPPORTED_MEDIA_TYPE", "Content-Type must be application/json"
            )
            await response(scope, receive, send)
            return

        # Read and buffer body, checking size
        body_parts: list[bytes] = []
        body_size = 0

        while True:
            message = cast("dict[str, Any]", await receive())
            chunk = cast("bytes", message.get("body", b""))
            body_parts.append(chunk)
            body_size += len(chunk)

            if body_size > self.max_body_size:
                response = _error_response(
                    413, "PAYLOAD_TOO_LARGE", "Request body exceeds maximum allowed size"
                )
                await response(scope, receive, send)
                return

            if not message.get("more_body", False):
                break

        # Replay buffered body for downstream app
        full_body = b"".join(body_parts)
        body_sent = False

        async def buffered_receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": full_body, "more_body": False}
            return {"type": "http.disconnect"}

        await self.app(scope, buffered_receive, send)

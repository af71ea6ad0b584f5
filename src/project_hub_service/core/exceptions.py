"""Domain error taxonomy and the handlers that turn errors into JSON responses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from project_hub_service.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI, Request
    from starlette.types import ExceptionHandler

__all__ = [
    "AlreadyAwarded",
    "Forbidden",
    "IdentityUnavailable",
    "InvalidTransition",
    "NotFound",
    "ServiceError",
    "Unauthorized",
    "ValidationFailed",
    "register_exception_handlers",
]


class ServiceError(Exception):
    """Error carrying a machine-readable code, a message and an HTTP status."""

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status_code = status_code
        self.details: dict[str, Any] = details if details is not None else {}


class NotFound(ServiceError):
    """The referenced resource id does not resolve."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("NOT_FOUND", message, 404, details)


class Forbidden(ServiceError):
    """The resource exists but the requester may not perform the operation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("FORBIDDEN", message, 403, details)


class ValidationFailed(ServiceError):
    """Schema or range violation in the request."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("VALIDATION_FAILED", message, 400, details)


class InvalidTransition(ServiceError):
    """The requested task status change is not permitted."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            "INVALID_TRANSITION",
            f"Cannot change task status from '{current}' to '{requested}'",
            409,
            {"current": current, "requested": requested},
        )


class AlreadyAwarded(ServiceError):
    """Incentives for the task were already recorded. Callers treat this as a no-op."""

    def __init__(self, task_id: str) -> None:
        super().__init__(
            "ALREADY_AWARDED",
            "Incentives already awarded for this task",
            409,
            {"task_id": task_id},
        )


class Unauthorized(ServiceError):
    """No usable credentials were presented."""

    def __init__(self, message: str) -> None:
        super().__init__("UNAUTHORIZED", message, 401)


class IdentityUnavailable(ServiceError):
    """The identity service could not be reached or answered unexpectedly."""

    def __init__(self, message: str) -> None:
        super().__init__("IDENTITY_SERVICE_UNAVAILABLE", message, 502)


def _error_body(error: str, message: str, details: dict[str, Any]) -> dict[str, Any]:
    return {"success": False, "error": error, "message": message, "details": details}


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle ServiceError exceptions."""
    logger = get_logger(__name__)
    logger.warning(
        "Service error",
        extra={
            "error_code": exc.error,
            "status_code": exc.status_code,
            "path": str(request.url.path),
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error, exc.message, exc.details),
    )


async def unhandled_exception_handler(request: Request, _exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger = get_logger(__name__)
    logger.exception("Unhandled exception", extra={"path": str(request.url.path)})
    return JSONResponse(
        status_code=500,
        content=_error_body("INTERNAL_ERROR", "An unexpected error occurred", {}),
    )


async def http_exception_handler(
    _request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle Starlette HTTP exceptions (e.g., 405 from router)."""
    if exc.status_code == 405:
        return JSONResponse(
            status_code=405,
            content=_error_body("METHOD_NOT_ALLOWED", "Method not allowed", {}),
        )
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content=_error_body("NOT_FOUND", "Resource not found", {}),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("HTTP_ERROR", str(exc.detail), {}),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the app."""
    app.add_exception_handler(ServiceError, cast("ExceptionHandler", service_error_handler))
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.add_exception_handler(
        StarletteHTTPException,
        cast("ExceptionHandler", http_exception_handler),
    )

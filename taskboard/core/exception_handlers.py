"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses map to an HTTP status (400, 401, 404, 500)
- Storage failures are logged with full context but answered generically,
  so no filesystem paths leave the process
- Unexpected Exception is the catch-all 500
- All responses carry the request_id for correlation
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskboard.core.errors import (
    AppError,
    AuthenticationAppError,
    NotFoundAppError,
    StorageAppError,
    ValidationAppError,
)
from taskboard.core.logging import get_request_id

logger = logging.getLogger(__name__)

STORAGE_ERROR_MESSAGE = "The data store is temporarily unavailable. Please try again later."


def status_for(exc: AppError) -> int:
    if isinstance(exc, ValidationAppError):
        return 400
    if isinstance(exc, AuthenticationAppError):
        return 401
    if isinstance(exc, NotFoundAppError):
        return 404
    if isinstance(exc, StorageAppError):
        return 500
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError as ``{"error": {code, message, request_id, details?}}``.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code.
    """
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    if isinstance(exc, StorageAppError):
        error_content = {
            "code": "storage_error",
            "message": STORAGE_ERROR_MESSAGE,
            "request_id": get_request_id(),
        }
    else:
        error_content = {
            "code": exc.code,
            "message": exc.message,
            "request_id": get_request_id(),
        }
        if exc.details:
            error_content["details"] = exc.details

    return JSONResponse(status_code=status_code, content={"error": error_content})


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for unexpected errors; never leaks a stack trace to the client."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the handlers; specific first, catch-all last."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)

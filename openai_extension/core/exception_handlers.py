"""Map exceptions escaping a route to the JSON error envelope.

Action outcomes (rate limit denials, upstream errors) are ordinary results
and never reach these handlers. What does reach them:

- ConfigurationAppError: 400 (503 when the provider itself is unconfigured)
- AuthenticationAppError: 403
- StorageAppError: 404 for unknown artifacts, 500 otherwise
- TransportAppError: its gateway status (502/504)
- any other Exception: a generic 500 that reveals nothing about the cause

Every envelope is ``{"error": {code, message, request_id[, details]}}``.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from openai_extension.core.errors import (
    AppError,
    AuthenticationAppError,
    ConfigurationAppError,
    StorageAppError,
    TransportAppError,
)
from openai_extension.core.logging import get_request_id

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def status_code_for(exc: AppError) -> int:
    if isinstance(exc, AuthenticationAppError):
        return 403
    if isinstance(exc, ConfigurationAppError):
        return 503 if exc.code == "provider_not_configured" else 400
    if isinstance(exc, StorageAppError):
        return 404 if exc.code == "artifact_not_found" else 500
    if isinstance(exc, TransportAppError):
        return exc.http_status
    return 500


def error_envelope(code: str, message: str, details: Any = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        error["details"] = details
    return {"error": error}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "http.app_error",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(exc.code, exc.message, exc.details),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "http.unhandled_error",
        exc_info=exc,
        extra={"error_type": type(exc).__name__, "path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content=error_envelope("internal_server_error", UNEXPECTED_ERROR_MESSAGE),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)

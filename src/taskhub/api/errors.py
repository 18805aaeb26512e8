"""Exception handlers mapping the error taxonomy to HTTP responses.

Body shapes::

    {"message": "..."}                                   # every error
    {"message": "Validation failed", "errors": [...]}    # field validation

5xx responses never carry internal detail; it is logged instead.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskhub.core.exceptions import TaskHubError, ValidationError
from taskhub.core.schemas import field_errors

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

_SERVER_ERROR = "Server error"


def _json(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, **extra})


async def handle_taskhub_error(request: Request, exc: TaskHubError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return _json(exc.status_code, exc.message, errors=exc.errors)
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return _json(exc.status_code, _SERVER_ERROR)
    return _json(exc.status_code, exc.message)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _json(
        status.HTTP_400_BAD_REQUEST,
        "Validation failed",
        errors=field_errors(exc.errors()),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _json(status.HTTP_500_INTERNAL_SERVER_ERROR, _SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskHubError, handle_taskhub_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


__all__ = [
    "handle_request_validation_error",
    "handle_taskhub_error",
    "handle_unexpected_error",
    "register_exception_handlers",
]

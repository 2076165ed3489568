"""Error handling for the API.

Two kinds of failure are surfaced:

1. Failures of a resource operation (store, validation, patch errors).
   Controllers answer these themselves with ``error_body(exc)``, which
   passes the error through as ``{"name", "message", ...}`` without
   classifying it.
2. Infrastructure errors raised outside a resource pipeline, e.g. a
   dependency that is not available. These are ``APIError`` subclasses
   handled by ``api_error_handler``.

Usage:
    from event_api.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from event_api.patch import JsonPatchError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Error response model for infrastructure errors."""

    error: str
    detail: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for API errors."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(self, detail: str | None = None, **context: Any) -> None:
        self.detail = detail or self.__class__.detail
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.error, detail=self.detail, context=self.context)


class ServiceUnavailableError(APIError):
    """Service unavailable error (503)."""

    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


def error_body(exc: Exception) -> dict[str, Any]:
    """Serialize an operation failure as the client sees it."""
    if isinstance(exc, JsonPatchError):
        return exc.to_dict()
    if isinstance(exc, ValidationError):
        return {
            "name": "ValidationError",
            "message": f"{exc.title} validation failed",
            "errors": exc.errors(include_url=False, include_context=False),
        }
    return {"name": type(exc).__name__, "message": str(exc)}


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.warning(
        "API error: %s (status=%d, path=%s)",
        exc.detail,
        exc.status_code,
        request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)

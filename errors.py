"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors raised while handling a request.
The global exception handler converts AppError subclasses to the same JSON
shape the validate endpoint uses for a failed verdict, plus an error code.

Protocol rejections (wrong security code, blank fields) are never raised:
they are ordinary ``fail`` response bodies produced by the service layer.

ConfigurationError is not an AppError. It is only raised at startup and is
fatal before any request is served.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.logging import get_logger

log = get_logger(__name__)

# Reported in every client-facing verdict body
RELAY_VERSION = "1.0.0"


class ConfigurationError(Exception):
    """Invalid or missing startup configuration."""


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {
            "result": "fail",
            "version": RELAY_VERSION,
            "msg": self.message,
            "code": self.error_code,
        }
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    """Malformed client payload."""

    status_code = 400
    error_code = "validation_error"


class UpstreamError(AppError):
    """Base for failures talking to the upstream verification provider."""

    status_code = 502
    error_code = "upstream_error"


class UpstreamUnreachableError(UpstreamError):
    error_code = "upstream_unreachable"


class UpstreamMalformedResponseError(UpstreamError):
    error_code = "upstream_malformed_response"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        log_fn = log.error if exc.status_code >= 500 else log.warning
        log_fn(
            "request_failed",
            path=request.url.path,
            error_code=exc.error_code,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        # Unknown routes and wrong methods are a plain bad request, no body
        if exc.status_code in (404, 405):
            return Response(status_code=400)
        return Response(status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = ValidationError(
            "Malformed request", details=[e.get("loc") for e in exc.errors()]
        )
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content=AppError("An internal server error occurred.").to_dict(),
        )

"""Domain-specific exception hierarchy and FastAPI handlers."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from app.instrumentation.trace import trace_exception


class AppError(Exception):
    """Base class for domain errors with structured metadata."""

    status_code: int = 400
    code: str = "app_error"
    message: str = "Application error"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: List[Dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.details = details or []

    def to_payload(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class Unauthenticated(AppError):
    """Raised when no verified identity accompanies a protected request."""

    status_code = 401
    code = "unauthenticated"
    message = "Authentication required"


class Forbidden(AppError):
    """Raised when an identity may not act within the requested scope."""

    status_code = 403
    code = "forbidden"
    message = "You do not have permission for this action"


class OrganizationRequired(AppError):
    """Raised when an operation needs an organization and none was selected."""

    status_code = 403
    code = "organization_required"
    message = "An organization must be selected for this action"


class ValidationError(AppError):
    """Raised when input payloads fail validation."""

    status_code = 400
    code = "validation_error"
    message = "Invalid input"


class InvalidReference(AppError):
    """Raised when a payload points at an entity outside the caller's organization."""

    status_code = 400
    code = "invalid_reference"
    message = "Referenced entity does not exist"


class NotFound(AppError):
    """Raised when a requested resource is missing."""

    status_code = 404
    code = "not_found"
    message = "Resource not found"


class InternalError(AppError):
    """Raised for unexpected failures; the message never reaches the caller."""

    status_code = 500
    code = "internal_error"
    message = "Internal server error"


_INTERNAL_PAYLOAD = {"error": {"code": InternalError.code, "message": InternalError.message}}


def _validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    details: List[Dict[str, Any]] = []
    for item in exc.errors():
        location = [str(part) for part in item.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(location), "message": item.get("msg", "invalid")})
    return details


def add_exception_handlers(app: FastAPI) -> None:
    """Register handlers translating the error taxonomy into HTTP responses."""

    @app.exception_handler(InternalError)
    async def internal_error_handler(request: Request, exc: InternalError) -> JSONResponse:
        logger.bind(route=request.url.path).error("Internal error: {}", exc)
        trace_exception("internal_error", exc, route=request.url.path)
        return JSONResponse(status_code=500, content=_INTERNAL_PAYLOAD)

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        trace_exception("app_error", exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        error = ValidationError(details=_validation_details(exc))
        trace_exception("request_validation", exc, fields=[item["field"] for item in error.details])
        return JSONResponse(status_code=error.status_code, content=error.to_payload())

    @app.exception_handler(HTTPException)
    async def http_exc_handler(_: Request, exc: HTTPException) -> JSONResponse:
        trace_exception("http_exception", exc, status=exc.status_code, detail=exc.detail)
        payload = {
            "detail": exc.detail,
            "error": {"code": "http_error", "message": exc.detail},
        }
        return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.bind(route=request.url.path).exception("Unhandled error while serving request")
        return JSONResponse(status_code=500, content=_INTERNAL_PAYLOAD)

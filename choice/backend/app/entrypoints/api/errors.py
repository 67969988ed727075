# app/entrypoints/api/errors.py
from __future__ import annotations

import logging
from typing import TypeVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...domain.errors import (
    AuthorizationError,
    ConflictError,
    DuplicateError,
    NotFoundError,
    ServiceError,
    TransitionError,
    ValidationError,
)
from ...schemas import first_error_message
from ...service_layer.applications import ServiceResult

log = logging.getLogger("choice.api")

T = TypeVar("T")

STATUS_BY_ERROR: dict[type[ServiceError], int] = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    DuplicateError: 409,
    ConflictError: 409,
    TransitionError: 422,
}


def status_for(exc: ServiceError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 400


def unwrap(result: ServiceResult[T]) -> T:
    """Route helper: hand back the data or raise the typed error for the handlers below."""
    if result.error is not None:
        raise result.error
    return result.data  # type: ignore[return-value]


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _error_response(request: Request, status_code: int, detail: object) -> JSONResponse:
    request_id = _request_id(request)
    response = JSONResponse(status_code=status_code, content={"detail": detail, "request_id": request_id})
    if request_id:
        response.headers["X-Request-ID"] = request_id
    return response


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return _error_response(request, status_for(exc), exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(request, exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # same shape as a service ValidationError: first failing field only
        return _error_response(request, 400, first_error_message(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log.exception("unhandled_error request_id=%s", _request_id(request), exc_info=exc)
        return _error_response(request, 500, "Internal Server Error")

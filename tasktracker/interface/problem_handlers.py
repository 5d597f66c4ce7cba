"""Exception handlers rendering every error as an RFC 7807 problem detail."""

import logging
from collections.abc import Sequence
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktracker.core.config import constants
from tasktracker.core.errors import (
    AppError,
    ErrorCategory,
    InternalFailure,
    ProblemDetail,
    TaskTrackerError,
    Unauthorized,
    ValidationFailure,
    status_code_for,
    to_problem_detail,
)


logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def problem_response(problem: ProblemDetail, *, headers: dict[str, str] | None = None) -> JSONResponse:
    """Serialize a problem detail with the problem+json media type."""
    return JSONResponse(
        content=problem.model_dump(mode="json", by_alias=True, exclude_none=True),
        status_code=problem.status,
        media_type=PROBLEM_MEDIA_TYPE,
        headers=headers,
    )


def _base_url(request: Request) -> str:
    return request.app.state.settings.problem_base_url


def error_response(request: Request, error: AppError) -> JSONResponse:
    """Render a classified error for ``request``."""
    problem = to_problem_detail(error, base_url=_base_url(request), instance=request.url.path)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, Unauthorized) else None
    return problem_response(problem, headers=headers)


def collect_field_errors(errors: Sequence[Any]) -> dict[str, list[str]]:
    """Group validation messages by dotted field path.

    The leading request location (body, query, ...) is dropped; errors on the
    whole payload are keyed ``_root``.
    """
    field_errors: dict[str, list[str]] = {}
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        key = ".".join(str(part) for part in loc) or "_root"
        field_errors.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return field_errors


async def handle_task_tracker_error(request: Request, exc: TaskTrackerError) -> JSONResponse:
    """Render a classified error; only internal failures are logged as errors."""
    if isinstance(exc.error, InternalFailure):
        logger.error(
            "internal_failure",
            extra={"path": request.url.path, "method": request.method, "error": exc.error.message},
        )
    else:
        logger.info(
            "request_failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "category": str(exc.error.kind),
                "status_code": status_code_for(exc.error),
            },
        )
    return error_response(request, exc.error)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI input validation errors as a 400 problem."""
    field_errors = collect_field_errors(exc.errors())
    logger.info("request_validation_failed", extra={"path": request.url.path, "fields": sorted(field_errors)})
    return error_response(request, ValidationFailure(errors=field_errors))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render routing errors (unknown route, wrong method) as problems."""
    status = HTTPStatus(exc.status_code)
    if exc.status_code == constants.HTTP_NOT_FOUND:
        slug = str(ErrorCategory.NOT_FOUND)
        detail = f"Route {request.method} {request.url.path} not found"
    else:
        slug = status.phrase.lower().replace(" ", "-")
        detail = str(exc.detail)

    problem = ProblemDetail(
        type=f"{_base_url(request).rstrip('/')}/{slug}",
        title=status.phrase,
        status=exc.status_code,
        detail=detail,
        instance=request.url.path,
    )
    return problem_response(problem, headers=getattr(exc, "headers", None))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures with full context and return an opaque 500."""
    logger.exception(
        "unhandled_exception",
        extra={"path": request.url.path, "method": request.method, "error_type": type(exc).__name__},
    )
    return error_response(request, InternalFailure(message=str(exc)))


def register_exception_handlers(app: FastAPI) -> None:
    """Install problem-detail handlers on ``app``."""
    app.add_exception_handler(TaskTrackerError, handle_task_tracker_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

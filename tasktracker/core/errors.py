"""Error taxonomy and problem-detail rendering.

Every expected failure is one variant of the closed ``AppError`` union. Variants
travel through the service layer inside a single ``TaskTrackerError`` and are
rendered as RFC 7807 problem details at the HTTP boundary.
"""

from enum import StrEnum
from typing import Annotated, Literal, assert_never

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tasktracker.core.config import constants


class ErrorCategory(StrEnum):
    """Categories of classified failures."""

    VALIDATION = "validation-error"
    NOT_FOUND = "not-found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal-error"


class ValidationFailure(BaseModel):
    """Malformed or out-of-range input, with per-field messages."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[ErrorCategory.VALIDATION] = ErrorCategory.VALIDATION
    errors: dict[str, list[str]] = Field(default_factory=dict)


class NotFound(BaseModel):
    """Referenced resource has no current record."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[ErrorCategory.NOT_FOUND] = ErrorCategory.NOT_FOUND
    resource: str
    resource_id: str


class Conflict(BaseModel):
    """Version mismatch on a conditional write."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[ErrorCategory.CONFLICT] = ErrorCategory.CONFLICT
    message: str
    current_version: int


class Unauthorized(BaseModel):
    """Missing or invalid credential on a protected operation."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[ErrorCategory.UNAUTHORIZED] = ErrorCategory.UNAUTHORIZED
    message: str


class InternalFailure(BaseModel):
    """Unexpected failure; the message is logged, never shown to callers."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[ErrorCategory.INTERNAL] = ErrorCategory.INTERNAL
    message: str


AppError = Annotated[
    ValidationFailure | NotFound | Conflict | Unauthorized | InternalFailure,
    Field(discriminator="kind"),
]


class TaskTrackerError(Exception):
    """Carries a classified ``AppError`` variant up to the HTTP boundary."""

    def __init__(self, error: AppError) -> None:
        super().__init__(describe_error(error))
        self.error = error


class ProblemDetail(BaseModel):
    """RFC 7807 problem detail body."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    errors: dict[str, list[str]] | None = None
    current_version: int | None = None


def describe_error(error: AppError) -> str:
    """Return a one-line, log-friendly description of an error variant."""
    match error:
        case ValidationFailure():
            return f"Validation failed for fields: {', '.join(sorted(error.errors)) or '_root'}"
        case NotFound():
            return f"{error.resource} with id '{error.resource_id}' was not found"
        case Conflict():
            return error.message
        case Unauthorized():
            return error.message
        case InternalFailure():
            return error.message
        case _:
            assert_never(error)


def status_code_for(error: AppError) -> int:
    """Map an error variant to its HTTP status code."""
    match error:
        case ValidationFailure():
            return constants.HTTP_BAD_REQUEST
        case NotFound():
            return constants.HTTP_NOT_FOUND
        case Conflict():
            return constants.HTTP_CONFLICT
        case Unauthorized():
            return constants.HTTP_UNAUTHORIZED
        case InternalFailure():
            return constants.HTTP_SERVER_ERROR
        case _:
            assert_never(error)


def to_problem_detail(error: AppError, *, base_url: str, instance: str | None = None) -> ProblemDetail:
    """Render an error variant as a problem detail.

    Args:
        error: The classified error
        base_url: Prefix for the problem ``type`` URI
        instance: Request path that produced the error

    Returns:
        ProblemDetail ready to serialize (by alias, excluding None)
    """
    problem_type = f"{base_url.rstrip('/')}/{error.kind}"
    status = status_code_for(error)

    match error:
        case ValidationFailure():
            return ProblemDetail(
                type=problem_type,
                title="Validation Failed",
                status=status,
                detail="One or more fields failed validation",
                instance=instance,
                errors=dict(error.errors),
            )
        case NotFound():
            return ProblemDetail(
                type=problem_type,
                title="Resource Not Found",
                status=status,
                detail=describe_error(error),
                instance=instance,
            )
        case Conflict():
            return ProblemDetail(
                type=problem_type,
                title="Conflict",
                status=status,
                detail=error.message,
                instance=instance,
                current_version=error.current_version,
            )
        case Unauthorized():
            return ProblemDetail(
                type=problem_type,
                title="Unauthorized",
                status=status,
                detail=error.message,
                instance=instance,
            )
        case InternalFailure():
            # Internal messages stay server-side
            return ProblemDetail(
                type=problem_type,
                title="Internal Server Error",
                status=status,
                detail="An unexpected error occurred",
                instance=instance,
            )
        case _:
            assert_never(error)

"""Unit tests for the error taxonomy and problem-detail rendering."""

import pytest
from pydantic import TypeAdapter

from tasktracker.core.errors import (
    AppError,
    Conflict,
    ErrorCategory,
    InternalFailure,
    NotFound,
    TaskTrackerError,
    Unauthorized,
    ValidationFailure,
    status_code_for,
    to_problem_detail,
)


BASE_URL = "https://api.tasktracker.com/problems"


@pytest.mark.unit
class TestErrorVariants:
    """Tests for the AppError discriminated union."""

    def test_union_parses_by_kind(self):
        """Test the kind tag selects the variant."""
        adapter = TypeAdapter(AppError)

        error = adapter.validate_python({"kind": "conflict", "message": "stale", "current_version": 4})

        assert isinstance(error, Conflict)
        assert error.current_version == 4

    def test_union_rejects_unknown_kind(self):
        """Test the union is closed."""
        adapter = TypeAdapter(AppError)

        with pytest.raises(ValueError):
            adapter.validate_python({"kind": "teapot", "message": "no"})

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ValidationFailure(errors={"title": ["required"]}), 400),
            (Unauthorized(message="no token"), 401),
            (NotFound(resource="Task", resource_id="1"), 404),
            (Conflict(message="stale", current_version=2), 409),
            (InternalFailure(message="disk on fire"), 500),
        ],
    )
    def test_status_codes(self, error, status):
        """Test every variant maps to its HTTP status."""
        assert status_code_for(error) == status

    def test_exception_carries_variant_and_message(self):
        """Test TaskTrackerError wraps the variant with a readable message."""
        exc = TaskTrackerError(NotFound(resource="Task", resource_id="abc"))

        assert exc.error.kind == ErrorCategory.NOT_FOUND
        assert str(exc) == "Task with id 'abc' was not found"


@pytest.mark.unit
class TestToProblemDetail:
    """Tests for to_problem_detail."""

    def test_validation_problem_lists_field_errors(self):
        """Test validation problems carry per-field messages."""
        problem = to_problem_detail(
            ValidationFailure(errors={"title": ["Title is required"]}),
            base_url=BASE_URL,
            instance="/tasks",
        )

        body = problem.model_dump(by_alias=True, exclude_none=True)
        assert body == {
            "type": f"{BASE_URL}/validation-error",
            "title": "Validation Failed",
            "status": 400,
            "detail": "One or more fields failed validation",
            "instance": "/tasks",
            "errors": {"title": ["Title is required"]},
        }

    def test_not_found_problem(self):
        """Test not-found problems name the resource and ID."""
        problem = to_problem_detail(NotFound(resource="Task", resource_id="42"), base_url=BASE_URL)

        assert problem.status == 404
        assert problem.title == "Resource Not Found"
        assert problem.detail == "Task with id '42' was not found"
        assert problem.type == f"{BASE_URL}/not-found"

    def test_conflict_problem_reports_current_version(self):
        """Test conflict problems expose currentVersion for retries."""
        problem = to_problem_detail(Conflict(message="Version mismatch", current_version=7), base_url=BASE_URL)

        body = problem.model_dump(by_alias=True, exclude_none=True)
        assert body["status"] == 409
        assert body["currentVersion"] == 7
        assert body["detail"] == "Version mismatch"

    def test_internal_problem_hides_message(self):
        """Test internal failures never leak their message."""
        problem = to_problem_detail(InternalFailure(message="password=hunter2"), base_url=BASE_URL)

        assert problem.status == 500
        assert "hunter2" not in problem.model_dump_json()
        assert problem.detail == "An unexpected error occurred"

    def test_base_url_trailing_slash(self):
        """Test a trailing slash on the base URL does not double up."""
        problem = to_problem_detail(Unauthorized(message="no"), base_url=f"{BASE_URL}/")

        assert problem.type == f"{BASE_URL}/unauthorized"

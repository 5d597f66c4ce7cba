"""Task store contract shared by every storage engine."""

import uuid
from datetime import UTC, datetime
from typing import Any, Protocol

from tasktracker.core.errors import Conflict, NotFound, TaskTrackerError
from tasktracker.domain.create_models import TaskCreate
from tasktracker.domain.query_models import TaskFilters
from tasktracker.domain.task import Task
from tasktracker.domain.update_models import TaskUpdate


TASK_RESOURCE = "Task"


class StorageError(RuntimeError):
    """Storage engine failure (unavailable, corrupt, misconfigured)."""


class TaskStore(Protocol):
    """Versioned task storage with optimistic concurrency on writes.

    Every returned ``Task`` is an independent copy of stored state.
    """

    async def create(self, data: TaskCreate) -> Task: ...

    async def find_by_id(self, task_id: str) -> Task | None: ...

    async def find_many(self, filters: TaskFilters) -> tuple[list[Task], int]: ...

    async def update(self, task_id: str, changes: dict[str, Any], *, expected_version: int) -> Task: ...

    async def delete(self, task_id: str, *, expected_version: int | None = None) -> bool: ...

    async def exists(self, task_id: str) -> bool: ...

    async def close(self) -> None: ...


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(UTC)


def new_task_id() -> str:
    """Allocate a fresh, never-reused task ID."""
    return str(uuid.uuid4())


def build_new_task(data: TaskCreate) -> Task:
    """Build the version-1 record for a create request, validating the result."""
    now = utc_now()
    return Task.model_validate(
        {
            "id": new_task_id(),
            **data.model_dump(),
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
    )


def normalize_changes(changes: dict[str, Any], *, expected_version: int) -> dict[str, Any]:
    """Validate a partial update and return it keyed by attribute name.

    Identity, version and timestamps are owned by the store and cannot be
    supplied. Values go through the same rules as an update request body.

    Raises:
        ValueError: If ``changes`` names a field that cannot be updated
        pydantic.ValidationError: If a value is out of range or illegally null
    """
    unknown = set(changes) - (set(TaskUpdate.model_fields) - {"version"})
    if unknown:
        msg = f"Cannot update fields: {', '.join(sorted(unknown))}"
        raise ValueError(msg)

    return TaskUpdate.model_validate({**changes, "version": expected_version}).changes()


def apply_changes(current: Task, changes: dict[str, Any]) -> Task:
    """Return the next version of ``current`` with already-normalized ``changes`` applied."""
    return Task.model_validate(
        {
            **current.model_dump(),
            **changes,
            "version": current.version + 1,
            "updated_at": utc_now(),
        }
    )


def not_found(task_id: str) -> TaskTrackerError:
    """Build the NotFound error for a task ID."""
    return TaskTrackerError(NotFound(resource=TASK_RESOURCE, resource_id=task_id))


def version_conflict(*, expected_version: int, current_version: int) -> TaskTrackerError:
    """Build the Conflict error reporting the authoritative version."""
    return TaskTrackerError(
        Conflict(
            message=f"Version mismatch. Expected version {current_version}, got {expected_version}",
            current_version=current_version,
        )
    )

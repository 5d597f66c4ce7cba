"""Task service: existence checks and not-found translation over the task store."""

import logging

from tasktracker.core.logging import log_with_context, span
from tasktracker.core.store import TaskStore, not_found
from tasktracker.domain.create_models import TaskCreate
from tasktracker.domain.query_models import PaginationMetadata, TaskFilters, TaskPage
from tasktracker.domain.task import Task
from tasktracker.domain.update_models import TaskUpdate


logger = logging.getLogger(__name__)


async def create_task(*, store: TaskStore, data: TaskCreate) -> Task:
    """Create a new task.

    Args:
        store: Task store to write to
        data: Validated create payload

    Returns:
        Created task at version 1
    """
    with span("task_service.create_task"):
        task = await store.create(data)
        log_with_context(logger, "info", "Created task", task_id=task.id, operation_type="create")
        return task


async def get_task(*, store: TaskStore, task_id: str) -> Task:
    """Get task by ID.

    Raises:
        TaskTrackerError: NotFound if no task has this ID
    """
    with span("task_service.get_task"):
        task = await store.find_by_id(task_id)
        if task is None:
            raise not_found(task_id)
        return task


async def list_tasks(*, store: TaskStore, filters: TaskFilters) -> TaskPage:
    """List tasks matching filters, one page at a time.

    Args:
        store: Task store to read from
        filters: Filters, ordering and pagination

    Returns:
        The requested page and pagination metadata computed from the total match count
    """
    with span("task_service.list_tasks"):
        tasks, total = await store.find_many(filters)
        logger.debug("Listed %d of %d tasks", len(tasks), total)

        return TaskPage(
            data=tasks,
            pagination=PaginationMetadata.build(page=filters.page, page_size=filters.page_size, total=total),
        )


async def update_task(*, store: TaskStore, task_id: str, data: TaskUpdate) -> Task:
    """Apply a version-checked partial update.

    Args:
        store: Task store to write to
        task_id: Task ID
        data: Partial update including the version the caller last observed

    Returns:
        Updated task

    Raises:
        TaskTrackerError: NotFound if the task does not exist, Conflict if
            ``data.version`` is not the current version
    """
    with span("task_service.update_task"):
        if not await store.exists(task_id):
            raise not_found(task_id)

        task = await store.update(task_id, data.changes(), expected_version=data.version)
        log_with_context(
            logger,
            "info",
            "Updated task",
            task_id=task_id,
            version=task.version,
            operation_type="update",
        )
        return task


async def delete_task(*, store: TaskStore, task_id: str, expected_version: int | None = None) -> None:
    """Delete a task.

    Args:
        store: Task store to write to
        task_id: Task ID
        expected_version: When given, delete only if this is still the current version

    Raises:
        TaskTrackerError: NotFound if the task does not exist, Conflict if
            ``expected_version`` is stale
    """
    with span("task_service.delete_task"):
        if not await store.exists(task_id):
            raise not_found(task_id)

        await store.delete(task_id, expected_version=expected_version)
        log_with_context(logger, "info", "Deleted task", task_id=task_id, operation_type="delete")

"""In-memory task store with per-task compare-and-swap."""

import logging
import threading
from typing import Any

from tasktracker.core.store import apply_changes, build_new_task, normalize_changes, not_found, version_conflict
from tasktracker.domain.create_models import TaskCreate
from tasktracker.domain.query_models import SortField, SortOrder, TaskFilters
from tasktracker.domain.task import Task


logger = logging.getLogger(__name__)


def matches_filters(task: Task, filters: TaskFilters) -> bool:
    """Return True if ``task`` satisfies every filter that is set."""
    if filters.status is not None and task.status != filters.status:
        return False
    if filters.tag is not None and filters.tag not in task.tags:
        return False
    if filters.search is not None and filters.search.casefold() not in task.title.casefold():
        return False
    return True


def sort_tasks(tasks: list[Task], sort_by: SortField | None, sort_order: SortOrder) -> list[Task]:
    """Order tasks by ``sort_by`` with nulls last; ties keep their input order."""
    if sort_by is None:
        return list(tasks)

    attr = "priority" if sort_by == SortField.PRIORITY else "due_date"
    present = [t for t in tasks if getattr(t, attr) is not None]
    missing = [t for t in tasks if getattr(t, attr) is None]

    # sorted() is stable for reverse=True as well
    ordered = sorted(present, key=lambda t: getattr(t, attr), reverse=sort_order == SortOrder.DESC)
    return ordered + missing


class InMemoryTaskStore:
    """Task store backed by a dict, for tests and single-process deployments.

    Updates take a lock scoped to one task ID, so writers on distinct tasks
    never wait on each other. Insertion order of the dict is the default
    listing order.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._tasks: dict[str, Task] = {}
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, task_id: str) -> threading.Lock:
        # setdefault is atomic, so racing callers get the same lock
        return self._locks.setdefault(task_id, threading.Lock())

    async def create(self, data: TaskCreate) -> Task:
        task = build_new_task(data)
        self._tasks[task.id] = task
        logger.debug("Created task", extra={"task_id": task.id})
        return task.model_copy(deep=True)

    async def find_by_id(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task is not None else None

    async def find_many(self, filters: TaskFilters) -> tuple[list[Task], int]:
        matching = [t for t in list(self._tasks.values()) if matches_filters(t, filters)]
        ordered = sort_tasks(matching, filters.sort_by, filters.sort_order)
        page = ordered[filters.offset : filters.offset + filters.page_size]
        return [t.model_copy(deep=True) for t in page], len(matching)

    async def update(self, task_id: str, changes: dict[str, Any], *, expected_version: int) -> Task:
        normalized = normalize_changes(changes, expected_version=expected_version)
        if task_id not in self._tasks:
            raise not_found(task_id)

        with self._lock_for(task_id):
            current = self._tasks.get(task_id)
            if current is None:
                raise not_found(task_id)
            if current.version != expected_version:
                raise version_conflict(expected_version=expected_version, current_version=current.version)

            updated = apply_changes(current, normalized)
            self._tasks[task_id] = updated

        logger.debug("Updated task", extra={"task_id": task_id, "version": updated.version})
        return updated.model_copy(deep=True)

    async def delete(self, task_id: str, *, expected_version: int | None = None) -> bool:
        if task_id not in self._tasks:
            return False

        with self._lock_for(task_id):
            current = self._tasks.get(task_id)
            if current is None:
                return False
            if expected_version is not None and current.version != expected_version:
                raise version_conflict(expected_version=expected_version, current_version=current.version)
            del self._tasks[task_id]

        self._locks.pop(task_id, None)
        logger.debug("Deleted task", extra={"task_id": task_id})
        return True

    async def exists(self, task_id: str) -> bool:
        return task_id in self._tasks

    async def close(self) -> None:
        return

    def clear(self) -> None:
        """Drop every stored task."""
        self._tasks.clear()
        self._locks.clear()

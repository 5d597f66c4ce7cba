"""Domain models and DTOs."""

from tasktracker.domain.create_models import TaskCreate
from tasktracker.domain.query_models import PaginationMetadata, SortField, SortOrder, TaskFilters, TaskPage
from tasktracker.domain.task import Task, TaskStatus
from tasktracker.domain.update_models import TaskUpdate


__all__ = [
    "PaginationMetadata",
    "SortField",
    "SortOrder",
    "Task",
    "TaskCreate",
    "TaskFilters",
    "TaskPage",
    "TaskStatus",
    "TaskUpdate",
]

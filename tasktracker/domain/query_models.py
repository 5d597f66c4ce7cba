"""Query and pagination models for listing tasks."""

import math
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tasktracker.core.config import constants
from tasktracker.domain.task import Task, TaskStatus


class SortField(StrEnum):
    """Fields a task listing can be ordered by."""

    PRIORITY = "priority"
    DUE_DATE = "dueDate"


class SortOrder(StrEnum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class TaskFilters(BaseModel):
    """Filters, ordering and pagination for a task listing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: TaskStatus | None = Field(default=None, description="Exact status match")
    tag: str | None = Field(default=None, description="Tag that must be present")
    search: str | None = Field(default=None, description="Case-insensitive title substring")
    sort_by: SortField | None = Field(default=None, description="Sort key; insertion order when unset")
    sort_order: SortOrder = Field(default=SortOrder.ASC, description="Sort direction")
    page: int = Field(
        default=constants.DEFAULT_PAGE, ge=1, le=constants.MAX_PAGE, description="1-indexed page number"
    )
    page_size: int = Field(
        default=constants.DEFAULT_PAGE_SIZE,
        ge=1,
        le=constants.MAX_PAGE_SIZE,
        description="Records per page",
    )

    @property
    def offset(self) -> int:
        """Number of matching records before the requested page."""
        return (self.page - 1) * self.page_size


class PaginationMetadata(BaseModel):
    """Pagination block of a listing response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    page_size: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, *, page: int, page_size: int, total: int) -> "PaginationMetadata":
        """Compute total pages for ``total`` matches split into pages of ``page_size``."""
        return cls(page=page, page_size=page_size, total=total, total_pages=math.ceil(total / page_size))


class TaskPage(BaseModel):
    """One page of tasks plus pagination metadata."""

    data: list[Task]
    pagination: PaginationMetadata

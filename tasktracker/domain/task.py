"""Task domain models and enums."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from tasktracker.core.config import constants


TaskTitle = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=constants.TITLE_MIN_LENGTH,
        max_length=constants.TITLE_MAX_LENGTH,
    ),
]
TaskPriority = Annotated[int, Field(strict=True, ge=constants.PRIORITY_MIN, le=constants.PRIORITY_MAX)]


class TaskStatus(StrEnum):
    """Task workflow status."""

    TODO = "todo"
    DOING = "doing"
    DONE = "done"


class Task(BaseModel):
    """Task record as stored and returned by the task store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Opaque unique task ID")
    title: TaskTitle = Field(..., description="Task title")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Current task status")
    priority: TaskPriority = Field(default=constants.DEFAULT_PRIORITY, description="Priority from 1 to 5")
    due_date: AwareDatetime | None = Field(default=None, description="Optional due date")
    tags: list[str] = Field(default_factory=list, description="Free-form labels")
    version: int = Field(..., ge=1, description="Concurrency token, incremented on every update")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")

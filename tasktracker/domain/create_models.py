"""Pydantic models for creating task records."""

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tasktracker.core.config import constants
from tasktracker.domain.task import TaskPriority, TaskStatus, TaskTitle


class TaskCreate(BaseModel):
    """Payload for creating a task; omitted fields take their defaults."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: TaskTitle = Field(..., description="Task title (1-120 characters, trimmed)")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Initial status")
    priority: TaskPriority = Field(default=constants.DEFAULT_PRIORITY, description="Priority from 1 to 5")
    due_date: AwareDatetime | None = Field(default=None, description="Optional due date with timezone")
    tags: list[str] = Field(default_factory=list, description="Free-form labels")

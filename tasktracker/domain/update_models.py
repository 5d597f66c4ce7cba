"""Update models for version-checked task mutations."""

from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tasktracker.core.config import constants
from tasktracker.domain.task import TaskPriority, TaskStatus, TaskTitle


class TaskUpdate(BaseModel):
    """Partial update payload.

    Only fields present in the payload are applied. ``due_date`` is the only
    field that may be explicitly cleared with null.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: TaskTitle | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: AwareDatetime | None = None
    tags: list[str] | None = None
    version: int = Field(
        ..., strict=True, ge=1, le=constants.SQLITE_MAX_INTEGER, description="Version the caller last observed"
    )

    @field_validator("title", "status", "priority", "tags")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        """Reject explicit null for fields that are not nullable."""
        if v is None:
            msg = "Field may not be null"
            raise ValueError(msg)
        return v

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller supplied, keyed by attribute name."""
        return self.model_dump(exclude_unset=True, exclude={"version"})

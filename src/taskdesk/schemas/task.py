"""Task-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, Field, model_validator

from ..models import TaskPriority, TaskStatus
from ..models.task import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH
from .base import CamelModel

TASK_READ_EXAMPLE = {
    "id": 1,
    "title": "Draft product documentation",
    "description": "Outline sections for the public API guide.",
    "status": TaskStatus.TODO.value,
    "priority": TaskPriority.HIGH.value,
    "dueDate": "2024-05-01T17:00:00Z",
    "userId": 42,
    "createdAt": "2024-04-20T12:00:00Z",
    "updatedAt": "2024-04-21T08:30:00Z",
}


class TaskCreate(CamelModel):
    """Payload for creating a new task."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Draft product documentation",
                "description": "Outline sections for the public API guide.",
                "priority": TaskPriority.HIGH.value,
                "dueDate": "2024-05-01T17:00:00Z",
            }
        }
    )

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    priority: TaskPriority
    due_date: datetime | None = None


class TaskUpdate(CamelModel):
    """Payload for partially updating an existing task.

    ``description`` and ``due_date`` may be sent as ``null`` to clear them, so
    emptiness is judged on the fields that were actually supplied.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Update API documentation",
                "status": TaskStatus.IN_PROGRESS.value,
            }
        }
    )

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None

    @model_validator(mode="after")
    def _ensure_payload_not_empty(self) -> "TaskUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update.")
        for name in ("title", "status", "priority"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null.")
        return self

    def changes(self) -> dict[str, object]:
        """Return the supplied fields keyed by their attribute names."""
        return self.model_dump(exclude_unset=True)


class TaskRead(CamelModel):
    """Public representation of a task."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": TASK_READ_EXAMPLE},
    )

    id: int
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None = None
    user_id: int
    created_at: datetime
    updated_at: datetime


class TaskStats(CamelModel):
    """Per-status task counts for one owner."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {"total": 4, "todo": 3, "inProgress": 0, "done": 1, "cancelled": 0}
        },
    )

    total: int = Field(ge=0)
    todo: int = Field(ge=0)
    in_progress: int = Field(ge=0)
    done: int = Field(ge=0)
    cancelled: int = Field(ge=0)


__all__ = ["TaskCreate", "TaskRead", "TaskStats", "TaskUpdate"]

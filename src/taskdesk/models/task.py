"""Task domain models built with SQLModel."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin, UTCDateTime, enum_values

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


class TaskStatus(str, Enum):
    """Lifecycle states of a task."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"

    def can_transition_to(self, target: "TaskStatus") -> bool:
        """Return ``True`` if ``target`` is reachable from this status.

        Only consulted when transition enforcement is switched on.
        """
        return target is self or target in STATUS_TRANSITIONS[self]


STATUS_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.TODO: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.DONE, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.TODO, TaskStatus.DONE, TaskStatus.CANCELLED}),
    TaskStatus.DONE: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.CANCELLED: frozenset({TaskStatus.TODO}),
}


class TaskPriority(str, Enum):
    """Relative urgency of a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskBase(SQLModel, table=False):
    """Shared attributes for task models."""

    title: str = Field(
        max_length=TITLE_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=TITLE_MAX_LENGTH), nullable=False),
    )
    description: str | None = Field(
        default=None,
        max_length=DESCRIPTION_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=DESCRIPTION_MAX_LENGTH), nullable=True),
    )
    status: TaskStatus = Field(
        default=TaskStatus.TODO,
        sa_column=sa.Column(
            sa.Enum(
                TaskStatus,
                name="task_status",
                native_enum=False,
                create_constraint=True,
                validate_strings=True,
                values_callable=enum_values,
            ),
            nullable=False,
            server_default=TaskStatus.TODO.value,
        ),
    )
    priority: TaskPriority = Field(
        sa_column=sa.Column(
            sa.Enum(
                TaskPriority,
                name="task_priority",
                native_enum=False,
                create_constraint=True,
                validate_strings=True,
                values_callable=enum_values,
            ),
            nullable=False,
        ),
    )
    due_date: datetime | None = Field(
        default=None,
        sa_column=sa.Column(UTCDateTime(), nullable=True),
    )
    user_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )


class Task(TaskBase, TimestampMixin, table=True):
    """Persistent task model."""

    __tablename__ = "tasks"
    __table_args__ = (
        sa.CheckConstraint("length(title) > 0", name="ck_tasks_title_length"),
        sa.Index("ix_tasks_user_id", "user_id"),
        sa.Index("ix_tasks_status", "status"),
        sa.Index("ix_tasks_priority", "priority"),
    )

    id: int | None = Field(default=None, primary_key=True)


__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "STATUS_TRANSITIONS",
    "TITLE_MAX_LENGTH",
    "Task",
    "TaskBase",
    "TaskPriority",
    "TaskStatus",
]

"""Persistence models."""

from __future__ import annotations

from .common import TimestampMixin, UTCDateTime, as_utc, utcnow
from .task import STATUS_TRANSITIONS, Task, TaskBase, TaskPriority, TaskStatus
from .user import User, UserBase

__all__ = [
    "STATUS_TRANSITIONS",
    "Task",
    "TaskBase",
    "TaskPriority",
    "TaskStatus",
    "TimestampMixin",
    "UTCDateTime",
    "User",
    "UserBase",
    "as_utc",
    "utcnow",
]

"""Service layer encapsulating owner-scoped task operations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import INVALID_REFERENCE_MESSAGE, NotFoundError, ValidationError
from ..models import Task, TaskPriority, TaskStatus
from ..repositories import TaskRepository

logger = logging.getLogger(__name__)

NO_FIELDS_MESSAGE = "No fields to update"
TASK_NOT_FOUND_MESSAGE = "Task not found or access denied"

UPDATABLE_FIELDS = frozenset({"title", "description", "status", "priority", "due_date"})


@dataclass(slots=True)
class TaskStatistics:
    """Per-status task counts for a single owner."""

    total: int
    todo: int
    in_progress: int
    done: int
    cancelled: int


class TaskService:
    """High-level business orchestration for ``Task`` entities.

    Every operation takes the owner's id and never touches another user's rows;
    a task that exists but belongs to someone else is reported exactly like a
    missing one.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        enforce_status_transitions: bool = False,
    ) -> None:
        self._session = session
        self._repository = TaskRepository(session)
        self._enforce_status_transitions = enforce_status_transitions

    @property
    def repository(self) -> TaskRepository:
        """Expose the underlying repository for advanced scenarios."""
        return self._repository

    async def create_task(
        self,
        owner_id: int,
        *,
        title: str,
        priority: TaskPriority,
        description: str | None = None,
        due_date: datetime | None = None,
    ) -> Task:
        """Create a new ``todo`` task belonging to ``owner_id``."""
        task = Task(
            title=title,
            description=description,
            status=TaskStatus.TODO,
            priority=TaskPriority(priority),
            due_date=due_date,
            user_id=owner_id,
        )
        try:
            await self._repository.add(task)
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ValidationError(INVALID_REFERENCE_MESSAGE) from exc
        await self._repository.refresh(task)
        logger.debug("Task created", extra={"task_id": task.id})
        return task

    async def list_tasks(
        self,
        owner_id: int,
        *,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Task]:
        """Return owned tasks matching every supplied filter, newest first."""
        return await self._repository.list_for_owner(
            owner_id,
            status=status,
            priority=priority,
            limit=limit,
            offset=offset,
        )

    async def search_tasks(self, owner_id: int, term: str) -> list[Task]:
        """Case-insensitive substring search over title and description."""
        return await self._repository.search_for_owner(owner_id, term)

    async def get_task(self, task_id: int, owner_id: int) -> Task | None:
        return await self._repository.get_for_owner(task_id, owner_id)

    async def update_task(
        self,
        task_id: int,
        owner_id: int,
        changes: Mapping[str, Any],
    ) -> Task:
        """Apply a partial update and return the task as stored afterwards."""
        if not changes:
            raise ValidationError(NO_FIELDS_MESSAGE)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown task fields: {', '.join(sorted(unknown))}")

        values = dict(changes)
        if values.get("status") is not None:
            values["status"] = TaskStatus(values["status"])
        if values.get("priority") is not None:
            values["priority"] = TaskPriority(values["priority"])

        if self._enforce_status_transitions and "status" in values:
            await self._check_transition(task_id, owner_id, values["status"])

        affected = await self._repository.update_for_owner(task_id, owner_id, values)
        if not affected:
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        await self._session.commit()

        task = await self._repository.get_for_owner(task_id, owner_id)
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        return task

    async def _check_transition(self, task_id: int, owner_id: int, target: TaskStatus) -> None:
        current = await self._repository.get_for_owner(task_id, owner_id)
        if current is None:
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        if not current.status.can_transition_to(target):
            raise ValidationError(
                f"Cannot change task status from {current.status.value} to {target.value}"
            )

    async def delete_task(self, task_id: int, owner_id: int) -> None:
        affected = await self._repository.delete_for_owner(task_id, owner_id)
        if not affected:
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        await self._session.commit()
        logger.info("Task deleted", extra={"task_id": task_id})

    async def get_statistics(self, owner_id: int) -> TaskStatistics:
        """Return per-status counts; statuses without tasks count as zero."""
        counts = await self._repository.count_by_status(owner_id)
        return TaskStatistics(
            total=sum(counts.values()),
            todo=counts.get(TaskStatus.TODO, 0),
            in_progress=counts.get(TaskStatus.IN_PROGRESS, 0),
            done=counts.get(TaskStatus.DONE, 0),
            cancelled=counts.get(TaskStatus.CANCELLED, 0),
        )


__all__ = ["TaskService", "TaskStatistics", "UPDATABLE_FIELDS"]

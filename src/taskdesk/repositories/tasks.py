"""Task store: owner-scoped persistence for ``Task`` rows."""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import delete, func, or_, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, TaskPriority, TaskStatus, utcnow
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Every query here is filtered by the owning user's id."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    @staticmethod
    def _newest_first(query):
        return query.order_by(Task.created_at.desc(), Task.id.desc())

    async def get_for_owner(self, task_id: int, owner_id: int) -> Task | None:
        """Retrieve a task by id only if it belongs to ``owner_id``."""
        result = await self.session.execute(
            select(Task)
            .where(Task.id == task_id, Task.user_id == owner_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_owner(
        self,
        owner_id: int,
        *,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Task]:
        """Return owned tasks matching every supplied filter, newest first."""
        query = select(Task).where(Task.user_id == owner_id)
        if status is not None:
            query = query.where(Task.status == status)
        if priority is not None:
            query = query.where(Task.priority == priority)
        query = self._newest_first(query)
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def search_for_owner(self, owner_id: int, term: str) -> list[Task]:
        """Case-insensitive substring search over title and description."""
        query = select(Task).where(
            Task.user_id == owner_id,
            or_(
                Task.title.icontains(term, autoescape=True),
                Task.description.icontains(term, autoescape=True),
            ),
        )
        result = await self.session.execute(self._newest_first(query))
        return list(result.scalars().all())

    async def update_for_owner(
        self,
        task_id: int,
        owner_id: int,
        values: Mapping[str, Any],
    ) -> int:
        """Apply ``values`` to an owned task, returning the affected row count."""
        statement = (
            update(Task)
            .where(Task.id == task_id, Task.user_id == owner_id)
            .values(**values, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount

    async def delete_for_owner(self, task_id: int, owner_id: int) -> int:
        result = await self.session.execute(
            delete(Task)
            .where(Task.id == task_id, Task.user_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def count_by_status(self, owner_id: int) -> dict[TaskStatus, int]:
        """Return the number of owned tasks per status (absent statuses omitted)."""
        result = await self.session.execute(
            select(Task.status, func.count())
            .where(Task.user_id == owner_id)
            .group_by(Task.status)
        )
        return {TaskStatus(status): int(count) for status, count in result.all()}


__all__ = ["TaskRepository"]

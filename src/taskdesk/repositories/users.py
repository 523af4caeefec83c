"""Credential store: persistence for ``User`` rows."""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import delete, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import User, utcnow
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Concrete repository for ``User`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> User | None:
        """Return the user with exactly this email, if any."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(select(User.id).where(User.email == email))
        return result.first() is not None

    async def update_fields(self, user_id: int, values: Mapping[str, Any]) -> int:
        """Apply ``values`` to the user row and stamp ``updated_at``.

        Returns the number of rows affected.
        """
        statement = (
            update(User)
            .where(User.id == user_id)
            .values(**values, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount

    async def delete_by_id(self, user_id: int) -> int:
        """Delete the user row; owned tasks go with it via ``ON DELETE CASCADE``."""
        result = await self.session.execute(delete(User).where(User.id == user_id))
        return result.rowcount


__all__ = ["UserRepository"]

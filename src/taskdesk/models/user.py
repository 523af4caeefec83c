"""User domain models built with SQLModel."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin

NAME_MAX_LENGTH = 50


class UserBase(SQLModel, table=False):
    """Shared attributes for user models."""

    email: str = Field(
        max_length=320,
        sa_column=sa.Column(
            sa.String(length=320),
            nullable=False,
            unique=True,
        ),
    )
    name: str = Field(
        max_length=NAME_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=NAME_MAX_LENGTH), nullable=False),
    )


class User(UserBase, TimestampMixin, table=True):
    """Persistent user model; ``hashed_password`` never leaves the service layer."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )


__all__ = ["NAME_MAX_LENGTH", "User", "UserBase"]

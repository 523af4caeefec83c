"""User-facing Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, EmailStr, Field, model_validator

from ..models.user import NAME_MAX_LENGTH
from .base import CamelModel

PASSWORD_MIN_LENGTH = 6
NAME_MIN_LENGTH = 2


class UserPublic(CamelModel):
    """A user record without its password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(CamelModel):
    """Partial profile update; only the supplied fields change."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"name": "Jane Doe"}},
    )

    name: str | None = Field(default=None, min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LENGTH)

    @model_validator(mode="after")
    def _ensure_payload_not_empty(self) -> "ProfileUpdate":
        if not self.model_dump(exclude_unset=True, exclude_none=True):
            raise ValueError("At least one field must be provided for update.")
        return self


__all__ = ["NAME_MIN_LENGTH", "PASSWORD_MIN_LENGTH", "ProfileUpdate", "UserPublic"]

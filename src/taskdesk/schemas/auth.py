"""Schemas describing authentication payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..models.user import NAME_MAX_LENGTH
from .base import CamelModel
from .user import NAME_MIN_LENGTH, PASSWORD_MIN_LENGTH, UserPublic


class RegisterRequest(CamelModel):
    """Incoming payload for registering a new user."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "jane@example.com",
                "password": "s3cret!",
                "name": "Jane Example",
            }
        }
    )

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginResult(CamelModel):
    """Bearer token plus the authenticated user's public record."""

    token: str
    user: UserPublic


class TokenPayload(BaseModel):
    """Validated JWT claims."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    email: str
    name: str
    exp: datetime
    iat: datetime | None = None


__all__ = ["LoginRequest", "LoginResult", "RegisterRequest", "TokenPayload"]

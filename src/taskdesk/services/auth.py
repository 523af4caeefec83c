"""Authentication service: registration, login, token resolution and profiles."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession
from starlette.concurrency import run_in_threadpool

from ..core.config import Settings
from ..core.security import (
    GeneratedToken,
    Identity,
    JWTError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from ..errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from ..models import User
from ..repositories import UserRepository
from ..schemas.auth import TokenPayload

logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "User with this email already exists"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_TOKEN_MESSAGE = "Invalid or expired token"
USER_NOT_FOUND_MESSAGE = "User not found"
NO_FIELDS_MESSAGE = "No fields to update"


@dataclass(slots=True)
class AuthResult:
    """Outcome of a successful login."""

    token: GeneratedToken
    user: User


def identity_for(user: User) -> Identity:
    if user.id is None:
        raise ValueError("User must be persisted before issuing tokens.")
    return Identity(id=user.id, email=user.email, name=user.name)


def resolve_token(token: str, settings: Settings) -> Identity:
    """Verify ``token`` and return the identity it carries.

    The user is not re-read from storage, so a token stays valid for its whole
    lifetime even if the account changes.
    """
    try:
        claims = decode_access_token(token, settings=settings)
        payload = TokenPayload.model_validate(claims)
        user_id = int(payload.sub)
    except (JWTError, PydanticValidationError, ValueError) as exc:
        raise ForbiddenError(INVALID_TOKEN_MESSAGE) from exc
    return Identity(id=user_id, email=payload.email, name=payload.name)


class AuthService:
    """High-level authentication workflows over the credential store."""

    def __init__(self, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._repository = UserRepository(session)

    @property
    def repository(self) -> UserRepository:
        return self._repository

    async def _hash(self, password: str) -> str:
        return await run_in_threadpool(
            hash_password, password, rounds=self._settings.bcrypt_rounds
        )

    async def register_user(self, *, email: str, password: str, name: str) -> User:
        """Create a user account; the returned row still carries the hash."""
        if await self._repository.email_exists(email):
            raise ConflictError(EMAIL_TAKEN_MESSAGE)

        user = User(email=email, name=name, hashed_password=await self._hash(password))
        try:
            await self._repository.add(user)
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ConflictError(EMAIL_TAKEN_MESSAGE) from exc
        await self._repository.refresh(user)
        logger.info("User registered", extra={"user_id": user.id})
        return user

    async def authenticate_user(self, email: str, password: str) -> AuthResult:
        """Check credentials and issue an access token.

        Unknown emails and wrong passwords fail identically.
        """
        user = await self._repository.get_by_email(email)
        if user is None or not await run_in_threadpool(
            verify_password, password, user.hashed_password
        ):
            logger.warning("Failed login attempt")
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        token = create_access_token(identity_for(user), settings=self._settings)
        logger.info("User logged in", extra={"user_id": user.id})
        return AuthResult(token=token, user=user)

    def resolve_token(self, token: str) -> Identity:
        return resolve_token(token, self._settings)

    async def get_profile(self, user_id: int) -> User:
        user = await self._repository.get_fresh(user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND_MESSAGE)
        return user

    async def update_profile(
        self,
        user_id: int,
        *,
        name: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ) -> User:
        """Apply the supplied profile fields and return the stored result."""
        values: dict[str, Any] = {}
        if name is not None:
            values["name"] = name
        if email is not None:
            values["email"] = email
        if password is not None:
            values["hashed_password"] = await self._hash(password)
        if not values:
            raise ValidationError(NO_FIELDS_MESSAGE)

        if email is not None:
            holder = await self._repository.get_by_email(email)
            if holder is not None and holder.id != user_id:
                raise ConflictError(EMAIL_TAKEN_MESSAGE)

        try:
            affected = await self._repository.update_fields(user_id, values)
            if not affected:
                raise NotFoundError(USER_NOT_FOUND_MESSAGE)
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise ConflictError(EMAIL_TAKEN_MESSAGE) from exc

        user = await self._repository.get_fresh(user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND_MESSAGE)
        logger.info("Profile updated", extra={"user_id": user_id, "fields": sorted(values)})
        return user

    async def delete_account(self, user_id: int) -> None:
        """Delete the account; owned tasks are removed by cascade."""
        affected = await self._repository.delete_by_id(user_id)
        if not affected:
            raise NotFoundError(USER_NOT_FOUND_MESSAGE)
        await self._session.commit()
        logger.info("User deleted", extra={"user_id": user_id})


__all__ = ["AuthResult", "AuthService", "identity_for", "resolve_token"]

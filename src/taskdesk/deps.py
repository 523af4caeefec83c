"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.config import Settings
from .core.context import bind_user_id
from .core.security import Identity
from .db import Database
from .errors import UnauthorizedError
from .services import AuthService, TaskService
from .services.auth import resolve_token

_bearer_scheme = HTTPBearer(auto_error=False, description="JWT issued by /auth/login")


def get_app_settings(request: Request) -> Settings:
    """Return the settings the running application was built with."""
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a request-scoped database session."""

    async for session in get_database(request).session():
        yield session


SettingsDependency = Annotated[Settings, Depends(get_app_settings)]
DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]


def get_auth_service(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> AuthService:
    return AuthService(session, settings)


def get_task_service(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> TaskService:
    return TaskService(
        session,
        enforce_status_transitions=settings.enforce_status_transitions,
    )


AuthServiceDependency = Annotated[AuthService, Depends(get_auth_service)]
TaskServiceDependency = Annotated[TaskService, Depends(get_task_service)]


async def require_identity(
    request: Request,
    settings: SettingsDependency,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> Identity:
    """Authenticate the request from its ``Authorization: Bearer`` header.

    The token alone establishes the caller; storage is not consulted, so the
    gate opens no database session of its own.
    """

    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access token required")

    identity = resolve_token(credentials.credentials, settings)
    request.state.identity = identity
    bind_user_id(identity.id)
    return identity


CurrentIdentityDependency = Annotated[Identity, Depends(require_identity)]


__all__ = [
    "AuthServiceDependency",
    "CurrentIdentityDependency",
    "DatabaseSessionDependency",
    "SettingsDependency",
    "TaskServiceDependency",
    "get_app_settings",
    "get_auth_service",
    "get_database",
    "get_db_session",
    "get_task_service",
    "require_identity",
]

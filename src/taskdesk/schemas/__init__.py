"""Pydantic schemas exposed by the API."""

from __future__ import annotations

from .auth import LoginRequest, LoginResult, RegisterRequest, TokenPayload
from .envelope import ApiResponse, ErrorEnvelope
from .system import HealthCheckResponse, RootResponse
from .task import TaskCreate, TaskRead, TaskStats, TaskUpdate
from .user import ProfileUpdate, UserPublic

__all__ = [
    "ApiResponse",
    "ErrorEnvelope",
    "HealthCheckResponse",
    "LoginRequest",
    "LoginResult",
    "ProfileUpdate",
    "RegisterRequest",
    "RootResponse",
    "TaskCreate",
    "TaskRead",
    "TaskStats",
    "TaskUpdate",
    "TokenPayload",
    "UserPublic",
]

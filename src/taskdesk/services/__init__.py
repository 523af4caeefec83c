"""Service layer exports."""

from __future__ import annotations

from .auth import AuthResult, AuthService
from .tasks import TaskService, TaskStatistics

__all__ = ["AuthResult", "AuthService", "TaskService", "TaskStatistics"]

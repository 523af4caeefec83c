from __future__ import annotations

import pytest
from fastapi import FastAPI, status
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

from taskdesk.core.config import Settings
from taskdesk.errors import (
    ConflictError,
    ErrorKind,
    ForbiddenError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)
from taskdesk.main import create_app

pytestmark = pytest.mark.asyncio


def _client(app: FastAPI) -> AsyncClient:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.mark.parametrize(
    ("kind", "expected"),
    [
        (ErrorKind.VALIDATION, 400),
        (ErrorKind.UNAUTHORIZED, 401),
        (ErrorKind.FORBIDDEN, 403),
        (ErrorKind.NOT_FOUND, 404),
        (ErrorKind.CONFLICT, 409),
        (ErrorKind.INTERNAL, 500),
    ],
)
async def test_error_kinds_map_to_status_codes(kind: ErrorKind, expected: int) -> None:
    assert kind.status_code == expected


@pytest.mark.parametrize(
    ("error", "expected_status"),
    [
        (ValidationError("No fields to update"), status.HTTP_400_BAD_REQUEST),
        (UnauthorizedError("Access token required"), status.HTTP_401_UNAUTHORIZED),
        (ForbiddenError(), status.HTTP_403_FORBIDDEN),
        (NotFoundError("Task not found"), status.HTTP_404_NOT_FOUND),
        (ConflictError("User with this email already exists"), status.HTTP_409_CONFLICT),
        (ServerError("JWT secret not configured"), status.HTTP_500_INTERNAL_SERVER_ERROR),
    ],
)
async def test_application_errors_render_envelope(
    app: FastAPI,
    error: Exception,
    expected_status: int,
) -> None:
    @app.get("/error/application")
    async def trigger_application_error() -> None:  # pragma: no cover - defined in test
        raise error

    async with _client(app) as client:
        response = await client.get("/error/application")

    assert response.status_code == expected_status
    assert response.json() == {"success": False, "error": str(error)}
    assert response.headers["X-Request-ID"]


async def test_unauthorized_error_advertises_bearer_scheme(app: FastAPI) -> None:
    async with _client(app) as client:
        response = await client.get("/api/tasks")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.headers["WWW-Authenticate"] == "Bearer"


async def test_unknown_route_is_not_found(app: FastAPI) -> None:
    async with _client(app) as client:
        response = await client.get("/api/does-not-exist")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {
        "success": False,
        "error": "Route GET /api/does-not-exist not found",
    }


async def test_request_validation_error_is_bad_request(app: FastAPI) -> None:
    async with _client(app) as client:
        response = await client.post("/api/auth/login", json={"email": "jane@example.com"})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    payload = response.json()
    assert payload["success"] is False
    assert payload["message"] == "Request validation failed."
    assert payload["error"].startswith("password")


async def test_integrity_error_is_conflict(app: FastAPI) -> None:
    @app.get("/error/database")
    async def trigger_integrity_error() -> None:  # pragma: no cover - defined in test
        raise IntegrityError("statement", {}, Exception("constraint"))

    async with _client(app) as client:
        response = await client.get("/error/database")

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["success"] is False


async def test_foreign_key_integrity_error_is_bad_request(app: FastAPI) -> None:
    @app.get("/error/reference")
    async def trigger_foreign_key_error() -> None:  # pragma: no cover - defined in test
        raise IntegrityError("statement", {}, Exception("FOREIGN KEY constraint failed"))

    async with _client(app) as client:
        response = await client.get("/error/reference")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"success": False, "error": "Invalid reference to related resource"}


async def test_unhandled_error_hides_internal_details(settings: Settings) -> None:
    app = create_app(settings.model_copy(update={"environment": "production"}))

    @app.get("/error/unhandled")
    async def trigger_unhandled_error() -> None:  # pragma: no cover - defined in test
        raise RuntimeError("Sensitive detail")

    async with _client(app) as client:
        response = await client.get("/error/unhandled")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {
        "success": False,
        "error": "Internal server error.",
        "message": "Something went wrong",
    }
    assert "Sensitive" not in response.text


async def test_unhandled_error_is_detailed_in_development(settings: Settings) -> None:
    app = create_app(settings.model_copy(update={"environment": "development"}))

    @app.get("/error/unhandled")
    async def trigger_unhandled_error() -> None:  # pragma: no cover - defined in test
        raise RuntimeError("Sensitive detail")

    async with _client(app) as client:
        response = await client.get("/error/unhandled")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["message"] == "Sensitive detail"


async def test_request_id_is_echoed(app: FastAPI) -> None:
    async with _client(app) as client:
        response = await client.get("/healthz", headers={"X-Request-ID": "req-123"})
        generated = await client.get("/healthz")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"] == "req-123"
    assert generated.headers["X-Request-ID"]


async def test_root_exposes_service_metadata(app: FastAPI, settings: Settings) -> None:
    async with _client(app) as client:
        response = await client.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "name": settings.project_name,
        "environment": "test",
        "version": settings.version,
        "api_prefix": "/api",
    }

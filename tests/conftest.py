from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from itertools import count

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskdesk.core.config import Settings
from taskdesk.db import Database
from taskdesk.deps import get_db_session
from taskdesk.main import create_app
from taskdesk.models import User

TEST_JWT_SECRET = "test-secret-key"


@dataclass(slots=True)
class RegisteredUser:
    id: int
    email: str
    password: str
    name: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        environment="test",
        jwt_secret_key=TEST_JWT_SECRET,
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest_asyncio.fixture
async def database(settings: Settings) -> AsyncIterator[Database]:
    db = Database.from_settings(settings)
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncIterator[AsyncSession]:
    async with database.session_maker() as db_session:
        yield db_session


@pytest_asyncio.fixture
async def make_user(session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Insert a user row directly, bypassing password hashing."""
    counter = count()

    async def _factory(*, email: str | None = None, name: str = "Test User") -> User:
        user = User(
            email=email or f"owner-{next(counter)}@example.com",
            name=name,
            hashed_password="not-a-real-hash",
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user

    return _factory


@pytest_asyncio.fixture
async def app(settings: Settings, database: Database) -> AsyncIterator[FastAPI]:
    application = create_app(settings)

    async def _override_db_session() -> AsyncIterator[AsyncSession]:
        async for db_session in database.session():
            yield db_session

    application.dependency_overrides[get_db_session] = _override_db_session
    try:
        yield application
    finally:
        application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


@pytest_asyncio.fixture
async def registered_user(client: AsyncClient) -> Callable[..., Awaitable[RegisteredUser]]:
    counter = count()

    async def _factory(
        *,
        email: str | None = None,
        password: str = "StrongPass123!",
        name: str = "Task User",
    ) -> RegisteredUser:
        actual_email = email or f"user-{next(counter)}@example.com"
        register_response = await client.post(
            "/api/auth/register",
            json={"email": actual_email, "password": password, "name": name},
        )
        assert register_response.status_code == 201, register_response.text
        login_response = await client.post(
            "/api/auth/login",
            json={"email": actual_email, "password": password},
        )
        assert login_response.status_code == 200, login_response.text
        data = login_response.json()["data"]
        return RegisteredUser(
            id=data["user"]["id"],
            email=actual_email,
            password=password,
            name=name,
            token=data["token"],
        )

    return _factory

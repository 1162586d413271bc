from typing import AsyncGenerator, Callable, Dict

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.core.config import Settings
from school_os.db.seed import seed_defaults
from school_os.main import create_app

TEST_JWT_SECRET = "test-jwt-secret"
TEST_SESSION_SECRET = "test-session-secret"


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a fresh SQLite file per test."""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        JWT_SECRET_KEY=TEST_JWT_SECRET,
        SESSION_SECRET_KEY=TEST_SESSION_SECRET,
        BCRYPT_ROUNDS=4,
        SEED_SAMPLE_DATA=True,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture()
async def app(test_settings: Settings) -> AsyncGenerator[FastAPI, None]:
    application = create_app(test_settings)
    # ASGITransport does not run the lifespan; create and seed explicitly.
    await application.state.db.create_all()
    await seed_defaults(application.state.db, test_settings)
    yield application
    await application.state.db.dispose()


@pytest.fixture()
async def db_session(app: FastAPI) -> AsyncGenerator[AsyncSession, None]:
    async with app.state.db.sessionmaker() as session:
        yield session


@pytest.fixture()
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def login(client: AsyncClient, username: str, password: str) -> str:
    response = await client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def admin_headers(client: AsyncClient) -> Dict[str, str]:
    return bearer(await login(client, "admin", "admin"))


@pytest.fixture()
async def teacher_headers(client: AsyncClient, admin_headers: Dict[str, str]) -> Dict[str, str]:
    response = await client.post(
        "/api/auth/register",
        json={
            "username": "mrs_okafor",
            "email": "okafor@example.com",
            "password": "teach123",
            "full_name": "Ngozi Okafor",
            "role": "teacher",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return bearer(await login(client, "mrs_okafor", "teach123"))


@pytest.fixture()
def create_student(client: AsyncClient, admin_headers: Dict[str, str]) -> Callable:
    """Factory: create a student through the API and return its JSON body."""

    async def _create(student_number: str, first_name: str = "Ada", last_name: str = "Obi", **extra):
        payload = {"student_number": student_number, "first_name": first_name, "last_name": last_name}
        payload.update(extra)
        response = await client.post("/api/students", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create

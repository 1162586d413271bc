from typing import Dict

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school_os.auth.models import User
from school_os.auth.security import hash_password, verify_password

from conftest import TEST_SESSION_SECRET, bearer, login


@pytest.mark.asyncio
async def test_login_default_admin(client: AsyncClient) -> None:
    response = await client.post("/api/auth/login", json={"username": "admin", "password": "admin"})
    assert response.status_code == 200
    data = response.json()

    assert data["success"] is True
    assert data["message"] == "Login successful"
    assert data["data"]["token"]
    assert data["data"]["token_type"] == "bearer"
    assert data["data"]["user"]["username"] == "admin"
    assert data["data"]["user"]["role"] == "admin"
    assert "password_hash" not in data["data"]["user"]
    assert "school_os_session" in response.cookies


@pytest.mark.asyncio
async def test_login_by_email(client: AsyncClient) -> None:
    response = await client.post(
        "/api/auth/login", json={"username": "ADMIN@school-os.local", "password": "admin"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["user"]["username"] == "admin"


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient) -> None:
    response = await client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
    assert response.status_code == 401
    data = response.json()
    assert data["success"] is False
    assert data["error"] == "Invalid username or password"


@pytest.mark.asyncio
async def test_login_missing_fields(client: AsyncClient) -> None:
    response = await client.post("/api/auth/login", json={"username": "admin"})
    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_token_grants_access(client: AsyncClient, admin_headers: Dict[str, str]) -> None:
    response = await client.get("/api/students", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["success"] is True


@pytest.mark.asyncio
async def test_protected_route_without_token(client: AsyncClient) -> None:
    response = await client.get("/api/students")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert response.json() == {"success": False, "error": "Access denied. No token provided."}


@pytest.mark.asyncio
async def test_malformed_authorization_header(client: AsyncClient) -> None:
    response = await client.get("/api/students", headers={"Authorization": "Token abc"})
    assert response.status_code == 401
    assert response.json()["error"] == "Access denied. No token provided."


@pytest.mark.asyncio
async def test_token_for_deleted_user(
    client: AsyncClient, teacher_headers: Dict[str, str], db_session: AsyncSession
) -> None:
    result = await db_session.execute(select(User).where(User.username == "mrs_okafor"))
    user = result.scalar_one()
    await db_session.delete(user)
    await db_session.commit()

    response = await client.get("/api/auth/profile", headers=teacher_headers)
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid token. User not found."


@pytest.mark.asyncio
async def test_profile_and_verify(client: AsyncClient, admin_headers: Dict[str, str]) -> None:
    response = await client.get("/api/auth/profile", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "admin@school-os.local"

    response = await client.get("/api/auth/verify", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Token is valid"
    assert body["data"]["username"] == "admin"
    assert body["data"]["role"] == "admin"


@pytest.mark.asyncio
async def test_update_profile(client: AsyncClient, admin_headers: Dict[str, str]) -> None:
    response = await client.put(
        "/api/auth/profile", json={"full_name": "Head Teacher"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["full_name"] == "Head Teacher"
    assert response.json()["data"]["email"] == "admin@school-os.local"

    response = await client.put("/api/auth/profile", json={}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_profile_email_taken(
    client: AsyncClient, admin_headers: Dict[str, str], teacher_headers: Dict[str, str]
) -> None:
    response = await client.put(
        "/api/auth/profile", json={"email": "okafor@example.com"}, headers=admin_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_change_password(
    client: AsyncClient, admin_headers: Dict[str, str], db_session: AsyncSession
) -> None:
    response = await client.post(
        "/api/auth/change-password",
        json={"current_password": "wrong", "new_password": "better-secret"},
        headers=admin_headers,
    )
    assert response.status_code == 401
    assert response.json()["error"] == "Current password is incorrect"

    response = await client.post(
        "/api/auth/change-password",
        json={"current_password": "admin", "new_password": "better-secret"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    user = (await db_session.execute(select(User).where(User.username == "admin"))).scalar_one()
    assert verify_password("better-secret", user.password_hash)
    assert await login(client, "admin", "better-secret")


@pytest.mark.asyncio
async def test_register_requires_admin(client: AsyncClient, teacher_headers: Dict[str, str]) -> None:
    response = await client.post(
        "/api/auth/register",
        json={
            "username": "another",
            "email": "another@example.com",
            "password": "secret1",
            "full_name": "Another Teacher",
        },
        headers=teacher_headers,
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Admin access required."


@pytest.mark.asyncio
async def test_register_duplicate_username(
    client: AsyncClient, admin_headers: Dict[str, str], teacher_headers: Dict[str, str]
) -> None:
    response = await client.post(
        "/api/auth/register",
        json={
            "username": "mrs_okafor",
            "email": "someone.else@example.com",
            "password": "secret1",
            "full_name": "Duplicate",
        },
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Username or email already exists"


@pytest.mark.asyncio
async def test_session_cookie_authenticates(client: AsyncClient) -> None:
    response = await client.post("/api/auth/login", json={"username": "admin", "password": "admin"})
    cookie = response.cookies["school_os_session"]
    client.cookies.clear()

    response = await client.get(
        "/api/auth/session", headers={"Cookie": f"school_os_session={cookie}"}
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["authenticated"] is True
    assert data["strategy"] == "session"
    assert data["user"]["username"] == "admin"

    response = await client.get("/api/students", headers={"Cookie": f"school_os_session={cookie}"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_session_anonymous(client: AsyncClient) -> None:
    response = await client.get("/api/auth/session")
    assert response.status_code == 200
    assert response.json()["data"] == {"authenticated": False, "user": None, "strategy": None}


@pytest.mark.asyncio
async def test_forged_session_cookie_is_ignored(client: AsyncClient) -> None:
    from school_os.auth.sessions import SessionSigner

    forged = SessionSigner("not-" + TEST_SESSION_SECRET, 3600).dump(user_id=1, username="admin")
    response = await client.get("/api/students", headers={"Cookie": f"school_os_session={forged}"})
    assert response.status_code == 401
    assert response.json()["error"] == "Access denied. No token provided."


@pytest.mark.asyncio
async def test_bearer_wins_over_cookie(client: AsyncClient, admin_headers: Dict[str, str]) -> None:
    headers = dict(admin_headers)
    headers["Cookie"] = "school_os_session=garbage"
    response = await client.get("/api/auth/session", headers=headers)
    assert response.json()["data"]["strategy"] == "bearer"


@pytest.mark.asyncio
async def test_logout_clears_cookie(client: AsyncClient) -> None:
    await client.post("/api/auth/login", json={"username": "admin", "password": "admin"})
    response = await client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logout successful"
    assert 'school_os_session=""' in response.headers["set-cookie"] or "Max-Age=0" in response.headers["set-cookie"]


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["version"] == "1.0.0"
    assert "timestamp" in body


@pytest.mark.asyncio
async def test_register_username_matching_an_email(client: AsyncClient, admin_headers: Dict[str, str]) -> None:
    response = await client.post(
        "/api/auth/register",
        json={
            "username": "Admin@School-OS.local",
            "email": "fresh@example.com",
            "password": "secret1",
            "full_name": "Shadow",
        },
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "Username or email already exists"


@pytest.mark.asyncio
async def test_login_prefers_exact_username(client: AsyncClient, db_session: AsyncSession) -> None:
    db_session.add(
        User(
            username="admin@school-os.local",
            email="imported@example.com",
            password_hash=hash_password("imported1", rounds=4),
            full_name="Imported Account",
            role="teacher",
        )
    )
    await db_session.commit()

    response = await client.post(
        "/api/auth/login", json={"username": "admin@school-os.local", "password": "imported1"}
    )
    assert response.status_code == 200
    assert response.json()["data"]["user"]["email"] == "imported@example.com"

    response = await client.post(
        "/api/auth/login", json={"username": "admin@school-os.local", "password": "admin"}
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_change_password_camel_case_body(client: AsyncClient, teacher_headers: Dict[str, str]) -> None:
    response = await client.post(
        "/api/auth/change-password",
        json={"currentPassword": "teach123", "newPassword": "teach456"},
        headers=teacher_headers,
    )
    assert response.status_code == 200
    assert await login(client, "mrs_okafor", "teach456")

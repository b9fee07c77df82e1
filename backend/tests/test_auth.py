"""Tests for authentication endpoints."""

import pytest
from httpx import AsyncClient

from charterdesk.models.user import User
from tests.factories import TEST_PASSWORD, headers_for


@pytest.mark.auth
@pytest.mark.asyncio
class TestAuthEndpoints:
    """Test authentication endpoints."""

    async def test_register_user(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"email": "NewUser@Example.com", "password": "SecurePassword123!", "name": "New User"},
        )

        assert response.status_code == 201
        data = response.json()
        assert "access_token" in data
        assert data["user"]["email"] == "newuser@example.com"

    async def test_register_duplicate_email(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/register",
            json={"email": test_user.email, "password": "AnotherPassword123!", "name": "Another"},
        )

        assert response.status_code == 400
        assert "already exists" in response.json()["error"]["message"]

    async def test_register_short_password(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"email": "short@example.com", "password": "abc", "name": "Short"},
        )

        assert response.status_code == 400
        assert "at least 8 characters" in response.json()["error"]["message"]

    async def test_login_success(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["user"]["email"] == test_user.email

    async def test_login_wrong_password(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": "wrongpassword"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"

    async def test_login_deactivated(self, client: AsyncClient, test_user: User, db_session):
        test_user.is_active = False
        await db_session.flush()

        response = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 403

    async def test_refresh(self, client: AsyncClient, test_user: User):
        login = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": TEST_PASSWORD},
        )
        response = await client.post(
            "/api/auth/refresh", json={"refresh_token": login.json()["refresh_token"]}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == test_user.id

    async def test_refresh_rejects_access_token(self, client: AsyncClient, test_user: User):
        login = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": TEST_PASSWORD},
        )
        response = await client.post(
            "/api/auth/refresh", json={"refresh_token": login.json()["access_token"]}
        )

        assert response.status_code == 401

    async def test_me_with_organization(self, client: AsyncClient, auth_headers: dict, test_organization):
        response = await client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["organization_id"] == test_organization.id
        assert data["role"] == "admin"
        assert "members.manage" in data["permissions"]

    async def test_me_without_organization(self, client: AsyncClient, test_user: User):
        response = await client.get("/api/auth/me", headers=headers_for(test_user))

        assert response.status_code == 200
        data = response.json()
        assert data["organization_id"] is None
        assert data["permissions"] == []

    async def test_me_foreign_organization(self, client: AsyncClient, test_user: User):
        headers = {**headers_for(test_user), "X-Organization-Id": "not-a-member"}
        response = await client.get("/api/auth/me", headers=headers)

        assert response.status_code == 403

    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401

    async def test_exists(self, client: AsyncClient, test_user: User):
        found = await client.get("/api/auth/exists", params={"email": "TEST@example.com"})
        missing = await client.get("/api/auth/exists", params={"email": "nobody@example.com"})

        assert found.json() == {"exists": True}
        assert missing.json() == {"exists": False}

    async def test_logout(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/auth/logout", headers=auth_headers)

        assert response.status_code == 204


@pytest.mark.unit
class TestPasswordHashing:
    """Test password hashing utilities."""

    def test_hash_password(self):
        from charterdesk.auth.password import hash_password, verify_password

        password = "MySecurePassword123!"
        hashed = hash_password(password)

        assert hashed != password
        assert verify_password(password, hashed)
        assert not verify_password("WrongPassword", hashed)


@pytest.mark.unit
class TestJWTTokens:
    """Test JWT token generation and validation."""

    def test_access_token_claims(self):
        from charterdesk.auth.jwt import create_access_token, decode_token

        token = create_access_token(user_id="user-1", email="user@example.com")
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"

    def test_refresh_token_type(self):
        from charterdesk.auth.jwt import create_refresh_token, decode_token

        assert decode_token(create_refresh_token("user-1", "user@example.com"))["type"] == "refresh"

    def test_decode_garbage(self):
        from charterdesk.auth.jwt import decode_token

        assert decode_token("not-a-token") == {}


@pytest.mark.unit
class TestPermissions:
    def test_viewer_is_read_only(self):
        from charterdesk.auth.permissions import resolve_permissions

        permissions = resolve_permissions("viewer")
        assert "orders.read" in permissions
        assert not any(p.endswith(".write") for p in permissions)

    def test_unknown_role_has_nothing(self):
        from charterdesk.auth.permissions import resolve_permissions

        assert resolve_permissions(None) == []
        assert resolve_permissions("captain") == []

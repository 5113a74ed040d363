"""Tests for authentication endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.models.user import User
from chemsphere.routers import auth as auth_router
from conftest import headers_for, make_user


@pytest.mark.auth
@pytest.mark.asyncio
class TestAuthEndpoints:
    """Test authentication endpoints."""

    async def test_register_user(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={
                "email": "NewUser@Example.com",
                "username": "newuser",
                "password": "secret123",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert "access_token" in data
        assert data["user"]["email"] == "newuser@example.com"
        assert data["user"]["role"] == "user"
        assert data["user"]["verified"] is False

    async def test_register_duplicate_email(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/register",
            json={"email": test_user.email, "username": "again", "password": "secret123"},
        )

        assert response.status_code == 400
        assert "already registered" in response.json()["error"]["message"].lower()

    async def test_register_short_password(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"email": "x@example.com", "username": "xx", "password": "123"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_login_success(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["user"]["email"] == test_user.email
        assert data["user"]["last_login"] is not None
        assert "usage_log.create" in data["user"]["permissions"]

    async def test_login_wrong_password(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": "wrongpassword"},
        )

        assert response.status_code == 401

    async def test_login_deactivated(
        self, client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        test_user.active = False
        await db_session.commit()

        response = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )

        assert response.status_code == 403

    async def test_get_current_user(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "student"
        assert data["is_admin"] is False

    async def test_get_current_user_no_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me")

        assert response.status_code == 401

    async def test_get_current_user_invalid_token(self, client: AsyncClient):
        response = await client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401

    async def test_refresh_token(self, client: AsyncClient, test_user: User):
        login = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )
        refresh_token = login.json()["refresh_token"]

        response = await client.post(
            "/api/auth/refresh", json={"refresh_token": refresh_token}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == test_user.id

    async def test_refresh_rejects_access_token(self, client: AsyncClient, test_user: User):
        login = await client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )

        response = await client.post(
            "/api/auth/refresh", json={"refresh_token": login.json()["access_token"]}
        )

        assert response.status_code == 401

    async def test_logout_revokes_token(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/auth/logout", headers=auth_headers)
        assert response.status_code == 204

        response = await client.get("/api/auth/me", headers=auth_headers)
        assert response.status_code == 401


@pytest.mark.auth
@pytest.mark.asyncio
class TestVerificationGate:

    async def test_unverified_user_can_read_profile(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        pending = await make_user(
            db_session, email="pending@example.com", username="pending", verified=False
        )

        response = await client.get("/api/auth/me", headers=headers_for(pending))

        assert response.status_code == 200
        assert response.json()["verified"] is False

    async def test_unverified_user_blocked_from_inventory(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        pending = await make_user(
            db_session, email="pending@example.com", username="pending", verified=False
        )

        response = await client.get("/api/chemicals/", headers=headers_for(pending))

        assert response.status_code == 403
        assert "pending verification" in response.json()["error"]["message"]


@pytest.mark.auth
@pytest.mark.asyncio
class TestGoogleLogin:

    async def test_first_google_login_provisions_unverified_account(
        self, client: AsyncClient, monkeypatch
    ):
        async def fake_verify(id_token):
            assert id_token == "google-token"
            return {"email": "grace@example.com", "name": "Grace", "email_verified": "true"}

        monkeypatch.setattr(auth_router, "verify_google_id_token", fake_verify)

        response = await client.post("/api/auth/google", json={"id_token": "google-token"})

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == "grace@example.com"
        assert user["username"] == "Grace"
        assert user["auth_provider"] == "google"
        assert user["verified"] is False

    async def test_google_login_existing_account(
        self, client: AsyncClient, monkeypatch, test_user: User
    ):
        async def fake_verify(id_token):
            return {"email": test_user.email, "email_verified": "true"}

        monkeypatch.setattr(auth_router, "verify_google_id_token", fake_verify)

        response = await client.post("/api/auth/google", json={"id_token": "t"})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == test_user.id

    async def test_google_login_not_configured(self, client: AsyncClient):
        response = await client.post("/api/auth/google", json={"id_token": "t"})

        assert response.status_code == 503

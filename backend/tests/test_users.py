"""Tests for user administration endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.models.user import User, UserRole
from conftest import headers_for, make_user


@pytest.mark.api
@pytest.mark.asyncio
class TestUserAdministration:

    async def test_admin_verifies_pending_user(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict
    ):
        pending = await make_user(
            db_session, email="new@example.com", username="newbie", verified=False
        )

        listed = await client.get("/api/users/pending", headers=admin_headers)
        assert [u["id"] for u in listed.json()] == [pending.id]

        response = await client.post(f"/api/users/{pending.id}/verify", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["verified"] is True

        inventory = await client.get("/api/chemicals/", headers=headers_for(pending))
        assert inventory.status_code == 200

    async def test_list_users_filters_by_role(
        self, client: AsyncClient, admin_headers: dict, test_user: User
    ):
        response = await client.get(
            "/api/users/", headers=admin_headers, params={"role": "user"}
        )

        assert response.status_code == 200
        assert [u["username"] for u in response.json()["items"]] == ["student"]

    async def test_deactivated_user_loses_access(
        self, client: AsyncClient, admin_headers: dict, test_user: User, auth_headers: dict
    ):
        response = await client.post(
            f"/api/users/{test_user.id}/deactivate", headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["active"] is False

        response = await client.get("/api/auth/me", headers=auth_headers)
        assert response.status_code == 401

    async def test_admin_cannot_deactivate_self(
        self, client: AsyncClient, admin_user: User, admin_headers: dict
    ):
        response = await client.post(
            f"/api/users/{admin_user.id}/deactivate", headers=admin_headers
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "SELF_MODIFICATION"

    async def test_admin_cannot_delete_or_unverify_self(
        self, client: AsyncClient, admin_user: User, admin_headers: dict
    ):
        deleted = await client.delete(f"/api/users/{admin_user.id}", headers=admin_headers)
        unverified = await client.post(
            f"/api/users/{admin_user.id}/unverify", headers=admin_headers
        )

        for response in (deleted, unverified):
            assert response.status_code == 422
            assert response.json()["error"]["code"] == "SELF_MODIFICATION"

    async def test_admin_cannot_demote_self(
        self, client: AsyncClient, admin_user: User, admin_headers: dict
    ):
        response = await client.patch(
            f"/api/users/{admin_user.id}/role", headers=admin_headers, json={"role": "user"}
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "SELF_MODIFICATION"

    async def test_admin_cannot_grant_admin_role(
        self, client: AsyncClient, admin_headers: dict, test_user: User
    ):
        response = await client.patch(
            f"/api/users/{test_user.id}/role", headers=admin_headers, json={"role": "admin"}
        )

        assert response.status_code == 403

    async def test_admin_cannot_touch_other_admin(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict
    ):
        other_admin = await make_user(
            db_session, email="admin2@example.com", username="admin2", role=UserRole.ADMIN
        )

        response = await client.post(
            f"/api/users/{other_admin.id}/deactivate", headers=admin_headers
        )

        assert response.status_code == 403

    async def test_super_admin_promotes_user(
        self, client: AsyncClient, super_headers: dict, test_user: User
    ):
        response = await client.patch(
            f"/api/users/{test_user.id}/role", headers=super_headers, json={"role": "admin"}
        )

        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    async def test_soft_delete_marks_for_deletion(
        self, client: AsyncClient, admin_headers: dict, test_user: User
    ):
        response = await client.delete(f"/api/users/{test_user.id}", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["active"] is False
        assert data["marked_for_deletion"] is True

    async def test_purge_requires_exact_confirmation(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        super_headers: dict,
        test_user: User,
    ):
        response = await client.post(
            f"/api/users/{test_user.id}/purge",
            headers=super_headers,
            json={"confirmation": "delete student"},
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "CONFIRMATION_MISMATCH"

        response = await client.post(
            f"/api/users/{test_user.id}/purge",
            headers=super_headers,
            json={"confirmation": "DELETE student"},
        )
        assert response.status_code == 204

        remaining = await db_session.execute(
            select(func.count()).select_from(User).where(User.id == test_user.id)
        )
        assert remaining.scalar_one() == 0

    async def test_admin_cannot_purge(
        self, client: AsyncClient, admin_headers: dict, test_user: User
    ):
        response = await client.post(
            f"/api/users/{test_user.id}/purge",
            headers=admin_headers,
            json={"confirmation": "DELETE student"},
        )

        assert response.status_code == 403

"""Tests for the role policy table and the endpoints it gates."""

import pytest
from httpx import AsyncClient

from chemsphere.auth.permissions import ALL_PERMISSIONS, ROLE_PERMISSIONS, can, resolve_permissions


@pytest.mark.unit
class TestPolicyTable:

    def test_roles_are_nested(self):
        assert ROLE_PERMISSIONS["user"] < ROLE_PERMISSIONS["admin"]
        assert ROLE_PERMISSIONS["admin"] < ROLE_PERMISSIONS["super_admin"]
        assert ROLE_PERMISSIONS["super_admin"] == ALL_PERMISSIONS

    def test_user_can_log_usage_but_not_edit_inventory(self):
        assert can("user", "usage_log.create")
        assert can("user", "chemical.read")
        assert not can("user", "chemical.write")
        assert not can("user", "audit.read")

    def test_only_super_admin_manages_admins(self):
        assert can("super_admin", "users.manage_admins")
        assert not can("admin", "users.manage_admins")

    def test_unknown_role_has_nothing(self):
        assert resolve_permissions("guest") == []
        assert not can("guest", "chemical.read")

    def test_resolved_permissions_are_sorted(self):
        perms = resolve_permissions("admin")
        assert perms == sorted(perms)


CHEMICAL = {
    "name": "Acetone",
    "batch_number": "ACE-110",
    "initial_quantity": 12,
    "current_quantity": 10,
    "safety_class": "flammable",
    "location": "Cabinet A2",
    "ghs_symbols": "flammable",
}


@pytest.mark.api
@pytest.mark.asyncio
class TestEndpointGates:

    async def test_user_cannot_create_chemical(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/chemicals/", headers=auth_headers, json=CHEMICAL)

        assert response.status_code == 403
        assert "chemical.write" in response.json()["error"]["message"]

    async def test_admin_creates_chemical(self, client: AsyncClient, admin_headers: dict):
        response = await client.post("/api/chemicals/", headers=admin_headers, json=CHEMICAL)

        assert response.status_code == 201
        assert response.json()["ghs_symbols"] == ["Flame"]

    async def test_user_cannot_read_audit_log(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/audit-logs/", headers=auth_headers)

        assert response.status_code == 403

    async def test_admin_reads_audit_log(self, client: AsyncClient, admin_headers: dict):
        await client.post("/api/chemicals/", headers=admin_headers, json=CHEMICAL)

        response = await client.get("/api/audit-logs/", headers=admin_headers)

        assert response.status_code == 200
        items = response.json()["items"]
        assert items[0]["action"] == "CREATE"
        assert items[0]["item_name"] == "Acetone"
        assert items[0]["user_role"] == "admin"

    async def test_user_cannot_run_maintenance(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/admin/refresh-cache", headers=auth_headers)

        assert response.status_code == 403

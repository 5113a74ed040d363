"""Tests for the audit history listing."""

from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.models.audit_log import AuditLog
from chemsphere.services.store import InventoryStore


async def _add_entries(db: AsyncSession) -> None:
    for hour, name in ((8, "Ethanol"), (9, "Acetone"), (10, "Phenol")):
        db.add(AuditLog(
            type="chemical",
            action="CREATE",
            user_name="admin",
            user_role="admin",
            item_name=name,
            timestamp=datetime(2025, 1, 1, hour),
        ))
    await db.commit()


@pytest.mark.api
@pytest.mark.asyncio
class TestAuditHistory:

    async def test_lists_history_beyond_store_window(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        store: InventoryStore,
        admin_headers: dict,
    ):
        await _add_entries(db_session)
        store.audit_limit = 2

        response = await client.get("/api/audit-logs/", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [e["item_name"] for e in data["items"]] == ["Phenol", "Acetone", "Ethanol"]

    @pytest.mark.parametrize("audit_limit", [2, 500])
    async def test_start_filter_honours_offset(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        store: InventoryStore,
        admin_headers: dict,
        audit_limit: int,
    ):
        await _add_entries(db_session)
        store.audit_limit = audit_limit

        # 10:30 at +02:00 is 08:30 UTC
        response = await client.get(
            "/api/audit-logs/",
            headers=admin_headers,
            params={"start": "2025-01-01T10:30:00+02:00"},
        )

        assert response.status_code == 200
        assert [e["item_name"] for e in response.json()["items"]] == ["Phenol", "Acetone"]

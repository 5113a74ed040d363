"""Tests for dashboard buckets and the dashboard endpoint."""

from datetime import date, datetime

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.models.chemical import Chemical
from chemsphere.models.equipment import Equipment
from chemsphere.schemas.chemical import ChemicalOut
from chemsphere.schemas.equipment import EquipmentOut
from chemsphere.services.dashboard import (
    build_dashboard,
    expired,
    low_stock,
    near_expiration,
    out_of_stock,
)

NOW = datetime(2025, 1, 1)


def _chemical(name, current, expiration=None, initial=10):
    return ChemicalOut(
        id=name.lower(),
        name=name,
        batch_number=None,
        brand=None,
        physical_state="liquid",
        unit=None,
        volume_per_unit=None,
        initial_quantity=initial,
        current_quantity=current,
        expiration_date=expiration,
        date_of_arrival=None,
        safety_class="moderate",
        location="Cabinet A1",
        ghs_symbols=[],
        opened=False,
        remaining_amount=None,
        parent_chemical_id=None,
        created_by=None,
        created_at=NOW,
        updated_at=NOW,
    )


def _equipment(name, status):
    return EquipmentOut(
        id=name.lower(),
        name=name,
        model=None,
        serial_id=name.upper(),
        status=status,
        location="Lab",
        purchase_date=None,
        warranty_expiration=None,
        last_maintenance=None,
        next_maintenance=None,
        condition=None,
        created_by=None,
        created_at=NOW,
        updated_at=NOW,
    )


CHEMICALS = [
    _chemical("March", 6, date(2025, 3, 15)),
    _chemical("April", 6, date(2025, 4, 15)),
    _chemical("Old", 2, date(2024, 12, 1)),
    _chemical("Empty", 0, date(2026, 1, 1)),
    _chemical("Undated", 4),
]


@pytest.mark.unit
class TestBuckets:

    def test_near_expiration_window(self):
        names = [c.name for c in near_expiration(CHEMICALS, NOW, 90)]
        assert names == ["March"]

    def test_expired(self):
        assert [c.name for c in expired(CHEMICALS, NOW)] == ["Old"]

    def test_low_stock_excludes_empty(self):
        assert [c.name for c in low_stock(CHEMICALS, 5)] == ["Old", "Undated"]

    def test_out_of_stock(self):
        assert [c.name for c in out_of_stock(CHEMICALS)] == ["Empty"]

    def test_build_dashboard(self):
        dashboard = build_dashboard(
            CHEMICALS,
            [_equipment("Centrifuge", "Available"), _equipment("Scale", "Broken"),
             _equipment("Hood", "Available")],
            now=NOW,
            warning_days=90,
            low_stock_threshold=5,
        )

        assert dashboard.total_chemicals == 5
        assert dashboard.total_equipment == 3
        assert dashboard.equipment_by_status == {"Available": 2, "Broken": 1}
        assert dashboard.near_expiration[0].days_until_expiry == 73
        assert dashboard.expired[0].days_until_expiry == -31


@pytest.mark.api
@pytest.mark.asyncio
async def test_dashboard_endpoint(
    client: AsyncClient,
    db_session: AsyncSession,
    auth_headers: dict,
):
    db_session.add_all([
        Chemical(name="Empty", initial_quantity=5, current_quantity=0, location="A"),
        Chemical(name="Low", initial_quantity=5, current_quantity=2, location="A"),
        Equipment(name="Scope", serial_id="EQ-1", status="Broken", location="Lab"),
    ])
    await db_session.commit()

    response = await client.get("/api/dashboard/", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_chemicals"] == 2
    assert [c["name"] for c in data["out_of_stock"]] == ["Empty"]
    assert [c["name"] for c in data["low_stock"]] == ["Low"]
    assert data["equipment_by_status"] == {"Broken": 1}

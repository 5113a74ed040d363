"""Tests for chemical and equipment endpoints, export and bulk import."""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.models.chemical import Chemical
from chemsphere.models.equipment import Equipment


def _chemical(i: int, **overrides) -> Chemical:
    values = dict(
        name=f"Chemical {i:02d}",
        initial_quantity=10,
        current_quantity=10,
        safety_class="moderate",
        location="Cabinet A1",
    )
    values.update(overrides)
    return Chemical(**values)


@pytest.mark.api
@pytest.mark.asyncio
class TestChemicals:

    async def test_list_paginates(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict
    ):
        db_session.add_all([_chemical(i) for i in range(23)])
        await db_session.commit()

        response = await client.get(
            "/api/chemicals/", headers=auth_headers, params={"page": 3, "page_size": 10}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 23
        assert data["total_pages"] == 3
        assert [c["name"] for c in data["items"]] == [
            "Chemical 20", "Chemical 21", "Chemical 22",
        ]

    async def test_list_search_filter_and_views(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict
    ):
        db_session.add_all([
            _chemical(1, name="Ethanol", brand="Sigma", safety_class="flammable"),
            _chemical(2, name="Phenol", brand="Merck", safety_class="toxic",
                      expiration_date=date(2000, 1, 1)),
            _chemical(3, name="Ethanol (Opened)", safety_class="flammable", opened=True),
        ])
        await db_session.commit()

        by_brand = await client.get(
            "/api/chemicals/", headers=auth_headers, params={"search": "merck"}
        )
        assert [c["name"] for c in by_brand.json()["items"]] == ["Phenol"]

        flammable = await client.get(
            "/api/chemicals/", headers=auth_headers, params={"safety_class": "flammable"}
        )
        assert flammable.json()["total"] == 2

        expired = await client.get(
            "/api/chemicals/", headers=auth_headers, params={"view": "expired"}
        )
        assert [c["name"] for c in expired.json()["items"]] == ["Phenol"]

        opened = await client.get(
            "/api/chemicals/", headers=auth_headers, params={"view": "opened"}
        )
        assert [c["name"] for c in opened.json()["items"]] == ["Ethanol (Opened)"]

    async def test_create_rejects_current_above_initial(
        self, client: AsyncClient, admin_headers: dict
    ):
        response = await client.post(
            "/api/chemicals/",
            headers=admin_headers,
            json={"name": "X", "initial_quantity": 1, "current_quantity": 2, "location": "A"},
        )

        assert response.status_code == 422

    async def test_create_rejects_unknown_ghs(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/chemicals/",
            headers=admin_headers,
            json={"name": "X", "initial_quantity": 1, "location": "A", "ghs_symbols": ["Banana"]},
        )

        assert response.status_code == 422

    async def test_update_and_delete(
        self, client: AsyncClient, admin_headers: dict, ethanol: Chemical
    ):
        response = await client.patch(
            f"/api/chemicals/{ethanol.id}",
            headers=admin_headers,
            json={"location": "Cabinet Z9", "ghs_symbols": '["Flame","Corrosion"]'},
        )
        assert response.status_code == 200
        assert response.json()["location"] == "Cabinet Z9"
        assert response.json()["ghs_symbols"] == ["Flame", "Corrosion"]

        response = await client.delete(f"/api/chemicals/{ethanol.id}", headers=admin_headers)
        assert response.status_code == 204

        response = await client.get(f"/api/chemicals/{ethanol.id}", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    async def test_update_cannot_raise_current_above_initial(
        self, client: AsyncClient, admin_headers: dict, ethanol: Chemical
    ):
        response = await client.patch(
            f"/api/chemicals/{ethanol.id}", headers=admin_headers, json={"current_quantity": 11}
        )

        assert response.status_code == 422

    async def test_export_csv(self, client: AsyncClient, auth_headers: dict, ethanol: Chemical):
        response = await client.get("/api/chemicals/export", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines[0].startswith("name,batch_number,brand")
        assert lines[1].startswith("Ethanol,ETH-001,Sigma Aldrich")
        assert len(lines) == 2


@pytest.mark.api
@pytest.mark.asyncio
class TestEquipment:

    async def test_create_and_filter_by_status(
        self, client: AsyncClient, admin_headers: dict, centrifuge: Equipment
    ):
        response = await client.post(
            "/api/equipment/",
            headers=admin_headers,
            json={"name": "Microscope", "serial_id": "EQ-002",
                  "status": "Broken", "location": "Lab Room 1"},
        )
        assert response.status_code == 201

        broken = await client.get(
            "/api/equipment/", headers=admin_headers, params={"status": "Broken"}
        )
        assert [e["name"] for e in broken.json()["items"]] == ["Microscope"]

    async def test_invalid_status_rejected(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/equipment/",
            headers=admin_headers,
            json={"name": "Scope", "serial_id": "EQ-9", "status": "Lost", "location": "Lab"},
        )

        assert response.status_code == 422

    async def test_maintenance_returns_equipment_to_service(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict
    ):
        item = Equipment(name="Microscope", serial_id="EQ-002",
                         status="Under Maintenance", location="Lab Room 1")
        db_session.add(item)
        await db_session.commit()

        response = await client.post(
            f"/api/equipment/{item.id}/maintenance",
            headers=admin_headers,
            json={"next_maintenance": "2030-03-12", "condition": "Lens cleaned"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "Available"
        assert data["last_maintenance"] == date.today().isoformat()
        assert data["next_maintenance"] == "2030-03-12"
        assert data["condition"] == "Lens cleaned"

    async def test_maintenance_due_lists_overdue_and_in_service(
        self, client: AsyncClient, db_session: AsyncSession, auth_headers: dict
    ):
        db_session.add_all([
            Equipment(name="Balance", serial_id="EQ-010", status="Available",
                      location="Lab Room 1", last_maintenance=date(2024, 6, 1),
                      next_maintenance=date(2025, 1, 1)),
            Equipment(name="Microscope", serial_id="EQ-011", status="Under Maintenance",
                      location="Lab Room 1"),
            Equipment(name="Hot Plate", serial_id="EQ-012", status="Available",
                      location="Lab Room 2", last_maintenance=date(2024, 1, 1),
                      next_maintenance=date(2099, 1, 1)),
        ])
        await db_session.commit()

        response = await client.get("/api/equipment/maintenance-due", headers=auth_headers)

        assert response.status_code == 200
        assert [e["name"] for e in response.json()] == ["Microscope", "Balance"]


CHEMICAL_CSV = (
    "name,batch_number,initial_quantity,current_quantity,expiration_date,"
    "safety_class,location,ghs_symbols\n"
    'Ethanol,ETH-001,10,8,2026-02-15,Flammable,Cabinet A1,"[""Flame""]"\n'
    "Phenol,PHEN-002,2,1,2025-08-01,toxic,Cabinet B4,Skull and Crossbones\n"
)


@pytest.mark.api
@pytest.mark.asyncio
class TestBulkImport:

    async def test_chemical_template(self, client: AsyncClient, admin_headers: dict):
        response = await client.get(
            "/api/bulk-import/chemicals/template", headers=admin_headers
        )

        assert response.status_code == 200
        header = response.text.splitlines()[0]
        assert header.startswith("name,batch_number,brand")

    async def test_import_chemicals(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict
    ):
        response = await client.post(
            "/api/bulk-import/chemicals/upload",
            headers=admin_headers,
            files={"file": ("chemicals.csv", CHEMICAL_CSV.encode(), "text/csv")},
        )

        assert response.status_code == 201
        assert response.json() == {"total_rows": 2, "created": 2}

        result = await db_session.execute(select(Chemical).order_by(Chemical.name))
        chemicals = result.scalars().all()
        assert [c.name for c in chemicals] == ["Ethanol", "Phenol"]
        assert chemicals[0].safety_class == "flammable"
        assert chemicals[0].ghs_symbols == ["Flame"]
        assert chemicals[1].ghs_symbols == ["Skull and Crossbones"]

    async def test_any_bad_row_rejects_whole_file(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict
    ):
        csv_text = CHEMICAL_CSV + "Acetone,ACE-1,5,9,,flammable,Cabinet A2,\n"

        response = await client.post(
            "/api/bulk-import/chemicals/upload",
            headers=admin_headers,
            files={"file": ("chemicals.csv", csv_text.encode(), "text/csv")},
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "IMPORT_VALIDATION_ERROR"
        assert [e["row"] for e in error["details"]["errors"]] == [4]

        count = await db_session.execute(select(func.count()).select_from(Chemical))
        assert count.scalar_one() == 0

    async def test_non_utf8_upload_is_rejected(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict
    ):
        content = (
            b"name,batch_number,initial_quantity,current_quantity,safety_class,location\n"
            b"\xff\xfeBad,1,1,1,toxic,A\n"
        )

        response = await client.post(
            "/api/bulk-import/chemicals/upload",
            headers=admin_headers,
            files={"file": ("chemicals.csv", content, "text/csv")},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_ENCODING"

        count = await db_session.execute(select(func.count()).select_from(Chemical))
        assert count.scalar_one() == 0

    async def test_user_cannot_import(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/bulk-import/chemicals/upload",
            headers=auth_headers,
            files={"file": ("chemicals.csv", CHEMICAL_CSV.encode(), "text/csv")},
        )

        assert response.status_code == 403

    async def test_import_equipment_defaults_status(
        self, client: AsyncClient, db_session: AsyncSession, admin_headers: dict
    ):
        csv_text = "name,serial_id,status,location\nScale,EQ-7,,Lab Room 2\n"

        response = await client.post(
            "/api/bulk-import/equipment/upload",
            headers=admin_headers,
            files={"file": ("equipment.csv", csv_text.encode(), "text/csv")},
        )

        assert response.status_code == 201
        item = (await db_session.execute(select(Equipment))).scalar_one()
        assert item.status == "Available"

"""Equipment router.

Endpoints:
    GET    /api/equipment/                          Search / filter / sort / page
    GET    /api/equipment/export                    Download as CSV
    GET    /api/equipment/maintenance-due           Due or under maintenance, oldest service first
    GET    /api/equipment/{equipment_id}            Single item
    POST   /api/equipment/                          Create
    PATCH  /api/equipment/{equipment_id}            Update fields
    POST   /api/equipment/{equipment_id}/maintenance  Record maintenance done today
    DELETE /api/equipment/{equipment_id}            Delete
"""

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.deps import require_permission
from chemsphere.crud import equipment as equipment_crud
from chemsphere.database import get_db
from chemsphere.models.user import User
from chemsphere.schemas.common import PagedResponse
from chemsphere.schemas.equipment import (
    EquipmentCreate,
    EquipmentOut,
    EquipmentUpdate,
    MaintenanceRequest,
)
from chemsphere.services.store import InventoryStore, get_store
from chemsphere.utils.audit import log_audit
from chemsphere.utils.csv_io import ExportColumn, csv_response, write_csv
from chemsphere.utils.listing import filter_items, filter_sort_paginate, sort_items

router = APIRouter()

SEARCH_FIELDS = ("name", "serial_id", "model")

EXPORT_COLUMNS = [
    ExportColumn("name", "name"),
    ExportColumn("model", "model"),
    ExportColumn("serial_id", "serial_id"),
    ExportColumn("status", "status"),
    ExportColumn("location", "location"),
    ExportColumn("purchase_date", "purchase_date"),
    ExportColumn("warranty_expiration", "warranty_expiration"),
    ExportColumn("condition", "condition"),
    ExportColumn("last_maintenance", "last_maintenance"),
    ExportColumn("next_maintenance", "next_maintenance"),
    ExportColumn("date_added", "created_at"),
]


@router.get("/", response_model=PagedResponse[EquipmentOut])
async def list_equipment(
    search: str | None = Query(None, description="Matches name, serial id or model"),
    status_filter: str = Query("all", alias="status"),
    sort: str = "name",
    direction: Literal["asc", "desc"] = "asc",
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    _user: User = Depends(require_permission("equipment.read")),
):
    await store.ensure_loaded(db, "equipment")
    result = filter_sort_paginate(
        store.equipment(),
        search_term=search,
        search_fields=SEARCH_FIELDS,
        filter_field="status",
        filter_value=status_filter,
        sort_field=sort,
        direction=direction,
        page=page,
        page_size=page_size,
    )
    return PagedResponse[EquipmentOut](**vars(result))


@router.get("/export")
async def export_equipment(
    search: str | None = None,
    status_filter: str = Query("all", alias="status"),
    sort: str = "name",
    direction: Literal["asc", "desc"] = "asc",
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("equipment.read", "data.export")),
):
    await store.ensure_loaded(db, "equipment")
    items = sort_items(
        filter_items(store.equipment(), search, SEARCH_FIELDS, "status", status_filter),
        sort,
        direction,
    )
    await log_audit(
        db, user, type="export", action="EXPORT",
        item_name="Equipment", details={"rows": len(items)},
    )
    store.invalidate("audit_logs")
    return csv_response(
        write_csv(items, EXPORT_COLUMNS), f"equipment_{date.today().isoformat()}.csv"
    )


def _maintenance_due(item: EquipmentOut, today: date) -> bool:
    if item.status == "Under Maintenance":
        return True
    return item.next_maintenance is not None and item.next_maintenance <= today


@router.get("/maintenance-due", response_model=list[EquipmentOut])
async def maintenance_due(
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    _user: User = Depends(require_permission("equipment.read")),
):
    """Equipment past its next service date or under maintenance, least
    recently serviced first (never serviced sorts first)."""
    await store.ensure_loaded(db, "equipment")
    today = date.today()
    due = [e for e in store.equipment() if _maintenance_due(e, today)]
    return sort_items(due, "last_maintenance", "asc")


@router.get("/{equipment_id}", response_model=EquipmentOut)
async def get_equipment(
    equipment_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("equipment.read")),
):
    return await equipment_crud.get_equipment(db, equipment_id)


@router.post("/", response_model=EquipmentOut, status_code=status.HTTP_201_CREATED)
async def create_equipment(
    body: EquipmentCreate,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("equipment.write")),
):
    item = await equipment_crud.create_equipment(db, body, user)
    await log_audit(
        db, user, type="equipment", action="CREATE",
        item_name=item.name, details={"equipment_id": item.id, "serial_id": item.serial_id},
    )
    await db.commit()

    store.invalidate("audit_logs")
    return store.put_equipment(item)


@router.patch("/{equipment_id}", response_model=EquipmentOut)
async def update_equipment(
    equipment_id: str,
    body: EquipmentUpdate,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("equipment.write")),
):
    item = await equipment_crud.get_equipment(db, equipment_id)
    item = await equipment_crud.update_equipment(db, item, body)
    await log_audit(
        db, user, type="equipment", action="UPDATE",
        item_name=item.name,
        details={"equipment_id": item.id, "changes": body.model_dump(mode="json", exclude_unset=True)},
    )
    await db.commit()

    store.invalidate("usage_logs", "audit_logs")
    return store.put_equipment(item)


@router.post("/{equipment_id}/maintenance", response_model=EquipmentOut)
async def record_maintenance(
    equipment_id: str,
    body: MaintenanceRequest,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("equipment.write")),
):
    """Stamp maintenance as done today; `Under Maintenance` becomes `Available`."""
    item = await equipment_crud.get_equipment(db, equipment_id)
    previous_status = item.status
    item = await equipment_crud.record_maintenance(db, item, body)
    await log_audit(
        db, user, type="equipment", action="UPDATE",
        item_name=item.name,
        details={
            "equipment_id": item.id,
            "maintenance": item.last_maintenance.isoformat(),
            "status": [previous_status, item.status],
        },
    )
    await db.commit()

    store.invalidate("audit_logs")
    return store.put_equipment(item)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_equipment(
    equipment_id: str,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("equipment.delete")),
):
    item = await equipment_crud.get_equipment(db, equipment_id)
    name = item.name
    await equipment_crud.delete_equipment(db, item)
    await log_audit(
        db, user, type="equipment", action="DELETE",
        item_name=name, details={"equipment_id": equipment_id},
    )
    await db.commit()

    store.remove("equipment", equipment_id)
    store.invalidate("usage_logs", "audit_logs")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""Chemical router: inventory of lab chemicals.

Endpoints:
    GET    /api/chemicals/                 Search / filter / sort / page the cached list
    GET    /api/chemicals/export           Download the (filtered) list as CSV
    GET    /api/chemicals/{chemical_id}    Single chemical
    GET    /api/chemicals/{chemical_id}/usage   Usage logs that consumed it (start / end range)
    GET    /api/chemicals/{chemical_id}/usage-stats   Usage totals over a week, month or year
    POST   /api/chemicals/                 Create
    PATCH  /api/chemicals/{chemical_id}    Update fields
    DELETE /api/chemicals/{chemical_id}    Delete
"""

from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.deps import require_permission
from chemsphere.crud import chemicals as chemical_crud
from chemsphere.crud import usage_logs as usage_crud
from chemsphere.database import get_db
from chemsphere.models.user import User
from chemsphere.schemas.chemical import ChemicalCreate, ChemicalOut, ChemicalUpdate
from chemsphere.schemas.common import PagedResponse
from chemsphere.schemas.usage_log import ChemicalUsageStats, UsageLogOut, UsageTimeframe
from chemsphere.services import usage as usage_service
from chemsphere.services.store import InventoryStore, get_store
from chemsphere.utils.audit import log_audit
from chemsphere.utils.csv_io import ExportColumn, csv_response, join_list, write_csv
from chemsphere.utils.listing import filter_items, filter_sort_paginate, sort_items

router = APIRouter()

SEARCH_FIELDS = ("name", "batch_number", "brand")

ChemicalView = Literal["all", "active", "expired", "opened"]

EXPORT_COLUMNS = [
    ExportColumn("name", "name"),
    ExportColumn("batch_number", "batch_number"),
    ExportColumn("brand", "brand"),
    ExportColumn("physical_state", "physical_state"),
    ExportColumn("unit", "unit"),
    ExportColumn("volume_per_unit", "volume_per_unit"),
    ExportColumn("initial_quantity", "initial_quantity"),
    ExportColumn("current_quantity", "current_quantity"),
    ExportColumn("expiration_date", "expiration_date"),
    ExportColumn("date_of_arrival", "date_of_arrival"),
    ExportColumn("safety_class", "safety_class"),
    ExportColumn("location", "location"),
    ExportColumn("ghs_symbols", "ghs_symbols", join_list),
    ExportColumn("opened", "opened"),
    ExportColumn("remaining_amount", "remaining_amount"),
    ExportColumn("date_added", "created_at"),
]


def _in_view(chemical: ChemicalOut, view: str, today: date) -> bool:
    is_expired = chemical.expiration_date is not None and chemical.expiration_date < today
    if view == "expired":
        return is_expired
    if view == "opened":
        return chemical.opened
    if view == "active":
        return not is_expired and not chemical.opened
    return True


def _view_items(store: InventoryStore, view: str) -> list[ChemicalOut]:
    today = date.today()
    return [c for c in store.chemicals() if _in_view(c, view, today)]


# ── List ─────────────────────────────────────────────────────

@router.get("/", response_model=PagedResponse[ChemicalOut])
async def list_chemicals(
    search: str | None = Query(None, description="Matches name, batch number or brand"),
    safety_class: str = Query("all"),
    view: ChemicalView = "all",
    sort: str = "name",
    direction: Literal["asc", "desc"] = "asc",
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    _user: User = Depends(require_permission("chemical.read")),
):
    await store.ensure_loaded(db, "chemicals")
    result = filter_sort_paginate(
        _view_items(store, view),
        search_term=search,
        search_fields=SEARCH_FIELDS,
        filter_field="safety_class",
        filter_value=safety_class,
        sort_field=sort,
        direction=direction,
        page=page,
        page_size=page_size,
    )
    return PagedResponse[ChemicalOut](**vars(result))


# ── Export ───────────────────────────────────────────────────

@router.get("/export")
async def export_chemicals(
    search: str | None = None,
    safety_class: str = "all",
    view: ChemicalView = "all",
    sort: str = "name",
    direction: Literal["asc", "desc"] = "asc",
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("chemical.read", "data.export")),
):
    """Download the current view as CSV (same filters as the list)."""
    await store.ensure_loaded(db, "chemicals")
    items = sort_items(
        filter_items(_view_items(store, view), search, SEARCH_FIELDS, "safety_class", safety_class),
        sort,
        direction,
    )
    await log_audit(
        db, user, type="export", action="EXPORT",
        item_name="Chemicals", details={"rows": len(items), "view": view},
    )
    store.invalidate("audit_logs")
    filename = f"chemicals_{view}_{date.today().isoformat()}.csv"
    return csv_response(write_csv(items, EXPORT_COLUMNS), filename)


# ── Detail ───────────────────────────────────────────────────

@router.get("/{chemical_id}", response_model=ChemicalOut)
async def get_chemical(
    chemical_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("chemical.read")),
):
    return await chemical_crud.get_chemical(db, chemical_id)


@router.get("/{chemical_id}/usage", response_model=list[UsageLogOut])
async def chemical_usage_history(
    chemical_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("chemical.read", "usage_log.read")),
):
    """Usage logs that consumed this chemical or spawned it, newest first,
    optionally limited to a date range."""
    await chemical_crud.get_chemical(db, chemical_id)
    logs = await usage_crud.list_usage_logs(db, chemical_id=chemical_id, start=start, end=end)
    return [usage_crud.to_out(log) for log in logs]


@router.get("/{chemical_id}/usage-stats", response_model=ChemicalUsageStats)
async def chemical_usage_stats(
    chemical_id: str,
    timeframe: UsageTimeframe = "month",
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("chemical.read", "usage_log.read")),
):
    """Quantities used over the trailing week, month or year, oldest first."""
    return await usage_service.usage_stats(db, chemical_id, timeframe)


# ── Create ───────────────────────────────────────────────────

@router.post("/", response_model=ChemicalOut, status_code=status.HTTP_201_CREATED)
async def create_chemical(
    body: ChemicalCreate,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("chemical.write")),
):
    chemical = await chemical_crud.create_chemical(db, body, user)
    await log_audit(
        db, user, type="chemical", action="CREATE",
        item_name=chemical.name,
        details={"chemical_id": chemical.id, "batch_number": chemical.batch_number},
    )
    await db.commit()

    store.invalidate("audit_logs")
    return store.put_chemical(chemical)


# ── Update ───────────────────────────────────────────────────

@router.patch("/{chemical_id}", response_model=ChemicalOut)
async def update_chemical(
    chemical_id: str,
    body: ChemicalUpdate,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("chemical.write")),
):
    chemical = await chemical_crud.get_chemical(db, chemical_id)
    chemical = await chemical_crud.update_chemical(db, chemical, body)
    await log_audit(
        db, user, type="chemical", action="UPDATE",
        item_name=chemical.name,
        details={"chemical_id": chemical.id, "changes": body.model_dump(mode="json", exclude_unset=True)},
    )
    await db.commit()

    # Usage logs show chemical names
    store.invalidate("usage_logs", "audit_logs")
    return store.put_chemical(chemical)


# ── Delete ───────────────────────────────────────────────────

@router.delete("/{chemical_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chemical(
    chemical_id: str,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("chemical.delete")),
):
    chemical = await chemical_crud.get_chemical(db, chemical_id)
    name = chemical.name
    await chemical_crud.delete_chemical(db, chemical)
    await log_audit(
        db, user, type="chemical", action="DELETE",
        item_name=name, details={"chemical_id": chemical_id},
    )
    await db.commit()

    store.remove("chemicals", chemical_id)
    store.invalidate("usage_logs", "audit_logs")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

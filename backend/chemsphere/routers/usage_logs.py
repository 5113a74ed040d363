"""Usage log router: record what a lab session consumed.

Endpoints:
    GET    /api/usage-logs/            Search / filter / sort / page
    POST   /api/usage-logs/            Record a session (decrements stock)
    GET    /api/usage-logs/{log_id}    Single log with resolved names
    PATCH  /api/usage-logs/{log_id}    Edit notes / location (owner or admin)
    DELETE /api/usage-logs/{log_id}    Delete and restore stock (owner or admin)
"""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.deps import require_permission
from chemsphere.crud import usage_logs as usage_crud
from chemsphere.database import get_db
from chemsphere.models.user import User
from chemsphere.schemas.common import PagedResponse
from chemsphere.schemas.usage_log import UsageLogCreate, UsageLogOut, UsageLogUpdate
from chemsphere.services import usage as usage_service
from chemsphere.services.store import InventoryStore, get_store
from chemsphere.utils.listing import filter_sort_paginate, to_timestamp

router = APIRouter()

SEARCH_FIELDS = ("user_name", "notes", "location")


def _matches(
    log: UsageLogOut,
    chemical_id: str | None,
    equipment_id: str | None,
    user_id: str | None,
    start: datetime | None,
    end: datetime | None,
) -> bool:
    if chemical_id and not any(
        chemical_id in (c.chemical_id, c.opened_chemical_id) for c in log.chemicals
    ):
        return False
    if equipment_id and not any(e.equipment_id == equipment_id for e in log.equipment):
        return False
    if user_id and log.user_id != user_id:
        return False
    if start and to_timestamp(log.date) < to_timestamp(start):
        return False
    if end and to_timestamp(log.date) > to_timestamp(end):
        return False
    return True


@router.get("/", response_model=PagedResponse[UsageLogOut])
async def list_usage_logs(
    search: str | None = Query(None, description="Matches user name, notes or location"),
    chemical_id: str | None = None,
    equipment_id: str | None = None,
    user_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    sort: str = "date",
    direction: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    _user: User = Depends(require_permission("usage_log.read")),
):
    await store.ensure_loaded(db, "usage_logs")
    logs = [
        log for log in store.usage_logs()
        if _matches(log, chemical_id, equipment_id, user_id, start, end)
    ]
    result = filter_sort_paginate(
        logs,
        search_term=search,
        search_fields=SEARCH_FIELDS,
        sort_field=sort,
        direction=direction,
        page=page,
        page_size=page_size,
    )
    return PagedResponse[UsageLogOut](**vars(result))


@router.post("/", response_model=UsageLogOut, status_code=status.HTTP_201_CREATED)
async def record_usage(
    body: UsageLogCreate,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("usage_log.create")),
):
    """Record a lab session.

    All chemical quantities are checked before anything is written; the
    whole session (stock decrements, opened containers, log rows, audit
    entries) is committed as one transaction.
    """
    return await usage_service.record_usage(db, store, user, body)


@router.get("/{log_id}", response_model=UsageLogOut)
async def get_usage_log(
    log_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("usage_log.read")),
):
    return usage_crud.to_out(await usage_crud.get_usage_log(db, log_id))


@router.patch("/{log_id}", response_model=UsageLogOut)
async def update_usage_log(
    log_id: str,
    body: UsageLogUpdate,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("usage_log.read")),
):
    return await usage_service.update_usage_log(db, store, user, log_id, body)


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_usage_log(
    log_id: str,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("usage_log.read")),
):
    await usage_service.delete_usage_log(db, store, user, log_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""Audit log router (read-only).

Endpoints:
    GET /api/audit-logs/         Search / filter / sort / page the history
    GET /api/audit-logs/export   Download entries as CSV (date range filters)
"""

from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.deps import require_permission
from chemsphere.crud import audit_logs as audit_crud
from chemsphere.database import get_db
from chemsphere.models.user import User
from chemsphere.schemas.audit_log import AuditLogOut
from chemsphere.schemas.common import PagedResponse
from chemsphere.services.store import InventoryStore, get_store
from chemsphere.utils.audit import log_audit
from chemsphere.utils.csv_io import ExportColumn, csv_response, write_csv
from chemsphere.utils.listing import filter_sort_paginate, to_timestamp

router = APIRouter()

SEARCH_FIELDS = ("item_name", "user_name", "action")

EXPORT_COLUMNS = [
    ExportColumn("timestamp", "timestamp"),
    ExportColumn("type", "type"),
    ExportColumn("action", "action"),
    ExportColumn("user_name", "user_name"),
    ExportColumn("user_role", "user_role"),
    ExportColumn("item_name", "item_name"),
    ExportColumn("summary", "details", lambda d: (d or {}).get("summary", "")),
]


@router.get("/", response_model=PagedResponse[AuditLogOut])
async def list_audit_logs(
    search: str | None = None,
    type_filter: str = Query("all", alias="type"),
    action: str | None = None,
    user_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    sort: str = "timestamp",
    direction: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    _user: User = Depends(require_permission("audit.read")),
):
    """Recent entries come from the store. Once the store's window is full,
    older history exists, so the query goes to the database instead."""
    await store.ensure_loaded(db, "audit_logs")
    entries = store.audit_logs()
    if len(entries) >= store.audit_limit:
        rows = await audit_crud.list_audit_logs(
            db,
            action=action if action and action != "all" else None,
            user_id=user_id,
            start=start,
            end=end,
        )
        entries = [AuditLogOut.model_validate(r) for r in rows]
    else:
        if action and action != "all":
            entries = [e for e in entries if e.action == action.upper()]
        if user_id:
            entries = [e for e in entries if e.user_id == user_id]
        if start:
            entries = [e for e in entries if to_timestamp(e.timestamp) >= to_timestamp(start)]
        if end:
            entries = [e for e in entries if to_timestamp(e.timestamp) <= to_timestamp(end)]
    result = filter_sort_paginate(
        entries,
        search_term=search,
        search_fields=SEARCH_FIELDS,
        filter_field="type",
        filter_value=type_filter,
        sort_field=sort,
        direction=direction,
        page=page,
        page_size=page_size,
    )
    return PagedResponse[AuditLogOut](**vars(result))


@router.get("/export")
async def export_audit_logs(
    type_filter: str | None = Query(None, alias="type"),
    action: str | None = None,
    user_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("audit.read", "data.export")),
):
    """Full history from the database, newest first."""
    entries = await audit_crud.list_audit_logs(
        db,
        type=type_filter if type_filter != "all" else None,
        action=action,
        user_id=user_id,
        start=start,
        end=end,
    )
    csv_text = write_csv(entries, EXPORT_COLUMNS)
    await log_audit(
        db, user, type="export", action="EXPORT",
        item_name="Audit Logs", details={"rows": len(entries)},
    )
    store.invalidate("audit_logs")
    return csv_response(csv_text, f"audit_logs_{date.today().isoformat()}.csv")

"""InventoryStore: the in-process snapshot that list and dashboard views read.

One instance lives on `app.state.store` and is handed to routes through
the `get_store` dependency; nothing imports it as a module global.

  - `ensure_loaded(db, ...)` fills a collection on first use; whole
    collection loads are serialised by an asyncio.Lock
  - `put_*` / `remove_*` apply a write the caller has already committed
  - `invalidate(...)` marks collections stale so the next read reloads
  - `refresh(db)` reloads everything (background loop, admin endpoint)

Single-record writes are last-writer-wins; the periodic refresh brings
the snapshot back in line with the database.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.config import settings
from chemsphere.crud import audit_logs as audit_crud
from chemsphere.crud import chemicals as chemical_crud
from chemsphere.crud import equipment as equipment_crud
from chemsphere.crud import usage_logs as usage_crud
from chemsphere.models.chemical import Chemical
from chemsphere.models.equipment import Equipment
from chemsphere.schemas.audit_log import AuditLogOut
from chemsphere.schemas.chemical import ChemicalOut
from chemsphere.schemas.equipment import EquipmentOut
from chemsphere.schemas.usage_log import UsageLogOut

logger = logging.getLogger(__name__)

COLLECTIONS = ("chemicals", "equipment", "usage_logs", "audit_logs")


class InventoryStore:
    def __init__(self, audit_limit: int | None = None):
        self.audit_limit = audit_limit or settings.audit_cache_limit
        self._data: dict[str, dict[str, Any]] = {c: {} for c in COLLECTIONS}
        self._loaded: dict[str, bool] = {c: False for c in COLLECTIONS}
        self._lock = asyncio.Lock()
        self.last_refreshed: datetime | None = None

        self._loaders: dict[str, Callable[[AsyncSession], Awaitable[list[Any]]]] = {
            "chemicals": self._load_chemicals,
            "equipment": self._load_equipment,
            "usage_logs": self._load_usage_logs,
            "audit_logs": self._load_audit_logs,
        }

    # ── Loading ─────────────────────────────────────────────

    async def _load_chemicals(self, db: AsyncSession) -> list[ChemicalOut]:
        return [ChemicalOut.model_validate(c) for c in await chemical_crud.list_chemicals(db)]

    async def _load_equipment(self, db: AsyncSession) -> list[EquipmentOut]:
        return [EquipmentOut.model_validate(e) for e in await equipment_crud.list_equipment(db)]

    async def _load_usage_logs(self, db: AsyncSession) -> list[UsageLogOut]:
        return [usage_crud.to_out(log) for log in await usage_crud.list_usage_logs(db)]

    async def _load_audit_logs(self, db: AsyncSession) -> list[AuditLogOut]:
        rows = await audit_crud.list_audit_logs(db, limit=self.audit_limit)
        return [AuditLogOut.model_validate(r) for r in rows]

    async def _load(self, db: AsyncSession, collection: str) -> int:
        items = await self._loaders[collection](db)
        self._data[collection] = {item.id: item for item in items}
        self._loaded[collection] = True
        return len(items)

    async def ensure_loaded(self, db: AsyncSession, *collections: str) -> None:
        """Load any of `collections` (default: all) that are not cached yet."""
        wanted = collections or COLLECTIONS
        if all(self._loaded[c] for c in wanted):
            return
        async with self._lock:
            for collection in wanted:
                if not self._loaded[collection]:
                    count = await self._load(db, collection)
                    logger.debug("Loaded %d %s into store", count, collection)

    async def refresh(self, db: AsyncSession, *collections: str) -> dict[str, int]:
        """Reload `collections` (default: all) from the database."""
        counts: dict[str, int] = {}
        async with self._lock:
            for collection in collections or COLLECTIONS:
                counts[collection] = await self._load(db, collection)
        self.last_refreshed = datetime.utcnow()
        logger.info("Store refreshed: %s", counts)
        return counts

    def invalidate(self, *collections: str) -> None:
        for collection in collections or COLLECTIONS:
            self._loaded[collection] = False

    def is_loaded(self, collection: str) -> bool:
        return self._loaded[collection]

    # ── Reads ───────────────────────────────────────────────

    def chemicals(self) -> list[ChemicalOut]:
        return list(self._data["chemicals"].values())

    def equipment(self) -> list[EquipmentOut]:
        return list(self._data["equipment"].values())

    def usage_logs(self) -> list[UsageLogOut]:
        return list(self._data["usage_logs"].values())

    def audit_logs(self) -> list[AuditLogOut]:
        return list(self._data["audit_logs"].values())

    def get(self, collection: str, item_id: str) -> Any | None:
        return self._data[collection].get(item_id)

    # ── Writes (after commit) ───────────────────────────────

    def put_chemical(self, chemical: Chemical | ChemicalOut) -> ChemicalOut:
        out = chemical if isinstance(chemical, ChemicalOut) else ChemicalOut.model_validate(chemical)
        if self._loaded["chemicals"]:
            self._data["chemicals"][out.id] = out
        return out

    def put_equipment(self, item: Equipment | EquipmentOut) -> EquipmentOut:
        out = item if isinstance(item, EquipmentOut) else EquipmentOut.model_validate(item)
        if self._loaded["equipment"]:
            self._data["equipment"][out.id] = out
        return out

    def put_usage_log(self, log: UsageLogOut) -> UsageLogOut:
        if self._loaded["usage_logs"]:
            self._data["usage_logs"][log.id] = log
        return log

    def remove(self, collection: str, item_id: str) -> None:
        self._data[collection].pop(item_id, None)


def get_store(request: Request) -> InventoryStore:
    """FastAPI dependency: the store attached to the running app."""
    return request.app.state.store


async def invalidates_audit(store: InventoryStore = Depends(get_store)):
    """Route dependency: mark the cached audit list stale once the request is done."""
    yield
    store.invalidate("audit_logs")

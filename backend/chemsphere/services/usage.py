"""Usage logging workflow: record, edit and delete lab sessions.

Recording a session touches several tables (chemical stock, opened
containers, the log header and its child rows, the audit trail). All of
it happens inside the request's single transaction and is committed once,
so a failure at any step leaves nothing behind.

Stock is guarded twice:
  1. before any write, the summed request per chemical is compared with
     the stock read from the database and rejected with
     InsufficientStockError if it does not fit;
  2. each decrement is a conditional UPDATE (`current_quantity >= q`), so
     a concurrent session that consumed the stock in between makes this
     one fail and roll back instead of driving the quantity negative.

Deleting a log gives the recorded quantities back with atomic increments.
The header delete must hit exactly one row, so deleting the same log
twice restores stock only once.
"""

import calendar
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.permissions import can
from chemsphere.crud import chemicals as chemical_crud
from chemsphere.crud import equipment as equipment_crud
from chemsphere.crud import usage_logs as usage_crud
from chemsphere.middleware.exceptions import (
    InsufficientStockError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from chemsphere.models.chemical import Chemical
from chemsphere.models.usage_log import ChemicalUsage, UsageLog, UsageLogEquipment
from chemsphere.models.user import User
from chemsphere.schemas.usage_log import (
    ChemicalUsageIn,
    ChemicalUsageStats,
    UsageLogCreate,
    UsageLogOut,
    UsageLogUpdate,
    UsagePoint,
)
from chemsphere.services.store import InventoryStore
from chemsphere.utils.audit import log_audit

logger = logging.getLogger(__name__)


def _check_can_modify(user: User, log: UsageLog) -> None:
    if log.user_id != user.id and not can(user.role.value, "usage_log.manage"):
        raise PermissionDeniedError("Only the owner or an admin can modify this usage log")


def opened_container_for(original: Chemical, entry: ChemicalUsageIn, user: User) -> Chemical:
    """Build the record for the remainder of an opened container."""
    return Chemical(
        name=f"{original.name} (Opened)",
        batch_number=original.batch_number,
        brand=original.brand,
        physical_state=original.physical_state,
        unit=entry.unit or original.unit,
        volume_per_unit=original.volume_per_unit,
        initial_quantity=1,
        current_quantity=1,
        expiration_date=original.expiration_date,
        date_of_arrival=date.today(),
        safety_class=original.safety_class,
        location=entry.remaining_location.strip(),
        ghs_symbols=list(original.ghs_symbols or []),
        opened=True,
        remaining_amount=entry.remaining_amount,
        parent_chemical_id=original.id,
        created_by=user.id,
    )


async def _sync_store_chemicals(db: AsyncSession, store: InventoryStore, ids: list[str]) -> None:
    fresh = await chemical_crud.get_chemicals_by_ids(db, ids)
    for chemical in fresh.values():
        store.put_chemical(chemical)


# ── Record ──────────────────────────────────────────────────

async def record_usage(
    db: AsyncSession,
    store: InventoryStore,
    user: User,
    body: UsageLogCreate,
) -> UsageLogOut:
    """Record a lab session, decrement stock and spawn opened containers."""
    chemicals = await chemical_crud.get_chemicals_by_ids(
        db, [e.chemical_id for e in body.chemicals]
    )
    for entry in body.chemicals:
        if entry.chemical_id not in chemicals:
            raise ResourceNotFoundError("Chemical", entry.chemical_id)

    equipment_ids = list(dict.fromkeys(body.equipment_ids))
    equipment = await equipment_crud.get_equipment_by_ids(db, equipment_ids)
    for equipment_id in equipment_ids:
        if equipment_id not in equipment:
            raise ResourceNotFoundError("Equipment", equipment_id)

    requested: dict[str, float] = defaultdict(float)
    for entry in body.chemicals:
        requested[entry.chemical_id] += entry.quantity
    for chemical_id, quantity in requested.items():
        chemical = chemicals[chemical_id]
        if quantity > chemical.current_quantity:
            raise InsufficientStockError(chemical.name, quantity, chemical.current_quantity)

    spawned: list[Chemical] = []
    try:
        usage_rows: list[ChemicalUsage] = []
        for entry in body.chemicals:
            original = chemicals[entry.chemical_id]
            if not await chemical_crud.decrement_quantity(db, original.id, entry.quantity):
                current = await chemical_crud.get_chemical(db, original.id, refresh=True)
                raise InsufficientStockError(original.name, entry.quantity, current.current_quantity)

            opened_id = None
            if entry.opened and entry.remaining_amount and entry.remaining_amount > 0:
                container = opened_container_for(original, entry, user)
                db.add(container)
                await db.flush()
                spawned.append(container)
                opened_id = container.id
                await log_audit(
                    db, user, type="chemical", action="CREATE",
                    item_name=container.name,
                    details={
                        "chemical_id": container.id,
                        "parent_chemical_id": original.id,
                        "remaining_amount": entry.remaining_amount,
                        "location": container.location,
                        "summary": f"Created from opened container of {original.name}",
                    },
                )

            usage_rows.append(ChemicalUsage(
                chemical_id=original.id,
                quantity=entry.quantity,
                unit=entry.unit or original.unit,
                opened=entry.opened,
                remaining_amount=entry.remaining_amount if entry.opened else None,
                opened_chemical_id=opened_id,
            ))

        log = UsageLog(
            user_id=user.id,
            user_name=(body.user_name or "").strip() or user.username,
            date=body.date or datetime.utcnow(),
            notes=body.notes,
            location=body.location,
            chemicals=usage_rows,
            equipment=[UsageLogEquipment(equipment_id=eid) for eid in equipment_ids],
        )
        db.add(log)
        await db.flush()

        await log_audit(
            db, user, type="usage_log", action="CREATE",
            item_name="Usage Log Entry",
            details={
                "usage_log_id": log.id,
                "chemicals": [
                    {"name": chemicals[r.chemical_id].name, "quantity": r.quantity, "unit": r.unit}
                    for r in usage_rows
                ],
                "equipment": [equipment[eid].name for eid in equipment_ids],
                "summary": (
                    f"Created log entry with {len(usage_rows)} chemicals "
                    f"and {len(equipment_ids)} equipment"
                ),
            },
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Usage log %s recorded by %s (%d chemicals, %d equipment, %d opened)",
        log.id, user.username, len(usage_rows), len(equipment_ids), len(spawned),
    )

    await _sync_store_chemicals(db, store, list(requested) + [c.id for c in spawned])
    out = usage_crud.to_out(await usage_crud.get_usage_log(db, log.id))
    store.put_usage_log(out)
    store.invalidate("audit_logs")
    return out


# ── Update ──────────────────────────────────────────────────

async def update_usage_log(
    db: AsyncSession,
    store: InventoryStore,
    user: User,
    log_id: str,
    body: UsageLogUpdate,
) -> UsageLogOut:
    """Change notes and/or location; quantities and child rows stay as they are."""
    log = await usage_crud.get_usage_log(db, log_id)
    _check_can_modify(user, log)

    changes = body.model_dump(exclude_unset=True)
    for key in ("notes", "location"):
        if key in changes:
            setattr(log, key, changes[key])
    log.updated_at = datetime.utcnow()

    await log_audit(
        db, user, type="usage_log", action="UPDATE",
        item_name="Usage Log Entry",
        details={"usage_log_id": log.id, "changes": changes},
    )
    await db.commit()

    out = usage_crud.to_out(await usage_crud.get_usage_log(db, log.id))
    store.put_usage_log(out)
    store.invalidate("audit_logs")
    return out


# ── Delete ──────────────────────────────────────────────────

async def delete_usage_log(
    db: AsyncSession,
    store: InventoryStore,
    user: User,
    log_id: str,
) -> None:
    """Delete a log and give its recorded quantities back to stock.

    Opened containers spawned by the log stay in the inventory: they
    describe a physical container that still exists.
    """
    log = await usage_crud.get_usage_log(db, log_id)
    _check_can_modify(user, log)

    to_restore = [(cu.chemical_id, cu.quantity) for cu in log.chemicals]
    equipment_count = len(log.equipment)

    try:
        if not await usage_crud.delete_log_rows(db, log_id):
            raise ResourceNotFoundError("Usage log", log_id)

        restored: list[str] = []
        for chemical_id, quantity in to_restore:
            if chemical_id is None:
                continue
            if await chemical_crud.increment_quantity(db, chemical_id, quantity):
                restored.append(chemical_id)
            else:
                logger.warning(
                    "Chemical %s no longer exists; %.3f not restored for log %s",
                    chemical_id, quantity, log_id,
                )

        await log_audit(
            db, user, type="usage_log", action="DELETE",
            item_name="Usage Log Entry",
            details={
                "usage_log_id": log_id,
                "restored": [
                    {"chemical_id": cid, "quantity": q} for cid, q in to_restore if cid in restored
                ],
                "summary": (
                    f"Deleted log entry with {len(to_restore)} chemicals "
                    f"and {equipment_count} equipment"
                ),
            },
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Usage log %s deleted by %s", log_id, user.username)

    store.remove("usage_logs", log_id)
    await _sync_store_chemicals(db, store, restored)
    store.invalidate("audit_logs")


# ── Stats ───────────────────────────────────────────────────

def _months_back(moment: datetime, months: int) -> datetime:
    month_index = moment.year * 12 + moment.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def window_start(timeframe: str, now: datetime) -> datetime:
    """Start of the trailing window: 7 days, one calendar month or one year."""
    if timeframe == "week":
        return now - timedelta(days=7)
    if timeframe == "year":
        return _months_back(now, 12)
    return _months_back(now, 1)


async def usage_stats(
    db: AsyncSession,
    chemical_id: str,
    timeframe: str = "month",
    now: datetime | None = None,
) -> ChemicalUsageStats:
    await chemical_crud.get_chemical(db, chemical_id)
    since = window_start(timeframe, now or datetime.utcnow())
    rows = await usage_crud.chemical_usage_since(db, chemical_id, since)
    return ChemicalUsageStats(
        chemical_id=chemical_id,
        timeframe=timeframe,
        since=since,
        sessions=len(rows),
        total_quantity=sum(quantity for _, quantity in rows),
        usage=[UsagePoint(date=logged, quantity=quantity) for logged, quantity in rows],
    )

"""Data access for usage logs and their child rows.

`to_out()` resolves chemical and equipment display names from the eagerly
loaded relationships; always load logs through `_with_children()`.
"""

from datetime import datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chemsphere.middleware.exceptions import ResourceNotFoundError
from chemsphere.models.usage_log import ChemicalUsage, UsageLog, UsageLogEquipment
from chemsphere.schemas.usage_log import ChemicalUsageOut, EquipmentLinkOut, UsageLogOut
from chemsphere.schemas.validators import to_naive_utc


def _with_children(stmt):
    return stmt.options(
        selectinload(UsageLog.chemicals).selectinload(ChemicalUsage.chemical),
        selectinload(UsageLog.equipment).selectinload(UsageLogEquipment.equipment),
    )


def to_out(log: UsageLog) -> UsageLogOut:
    return UsageLogOut(
        id=log.id,
        user_id=log.user_id,
        user_name=log.user_name,
        date=log.date,
        notes=log.notes,
        location=log.location,
        chemicals=[
            ChemicalUsageOut(
                id=cu.id,
                chemical_id=cu.chemical_id,
                chemical_name=cu.chemical.name if cu.chemical else None,
                quantity=cu.quantity,
                unit=cu.unit or (cu.chemical.unit if cu.chemical else None),
                opened=cu.opened,
                remaining_amount=cu.remaining_amount,
                opened_chemical_id=cu.opened_chemical_id,
            )
            for cu in log.chemicals
        ],
        equipment=[
            EquipmentLinkOut(
                id=link.id,
                equipment_id=link.equipment_id,
                equipment_name=link.equipment.name if link.equipment else None,
            )
            for link in log.equipment
        ],
        created_at=log.created_at,
        updated_at=log.updated_at,
    )


async def get_usage_log(db: AsyncSession, log_id: str) -> UsageLog:
    result = await db.execute(
        _with_children(select(UsageLog).where(UsageLog.id == log_id))
        .execution_options(populate_existing=True)
    )
    log = result.scalar_one_or_none()
    if not log:
        raise ResourceNotFoundError("Usage log", log_id)
    return log


async def list_usage_logs(
    db: AsyncSession,
    *,
    chemical_id: str | None = None,
    equipment_id: str | None = None,
    user_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[UsageLog]:
    """All logs, newest first, optionally narrowed to one chemical,
    one equipment item, one user, or a date range."""
    stmt = _with_children(select(UsageLog)).order_by(UsageLog.date.desc())
    if chemical_id:
        stmt = stmt.where(
            UsageLog.id.in_(
                select(ChemicalUsage.usage_log_id).where(
                    or_(
                        ChemicalUsage.chemical_id == chemical_id,
                        ChemicalUsage.opened_chemical_id == chemical_id,
                    )
                )
            )
        )
    if equipment_id:
        stmt = stmt.where(
            UsageLog.id.in_(
                select(UsageLogEquipment.usage_log_id).where(
                    UsageLogEquipment.equipment_id == equipment_id
                )
            )
        )
    if user_id:
        stmt = stmt.where(UsageLog.user_id == user_id)
    if start:
        stmt = stmt.where(UsageLog.date >= to_naive_utc(start))
    if end:
        stmt = stmt.where(UsageLog.date <= to_naive_utc(end))
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ── Child rows ──────────────────────────────────────────────

async def delete_log_rows(db: AsyncSession, log_id: str) -> bool:
    """Delete a log's equipment links, chemical usages and header, in that
    order. Returns False if the header was already gone."""
    await db.execute(
        delete(UsageLogEquipment)
        .where(UsageLogEquipment.usage_log_id == log_id)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(ChemicalUsage)
        .where(ChemicalUsage.usage_log_id == log_id)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(
        delete(UsageLog)
        .where(UsageLog.id == log_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def chemical_usage_since(
    db: AsyncSession, chemical_id: str, since: datetime
) -> list[tuple[datetime, float]]:
    """(log date, quantity) for every use of one chemical since `since`, oldest first."""
    result = await db.execute(
        select(UsageLog.date, ChemicalUsage.quantity)
        .join(ChemicalUsage, ChemicalUsage.usage_log_id == UsageLog.id)
        .where(
            ChemicalUsage.chemical_id == chemical_id,
            UsageLog.date >= to_naive_utc(since),
        )
        .order_by(UsageLog.date)
    )
    return [(row.date, row.quantity) for row in result.all()]

"""Data access for equipment."""

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.middleware.exceptions import ResourceNotFoundError
from chemsphere.models.equipment import Equipment
from chemsphere.models.user import User
from chemsphere.schemas.equipment import EquipmentCreate, EquipmentUpdate, MaintenanceRequest


async def list_equipment(db: AsyncSession) -> list[Equipment]:
    result = await db.execute(select(Equipment).order_by(Equipment.name))
    return list(result.scalars().all())


async def get_equipment(db: AsyncSession, equipment_id: str) -> Equipment:
    result = await db.execute(select(Equipment).where(Equipment.id == equipment_id))
    item = result.scalar_one_or_none()
    if not item:
        raise ResourceNotFoundError("Equipment", equipment_id)
    return item


async def get_equipment_by_ids(db: AsyncSession, ids: list[str]) -> dict[str, Equipment]:
    if not ids:
        return {}
    result = await db.execute(select(Equipment).where(Equipment.id.in_(set(ids))))
    return {e.id: e for e in result.scalars().all()}


async def create_equipment(
    db: AsyncSession,
    data: EquipmentCreate,
    user: User | None = None,
) -> Equipment:
    item = Equipment(**data.model_dump(), created_by=user.id if user else None)
    db.add(item)
    await db.flush()
    return item


async def update_equipment(db: AsyncSession, item: Equipment, data: EquipmentUpdate) -> Equipment:
    for key, value in data.model_dump(exclude_unset=True).items():
        if value is None and key in ("name", "serial_id", "status"):
            continue
        setattr(item, key, value)
    await db.flush()
    return item


async def record_maintenance(
    db: AsyncSession,
    item: Equipment,
    data: MaintenanceRequest,
    today: date | None = None,
) -> Equipment:
    """Stamp today's maintenance; equipment under maintenance becomes available."""
    item.last_maintenance = today or date.today()
    if data.next_maintenance is not None:
        item.next_maintenance = data.next_maintenance
    if data.condition is not None:
        item.condition = data.condition
    if item.status == "Under Maintenance":
        item.status = "Available"
    await db.flush()
    return item


async def delete_equipment(db: AsyncSession, item: Equipment) -> None:
    await db.delete(item)
    await db.flush()

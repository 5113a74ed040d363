"""Data access for chemicals.

Quantity changes never read-modify-write in Python: `decrement_quantity`
and `increment_quantity` issue a single conditional UPDATE so concurrent
sessions cannot lose each other's changes or drive stock below zero.
"""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from chemsphere.models.chemical import Chemical
from chemsphere.models.user import User
from chemsphere.schemas.chemical import ChemicalCreate, ChemicalUpdate


async def list_chemicals(db: AsyncSession) -> list[Chemical]:
    result = await db.execute(select(Chemical).order_by(Chemical.name))
    return list(result.scalars().all())


async def get_chemical(db: AsyncSession, chemical_id: str, *, refresh: bool = False) -> Chemical:
    """Load one chemical or raise ResourceNotFoundError.

    `refresh=True` overwrites any stale copy held in the session, which
    is needed after the bulk UPDATEs below.
    """
    stmt = select(Chemical).where(Chemical.id == chemical_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    chemical = result.scalar_one_or_none()
    if not chemical:
        raise ResourceNotFoundError("Chemical", chemical_id)
    return chemical


async def get_chemicals_by_ids(db: AsyncSession, ids: list[str]) -> dict[str, Chemical]:
    if not ids:
        return {}
    result = await db.execute(
        select(Chemical)
        .where(Chemical.id.in_(set(ids)))
        .execution_options(populate_existing=True)
    )
    return {c.id: c for c in result.scalars().all()}


async def create_chemical(
    db: AsyncSession,
    data: ChemicalCreate,
    user: User | None = None,
    **extra,
) -> Chemical:
    chemical = Chemical(
        **data.model_dump(),
        created_by=user.id if user else None,
        **extra,
    )
    db.add(chemical)
    await db.flush()
    return chemical


async def update_chemical(db: AsyncSession, chemical: Chemical, data: ChemicalUpdate) -> Chemical:
    changes = data.model_dump(exclude_unset=True)
    initial = changes.get("initial_quantity", chemical.initial_quantity)
    current = changes.get("current_quantity", chemical.current_quantity)
    if current is not None and initial is not None and current > initial:
        raise BusinessLogicError("current_quantity cannot exceed initial_quantity")

    for key, value in changes.items():
        if value is None and key in ("name", "initial_quantity", "current_quantity"):
            continue
        setattr(chemical, key, value)
    await db.flush()
    return chemical


async def delete_chemical(db: AsyncSession, chemical: Chemical) -> None:
    await db.delete(chemical)
    await db.flush()


# ── Atomic quantity changes ─────────────────────────────────

async def decrement_quantity(db: AsyncSession, chemical_id: str, quantity: float) -> bool:
    """Subtract `quantity` only if enough stock remains.

    Returns False when the row is missing or holds less than `quantity`.
    """
    result = await db.execute(
        update(Chemical)
        .where(Chemical.id == chemical_id, Chemical.current_quantity >= quantity)
        .values(
            current_quantity=Chemical.current_quantity - quantity,
            updated_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def increment_quantity(db: AsyncSession, chemical_id: str, quantity: float) -> bool:
    """Add `quantity` back. Returns False when the chemical no longer exists."""
    result = await db.execute(
        update(Chemical)
        .where(Chemical.id == chemical_id)
        .values(
            current_quantity=Chemical.current_quantity + quantity,
            updated_at=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1

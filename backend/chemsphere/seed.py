"""Populate an empty database with demo users, inventory and history.

Usage:
    python -m chemsphere.seed

Creates an admin (admin@lab.com / admin123) and a student
(student@lab.com / student123), eight chemicals, six equipment items,
three usage logs and three audit entries. Quantities are stored as-is;
the sample usage logs are history and do not decrement stock again.
"""

import asyncio
import logging
import sys
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.config import settings
from chemsphere.crud import users as user_crud
from chemsphere.database import async_session, engine
from chemsphere.models import (
    Chemical,
    ChemicalUsage,
    Equipment,
    UsageLog,
    UsageLogEquipment,
    User,
    UserRole,
)
from chemsphere.utils.audit import log_audit

logger = logging.getLogger("chemsphere.seed")


CHEMICALS = [
    # name, batch, brand, volume/unit, initial, current, expires, arrived, class, location, ghs
    ("Ethanol", "ETH-001", "Sigma Aldrich", 500, 10, 8, "2026-02-15", "2024-05-01", "flammable", "Cabinet A1", ["Flame"]),
    ("Hydrochloric Acid", "HCL-045", "Merck", 1000, 5, 3, "2025-12-30", "2024-07-10", "corrosive", "Cabinet B3", ["Corrosion"]),
    ("Sodium Hydroxide", "NAOH-109", "Fisher Scientific", 250, 8, 6, "2025-10-01", "2024-09-12", "corrosive", "Cabinet C1", ["Corrosion"]),
    ("Acetone", "ACE-110", "BDH Chemicals", 500, 12, 10, "2027-01-05", "2024-04-20", "flammable", "Cabinet A2", ["Flame"]),
    ("Hydrogen Peroxide", "HP-023", "LabTech", 250, 4, 2, "2025-01-12", "2023-12-10", "reactive", "Refrigerator 1", ["Exclamation Mark"]),
    ("Sulfuric Acid", "H2SO4-055", "Chem-Lab", 500, 6, 5, "2026-06-15", "2024-02-01", "toxic", "Cabinet B1", ["Skull and Crossbones"]),
    ("Ammonium Nitrate", "NH4N-011", "Sigma Aldrich", 100, 3, 3, "2025-04-22", "2024-01-10", "reactive", "Cabinet D2", ["Exploding Bomb"]),
    ("Phenol", "PHEN-002", "Merck", 250, 2, 1, "2025-08-01", "2023-11-22", "toxic", "Cabinet B4", ["Skull and Crossbones"]),
]

EQUIPMENT = [
    # name, model, serial, status, location, purchased, warranty, last maint., next maint.
    ("Centrifuge", "SpinFast 3000", "EQ-001", "Available", "Lab Room 2", "2022-06-01", "2025-06-01", "2025-02-10", "2026-02-10"),
    ("Microscope", "OptiView X5", "EQ-002", "Under Maintenance", "Lab Room 1", "2021-09-10", "2024-09-10", "2025-03-12", "2026-03-12"),
    ("pH Meter", "PH-Pro 100", "EQ-003", "Available", "Lab Room 3", "2023-01-05", "2026-01-05", "2025-01-10", "2025-07-10"),
    ("Analytical Balance", "Precision 200", "EQ-004", "Broken", "Lab Room 2", "2020-10-15", "2023-10-15", "2024-09-15", "2025-09-15"),
    ("Hot Plate Stirrer", "HeatMix 50", "EQ-005", "Available", "Lab Room 1", "2022-12-02", "2025-12-02", "2025-04-01", "2026-04-01"),
    ("Fume Hood", "SafeAir 900", "EQ-006", "Available", "Lab Room 4", "2021-02-12", "2024-02-12", "2025-03-05", "2026-03-05"),
]


def _d(value: str) -> date:
    return date.fromisoformat(value)


async def seed(db: AsyncSession) -> None:
    existing = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    if existing:
        raise RuntimeError(f"Database already has {existing} user(s); refusing to seed")

    admin = await user_crud.create_user(
        db, email="admin@lab.com", username="admin", password="admin123",
        role=UserRole.ADMIN, verified=True,
    )
    student = await user_crud.create_user(
        db, email="student@lab.com", username="student_user", password="student123",
        role=UserRole.USER, verified=True,
    )

    chemicals = [
        Chemical(
            name=name, batch_number=batch, brand=brand, physical_state="liquid",
            volume_per_unit=volume, initial_quantity=initial, current_quantity=current,
            expiration_date=_d(expires), date_of_arrival=_d(arrived),
            safety_class=safety_class, location=location, ghs_symbols=ghs,
            created_by=admin.id,
        )
        for name, batch, brand, volume, initial, current, expires, arrived,
        safety_class, location, ghs in CHEMICALS
    ]
    equipment = [
        Equipment(
            name=name, model=model, serial_id=serial, status=status, location=location,
            purchase_date=_d(purchased), warranty_expiration=_d(warranty),
            last_maintenance=_d(last), next_maintenance=_d(nxt),
            created_by=admin.id,
        )
        for name, model, serial, status, location, purchased, warranty, last, nxt in EQUIPMENT
    ]
    db.add_all(chemicals + equipment)
    await db.flush()

    ethanol, acetone = chemicals[0], chemicals[3]
    logs = [
        UsageLog(
            user_id=student.id, user_name=student.username,
            location="Cabinet A1", notes="Used for solvent cleaning",
            chemicals=[ChemicalUsage(chemical_id=ethanol.id, quantity=1, unit="bottle")],
        ),
        UsageLog(
            user_id=student.id, user_name=student.username,
            location="Cabinet A2", notes="Used for chromatography test",
            chemicals=[ChemicalUsage(chemical_id=acetone.id, quantity=0.5, unit="bottle")],
        ),
        UsageLog(
            user_id=student.id, user_name=student.username,
            location="Lab Room 2", notes="Used for centrifugation experiment",
            equipment=[UsageLogEquipment(equipment_id=equipment[0].id)],
        ),
    ]
    db.add_all(logs)

    await log_audit(db, admin, type="chemical", action="CREATE",
                    item_name="Seed chemicals", details={"count": len(chemicals)})
    await log_audit(db, admin, type="equipment", action="CREATE",
                    item_name="Seed equipment", details={"count": len(equipment)})
    await log_audit(db, student, type="usage_log", action="CREATE",
                    item_name="Seed usage logs", details={"count": len(logs)})
    await db.flush()

    logger.info(
        "Seeded 2 users, %d chemicals, %d equipment, %d usage logs",
        len(chemicals), len(equipment), len(logs),
    )


async def _run() -> None:
    try:
        async with async_session() as db:
            try:
                await seed(db)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
    finally:
        await engine.dispose()


def main() -> int:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(_run())
    except Exception:
        logger.exception("Error during seeding")
        return 1
    logger.info("Seeding complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())

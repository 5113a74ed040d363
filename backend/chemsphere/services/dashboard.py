"""Derived dashboard buckets over the cached chemical list.

Pure functions: the same chemicals and `now` always give the same result.
Expiration dates are treated as midnight UTC of that day and `now` as a
naive UTC datetime.

  near_expiration  now < expiration <= now + warning window   (soonest first)
  low_stock        0 < current_quantity <= threshold          (smallest first)
  expired          expiration < now                           (oldest first)
  out_of_stock     current_quantity == 0                      (by name)
"""

from collections import Counter
from datetime import date, datetime, time, timedelta
from typing import Sequence

from chemsphere.config import settings
from chemsphere.schemas.chemical import ChemicalOut
from chemsphere.schemas.dashboard import DashboardChemical, DashboardOut
from chemsphere.schemas.equipment import EquipmentOut


def _expires_at(expiration: date) -> datetime:
    return datetime.combine(expiration, time.min)


def _entry(chemical: ChemicalOut, now: datetime) -> DashboardChemical:
    days = None
    if chemical.expiration_date is not None:
        days = (chemical.expiration_date - now.date()).days
    return DashboardChemical(
        id=chemical.id,
        name=chemical.name,
        batch_number=chemical.batch_number,
        location=chemical.location,
        current_quantity=chemical.current_quantity,
        unit=chemical.unit,
        expiration_date=chemical.expiration_date,
        days_until_expiry=days,
    )


def near_expiration(
    chemicals: Sequence[ChemicalOut], now: datetime, days: int = 90
) -> list[ChemicalOut]:
    horizon = now + timedelta(days=days)
    hits = [
        c for c in chemicals
        if c.expiration_date is not None and now < _expires_at(c.expiration_date) <= horizon
    ]
    return sorted(hits, key=lambda c: c.expiration_date)


def low_stock(chemicals: Sequence[ChemicalOut], threshold: float = 5) -> list[ChemicalOut]:
    hits = [c for c in chemicals if 0 < c.current_quantity <= threshold]
    return sorted(hits, key=lambda c: c.current_quantity)


def expired(chemicals: Sequence[ChemicalOut], now: datetime) -> list[ChemicalOut]:
    hits = [
        c for c in chemicals
        if c.expiration_date is not None and _expires_at(c.expiration_date) < now
    ]
    return sorted(hits, key=lambda c: c.expiration_date)


def out_of_stock(chemicals: Sequence[ChemicalOut]) -> list[ChemicalOut]:
    hits = [c for c in chemicals if c.current_quantity == 0]
    return sorted(hits, key=lambda c: c.name.lower())


def build_dashboard(
    chemicals: Sequence[ChemicalOut],
    equipment: Sequence[EquipmentOut],
    now: datetime | None = None,
    warning_days: int | None = None,
    low_stock_threshold: float | None = None,
) -> DashboardOut:
    now = now or datetime.utcnow()
    warning_days = warning_days if warning_days is not None else settings.expiration_warning_days
    threshold = (
        low_stock_threshold if low_stock_threshold is not None else settings.low_stock_threshold
    )

    return DashboardOut(
        generated_at=now,
        total_chemicals=len(chemicals),
        total_equipment=len(equipment),
        equipment_by_status=dict(Counter(e.status for e in equipment)),
        near_expiration=[_entry(c, now) for c in near_expiration(chemicals, now, warning_days)],
        low_stock=[_entry(c, now) for c in low_stock(chemicals, threshold)],
        expired=[_entry(c, now) for c in expired(chemicals, now)],
        out_of_stock=[_entry(c, now) for c in out_of_stock(chemicals)],
    )

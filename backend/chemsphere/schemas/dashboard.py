from datetime import date, datetime

from pydantic import BaseModel


class DashboardChemical(BaseModel):
    id: str
    name: str
    batch_number: str | None
    location: str | None
    current_quantity: float
    unit: str | None
    expiration_date: date | None
    days_until_expiry: int | None


class DashboardOut(BaseModel):
    generated_at: datetime
    total_chemicals: int
    total_equipment: int
    equipment_by_status: dict[str, int]
    near_expiration: list[DashboardChemical]
    low_stock: list[DashboardChemical]
    expired: list[DashboardChemical]
    out_of_stock: list[DashboardChemical]

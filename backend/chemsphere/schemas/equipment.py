"""Pydantic schemas for Equipment CRUD and maintenance."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

EquipmentStatus = Literal["Available", "Broken", "Under Maintenance"]

EQUIPMENT_STATUSES: tuple[str, ...] = ("Available", "Broken", "Under Maintenance")


class EquipmentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    model: str | None = Field(None, max_length=255)
    serial_id: str = Field(..., min_length=1, max_length=100)
    status: EquipmentStatus = "Available"
    location: str = Field(..., min_length=1, max_length=255)
    purchase_date: date | None = None
    warranty_expiration: date | None = None
    last_maintenance: date | None = None
    next_maintenance: date | None = None
    condition: str | None = None


class EquipmentUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    model: str | None = None
    serial_id: str | None = Field(None, min_length=1, max_length=100)
    status: EquipmentStatus | None = None
    location: str | None = None
    purchase_date: date | None = None
    warranty_expiration: date | None = None
    last_maintenance: date | None = None
    next_maintenance: date | None = None
    condition: str | None = None


class MaintenanceRequest(BaseModel):
    """Payload for POST /api/equipment/{id}/maintenance."""
    next_maintenance: date | None = None
    condition: str | None = None


class EquipmentOut(BaseModel):
    id: str
    name: str
    model: str | None
    serial_id: str
    status: str
    location: str | None
    purchase_date: date | None
    warranty_expiration: date | None
    last_maintenance: date | None
    next_maintenance: date | None
    condition: str | None
    created_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

"""Pydantic schemas for the usage logging workflow."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from chemsphere.schemas.validators import to_naive_utc


# ── Record usage ─────────────────────────────────────────────

class ChemicalUsageIn(BaseModel):
    """One chemical consumed during the session."""
    chemical_id: str
    quantity: float = Field(..., gt=0)
    unit: str | None = Field(None, max_length=30)
    # Set when a container was opened; the remainder becomes a new record
    opened: bool = False
    remaining_amount: float | None = None
    remaining_location: str | None = None

    @model_validator(mode="after")
    def _check_opened(self):
        if self.opened:
            if self.remaining_amount is None or self.remaining_amount <= 0:
                raise ValueError("remaining_amount must be greater than 0 for an opened container")
            if not (self.remaining_location or "").strip():
                raise ValueError("remaining_location is required for an opened container")
        return self


class UsageLogCreate(BaseModel):
    """Payload for POST /api/usage-logs."""
    user_name: str | None = Field(None, max_length=200)
    date: datetime | None = None
    notes: str | None = None
    location: str | None = Field(None, max_length=255)
    chemicals: list[ChemicalUsageIn] = Field(default_factory=list)
    equipment_ids: list[str] = Field(default_factory=list)

    @field_validator("date")
    @classmethod
    def _utc_date(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def _check_not_empty(self):
        if not self.chemicals and not self.equipment_ids:
            raise ValueError("Select at least one chemical or equipment item")
        return self


class UsageLogUpdate(BaseModel):
    """Only the free-text fields of a log can change after it is recorded."""
    notes: str | None = None
    location: str | None = Field(None, max_length=255)


# ── Response ─────────────────────────────────────────────────

class ChemicalUsageOut(BaseModel):
    id: str
    chemical_id: str | None
    chemical_name: str | None = None
    quantity: float
    unit: str | None
    opened: bool
    remaining_amount: float | None
    opened_chemical_id: str | None = None


class EquipmentLinkOut(BaseModel):
    id: str
    equipment_id: str | None
    equipment_name: str | None = None


class UsageLogOut(BaseModel):
    id: str
    user_id: str | None
    user_name: str
    date: datetime
    notes: str | None
    location: str | None
    chemicals: list[ChemicalUsageOut]
    equipment: list[EquipmentLinkOut]
    created_at: datetime
    updated_at: datetime


# ── Stats ────────────────────────────────────────────────────

UsageTimeframe = Literal["week", "month", "year"]


class UsagePoint(BaseModel):
    date: datetime
    quantity: float


class ChemicalUsageStats(BaseModel):
    """Usage of one chemical over a trailing window."""
    chemical_id: str
    timeframe: str
    since: datetime
    sessions: int
    total_quantity: float
    usage: list[UsagePoint]

"""Pydantic schemas for Chemical CRUD operations.

GHS symbols are canonicalised here, so every write path (JSON API and CSV
import alike) stores the same ordered list of pictogram names.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from chemsphere.utils.ghs import canonicalize_ghs

SafetyClass = Literal["moderate", "toxic", "corrosive", "reactive", "flammable"]
PhysicalState = Literal["liquid", "solid"]

SAFETY_CLASSES: tuple[str, ...] = ("moderate", "toxic", "corrosive", "reactive", "flammable")


# ── Create ───────────────────────────────────────────────────

class ChemicalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    batch_number: str | None = Field(None, max_length=100)
    brand: str | None = Field(None, max_length=255)
    physical_state: PhysicalState = "liquid"
    unit: str | None = Field(None, max_length=30)
    volume_per_unit: float | None = Field(None, ge=0)
    initial_quantity: float = Field(..., ge=0)
    current_quantity: float | None = Field(None, ge=0)
    expiration_date: date | None = None
    date_of_arrival: date | None = None
    safety_class: SafetyClass = "moderate"
    location: str = Field(..., min_length=1, max_length=255)
    ghs_symbols: list[str] = Field(default_factory=list)

    @field_validator("ghs_symbols", mode="before")
    @classmethod
    def _canonical_ghs(cls, v):
        return canonicalize_ghs(v)

    @model_validator(mode="after")
    def _check_quantities(self):
        if self.current_quantity is None:
            self.current_quantity = self.initial_quantity
        if self.current_quantity > self.initial_quantity:
            raise ValueError("current_quantity cannot exceed initial_quantity")
        return self


# ── Update (partial) ─────────────────────────────────────────

class ChemicalUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    batch_number: str | None = None
    brand: str | None = None
    physical_state: PhysicalState | None = None
    unit: str | None = None
    volume_per_unit: float | None = Field(None, ge=0)
    initial_quantity: float | None = Field(None, ge=0)
    current_quantity: float | None = Field(None, ge=0)
    expiration_date: date | None = None
    date_of_arrival: date | None = None
    safety_class: SafetyClass | None = None
    location: str | None = None
    ghs_symbols: list[str] | None = None
    remaining_amount: float | None = Field(None, ge=0)

    @field_validator("ghs_symbols", mode="before")
    @classmethod
    def _canonical_ghs(cls, v):
        if v is None:
            return None
        return canonicalize_ghs(v)


# ── Response ─────────────────────────────────────────────────

class ChemicalOut(BaseModel):
    id: str
    name: str
    batch_number: str | None
    brand: str | None
    physical_state: str
    unit: str | None
    volume_per_unit: float | None
    initial_quantity: float
    current_quantity: float
    expiration_date: date | None
    date_of_arrival: date | None
    safety_class: str
    location: str | None
    ghs_symbols: list[str]
    opened: bool
    remaining_amount: float | None
    parent_chemical_id: str | None
    created_by: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("ghs_symbols", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or []

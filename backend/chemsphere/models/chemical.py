"""Chemical: one container or batch of a lab chemical.

Opened containers are ordinary Chemical rows created when a container is
opened during a usage session. They point back at the chemical they were
split from through `parent_chemical_id`; the link is informational and
does not cascade.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean, CheckConstraint, Date, DateTime, Float, ForeignKey, JSON, String,
)
from sqlalchemy.orm import Mapped, mapped_column

from chemsphere.database import Base


class Chemical(Base):
    __tablename__ = "chemicals"
    __table_args__ = (
        CheckConstraint("current_quantity >= 0", name="ck_chemicals_quantity_non_negative"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # ── Identification ───────────────────────────────────────
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    batch_number: Mapped[str | None] = mapped_column(String(100), index=True)
    brand: Mapped[str | None] = mapped_column(String(255))
    # liquid | solid
    physical_state: Mapped[str] = mapped_column(String(20), default="liquid")

    # ── Quantities ───────────────────────────────────────────
    unit: Mapped[str | None] = mapped_column(String(30))
    volume_per_unit: Mapped[float | None] = mapped_column(Float)
    initial_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    current_quantity: Mapped[float] = mapped_column(Float, nullable=False)

    # ── Dates ────────────────────────────────────────────────
    expiration_date: Mapped[date | None] = mapped_column(Date, index=True)
    date_of_arrival: Mapped[date | None] = mapped_column(Date)

    # ── Safety ───────────────────────────────────────────────
    # moderate | toxic | corrosive | reactive | flammable
    safety_class: Mapped[str] = mapped_column(String(20), default="moderate", index=True)
    # Canonical ordered list of GHS pictogram names, e.g. ["Flame", "Corrosion"]
    ghs_symbols: Mapped[list] = mapped_column(JSON, default=list)

    location: Mapped[str | None] = mapped_column(String(255))

    # ── Opened containers ────────────────────────────────────
    opened: Mapped[bool] = mapped_column(Boolean, default=False)
    remaining_amount: Mapped[float | None] = mapped_column(Float)
    parent_chemical_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("chemicals.id", ondelete="SET NULL"), index=True
    )

    # ── Metadata ─────────────────────────────────────────────
    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

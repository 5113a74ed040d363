"""UsageLog: one lab session that consumed chemicals and/or equipment.

A UsageLog exclusively owns its ChemicalUsage and UsageLogEquipment rows;
they are created with the header and removed with it.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chemsphere.database import Base


class UsageLog(Base):
    __tablename__ = "usage_logs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # ── Who ────────────────────────────────────────────────────
    user_id: Mapped[str | None] = mapped_column(String(36), index=True)
    user_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # ── Session ────────────────────────────────────────────────
    date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    notes: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    chemicals = relationship(
        "ChemicalUsage", back_populates="usage_log", cascade="all, delete-orphan"
    )
    equipment = relationship(
        "UsageLogEquipment", back_populates="usage_log", cascade="all, delete-orphan"
    )


class ChemicalUsage(Base):
    __tablename__ = "chemical_usage"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    usage_log_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("usage_logs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Nullable: the chemical may have been deleted since the session was logged
    chemical_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("chemicals.id", ondelete="SET NULL"), index=True
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str | None] = mapped_column(String(30))

    opened: Mapped[bool] = mapped_column(Boolean, default=False)
    remaining_amount: Mapped[float | None] = mapped_column(Float)
    # The "(Opened)" container spawned by this entry, if any
    opened_chemical_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("chemicals.id", ondelete="SET NULL")
    )

    usage_log = relationship("UsageLog", back_populates="chemicals")
    chemical = relationship("Chemical", foreign_keys=[chemical_id])


class UsageLogEquipment(Base):
    __tablename__ = "usage_log_equipment"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    usage_log_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("usage_logs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    equipment_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("equipment.id", ondelete="SET NULL"), index=True
    )

    usage_log = relationship("UsageLog", back_populates="equipment")
    equipment = relationship("Equipment")

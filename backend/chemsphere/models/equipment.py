import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from chemsphere.database import Base


class Equipment(Base):
    __tablename__ = "equipment"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    model: Mapped[str | None] = mapped_column(String(255))
    serial_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # Available | Broken | Under Maintenance
    status: Mapped[str] = mapped_column(String(30), default="Available", index=True)
    location: Mapped[str | None] = mapped_column(String(255))

    # ── Lifecycle dates ──────────────────────────────────────
    purchase_date: Mapped[date | None] = mapped_column(Date)
    warranty_expiration: Mapped[date | None] = mapped_column(Date)
    last_maintenance: Mapped[date | None] = mapped_column(Date)
    next_maintenance: Mapped[date | None] = mapped_column(Date)

    condition: Mapped[str | None] = mapped_column(Text)

    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

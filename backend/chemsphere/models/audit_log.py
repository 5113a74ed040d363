"""AuditLog: append-only trail of user-initiated actions.

Records who did what, when, and to which item. Rows are never updated.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from chemsphere.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # ── What ───────────────────────────────────────────────────
    # chemical | equipment | usage_log | user | auth | import | export
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # CREATE | UPDATE | DELETE | VIEW | LOGIN | LOGOUT | IMPORT | EXPORT |
    # VERIFY_USER | UNVERIFY_USER | UPDATE_USER_ROLE | ACTIVATE_USER |
    # DEACTIVATE_USER | DELETE_USER
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    # ── Who ────────────────────────────────────────────────────
    user_id: Mapped[str | None] = mapped_column(String(36), index=True)
    user_name: Mapped[str] = mapped_column(String(200), nullable=False)
    user_role: Mapped[str] = mapped_column(String(20), nullable=False)

    # ── Target ─────────────────────────────────────────────────
    item_name: Mapped[str | None] = mapped_column(String(255))
    details: Mapped[dict | None] = mapped_column(JSON)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )

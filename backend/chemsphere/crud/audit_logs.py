"""Read access for the audit trail (writes go through utils.audit.log_audit)."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.models.audit_log import AuditLog
from chemsphere.schemas.validators import to_naive_utc


async def list_audit_logs(
    db: AsyncSession,
    *,
    limit: int | None = None,
    type: str | None = None,
    action: str | None = None,
    user_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[AuditLog]:
    """Audit entries, newest first."""
    stmt = select(AuditLog).order_by(AuditLog.timestamp.desc())
    if type:
        stmt = stmt.where(AuditLog.type == type)
    if action:
        stmt = stmt.where(AuditLog.action == action.upper())
    if user_id:
        stmt = stmt.where(AuditLog.user_id == user_id)
    if start:
        stmt = stmt.where(AuditLog.timestamp >= to_naive_utc(start))
    if end:
        stmt = stmt.where(AuditLog.timestamp <= to_naive_utc(end))
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())

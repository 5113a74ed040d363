"""Lightweight helper for recording audit log entries.

Usage:
    await log_audit(
        db, user, type="chemical", action="CREATE",
        item_name=chemical.name,
        details={"batch_number": chemical.batch_number},
    )

The row is added to the current session and committed with the
enclosing transaction; no extra flush is performed.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.models.audit_log import AuditLog
from chemsphere.models.user import User

logger = logging.getLogger(__name__)

VALID_ACTIONS = {
    "CREATE",
    "UPDATE",
    "DELETE",
    "VIEW",
    "LOGIN",
    "LOGOUT",
    "IMPORT",
    "EXPORT",
    "VERIFY_USER",
    "UNVERIFY_USER",
    "UPDATE_USER_ROLE",
    "ACTIVATE_USER",
    "DEACTIVATE_USER",
    "DELETE_USER",
}


def normalize_action(action: str) -> str:
    """Upper-case `action`; anything unrecognised is recorded as UPDATE."""
    normalized = (action or "").strip().upper()
    if normalized not in VALID_ACTIONS:
        logger.warning("Unknown audit action %r, recording as UPDATE", action)
        return "UPDATE"
    return normalized


async def log_audit(
    db: AsyncSession,
    user: User | None,
    *,
    type: str,
    action: str,
    item_name: str | None = None,
    details: dict | None = None,
) -> AuditLog:
    """Append an audit entry to the current DB session.

    `user=None` records the entry as performed by the system (scheduled
    jobs, seed data).
    """
    entry = AuditLog(
        type=type,
        action=normalize_action(action),
        user_id=user.id if user else None,
        user_name=user.username if user else "system",
        user_role=user.role.value if user else "system",
        item_name=item_name,
        details=details,
    )
    db.add(entry)
    return entry

"""Inactive account sweep.

Verified, active users who have not signed in for
`inactive_warning_days` are counted; past `inactive_deactivate_days`
they are deactivated and their tokens revoked.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.revocation import TokenRevocation
from chemsphere.config import settings
from chemsphere.crud import users as user_crud
from chemsphere.models.user import User
from chemsphere.schemas.user import InactiveSweepResult
from chemsphere.utils.audit import log_audit

logger = logging.getLogger(__name__)


async def deactivate_inactive_users(
    db: AsyncSession, actor: User | None = None
) -> InactiveSweepResult:
    stale = await user_crud.find_inactive(db, settings.inactive_warning_days)
    expired = {u.id for u in await user_crud.find_inactive(db, settings.inactive_deactivate_days)}

    deactivated: list[str] = []
    for user in stale:
        if user.id not in expired:
            continue
        # Super admins are never locked out by the sweep
        if user.role.value == "super_admin":
            continue
        user.active = False
        deactivated.append(user.username)
        await log_audit(
            db, actor, type="user", action="DEACTIVATE_USER",
            item_name=user.username,
            details={"user_id": user.id, "reason": "inactivity", "last_login": (
                user.last_login.isoformat() if user.last_login else None
            )},
        )
        await TokenRevocation.revoke_all_user_tokens(user.id)

    await db.flush()
    logger.info(
        "Inactive sweep: %d checked, %d deactivated", len(stale), len(deactivated)
    )
    return InactiveSweepResult(
        checked=len(stale),
        deactivated=len(deactivated),
        users_deactivated=deactivated,
    )

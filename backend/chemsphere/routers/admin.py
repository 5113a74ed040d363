"""Maintenance endpoints for admins.

Endpoints:
    POST /api/admin/check-expiration     Email the expiration digest now
    POST /api/admin/deactivate-inactive  Run the inactive account sweep now
    POST /api/admin/refresh-cache        Reload the in-process store
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.deps import require_permission
from chemsphere.database import get_db
from chemsphere.models.user import User
from chemsphere.schemas.admin import CacheRefreshResult, ExpirationCheckResult
from chemsphere.schemas.user import InactiveSweepResult
from chemsphere.services.accounts import deactivate_inactive_users
from chemsphere.services.expiration import check_expiration
from chemsphere.services.store import InventoryStore, get_store
from chemsphere.utils.audit import log_audit

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/check-expiration", response_model=ExpirationCheckResult)
async def run_expiration_check(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_permission("maintenance.run")),
):
    """Find chemicals expiring soon and email every admin one digest.

    Failures come back as `{"success": false, "error": "..."}` with a 500
    so callers polling the job see the same shape either way.
    """
    try:
        result = await check_expiration(db)
    except Exception as e:
        logger.exception("Manual expiration check failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)},
        )
    logger.info("Expiration check triggered by %s: %d chemicals", user.username, result.processed)
    return result


@router.post("/deactivate-inactive", response_model=InactiveSweepResult)
async def run_inactive_sweep(
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("maintenance.run")),
):
    result = await deactivate_inactive_users(db, actor=user)
    await db.commit()
    if result.deactivated:
        store.invalidate("audit_logs")
    return result


@router.post("/refresh-cache", response_model=CacheRefreshResult)
async def refresh_cache(
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    user: User = Depends(require_permission("maintenance.run")),
):
    counts = await store.refresh(db)
    await log_audit(
        db, user, type="system", action="UPDATE",
        item_name="Inventory cache",
        details=counts,
    )
    await db.commit()
    store.invalidate("audit_logs")
    return CacheRefreshResult(**counts)

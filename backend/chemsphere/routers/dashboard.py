"""Dashboard router.

Endpoints:
    GET /api/dashboard/   Near-expiration, low-stock, expired and out-of-stock buckets
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.deps import require_permission
from chemsphere.database import get_db
from chemsphere.models.user import User
from chemsphere.schemas.dashboard import DashboardOut
from chemsphere.services.dashboard import build_dashboard
from chemsphere.services.store import InventoryStore, get_store

router = APIRouter()


@router.get("/", response_model=DashboardOut)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    store: InventoryStore = Depends(get_store),
    _user: User = Depends(require_permission("dashboard.read")),
):
    await store.ensure_loaded(db, "chemicals", "equipment")
    return build_dashboard(store.chemicals(), store.equipment())

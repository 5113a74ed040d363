from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chemsphere.config import settings
from chemsphere.middleware.exceptions import register_exception_handlers
from chemsphere.routers import (
    admin,
    audit_logs,
    auth,
    bulk_import,
    chemicals,
    dashboard,
    equipment,
    health,
    usage_logs,
    users,
)
from chemsphere.services.scheduler import lifespan

app = FastAPI(
    title="ChemSphere",
    description="Laboratory chemical & equipment inventory with usage tracking",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
# Public
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])

# Inventory (verified users, permission-gated)
app.include_router(chemicals.router, prefix="/api/chemicals", tags=["chemicals"])
app.include_router(equipment.router, prefix="/api/equipment", tags=["equipment"])
app.include_router(usage_logs.router, prefix="/api/usage-logs", tags=["usage-logs"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(bulk_import.router, prefix="/api/bulk-import", tags=["bulk-import"])

# Administration
app.include_router(audit_logs.router, prefix="/api/audit-logs", tags=["audit-logs"])
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

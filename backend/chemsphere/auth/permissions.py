"""Central authorization policy for ChemSphere.

Design:
  - Each role maps to a fixed set of permissions (defined here, not in DB).
  - Every gate in the API goes through `can(role, permission)`, either
    directly or via the `require_permission(...)` dependency, so there is
    exactly one place that decides who may do what.
  - The effective set is also embedded in the JWT for the UI, but server
    side checks always use the role currently stored on the user.

Permission naming: `<resource>.<action>`
  Resources: chemical, equipment, usage_log, dashboard, audit, users,
             data (import/export), maintenance
"""

from __future__ import annotations


# ── All known permissions ───────────────────────────────────

ALL_PERMISSIONS: set[str] = {
    # Inventory
    "chemical.read",
    "chemical.write",
    "chemical.delete",
    "equipment.read",
    "equipment.write",
    "equipment.delete",
    "dashboard.read",

    # Usage logs
    "usage_log.read",
    "usage_log.create",
    "usage_log.manage",       # edit / delete logs recorded by others

    # Data transfer
    "data.export",
    "data.import",

    # Audit trail
    "audit.read",

    # User management
    "users.read",
    "users.manage",           # verify / activate / deactivate / soft delete
    "users.manage_admins",    # grant admin roles, touch other admins, purge

    # Jobs
    "maintenance.run",        # expiration digest, inactive sweep, cache refresh
}


# ── Role → permissions ──────────────────────────────────────

_USER: set[str] = {
    "chemical.read",
    "equipment.read",
    "dashboard.read",
    "usage_log.read",
    "usage_log.create",
    "data.export",
}

_ADMIN: set[str] = _USER | {
    "chemical.write", "chemical.delete",
    "equipment.write", "equipment.delete",
    "usage_log.manage",
    "data.import",
    "audit.read",
    "users.read", "users.manage",
    "maintenance.run",
}

ROLE_PERMISSIONS: dict[str, set[str]] = {
    "user": _USER,
    "admin": _ADMIN,
    "super_admin": ALL_PERMISSIONS.copy(),
}


# ── Resolution ──────────────────────────────────────────────

def resolve_permissions(role: str) -> list[str]:
    """Sorted effective permissions for a role (stable for JWT claims)."""
    return sorted(ROLE_PERMISSIONS.get(role, set()))


def can(role: str, permission: str) -> bool:
    """Return True when `role` holds `permission`."""
    return permission in ROLE_PERMISSIONS.get(role, set())

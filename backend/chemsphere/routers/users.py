"""User administration router.

Endpoints:
    GET    /api/users/                      Search / filter / page all users
    GET    /api/users/pending               Accounts waiting for verification
    GET    /api/users/{user_id}             Single user
    PATCH  /api/users/{user_id}/role        Change role
    POST   /api/users/{user_id}/verify      Approve account
    POST   /api/users/{user_id}/unverify    Revoke approval
    POST   /api/users/{user_id}/activate    Re-enable account
    POST   /api/users/{user_id}/deactivate  Disable account (tokens revoked)
    DELETE /api/users/{user_id}             Soft delete: deactivate + mark for deletion
    POST   /api/users/{user_id}/purge       Permanent delete, needs "DELETE <username>"

Admins manage `user` accounts. Anything that touches an admin or super
admin account, grants a role above `user`, or purges requires
`users.manage_admins`. Nobody can deactivate, delete or demote themselves.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.deps import require_permission
from chemsphere.auth.permissions import can
from chemsphere.auth.revocation import TokenRevocation
from chemsphere.crud import users as user_crud
from chemsphere.database import get_db
from chemsphere.middleware.exceptions import (
    BusinessLogicError,
    ConfirmationMismatchError,
    PermissionDeniedError,
)
from chemsphere.models.user import User, UserRole
from chemsphere.schemas.common import PagedResponse
from chemsphere.schemas.user import PurgeRequest, RoleUpdate, UserAdminOut
from chemsphere.services.store import invalidates_audit
from chemsphere.utils.audit import log_audit
from chemsphere.utils.listing import filter_sort_paginate

router = APIRouter()


# ── Guards ───────────────────────────────────────────────────

def _check_can_manage(actor: User, target: User) -> None:
    if target.is_admin and not can(actor.role.value, "users.manage_admins"):
        raise PermissionDeniedError("Only a super admin can modify admin accounts")


def _check_not_self(actor: User, target: User, what: str) -> None:
    if actor.id == target.id:
        raise BusinessLogicError(f"You cannot {what} your own account", error_code="SELF_MODIFICATION")


async def _load_target(
    db: AsyncSession, actor: User, user_id: str, self_action: str | None = None
) -> User:
    """Load a user to act on. The self check runs before the admin-target check."""
    target = await user_crud.get_user(db, user_id)
    if self_action:
        _check_not_self(actor, target, self_action)
    _check_can_manage(actor, target)
    return target


# ── Read ─────────────────────────────────────────────────────

@router.get("/", response_model=PagedResponse[UserAdminOut])
async def list_users(
    search: str | None = Query(None, description="Matches username or email"),
    role: str = "all",
    sort: str = "created_at",
    direction: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("users.read")),
):
    users = [UserAdminOut.model_validate(u) for u in await user_crud.list_users(db)]
    result = filter_sort_paginate(
        users,
        search_term=search,
        search_fields=("username", "email"),
        filter_field="role",
        filter_value=role,
        sort_field=sort,
        direction=direction,
        page=page,
        page_size=page_size,
    )
    return PagedResponse[UserAdminOut](**vars(result))


@router.get("/pending", response_model=list[UserAdminOut])
async def pending_verification(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("users.read")),
):
    return await user_crud.list_pending_verification(db)


@router.get("/{user_id}", response_model=UserAdminOut)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission("users.read")),
):
    return await user_crud.get_user(db, user_id)


# ── Role ─────────────────────────────────────────────────────

@router.patch("/{user_id}/role", response_model=UserAdminOut, dependencies=[Depends(invalidates_audit)])
async def update_role(
    user_id: str,
    body: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(require_permission("users.manage")),
):
    new_role = UserRole(body.role)
    target = await user_crud.get_user(db, user_id)
    if new_role != target.role:
        _check_not_self(actor, target, "change the role of")
    _check_can_manage(actor, target)
    if new_role != UserRole.USER and not can(actor.role.value, "users.manage_admins"):
        raise PermissionDeniedError("Only a super admin can grant admin roles")

    old_role = target.role.value
    target.role = new_role
    await log_audit(
        db, actor, type="user", action="UPDATE_USER_ROLE",
        item_name=target.username,
        details={"user_id": target.id, "from": old_role, "to": new_role.value},
    )
    await db.flush()
    return target


# ── Verification ─────────────────────────────────────────────

@router.post("/{user_id}/verify", response_model=UserAdminOut, dependencies=[Depends(invalidates_audit)])
async def verify_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(require_permission("users.manage")),
):
    target = await _load_target(db, actor, user_id)
    target.verified = True
    await log_audit(
        db, actor, type="user", action="VERIFY_USER",
        item_name=target.username, details={"user_id": target.id},
    )
    await db.flush()
    return target


@router.post("/{user_id}/unverify", response_model=UserAdminOut, dependencies=[Depends(invalidates_audit)])
async def unverify_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(require_permission("users.manage")),
):
    target = await _load_target(db, actor, user_id, self_action="unverify")
    target.verified = False
    await log_audit(
        db, actor, type="user", action="UNVERIFY_USER",
        item_name=target.username, details={"user_id": target.id},
    )
    await db.flush()
    return target


# ── Activation ───────────────────────────────────────────────

@router.post("/{user_id}/activate", response_model=UserAdminOut, dependencies=[Depends(invalidates_audit)])
async def activate_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(require_permission("users.manage")),
):
    target = await _load_target(db, actor, user_id)
    target.active = True
    target.marked_for_deletion = False
    target.deletion_requested_at = None
    await TokenRevocation.clear_user_revocation(target.id)
    await log_audit(
        db, actor, type="user", action="ACTIVATE_USER",
        item_name=target.username, details={"user_id": target.id},
    )
    await db.flush()
    return target


@router.post("/{user_id}/deactivate", response_model=UserAdminOut, dependencies=[Depends(invalidates_audit)])
async def deactivate_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(require_permission("users.manage")),
):
    target = await _load_target(db, actor, user_id, self_action="deactivate")
    target.active = False
    await TokenRevocation.revoke_all_user_tokens(target.id)
    await log_audit(
        db, actor, type="user", action="DEACTIVATE_USER",
        item_name=target.username, details={"user_id": target.id},
    )
    await db.flush()
    return target


# ── Deletion ─────────────────────────────────────────────────

@router.delete("/{user_id}", response_model=UserAdminOut, dependencies=[Depends(invalidates_audit)])
async def soft_delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(require_permission("users.manage")),
):
    target = await _load_target(db, actor, user_id, self_action="delete")
    await user_crud.soft_delete(db, target)
    await TokenRevocation.revoke_all_user_tokens(target.id)
    await log_audit(
        db, actor, type="user", action="DELETE_USER",
        item_name=target.username, details={"user_id": target.id, "permanent": False},
    )
    return target


@router.post("/{user_id}/purge", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(invalidates_audit)])
async def purge_user(
    user_id: str,
    body: PurgeRequest,
    db: AsyncSession = Depends(get_db),
    actor: User = Depends(require_permission("users.manage_admins")),
):
    target = await user_crud.get_user(db, user_id)
    _check_not_self(actor, target, "delete")
    expected = f"DELETE {target.username}"
    if body.confirmation.strip() != expected:
        raise ConfirmationMismatchError(expected)

    username, email = target.username, target.email
    await user_crud.purge(db, target)
    await TokenRevocation.revoke_all_user_tokens(user_id)
    await log_audit(
        db, actor, type="user", action="DELETE_USER",
        item_name=username, details={"user_id": user_id, "email": email, "permanent": True},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)

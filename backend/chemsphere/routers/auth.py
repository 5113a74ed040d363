"""Auth routes: register, password login, Google sign-in, refresh, logout.

Route overview:
  POST /register  self-registration (role `user`, awaits admin verification)
  POST /login     email + password login
  POST /google    Google ID token login; provisions the account on first use
  POST /refresh   exchange a refresh token for new access + refresh tokens
  GET  /me        current user profile, flags and effective permissions
  POST /logout    revoke the presented access token
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.deps import get_current_user
from chemsphere.auth.google import verify_google_id_token
from chemsphere.auth.jwt import create_access_token, create_refresh_token, decode_token
from chemsphere.auth.password import verify_password
from chemsphere.auth.permissions import resolve_permissions
from chemsphere.auth.revocation import TokenRevocation
from chemsphere.crud import users as user_crud
from chemsphere.database import get_db
from chemsphere.middleware.exceptions import ResourceNotFoundError
from chemsphere.models.user import User
from chemsphere.schemas.auth import (
    GoogleLoginRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserOut,
)
from chemsphere.services.store import invalidates_audit
from chemsphere.utils.audit import log_audit

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _build_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role.value,
        verified=user.verified,
        active=user.active,
        is_admin=user.is_admin,
        auth_provider=user.auth_provider,
        last_login=user.last_login,
        permissions=resolve_permissions(user.role.value),
    )


def _build_token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(
            user_id=user.id,
            role=user.role.value,
            permissions=resolve_permissions(user.role.value),
        ),
        refresh_token=create_refresh_token(user_id=user.id, role=user.role.value),
        user=_build_user_out(user),
    )


async def _complete_login(db: AsyncSession, user: User, method: str) -> TokenResponse:
    if not user.active:
        raise HTTPException(status_code=403, detail="Account deactivated")
    await user_crud.touch_last_login(db, user)
    await log_audit(
        db, user, type="auth", action="LOGIN",
        item_name=user.username, details={"method": method},
    )
    return _build_token_response(user)


# ── POST /register ──────────────────────────────────────────

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(invalidates_audit)])
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an unverified `user` account. The tokens let the client show
    the pending-verification screen; inventory stays locked until an admin
    verifies the account."""
    if await user_crud.get_user_by_email(db, body.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = await user_crud.create_user(
        db, email=body.email, username=body.username, password=body.password,
    )
    await log_audit(
        db, user, type="user", action="CREATE",
        item_name=user.username, details={"email": user.email, "method": "password"},
    )
    return _build_token_response(user)


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse, dependencies=[Depends(invalidates_audit)])
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Email + password login."""
    user = await user_crud.get_user_by_email(db, body.email)

    if not user or not user.hashed_password:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return await _complete_login(db, user, "password")


# ── POST /google ─────────────────────────────────────────────

@router.post("/google", response_model=TokenResponse, dependencies=[Depends(invalidates_audit)])
async def google_login(body: GoogleLoginRequest, db: AsyncSession = Depends(get_db)):
    """Sign in with a Google ID token; unknown emails get a new unverified
    account named after the Google profile."""
    claims = await verify_google_id_token(body.id_token)

    user = await user_crud.get_user_by_email(db, claims["email"])
    if not user:
        username = claims.get("name") or claims["email"].split("@")[0]
        user = await user_crud.create_user(
            db, email=claims["email"], username=username, auth_provider="google",
        )
        await log_audit(
            db, user, type="user", action="CREATE",
            item_name=user.username, details={"email": user.email, "method": "google"},
        )

    return await _complete_login(db, user, "google")


# ── POST /refresh ────────────────────────────────────────────

@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    """Exchange a refresh token for a new access + refresh token pair."""
    payload = decode_token(body.refresh_token)
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if await TokenRevocation.is_revoked(body.refresh_token):
        raise HTTPException(status_code=401, detail="Token has been revoked")

    user_id = payload.get("sub")
    if await TokenRevocation.is_user_revoked(user_id):
        raise HTTPException(status_code=401, detail="Session expired. Please log in again.")

    try:
        user = await user_crud.get_user(db, user_id)
    except ResourceNotFoundError:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    if not user.active:
        raise HTTPException(status_code=401, detail="User not found or inactive")

    # Role may have changed since the last token
    return _build_token_response(user)


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)):
    """Current profile; works for unverified accounts too."""
    return _build_user_out(user)


# ── POST /logout ─────────────────────────────────────────────

@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(invalidates_audit)])
async def logout(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the access token used for this request."""
    payload: dict = getattr(user, "_token_payload", {})
    token: str = getattr(user, "_token", "")
    await TokenRevocation.revoke_token(token, float(payload.get("exp", 0)))
    await log_audit(db, user, type="auth", action="LOGOUT", item_name=user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

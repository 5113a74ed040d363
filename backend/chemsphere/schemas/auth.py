from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserOut(BaseModel):
    id: str
    username: str
    email: str
    role: str
    verified: bool
    active: bool
    is_admin: bool
    auth_provider: str
    last_login: datetime | None
    permissions: list[str]

    model_config = {"from_attributes": True}


# ── Self-registration ───────────────────────────────────────

class RegisterRequest(BaseModel):
    """New accounts start as unverified `user` role."""
    email: EmailStr
    username: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=6)


# ── Login ────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class GoogleLoginRequest(BaseModel):
    """Google Identity Services ID token (the `credential` field)."""
    id_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut


# ── Token refresh ────────────────────────────────────────────

class RefreshRequest(BaseModel):
    refresh_token: str

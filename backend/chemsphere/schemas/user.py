"""Schemas for admin user management."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, field_validator


class UserAdminOut(BaseModel):
    id: str
    username: str
    email: str
    role: str
    verified: bool
    active: bool
    auth_provider: str
    last_login: datetime | None
    marked_for_deletion: bool
    deletion_requested_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("role", mode="before")
    @classmethod
    def _role_value(cls, v):
        return getattr(v, "value", v)


class RoleUpdate(BaseModel):
    role: Literal["user", "admin", "super_admin"]


class PurgeRequest(BaseModel):
    """Permanent deletion must be confirmed by typing `DELETE <username>`."""
    confirmation: str


class InactiveSweepResult(BaseModel):
    checked: int
    deactivated: int
    users_deactivated: list[str]

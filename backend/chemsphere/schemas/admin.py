"""Schemas for maintenance jobs (expiration digest, cache refresh)."""

from datetime import date

from pydantic import BaseModel


class ExpirationNotification(BaseModel):
    chemical_id: str
    chemical_name: str
    batch_number: str | None
    expiration_date: date
    days_until_expiry: int
    location: str | None
    current_quantity: float


class ExpirationCheckResult(BaseModel):
    success: bool
    processed: int
    notifications: list[ExpirationNotification]
    admin_count: int
    emails_sent: int = 0


class CacheRefreshResult(BaseModel):
    chemicals: int
    equipment: int
    usage_logs: int
    audit_logs: int

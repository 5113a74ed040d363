"""Expiration digest: email every admin the chemicals expiring soon.

Triggered daily by the scheduler, by POST /api/admin/check-expiration and
by `python -m chemsphere.cli check-expiration`. Only reads the database;
its one side effect is outbound email.
"""

import logging
from datetime import date, timedelta
from typing import Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.config import settings
from chemsphere.crud import users as user_crud
from chemsphere.models.chemical import Chemical
from chemsphere.schemas.admin import ExpirationCheckResult, ExpirationNotification
from chemsphere.services.mailer import send_email

logger = logging.getLogger(__name__)

Mailer = Callable[[str, str, str], Awaitable[bool]]


async def find_expiring(
    db: AsyncSession, today: date, days: int
) -> list[ExpirationNotification]:
    """Chemicals with today <= expiration_date <= today + days, soonest first."""
    result = await db.execute(
        select(Chemical)
        .where(
            Chemical.expiration_date >= today,
            Chemical.expiration_date <= today + timedelta(days=days),
        )
        .order_by(Chemical.expiration_date, Chemical.name)
    )
    return [
        ExpirationNotification(
            chemical_id=c.id,
            chemical_name=c.name,
            batch_number=c.batch_number,
            expiration_date=c.expiration_date,
            days_until_expiry=(c.expiration_date - today).days,
            location=c.location,
            current_quantity=c.current_quantity,
        )
        for c in result.scalars().all()
    ]


def render_digest(notifications: list[ExpirationNotification], today: date) -> str:
    lines = [
        f"Chemical expiration alert ({today.isoformat()})",
        "",
        f"{len(notifications)} chemical(s) expire within the next "
        f"{settings.expiration_warning_days} days:",
        "",
    ]
    for n in notifications:
        lines.extend([
            f"  {n.chemical_name} (batch {n.batch_number or '-'})",
            f"    Location: {n.location or '-'}",
            f"    Current quantity: {n.current_quantity:g}",
            f"    Expires: {n.expiration_date.isoformat()} ({n.days_until_expiry} days)",
            "",
        ])
    lines.append("Please take appropriate action.")
    return "\n".join(lines)


async def check_expiration(
    db: AsyncSession,
    today: date | None = None,
    mailer: Mailer = send_email,
) -> ExpirationCheckResult:
    today = today or date.today()
    notifications = await find_expiring(db, today, settings.expiration_warning_days)
    admins = await user_crud.list_notification_admins(db)
    logger.info(
        "Expiration check: %d chemicals nearing expiration, %d admins",
        len(notifications), len(admins),
    )

    sent = 0
    if notifications:
        subject = f"[ChemSphere] {len(notifications)} chemical(s) nearing expiration"
        body = render_digest(notifications, today)
        for admin in admins:
            try:
                if await mailer(admin.email, subject, body):
                    sent += 1
            except Exception:
                logger.exception("Failed to send expiration digest to %s", admin.email)

    return ExpirationCheckResult(
        success=True,
        processed=len(notifications),
        notifications=notifications,
        admin_count=len(admins),
        emails_sent=sent,
    )

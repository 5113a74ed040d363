"""Data access for user accounts."""

from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chemsphere.auth.password import hash_password
from chemsphere.middleware.exceptions import ResourceNotFoundError
from chemsphere.models.user import User, UserRole


async def get_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise ResourceNotFoundError("User", user_id)
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return list(result.scalars().all())


async def list_pending_verification(db: AsyncSession) -> list[User]:
    result = await db.execute(
        select(User)
        .where(User.verified == False, User.active == True)  # noqa: E712
        .order_by(User.created_at)
    )
    return list(result.scalars().all())


async def list_notification_admins(db: AsyncSession) -> list[User]:
    """Active, verified admins and super admins (expiration digest recipients)."""
    result = await db.execute(
        select(User).where(
            User.role.in_([UserRole.ADMIN, UserRole.SUPER_ADMIN]),
            User.active == True,  # noqa: E712
            User.verified == True,  # noqa: E712
        )
    )
    return list(result.scalars().all())


async def create_user(
    db: AsyncSession,
    *,
    email: str,
    username: str,
    password: str | None = None,
    role: UserRole = UserRole.USER,
    verified: bool = False,
    auth_provider: str = "password",
) -> User:
    user = User(
        email=email.strip().lower(),
        username=username,
        hashed_password=hash_password(password) if password else None,
        role=role,
        verified=verified,
        active=True,
        auth_provider=auth_provider,
    )
    db.add(user)
    await db.flush()
    return user


async def touch_last_login(db: AsyncSession, user: User) -> None:
    user.last_login = datetime.utcnow()
    await db.flush()


async def soft_delete(db: AsyncSession, user: User) -> User:
    """Deactivate and queue for permanent deletion."""
    user.active = False
    user.marked_for_deletion = True
    user.deletion_requested_at = datetime.utcnow()
    await db.flush()
    return user


async def purge(db: AsyncSession, user: User) -> None:
    await db.delete(user)
    await db.flush()


async def find_inactive(db: AsyncSession, older_than_days: int) -> list[User]:
    """Active, verified users whose last login is older than the cutoff.

    Accounts that never logged in are measured from their creation date.
    """
    cutoff = datetime.utcnow() - timedelta(days=older_than_days)
    last_seen = func.coalesce(User.last_login, User.created_at)
    result = await db.execute(
        select(User).where(
            User.active == True,  # noqa: E712
            User.verified == True,  # noqa: E712
            last_seen < cutoff,
        )
    )
    return list(result.scalars().all())

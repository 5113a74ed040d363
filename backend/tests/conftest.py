"""Pytest configuration and fixtures for ChemSphere tests.

Every test gets a fresh in-memory SQLite database (aiosqlite) that
replaces the `get_db` dependency, a fresh InventoryStore on `app.state`,
and a no-op token revocation layer so Redis is never contacted.
"""

from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from chemsphere.auth.jwt import create_access_token
from chemsphere.auth.permissions import resolve_permissions
from chemsphere.auth.revocation import TokenRevocation
from chemsphere.database import Base, get_db
from chemsphere.main import app
from chemsphere.models.chemical import Chemical
from chemsphere.models.equipment import Equipment
from chemsphere.models.user import User, UserRole
from chemsphere.auth.password import hash_password
from chemsphere.services.store import InventoryStore

import chemsphere.models  # noqa: F401  register tables on Base.metadata


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging data and checking results directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def store() -> InventoryStore:
    store = InventoryStore(audit_limit=500)
    app.state.store = store
    return store


@pytest_asyncio.fixture
async def client(session_factory, store) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the database dependency pointed at the test engine."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Redis ────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    """Token revocation backed by an in-process set instead of Redis."""
    revoked: set[str] = set()
    revoked_users: set[str] = set()

    async def revoke_token(token, expires_at):
        revoked.add(token)
        return True

    async def is_revoked(token):
        return token in revoked

    async def revoke_all_user_tokens(user_id, duration=86400):
        revoked_users.add(user_id)
        return True

    async def clear_user_revocation(user_id):
        revoked_users.discard(user_id)
        return True

    async def is_user_revoked(user_id):
        return user_id in revoked_users

    monkeypatch.setattr(TokenRevocation, "revoke_token", staticmethod(revoke_token))
    monkeypatch.setattr(TokenRevocation, "is_revoked", staticmethod(is_revoked))
    monkeypatch.setattr(TokenRevocation, "revoke_all_user_tokens", staticmethod(revoke_all_user_tokens))
    monkeypatch.setattr(TokenRevocation, "clear_user_revocation", staticmethod(clear_user_revocation))
    monkeypatch.setattr(TokenRevocation, "is_user_revoked", staticmethod(is_user_revoked))
    return revoked


# ── Test Data Fixtures ───────────────────────────────────────────

async def make_user(
    db: AsyncSession,
    *,
    email: str,
    username: str,
    role: UserRole = UserRole.USER,
    verified: bool = True,
    password: str = "testpassword123",
) -> User:
    user = User(
        email=email,
        username=username,
        hashed_password=hash_password(password),
        role=role,
        verified=verified,
        active=True,
    )
    db.add(user)
    await db.commit()
    return user


def token_for(user: User) -> str:
    return create_access_token(
        user_id=user.id,
        role=user.role.value,
        permissions=resolve_permissions(user.role.value),
    )


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, email="student@example.com", username="student")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, email="other@example.com", username="other")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(
        db_session, email="admin@example.com", username="admin", role=UserRole.ADMIN,
    )


@pytest_asyncio.fixture
async def super_admin(db_session: AsyncSession) -> User:
    return await make_user(
        db_session, email="root@example.com", username="root", role=UserRole.SUPER_ADMIN,
    )


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return headers_for(test_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return headers_for(admin_user)


@pytest.fixture
def super_headers(super_admin: User) -> dict:
    return headers_for(super_admin)


@pytest_asyncio.fixture
async def ethanol(db_session: AsyncSession) -> Chemical:
    chemical = Chemical(
        name="Ethanol",
        batch_number="ETH-001",
        brand="Sigma Aldrich",
        unit="bottle",
        volume_per_unit=500,
        initial_quantity=10,
        current_quantity=8,
        expiration_date=date(2030, 2, 15),
        safety_class="flammable",
        location="Cabinet A1",
        ghs_symbols=["Flame"],
    )
    db_session.add(chemical)
    await db_session.commit()
    return chemical


@pytest_asyncio.fixture
async def centrifuge(db_session: AsyncSession) -> Equipment:
    item = Equipment(
        name="Centrifuge",
        model="SpinFast 3000",
        serial_id="EQ-001",
        status="Available",
        location="Lab Room 2",
    )
    db_session.add(item)
    await db_session.commit()
    return item


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP endpoint tests")
    config.addinivalue_line("markers", "auth: Authentication tests")
    config.addinivalue_line("markers", "workflow: Usage logging workflow tests")

"""Pytest configuration and fixtures for CharterDesk tests.

Every test gets a fresh in-memory SQLite database with all tables created.
Redis and rate limiting are switched off through the environment before
the app is imported.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("DATABASE_URL_SYNC", "sqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import charterdesk.models  # noqa: F401
from charterdesk.auth.caller import Caller
from charterdesk.database import Base, get_db
from charterdesk.main import app
from charterdesk.models.company import Company
from charterdesk.models.organization import MemberRole, Organization
from charterdesk.models.user import User
from tests.factories import add_membership, headers_for, make_user


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLAlchemy emits BEGIN itself so SAVEPOINTs nest inside the transaction
    @event.listens_for(engine.sync_engine, "connect")
    def _no_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """One session shared by the test body and every request it makes."""
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Test client with the database dependency pointed at db_session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "test@example.com")


@pytest_asyncio.fixture
async def test_organization(db_session: AsyncSession, test_user: User) -> Organization:
    """Organization with test_user as its admin."""
    organization = Organization(name="Test Chartering")
    db_session.add(organization)
    await db_session.flush()
    await add_membership(db_session, test_user, organization, MemberRole.ADMIN)
    return organization


@pytest.fixture
def auth_headers(test_user: User, test_organization: Organization) -> dict:
    return headers_for(test_user, test_organization)


@pytest.fixture
def caller(test_user: User, test_organization: Organization) -> Caller:
    return Caller.for_member(test_user, test_organization.id, "admin")


@pytest_asyncio.fixture
async def charterer(db_session: AsyncSession) -> Company:
    company = Company(name="Atlas Energy Trading", company_type="operator", roles=["charterer"])
    db_session.add(company)
    await db_session.flush()
    return company


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> Company:
    company = Company(name="Nordic Tankers", company_type="shipping-company", roles=["owner"])
    db_session.add(company)
    await db_session.flush()
    return company


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "auth: Authentication and membership tests")
    config.addinivalue_line("markers", "audit: Field change and activity log tests")
    config.addinivalue_line("markers", "rollup: Fixture derived-field tests")
    config.addinivalue_line("markers", "tokens: Invitation and password reset tests")

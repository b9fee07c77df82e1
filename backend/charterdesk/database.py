"""Database engine, session factory, and declarative base.

All tables live in a single schema; organizations scope their trading
data through `organization_id` columns rather than separate schemas.

Session dependency for FastAPI:
  - get_db()  → one AsyncSession per request, committed on success,
                rolled back on any exception
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from charterdesk.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite (tests, local tinkering) doesn't accept pool sizing arguments
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug and settings.environment == "development",
    **_engine_kwargs(settings.database_url),
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Base class ──────────────────────────────────────────────

class Base(DeclarativeBase):
    """Declarative base for every CharterDesk table."""
    pass


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a session for the duration of one request."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

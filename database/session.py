"""
Async SQLAlchemy engine and session factory.

Both are built once by ``core.context.build_context`` and handed to the
flows through the auth context.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import Settings
from database.models import Base


def build_engine(settings: Settings) -> AsyncEngine:
    """Bound parameters (password hashes among them) are kept out of error messages."""
    if settings.database_url.startswith("sqlite"):
        return create_async_engine(settings.database_url, echo=False, hide_parameters=True)
    return create_async_engine(
        settings.database_url,
        echo=False,
        hide_parameters=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create missing tables. Development and tests only."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

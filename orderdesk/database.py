"""
Database Connection Module

Owns the SQLAlchemy async engine and session factory for one store.
A ``Database`` is constructed explicitly, opened once at startup and
closed at shutdown, so tests can run against isolated store instances.
"""

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


# Largest value an INTEGER column holds on every supported backend (signed 32-bit)
MAX_INTEGER = 2 ** 31 - 1


# Base class for all our models
class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Async engine plus session factory with an explicit lifecycle."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.is_sqlite = url.startswith("sqlite")

        engine_kwargs = {"echo": echo}
        if not self.is_sqlite:
            engine_kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True)

        self.engine = create_async_engine(url, **engine_kwargs)
        if self.is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        # Objects remain accessible after commit
        self.session_maker = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def init(self) -> None:
        """
        Create all tables in the store.
        Called once at application startup.
        """
        # Register the mapped classes on Base.metadata before create_all
        from orderdesk import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready")

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")

    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; leaving the block closes it."""
        async with self.session_maker() as session:
            yield session


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a session from the store attached to the running application.
    """
    database: Database = request.app.state.database
    async for session in database.session():
        yield session


# =============================================================================
# SESSION HELPERS
# =============================================================================

def fits_integer(value) -> bool:
    """True if ``value`` is an int the store can hold in an INTEGER column."""
    return isinstance(value, int) and not isinstance(value, bool) and -MAX_INTEGER - 1 <= value <= MAX_INTEGER


async def commit_or_rollback(session: AsyncSession) -> None:
    """Commit, or roll back and re-raise so the session stays usable."""
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise

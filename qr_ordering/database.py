"""
Database Connection Module
Handles the async SQLAlchemy engine (PostgreSQL via psycopg in deployment,
SQLite via aiosqlite for tests and local demos).
"""

import logging
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from qr_ordering.core.config import get_settings
from qr_ordering.core.exceptions import ConflictError

settings = get_settings()
logger = logging.getLogger(__name__)


def _engine_options() -> dict:
    if settings.is_sqlite:
        # SQLite connections are cheap; pooling them across event loops is not safe
        return {"poolclass": NullPool}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
    }


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_engine_options(),
)

if settings.is_sqlite:
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Session factory - creates new database sessions
async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # Objects remain accessible after commit
)


# Base class for all our models
class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def commit_or_conflict(db: AsyncSession, message: str) -> None:
    """
    Commit the session, turning integrity violations into ConflictError.

    Foreign keys and unique constraints are enforced by the database; this
    is where their failures become 409 responses.
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"{message}: {e.orig}")
        raise ConflictError(message)


async def init_db() -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register every mapped class on Base.metadata before create_all
    import qr_ordering.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db() -> None:
    """Drop all tables. Used by tests and the simulation reset."""
    import qr_ordering.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

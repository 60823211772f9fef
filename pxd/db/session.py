"""Database session management."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from pxd.core.config import settings
from pxd.core.logging import get_logger

logger = get_logger(__name__)


def get_database_url() -> str:
    """Get the database URL, ensuring the SQLite directory exists."""
    if settings.database_url:
        return settings.database_url

    data_path = settings.data_path
    if not data_path.exists():
        try:
            data_path.mkdir(parents=True, exist_ok=True)
        except OSError:
            # Fall back to local directory for development
            data_path = Path("./data")
            data_path.mkdir(parents=True, exist_ok=True)

    db_path = data_path / "pxd.db"
    return f"sqlite+aiosqlite:///{db_path}"


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable WAL mode and foreign key enforcement on each connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=30000")  # 30 second busy timeout
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine, installing the SQLite pragmas when relevant."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"timeout": 30})
    new_engine = create_async_engine(url, echo=settings.debug, future=True, **kwargs)
    if url.startswith("sqlite"):
        event.listen(new_engine.sync_engine, "connect", set_sqlite_pragma)
    return new_engine


engine = create_engine(get_database_url(), pool_pre_ping=True)


def get_engine() -> AsyncEngine:
    """Get the database engine."""
    return engine


# Create async session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def init_db(target: AsyncEngine | None = None) -> None:
    """Create the tags and links tables if they do not exist."""
    from pxd.db.base import Base
    from pxd.db import models  # noqa: F401

    target = target or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", url=str(target.url))


async def cleanup_db(target: AsyncEngine | None = None) -> None:
    """Dispose of pooled connections."""
    await (target or engine).dispose()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    Yields:
        An async database session.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

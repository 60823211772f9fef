"""Database package for pxd."""

from pxd.db.base import Base
from pxd.db.session import async_session_maker, cleanup_db, engine, get_db, init_db

__all__ = [
    "Base",
    "async_session_maker",
    "cleanup_db",
    "engine",
    "get_db",
    "init_db",
]

"""Database package: shared engine and session factory."""

from sketchsite.db.base import Base, close_db, get_session_factory, init_db, make_engine, make_session_factory

__all__ = [
    "Base",
    "close_db",
    "get_session_factory",
    "init_db",
    "make_engine",
    "make_session_factory",
]

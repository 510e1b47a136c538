"""Database layer."""
from db.base import Base, async_session_factory, engine
from db.migrations import init_db
from db.users import User, UserRow  # noqa: F401 - for metadata

__all__ = [
    "Base",
    "User",
    "UserRow",
    "async_session_factory",
    "engine",
    "init_db",
]

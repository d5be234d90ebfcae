"""Database utilities and session management."""

from chefcopilot.db.base import Base, TimestampMixin
from chefcopilot.db.deps import DBSession, get_db, get_db_override
from chefcopilot.db.session import (
    AsyncSessionLocal,
    check_db_health,
    close_db,
    engine,
    get_session,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    # Session management
    "engine",
    "AsyncSessionLocal",
    "get_session",
    "close_db",
    "check_db_health",
    # Dependencies
    "get_db",
    "DBSession",
    "get_db_override",
]

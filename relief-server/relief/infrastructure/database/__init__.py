"""Database infrastructure helpers (engine, sessions, migrations)."""

from .base import Base
from .session import get_session_factory, init_db, session_scope

__all__ = ["Base", "get_session_factory", "init_db", "session_scope"]

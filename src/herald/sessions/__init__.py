"""Sessions: signed id cookie, server-side state in a pluggable store."""

from herald.sessions.middleware import Session, SessionConfig, SessionMiddleware, get_session
from herald.sessions.store import MemorySessionStore, MongoSessionStore, SessionStore

__all__ = [
    "MemorySessionStore",
    "MongoSessionStore",
    "Session",
    "SessionConfig",
    "SessionMiddleware",
    "SessionStore",
    "get_session",
]

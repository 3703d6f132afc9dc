"""Session stores: server-side persistence for session state.

The middleware only depends on the ``SessionStore`` protocol. Two
implementations ship here:

- ``MongoSessionStore``: durable, one document per session in MongoDB
  (motor), addressed by the ``db`` connection string.
- ``MemorySessionStore``: process-local dict, for tests and development.
"""

import logging
import time
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

logger = logging.getLogger("herald.sessions")


class SessionStore(Protocol):
    """Contract between the session middleware and a backend."""

    async def load(self, session_id: str) -> dict[str, Any] | None:
        """Return the stored state, or ``None`` if unknown or expired."""
        ...

    async def save(self, session_id: str, data: dict[str, Any], max_age: int) -> None:
        """Persist *data*, expiring after *max_age* seconds."""
        ...

    async def destroy(self, session_id: str) -> None:
        """Forget the session. Unknown ids are ignored."""
        ...


class MemorySessionStore:
    """In-process session store. Not shared across workers."""

    __slots__ = ("_clock", "_sessions")

    def __init__(self, clock: Any = time.monotonic) -> None:
        self._sessions: dict[str, tuple[float, dict[str, Any]]] = {}
        self._clock = clock

    async def load(self, session_id: str) -> dict[str, Any] | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        expires_at, data = entry
        if self._clock() >= expires_at:
            del self._sessions[session_id]
            return None
        return dict(data)

    async def save(self, session_id: str, data: dict[str, Any], max_age: int) -> None:
        self._sessions[session_id] = (self._clock() + max_age, dict(data))

    async def destroy(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions


class MongoSessionStore:
    """Durable session store backed by a MongoDB collection.

    Documents look like ``{"_id": sid, "session": {...}, "expires": datetime}``.
    A TTL index on ``expires`` lets MongoDB purge stale sessions; expiry is
    also checked on load so a lagging TTL monitor never resurrects one.
    """

    __slots__ = ("_client", "_collection", "_indexed")

    def __init__(self, url: str, *, collection: str = "sessions") -> None:
        from motor.motor_asyncio import AsyncIOMotorClient

        self._client = AsyncIOMotorClient(url)
        database = self._client.get_default_database(default="herald")
        self._collection = database[collection]
        self._indexed = False

    async def _ensure_index(self) -> None:
        if not self._indexed:
            await self._collection.create_index("expires", expireAfterSeconds=0)
            self._indexed = True
            logger.debug("Ensured TTL index on %s.expires", self._collection.name)

    async def load(self, session_id: str) -> dict[str, Any] | None:
        doc = await self._collection.find_one({"_id": session_id})
        if doc is None:
            return None
        expires = doc.get("expires")
        if expires is not None:
            if expires.tzinfo is None:
                expires = expires.replace(tzinfo=UTC)
            if expires <= datetime.now(UTC):
                return None
        return dict(doc.get("session") or {})

    async def save(self, session_id: str, data: dict[str, Any], max_age: int) -> None:
        await self._ensure_index()
        expires = datetime.now(UTC) + timedelta(seconds=max_age)
        await self._collection.replace_one(
            {"_id": session_id},
            {"_id": session_id, "session": data, "expires": expires},
            upsert=True,
        )

    async def destroy(self, session_id: str) -> None:
        await self._collection.delete_one({"_id": session_id})

    def close(self) -> None:
        self._client.close()

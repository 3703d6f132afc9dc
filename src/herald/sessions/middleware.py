"""Session middleware: server-side sessions with a signed id cookie.

The cookie carries only the session id, signed with ``itsdangerous`` so
a forged id is rejected before the store is consulted. The state lives in
a ``SessionStore``. The session object is stored in a ContextVar,
accessible via ``get_session()`` from any controller or middleware.

Persistence rules:

- a brand-new session is saved even if nothing was written to it
- an existing session is saved only when modified
- the cookie is ``Secure``, so it is only emitted over https (a fronting
  proxy's ``X-Forwarded-Proto`` is trusted when ``trust_proxy`` is on)
"""

import logging
import secrets
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, Signer

from herald.errors import ConfigurationError
from herald.http.request import Request
from herald.http.response import Response
from herald.middleware.protocol import Next
from herald.sessions.store import SessionStore

logger = logging.getLogger("herald.sessions")


class Session(dict[str, Any]):
    """Session state with change tracking."""

    __slots__ = ("id", "is_new", "modified")

    def __init__(self, session_id: str, data: dict[str, Any] | None = None, *, is_new: bool) -> None:
        super().__init__(data or {})
        self.id = session_id
        self.is_new = is_new
        self.modified = False

    def __setitem__(self, key: str, value: Any) -> None:
        self.modified = True
        super().__setitem__(key, value)

    def __delitem__(self, key: str) -> None:
        self.modified = True
        super().__delitem__(key)

    def clear(self) -> None:
        self.modified = True
        super().clear()

    def pop(self, key: str, *default: Any) -> Any:
        self.modified = True
        return super().pop(key, *default)

    def setdefault(self, key: str, default: Any = None) -> Any:
        if key not in self:
            self.modified = True
        return super().setdefault(key, default)

    def update(self, *args: Any, **kwargs: Any) -> None:
        self.modified = True
        super().update(*args, **kwargs)


# -- Session ContextVar --

_session_var: ContextVar[Session | None] = ContextVar("herald_session", default=None)


def get_session() -> Session:
    """Return the current session.

    Raises ``LookupError`` if called outside a request with
    ``SessionMiddleware`` active.
    """
    session = _session_var.get()
    if session is None:
        msg = (
            "No active session. Ensure SessionMiddleware is part of the "
            "transport before accessing the session."
        )
        raise LookupError(msg)
    return session


# -- Configuration --


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` is required; it signs the session id cookie.
    """

    secret_key: str
    cookie_name: str = "herald.sid"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    domain: str | None = None
    secure: bool = True
    httponly: bool = True
    samesite: str = "lax"
    trust_proxy: bool = True


# -- Middleware --


class SessionMiddleware:
    """Load the session before the pipeline runs, persist it afterwards.

    Usage::

        middleware = SessionMiddleware(
            SessionConfig(secret_key="my-secret-key"),
            store=MongoSessionStore("mongodb://localhost/app"),
        )

        # In a controller:
        session = get_session()
        session["visits"] = session.get("visits", 0) + 1
    """

    __slots__ = ("_config", "_signer", "_store")

    def __init__(self, config: SessionConfig, store: SessionStore) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)

        self._config = config
        self._store = store
        self._signer = Signer(config.secret_key, salt="herald.session")

    @property
    def store(self) -> SessionStore:
        return self._store

    def _unsign(self, cookie_value: str) -> str | None:
        try:
            return self._signer.unsign(cookie_value).decode("utf-8")
        except BadSignature:
            logger.debug("Rejected session cookie with a bad signature")
            return None

    async def _load_session(self, request: Request) -> Session:
        """Resolve the cookie to stored state, or start a fresh session."""
        cookie_value = request.cookies.get(self._config.cookie_name)
        if cookie_value:
            session_id = self._unsign(cookie_value)
            if session_id is not None:
                data = await self._store.load(session_id)
                if data is not None:
                    return Session(session_id, data, is_new=False)
        return Session(secrets.token_urlsafe(24), is_new=True)

    def _set_cookie(self, response: Response, session: Session) -> Response:
        cfg = self._config
        value = self._signer.sign(session.id).decode("utf-8")
        return response.with_cookie(
            name=cfg.cookie_name,
            value=value,
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        """Load session, dispatch, then persist and set the cookie."""
        session = await self._load_session(request)
        token = _session_var.set(session)

        try:
            response = await next(request)
        finally:
            _session_var.reset(token)

        if session.is_new or session.modified:
            await self._store.save(session.id, dict(session), self._config.max_age)

        # Secure cookies are never sent over plain http
        if self._config.secure and not request.is_secure(trust_proxy=self._config.trust_proxy):
            return response
        if session.is_new or session.modified:
            return self._set_cookie(response, session)
        return response

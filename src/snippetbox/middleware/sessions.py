"""Session middleware: server-side sessions keyed by a signed cookie token.

The cookie carries only an opaque random token, signed and timestamped
with ``itsdangerous``. Session data lives in a ``SessionStore``
(``MemoryStore`` or ``DatabaseStore``). A missing, tampered, expired or
unknown token yields a fresh empty session; it is never an error.

The loaded ``Session`` is put on ``request.state.session`` so every later
middleware and the handler see the same instance. After the handler
returns, changes are committed to the store and the cookie is refreshed.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass
from time import time
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from snippetbox.errors import ConfigurationError
from snippetbox.http.request import Request
from snippetbox.http.response import Response
from snippetbox.middleware.protocol import Next
from snippetbox.middleware.session_stores import SessionStore

logger = logging.getLogger("snippetbox.security")


class Session(MutableMapping[str, Any]):
    """Session data for one request, with change tracking.

    Behaves like a dict. Writes mark the session modified so it is
    committed on the way out. ``renew_token()`` keeps the data but moves
    it to a fresh token (call it on login and logout to prevent session
    fixation). ``destroy()`` drops the data and the cookie.
    """

    __slots__ = ("_data", "_destroyed", "_modified", "_previous_token", "_token")

    def __init__(self, token: str | None = None, data: dict[str, Any] | None = None) -> None:
        self._token = token
        self._data: dict[str, Any] = dict(data or {})
        self._modified = False
        self._destroyed = False
        self._previous_token: str | None = None

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def previous_token(self) -> str | None:
        """The token abandoned by ``renew_token()``, if any."""
        return self._previous_token

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._modified = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._modified = True

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Session(keys={sorted(self._data)!r}, modified={self._modified})"

    def get_int(self, key: str) -> int:
        """Integer value for *key*, or 0 when missing or not an int."""
        value = self._data.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return 0

    def pop_string(self, key: str) -> str:
        """Remove *key* and return it if it was a string, else ``""``."""
        value = self.pop(key, "")
        return value if isinstance(value, str) else ""

    def renew_token(self) -> None:
        if self._previous_token is None:
            self._previous_token = self._token
        self._token = None
        self._modified = True

    def destroy(self) -> None:
        self._data.clear()
        self._destroyed = True
        self._modified = True

    def _bind(self, token: str) -> None:
        self._token = token


def _uncacheable(response: Response) -> Response:
    directive = 'no-cache="Set-Cookie"'
    existing = response.header("Cache-Control")
    cache_control = f"{existing}, {directive}" if existing else directive
    return response.with_header("Vary", "Cookie").replacing_headers({"Cache-Control": cache_control})


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` signs the cookie token and is required.
    """

    secret_key: str
    cookie_name: str = "session"
    lifetime: int = 12 * 60 * 60
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


class SessionMiddleware:
    """Load the session before the rest of the chain, save it after.

    Usage::

        sessions = SessionMiddleware(SessionConfig(secret_key="..."), MemoryStore())
        dynamic = Chain(sessions, CSRFMiddleware(), Authenticator(users.exists))
    """

    __slots__ = ("_config", "_serializer", "_store")

    def __init__(self, config: SessionConfig, store: SessionStore) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._store = store
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="session-token")

    @property
    def store(self) -> SessionStore:
        return self._store

    def _read_token(self, request: Request) -> str | None:
        cookie_value = request.cookies.get(self._config.cookie_name)
        if not cookie_value:
            return None
        try:
            token = self._serializer.loads(cookie_value, max_age=self._config.lifetime)
        except BadSignature:
            logger.debug("discarding invalid session cookie from %s", request.remote_addr)
            return None
        return token if isinstance(token, str) else None

    async def load(self, request: Request) -> Session:
        token = self._read_token(request)
        if token is None:
            return Session()
        data = await self._store.find(token)
        if data is None:
            return Session()
        return Session(token, data)

    async def commit(self, session: Session, response: Response) -> Response:
        """Persist *session* and attach the matching cookie to *response*."""
        cfg = self._config

        if session.destroyed:
            for token in {session.token, session.previous_token} - {None}:
                await self._store.delete(token)
            return _uncacheable(response.without_cookie(cfg.cookie_name, path=cfg.path))

        if not session.modified:
            return response

        if session.previous_token is not None:
            await self._store.delete(session.previous_token)
        if session.token is None:
            session._bind(secrets.token_urlsafe(32))

        token = session.token
        assert token is not None
        await self._store.commit(token, dict(session), time() + cfg.lifetime)

        response = response.with_cookie(
            name=cfg.cookie_name,
            value=self._serializer.dumps(token),
            max_age=cfg.lifetime,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )
        return _uncacheable(response)

    async def __call__(self, request: Request, next: Next) -> Response:
        session = await self.load(request)
        request.state.session = session
        response = await next(request)
        return await self.commit(session, response)

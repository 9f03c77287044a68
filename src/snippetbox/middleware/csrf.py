"""CSRF protection middleware: token-based, session-backed.

Keeps one random token per session and exposes it on
``request.state.csrf_token`` for templates. On state-changing requests
(POST, PUT, PATCH, DELETE) the submitted token must match, or the
request is rejected with 400 before it reaches the handler.

Requires ``SessionMiddleware`` earlier in the same chain.

Templates::

    <form action='/snippet/create' method='POST' novalidate>
        <input type='hidden' name='csrf_token' value='{{ csrf_token }}'>
        ...
    </form>
"""

import logging
import secrets
from dataclasses import dataclass

from snippetbox.errors import BadRequest, ConfigurationError, UnsupportedMediaType
from snippetbox.http.request import Request
from snippetbox.http.response import Response
from snippetbox.middleware.protocol import Next

logger = logging.getLogger("snippetbox.security")

# Methods that mutate state and need CSRF protection
_UNSAFE_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True, slots=True)
class CSRFConfig:
    """CSRF middleware configuration.

    Attributes:
        field_name: Form field name for the token.
        header_name: HTTP header checked before the form body.
        session_key: Key used to store the token in the session.
        token_length: Random bytes per token (hex-encoded, so twice as many chars).
    """

    field_name: str = "csrf_token"
    header_name: str = "X-CSRF-Token"
    session_key: str = "csrf_token"
    token_length: int = 32


class CSRFMiddleware:
    __slots__ = ("_config",)

    def __init__(self, config: CSRFConfig | None = None) -> None:
        self._config = config or CSRFConfig()

    @property
    def config(self) -> CSRFConfig:
        return self._config

    async def __call__(self, request: Request, next: Next) -> Response:
        session = request.state.session
        if session is None:
            msg = "CSRFMiddleware requires SessionMiddleware earlier in the chain."
            raise ConfigurationError(msg)

        cfg = self._config
        token = session.get(cfg.session_key)
        if not isinstance(token, str) or not token:
            token = secrets.token_hex(cfg.token_length)
            session[cfg.session_key] = token
        request.state.csrf_token = token

        if request.method in _UNSAFE_METHODS:
            submitted = await _submitted_token(request, cfg)
            if submitted is None:
                logger.warning("csrf token missing: %s %s from %s", request.method, request.path, request.remote_addr)
                raise BadRequest("CSRF token missing")
            if not secrets.compare_digest(submitted.encode("utf-8"), token.encode("utf-8")):
                logger.warning("csrf token invalid: %s %s from %s", request.method, request.path, request.remote_addr)
                raise BadRequest("CSRF token invalid")

        return await next(request)


async def _submitted_token(request: Request, config: CSRFConfig) -> str | None:
    """The token from the header, else from a form-encoded body."""
    submitted = request.headers.get(config.header_name)
    if submitted is not None:
        return submitted

    ct = request.content_type or ""
    if "form" not in ct:
        return None
    try:
        form = await request.form()
    except UnsupportedMediaType:
        return None
    return form.get(config.field_name)

"""HTTP request and its per-request state bag.

The request itself is frozen: method, path, headers and cookies are
received data that doesn't change. Facts discovered while the request
moves through the middleware chain (the session, the CSRF token, who
the user is) live on ``request.state``, a mutable ``RequestState``
created fresh for every request and passed along by reference.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from snippetbox._internal.asgi import Receive
from snippetbox.http.cookies import parse_cookies
from snippetbox.http.headers import Headers

if TYPE_CHECKING:
    from snippetbox.http.forms import FormData
    from snippetbox.middleware.sessions import Session


@dataclass(slots=True)
class RequestState:
    """Mutable facts attached to one request.

    Attributes:
        session: Set by the session middleware on dynamic routes.
        csrf_token: The session-bound token, set by the CSRF guard.
        authenticated: Set by the authentication enricher.
        user_id: The verified user id when ``authenticated`` is true.
        response_headers: Headers the response finaliser stamps onto
            whatever response leaves the app, overriding handler values.
    """

    session: Session | None = None
    csrf_token: str | None = None
    authenticated: bool = False
    user_id: int | None = None
    response_headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request with a mutable state bag.

    Body is read asynchronously via ``.body()`` or ``.form()`` and cached,
    so middleware (the CSRF guard) and the handler can both read the form.
    The router hands handlers a copy with ``path_params`` filled in; the
    copy shares ``state`` and the body cache with the original.
    """

    method: str
    path: str
    headers: Headers
    query_string: bytes
    http_version: str
    client: tuple[str, int] | None
    cookies: Mapping[str, str]
    path_params: dict[str, str] = field(default_factory=dict)
    state: RequestState = field(default_factory=RequestState, compare=False)

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: body and parsed-form cache (contents mutable, field frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string, as the client sent it."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    @property
    def protocol(self) -> str:
        return f"HTTP/{self.http_version}"

    @property
    def remote_addr(self) -> str:
        if self.client is None:
            return "-"
        host, port = self.client
        return f"{host}:{port}"

    @property
    def session(self) -> Session:
        """The session loaded by the session middleware.

        Raises ``LookupError`` on routes outside the dynamic chain.
        """
        if self.state.session is None:
            msg = "No session on this request. Is the route on the dynamic chain?"
            raise LookupError(msg)
        return self.state.session

    # -- Async body access --

    async def body(self) -> bytes:
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        if self._receive is None:
            return
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def form(self) -> FormData:
        """Parse the body as URL-encoded form data (cached).

        Raises:
            UnsupportedMediaType: The body is not form-encoded.
        """
        if "_form" in self._cache:
            return self._cache["_form"]

        from snippetbox.http.forms import parse_form_data

        ct = self.content_type or "application/x-www-form-urlencoded"
        result = parse_form_data(await self.body(), ct)
        self._cache["_form"] = result
        return result

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=headers,
            query_string=scope.get("query_string", b""),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            cookies=parse_cookies(headers.get("cookie", "")),
            _receive=receive,
        )

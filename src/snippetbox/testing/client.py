"""Async test client for snippetbox applications.

Drives the ASGI app in-process and returns the same ``Response`` type
the app produces. Cookies set by the app are kept in a jar and sent back
on later requests, so a test can log in and then use protected pages::

    async with TestClient(app) as client:
        page = await client.get("/user/login")
        token = extract_csrf_token(page.text)
        await client.post("/user/login", form={"email": ..., "password": ..., "csrf_token": token})
        response = await client.get("/snippet/create")
        assert response.status == 200
"""

from __future__ import annotations

import inspect
import re
from typing import Any
from urllib.parse import urlencode

from snippetbox.app import App
from snippetbox.http.response import Response

_CSRF_INPUT_RE = re.compile(r"<input type='hidden' name='csrf_token' value='([^']+)'>")


def extract_csrf_token(html: str) -> str:
    """The CSRF token from the first form in *html*.

    Raises:
        AssertionError: The page has no token field.
    """
    match = _CSRF_INPUT_RE.search(html)
    assert match is not None, f"no csrf_token field in page: {html[:300]}"
    return match.group(1)


class TestClient:
    """Async test client with a cookie jar.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
    """

    __test__ = False  # not a test class

    __slots__ = ("app", "client_addr", "cookies")

    def __init__(self, app: App, *, client_addr: tuple[str, int] = ("127.0.0.1", 54321)) -> None:
        self.app = app
        self.client_addr = client_addr
        self.cookies: dict[str, str] = {}

    async def __aenter__(self) -> TestClient:
        self.app._ensure_frozen()
        for hook in self.app._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result
        return self

    async def __aexit__(self, *args: object) -> None:
        for hook in self.app._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("GET", path, headers=headers)

    async def head(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("HEAD", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        form: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send a POST; *form* is sent URL-encoded, like a browser form."""
        merged = dict(headers or {})
        if form is not None:
            body = urlencode(form).encode("utf-8")
            merged.setdefault("content-type", "application/x-www-form-urlencoded")
        return await self.request("POST", path, headers=merged, body=body)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send an arbitrary request through the ASGI app."""
        path_part, _, query_string = path.partition("?")

        raw_headers: list[tuple[bytes, bytes]] = [(b"host", b"testserver")]
        if self.cookies:
            cookie_header = "; ".join(f"{k}={v}" for k, v in self.cookies.items())
            raw_headers.append((b"cookie", cookie_header.encode("latin-1")))
        for name, value in (headers or {}).items():
            raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "path": path_part,
            "raw_path": path_part.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": raw_headers,
            "server": ("testserver", 80),
            "client": self.client_addr,
        }

        request_body = body or b""
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        status = 200
        response_headers: list[tuple[bytes, bytes]] = []
        body_parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal status, response_headers
            if message["type"] == "http.response.start":
                status = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                body_parts.append(message.get("body", b""))

        await self.app(scope, receive, send)

        content_type = "text/html; charset=utf-8"
        extra_headers: list[tuple[str, str]] = []
        for name_b, value_b in response_headers:
            name = name_b.decode("latin-1")
            value = value_b.decode("latin-1")
            if name == "content-type":
                content_type = value
                continue
            if name == "set-cookie":
                self._store_cookie(value)
            extra_headers.append((name, value))

        return Response(
            body=b"".join(body_parts),
            status=status,
            content_type=content_type,
            headers=tuple(extra_headers),
        )

    def _store_cookie(self, header_value: str) -> None:
        pair, *attributes = header_value.split(";")
        name, _, value = pair.strip().partition("=")
        expired = any(attr.strip().lower() == "max-age=0" for attr in attributes)
        if expired or not value:
            self.cookies.pop(name, None)
        else:
            self.cookies[name] = value

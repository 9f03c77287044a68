"""Middleware protocol and the Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. Pre-logic runs before ``await next(request)``,
post-logic after it; returning without calling ``next`` ends the chain.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from snippetbox.http.request import Request
from snippetbox.http.response import Response

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for snippetbox middleware.

    Accepts both functions and callable objects::

        async def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = await next(request)
            return response.with_header("X-Time", f"{time.monotonic() - start:.3f}")

        class Authenticator:
            async def __call__(self, request: Request, next: Next) -> Response: ...
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...

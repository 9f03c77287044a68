"""Middleware chains: ordered, immutable, composable.

A chain is a tuple of middleware. ``then()`` wraps an endpoint so that::

    Chain(a, b).then(h)

runs ``a``'s pre-logic, ``b``'s pre-logic, ``h``, then ``b``'s and ``a``'s
post-logic. ``append()`` returns a new chain; the original is untouched,
so a protected chain built from the dynamic one can never drift from it::

    dynamic = Chain(sessions, csrf, authenticate)
    protected = dynamic.append(require_authentication)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass

from snippetbox.http.request import Request
from snippetbox.http.response import Response
from snippetbox.middleware.protocol import Middleware, Next

# A fully composed request handler
type Endpoint = Callable[[Request], Awaitable[Response]]


def _link(middleware: Middleware, next: Next) -> Endpoint:
    async def linked(request: Request) -> Response:
        return await middleware(request, next)

    return linked


@dataclass(frozen=True, slots=True)
class Chain:
    """An immutable, ordered sequence of middleware."""

    middleware: tuple[Middleware, ...] = ()

    def __init__(self, *middleware: Middleware) -> None:
        object.__setattr__(self, "middleware", middleware)

    def append(self, *middleware: Middleware) -> Chain:
        """Return a new chain with *middleware* added after the existing ones."""
        return Chain(*self.middleware, *middleware)

    def extend(self, other: Chain) -> Chain:
        """Return a new chain running this chain's middleware, then *other*'s."""
        return Chain(*self.middleware, *other.middleware)

    def then(self, endpoint: Endpoint) -> Endpoint:
        """Wrap *endpoint* so each middleware runs around it, first one outermost."""
        handler = endpoint
        for middleware in reversed(self.middleware):
            handler = _link(middleware, handler)
        return handler

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self.middleware)

    def __len__(self) -> int:
        return len(self.middleware)

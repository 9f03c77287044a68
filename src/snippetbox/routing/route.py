"""Route and RouteMatch frozen dataclasses."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from snippetbox.http.request import Request
    from snippetbox.http.response import Response
    from snippetbox.routing.chain import Chain


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/snippet``  (is_param=False)
    Param:   ``/{id}``     (is_param=True, param_name="id")
    Typed:   ``/{filepath:path}`` (is_param=True, param_type="path")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route entry.

    ``handler`` is the terminal handler as registered. ``endpoint`` is
    the same handler wrapped in ``chain``, which is what the router
    dispatches to.
    """

    path: str
    methods: frozenset[str]
    handler: Callable[..., Any]
    endpoint: Callable[[Request], Awaitable[Response]]
    chain: Chain
    name: str | None = None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]

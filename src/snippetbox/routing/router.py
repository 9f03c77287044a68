"""Compiled router with trie-based path matching.

Routes are added during setup and the router is compiled (frozen) when
the app freezes. After that the table is read-only and shared by every
concurrent request.

Dispatch policy:

- no pattern matches the path → ``NotFound`` (404)
- a pattern matches but not for this method → ``MethodNotAllowed``
  (405, with an ``Allow`` header)
- ``HEAD`` is answered by the ``GET`` route when no ``HEAD`` route exists
"""

import re
from dataclasses import dataclass, field

from snippetbox.errors import ConfigurationError, MethodNotAllowed, NotFound
from snippetbox.routing.params import CONVERTERS
from snippetbox.routing.route import PathSegment, Route, RouteMatch


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/about"                -> [PathSegment("about")]
        "/snippet/view/{id}"    -> [..., PathSegment("{id}", is_param=True, param_name="id")]
        "/static/{filepath:path}" -> [..., PathSegment(..., param_type="path")]
    """
    if not path.startswith("/"):
        msg = f"Route path must start with '/': {path!r}"
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            param_name, _, param_type = inner.partition(":")
            param_type = param_type or "str"
            if not param_name or param_type not in CONVERTERS:
                msg = f"Invalid path parameter {part!r} in {path!r}"
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("catch_all", "children", "param_child", "routes_by_method")

    def __init__(self) -> None:
        self.children: dict[str, _TrieNode] = {}
        # Only one parameter pattern per level
        self.param_child: _ParamEdge | None = None
        self.catch_all: _CatchAllEdge | None = None
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    param_name: str
    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """Consumes the rest of the path."""

    param_name: str
    node: _TrieNode = field(default_factory=_TrieNode)


def _register(node: _TrieNode, route: Route) -> None:
    for method in route.methods:
        existing = node.routes_by_method.get(method)
        if existing is not None:
            msg = (
                f"Route conflict: {method} {route.path!r} is already "
                f"registered by {existing.path!r}"
            )
            raise ConfigurationError(msg)
        node.routes_by_method[method] = route


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add(route)
        router.compile()
        match = router.match("GET", "/snippet/view/1")
    """

    __slots__ = ("_compiled", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route. Must be called before ``compile()``."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        node = self._root
        for seg in parse_path(route.path):
            if seg.is_param and seg.param_type == "path":
                if node.catch_all is None:
                    node.catch_all = _CatchAllEdge(param_name=seg.param_name or "path")
                elif node.catch_all.param_name != seg.param_name:
                    msg = f"Conflicting catch-all names at {route.path!r}"
                    raise ConfigurationError(msg)
                _register(node.catch_all.node, route)
                return

            if seg.is_param:
                edge = node.param_child
                if edge is None:
                    pattern, _ = CONVERTERS[seg.param_type]
                    edge = _ParamEdge(
                        param_name=seg.param_name or "",
                        param_type=seg.param_type,
                        regex=re.compile(f"^{pattern}$"),
                        node=_TrieNode(),
                    )
                    node.param_child = edge
                elif (edge.param_name, edge.param_type) != (seg.param_name, seg.param_type):
                    msg = (
                        f"Conflicting path parameter {seg.value!r} in {route.path!r}; "
                        f"this position already uses {{{edge.param_name}:{edge.param_type}}}"
                    )
                    raise ConfigurationError(msg)
                node = edge.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        _register(node, route)

    @property
    def routes(self) -> list[Route]:
        """Every registered route, each listed once."""
        seen: set[int] = set()
        result: list[Route] = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            for route in node.routes_by_method.values():
                if id(route) not in seen:
                    seen.add(id(route))
                    result.append(route)
            stack.extend(node.children.values())
            if node.param_child is not None:
                stack.append(node.param_child.node)
            if node.catch_all is not None:
                stack.append(node.catch_all.node)
        return result

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request method and path against the compiled routes.

        Raises ``NotFound`` if no route matches the path and
        ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        if path.endswith("/") and parts:
            # "/snippet/view/" is not "/snippet/view"
            parts.append("")

        result = self._match_node(self._root, parts, 0, {})
        if result is None:
            raise NotFound(f"No route matches {method} {path!r}")

        node, params = result
        routes = node.routes_by_method
        if method in routes:
            return RouteMatch(route=routes[method], path_params=params)
        if method == "HEAD" and "GET" in routes:
            return RouteMatch(route=routes["GET"], path_params=params)

        allowed = set(routes)
        if "GET" in allowed:
            allowed.add("HEAD")
        raise MethodNotAllowed(frozenset(allowed))

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> tuple[_TrieNode, dict[str, str]] | None:
        """Recursively match path parts; static beats param beats catch-all."""
        if index == len(parts):
            if node.routes_by_method:
                return node, params
            return None

        part = parts[index]

        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, params)
            if result is not None:
                return result

        edge = node.param_child
        if edge is not None and edge.regex.match(part):
            result = self._match_node(edge.node, parts, index + 1, {**params, edge.param_name: part})
            if result is not None:
                return result

        if node.catch_all is not None:
            remaining = "/".join(parts[index:])
            if remaining:
                return node.catch_all.node, {**params, node.catch_all.param_name: remaining}

        return None

"""Routing: middleware chains and a compiled route table.

Routes are registered during setup, wrapped in their chain, and compiled
into an immutable trie when the app freezes.
"""

from snippetbox.routing.chain import Chain
from snippetbox.routing.route import Route, RouteMatch
from snippetbox.routing.router import Router

__all__ = ["Chain", "Route", "RouteMatch", "Router"]

"""Shared type aliases used across snippetbox modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: receives the Request, returns anything negotiate() accepts
Handler: TypeAlias = Callable[..., Any]

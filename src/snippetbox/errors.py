"""Snippetbox exception hierarchy.

Shared across the router, the app, the request handler and middleware so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class SnippetboxError(Exception):
    """Base for all snippetbox-specific errors."""


class ConfigurationError(SnippetboxError):
    """Raised when app configuration is invalid.

    Typically caught during ``App._freeze()`` at startup.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(SnippetboxError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The terminal handler
    wrapper and the router turn these into client-error responses.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818
    """400: the request could not be accepted as sent."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request path, or the resource is gone."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class UnsupportedMediaType(HTTPError):  # noqa: N818
    """415: the request body is not in a format the endpoint reads."""

    def __init__(self, detail: str = "Unsupported Media Type") -> None:
        super().__init__(status=415, detail=detail)

"""Error responses.

``client_error`` maps an ``HTTPError`` to a plain-text response carrying
the exception's status and headers. ``server_error`` logs the failure
being handled, with its traceback, and returns a generic 500.
"""

import logging
from http import HTTPStatus

from snippetbox.errors import HTTPError
from snippetbox.http.request import Request
from snippetbox.http.response import Response

logger = logging.getLogger("snippetbox.server")


def _phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return f"Error {status}"


def client_error(exc: HTTPError, request: Request) -> Response:
    """Map an HTTPError to a client-facing Response."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.url, exc.detail)
    response = Response(
        body=_phrase(exc.status),
        status=exc.status,
        content_type="text/plain; charset=utf-8",
    )
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def server_error(request: Request) -> Response:
    """Log the exception being handled and return a generic 500.

    Must be called from inside an ``except`` block.
    """
    logger.exception("500 %s %s %s", request.method, request.url, request.protocol)
    return Response(
        body=_phrase(500),
        status=500,
        content_type="text/plain; charset=utf-8",
    )

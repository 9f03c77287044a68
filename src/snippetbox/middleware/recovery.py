"""Panic recovery: the outermost middleware.

Anything that escapes the inner layers (a handler bug, a dead database,
a template error) is logged with its traceback and turned into a bare
500. The response asks the server to close the connection.
"""

from snippetbox.errors import HTTPError
from snippetbox.http.request import Request
from snippetbox.http.response import Response
from snippetbox.middleware.protocol import Next
from snippetbox.server.errors import client_error, server_error


async def recover_panic(request: Request, next: Next) -> Response:
    try:
        return await next(request)
    except HTTPError as exc:
        return client_error(exc, request)
    except Exception:
        return server_error(request).with_header("Connection", "close")

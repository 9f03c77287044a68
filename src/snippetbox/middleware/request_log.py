"""Request logging middleware.

Logs each request before dispatch, so the line is written even when a
later layer fails.
"""

import logging

from snippetbox.http.request import Request
from snippetbox.http.response import Response
from snippetbox.middleware.protocol import Next

logger = logging.getLogger("snippetbox.server")


async def log_request(request: Request, next: Next) -> Response:
    logger.info(
        "received request ip=%s proto=%s method=%s uri=%s",
        request.remote_addr,
        request.protocol,
        request.method,
        request.url,
    )
    return await next(request)

"""ASGI handler: translates ASGI scope/messages to snippetbox types.

The only component that touches raw ASGI for HTTP. Builds the Request,
runs it through the compiled pipeline, stamps the common headers onto
whatever response comes back, and sends it.
"""

from collections.abc import Callable
from dataclasses import replace
from typing import Any

from kida import Environment

from snippetbox._internal.asgi import Receive, Scope, Send
from snippetbox._internal.invoke import invoke
from snippetbox.errors import HTTPError
from snippetbox.http.request import Request
from snippetbox.http.response import Response
from snippetbox.routing.chain import Endpoint
from snippetbox.routing.router import Router
from snippetbox.server.errors import client_error, server_error
from snippetbox.server.negotiation import negotiate
from snippetbox.server.sender import send_response


async def handle_request(scope: Scope, receive: Receive, send: Send, *, pipeline: Endpoint) -> None:
    """Process a single HTTP request through the full pipeline."""
    request = Request.from_asgi(scope, receive)

    # The recovery middleware normally catches everything; this is the
    # backstop for apps assembled without it.
    try:
        response = await pipeline(request)
    except HTTPError as exc:
        response = client_error(exc, request)
    except Exception:
        response = server_error(request)

    response = finalize(response, request)
    await send_response(response, send, head=request.method == "HEAD")


def finalize(response: Response, request: Request) -> Response:
    """Apply the request's common headers, overriding handler values."""
    return response.replacing_headers(request.state.response_headers)


def build_dispatcher(router: Router) -> Endpoint:
    """The innermost endpoint of the standard chain: route, then run the route's chain."""

    async def dispatch(request: Request) -> Response:
        try:
            match = router.match(request.method, request.path)
        except HTTPError as exc:
            return client_error(exc, request)
        routed = replace(request, path_params=match.path_params)
        try:
            return await match.route.endpoint(routed)
        except HTTPError as exc:
            return client_error(exc, routed)

    return dispatch


def terminal(handler: Callable[..., Any], kida_env: Environment | None) -> Endpoint:
    """Adapt a route handler into an endpoint.

    The handler receives the request; its return value goes through
    ``negotiate()``. An ``HTTPError`` raised by the handler becomes the
    matching client-error response here, inside the route's chain, so the
    session middleware still commits around it.
    """

    async def endpoint(request: Request) -> Response:
        try:
            result = await invoke(handler, request)
        except HTTPError as exc:
            return client_error(exc, request)
        return negotiate(result, kida_env=kida_env)

    return endpoint

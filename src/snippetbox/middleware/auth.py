"""Authentication enrichment and the authorization gate.

``Authenticator`` runs on every dynamic request. It reads the user id the
login handler stored in the session, asks the user model whether that
user still exists, and records the answer on ``request.state``::

    request.state.authenticated  # bool
    request.state.user_id        # int | None

A missing or stale id degrades to anonymous without any error.

``RequireAuthentication`` is the gate appended to the dynamic chain to
form the protected chain. Anonymous requests get a 303 to the login page
and never reach the handler.
"""

import logging
from collections.abc import Awaitable, Callable

from snippetbox._internal.invoke import invoke
from snippetbox.errors import ConfigurationError
from snippetbox.http.request import Request
from snippetbox.http.response import Response
from snippetbox.middleware.protocol import Next

logger = logging.getLogger("snippetbox.security")

# Session key holding the logged-in user's id
AUTH_SESSION_KEY = "authenticated_user_id"

# Session key holding the path to resume after login
REDIRECT_SESSION_KEY = "redirect_path_after_login"


class Authenticator:
    """Resolve the session's user id into a verified authentication fact.

    Args:
        exists: ``(user_id) -> bool`` (sync or async). Failures propagate
            to the recovery middleware.
        session_key: Where the login handler stores the user id.
    """

    __slots__ = ("_exists", "_session_key")

    def __init__(
        self,
        exists: Callable[[int], Awaitable[bool] | bool],
        *,
        session_key: str = AUTH_SESSION_KEY,
    ) -> None:
        self._exists = exists
        self._session_key = session_key

    async def __call__(self, request: Request, next: Next) -> Response:
        state = request.state
        if state.session is None:
            msg = "Authenticator requires SessionMiddleware earlier in the chain."
            raise ConfigurationError(msg)

        state.authenticated = False
        state.user_id = None

        user_id = state.session.get_int(self._session_key)
        if user_id > 0 and await invoke(self._exists, user_id):
            state.authenticated = True
            state.user_id = user_id

        return await next(request)


class RequireAuthentication:
    """Gate: only authenticated requests reach the handler.

    For anonymous GET requests the path is remembered in the session so
    the login handler can send the user back to it.
    """

    __slots__ = ("_login_url", "_redirect_key")

    def __init__(
        self,
        login_url: str = "/user/login",
        *,
        redirect_key: str = REDIRECT_SESSION_KEY,
    ) -> None:
        self._login_url = login_url
        self._redirect_key = redirect_key

    async def __call__(self, request: Request, next: Next) -> Response:
        if not request.state.authenticated:
            logger.info("unauthenticated %s %s redirected to login", request.method, request.path)
            session = request.state.session
            if session is not None and request.method in ("GET", "HEAD"):
                session[self._redirect_key] = request.path
            return Response(body="", status=303).with_header("Location", self._login_url)

        response = await next(request)
        # Pages behind login must not sit in shared caches
        return response.with_header("Cache-Control", "no-store")


require_authentication = RequireAuthentication()

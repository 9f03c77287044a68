"""Middleware: the pieces chains are built from.

Standard chain (every request)::

    recover_panic → log_request → SecurityHeadersMiddleware

Dynamic chain (pages with sessions and forms)::

    SessionMiddleware → CSRFMiddleware → Authenticator

Protected chain::

    dynamic + RequireAuthentication
"""

from snippetbox.middleware.auth import Authenticator, RequireAuthentication, require_authentication
from snippetbox.middleware.csrf import CSRFConfig, CSRFMiddleware
from snippetbox.middleware.protocol import Middleware, Next
from snippetbox.middleware.recovery import recover_panic
from snippetbox.middleware.request_log import log_request
from snippetbox.middleware.security_headers import SecurityHeadersConfig, SecurityHeadersMiddleware
from snippetbox.middleware.session_stores import DatabaseStore, MemoryStore, SessionStore
from snippetbox.middleware.sessions import Session, SessionConfig, SessionMiddleware
from snippetbox.middleware.static import StaticFiles

__all__ = [
    "Authenticator",
    "CSRFConfig",
    "CSRFMiddleware",
    "DatabaseStore",
    "MemoryStore",
    "Middleware",
    "Next",
    "RequireAuthentication",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "Session",
    "SessionConfig",
    "SessionMiddleware",
    "SessionStore",
    "StaticFiles",
    "log_request",
    "recover_panic",
    "require_authentication",
]

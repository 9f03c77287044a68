"""Common security headers.

The headers are recorded on ``request.state.response_headers`` before the
request is dispatched. The response finaliser applies them to whatever
response leaves the app, including error pages and 500s from the
recovery middleware, and they override any same-named header a handler
set.
"""

from dataclasses import dataclass

from snippetbox.http.request import Request
from snippetbox.http.response import Response
from snippetbox.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    content_security_policy: str = (
        "default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com"
    )
    referrer_policy: str = "origin-when-cross-origin"
    x_content_type_options: str = "nosniff"
    x_frame_options: str = "deny"
    x_xss_protection: str = "0"
    server: str = "snippetbox"
    strict_transport_security: str | None = None

    def as_headers(self) -> dict[str, str]:
        headers = {
            "Content-Security-Policy": self.content_security_policy,
            "Referrer-Policy": self.referrer_policy,
            "X-Content-Type-Options": self.x_content_type_options,
            "X-Frame-Options": self.x_frame_options,
            "X-XSS-Protection": self.x_xss_protection,
            "Server": self.server,
        }
        if self.strict_transport_security:
            headers["Strict-Transport-Security"] = self.strict_transport_security
        return headers


class SecurityHeadersMiddleware:
    """Stamp the common security headers onto every response.

    Usage::

        standard = Chain(recover_panic, log_request, SecurityHeadersMiddleware())
    """

    __slots__ = ("_headers",)

    def __init__(self, config: SecurityHeadersConfig | None = None) -> None:
        self._headers = (config or SecurityHeadersConfig()).as_headers()

    async def __call__(self, request: Request, next: Next) -> Response:
        request.state.response_headers.update(self._headers)
        return await next(request)

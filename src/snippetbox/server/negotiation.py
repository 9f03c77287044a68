"""Content negotiation: maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

from typing import Any

from kida import Environment

from snippetbox.errors import ConfigurationError
from snippetbox.http.response import Redirect, Response
from snippetbox.templating.integration import render_template
from snippetbox.templating.returns import Template


def negotiate(value: Any, *, kida_env: Environment | None = None) -> Response:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``      -> pass through
    2. ``Redirect``      -> status (303 by default) with Location header
    3. ``Template``      -> render via kida -> text/html
    4. ``str``           -> 200, text/html
    5. ``(value, int)``  -> negotiate value, override status
    """
    match value:
        case Response():
            return value
        case Redirect():
            return (
                Response(body="")
                .with_status(value.status)
                .with_header("Location", value.url)
                .with_headers(dict(value.headers))
            )
        case Template():
            if kida_env is None:
                msg = "Template return type requires a kida environment (AppConfig.template_dir)."
                raise ConfigurationError(msg)
            return Response(body=render_template(kida_env, value))
        case str():
            return Response(body=value)
        case (inner, int() as status):
            return negotiate(inner, kida_env=kida_env).with_status(status)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return str, Template, Response, Redirect, or (value, status)."
            )
            raise TypeError(msg)

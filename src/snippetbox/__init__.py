"""Snippetbox: a server-rendered app for sharing short text snippets.

The request pipeline is built from plain async middleware composed into
immutable chains::

    from snippetbox import AppConfig, create_app

    app = create_app(AppConfig(secret_key="...", dsn="sqlite:///snippetbox.db"))
    app.run()
"""

from snippetbox.app import App
from snippetbox.config import AppConfig
from snippetbox.errors import BadRequest, ConfigurationError, HTTPError, MethodNotAllowed, NotFound
from snippetbox.http.request import Request
from snippetbox.http.response import Redirect, Response
from snippetbox.routing.chain import Chain
from snippetbox.templating.returns import Template
from snippetbox.web.application import build_app, create_app

__version__ = "0.1.0"

__all__ = [
    "App",
    "AppConfig",
    "BadRequest",
    "Chain",
    "ConfigurationError",
    "HTTPError",
    "MethodNotAllowed",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "Template",
    "build_app",
    "create_app",
]

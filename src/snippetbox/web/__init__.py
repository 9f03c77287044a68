"""The snippetbox web application: handlers, forms, templates and wiring."""

from snippetbox.web.application import build_app, create_app

__all__ = ["build_app", "create_app"]

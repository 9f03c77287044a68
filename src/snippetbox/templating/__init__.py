"""kida template integration."""

from snippetbox.templating.returns import Template

__all__ = ["Template"]

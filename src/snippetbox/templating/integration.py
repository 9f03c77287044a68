"""Kida environment setup.

Creates a kida Environment from ``AppConfig`` and binds the built-in and
app-registered filters. The environment is created once during
``App._freeze()`` and handed to the terminal handler wrappers.
"""

from collections.abc import Callable
from typing import Any

from kida import Environment, FileSystemLoader

from snippetbox.config import AppConfig
from snippetbox.templating.filters import BUILTIN_FILTERS
from snippetbox.templating.returns import Template


def create_environment(
    config: AppConfig,
    filters: dict[str, Callable[..., Any]],
) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
        auto_reload=config.debug,
        trim_blocks=True,
        lstrip_blocks=True,
    )

    env.update_filters(BUILTIN_FILTERS)
    if filters:
        env.update_filters(filters)

    return env


def render_template(env: Environment, tpl: Template) -> str:
    """Render a full template to string.

    Rendering completes before any byte is sent, so a template error
    surfaces as a clean 500 rather than a half-written page.
    """
    template = env.get_template(tpl.name)
    return template.render(tpl.context)

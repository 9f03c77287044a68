"""Model-layer errors.

Handlers branch on these; anything else from the data layer is an
internal failure and ends up as a 500.
"""

from snippetbox.errors import SnippetboxError


class ModelError(SnippetboxError):
    """Base for model-layer errors."""


class NoRecordError(ModelError):
    """No matching record (unknown id, or the snippet has expired)."""


class InvalidCredentialsError(ModelError):
    """Email/password pair does not match a user."""


class DuplicateEmailError(ModelError):
    """Signup with an email address that is already registered."""

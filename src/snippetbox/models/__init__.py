"""Snippet and user models over ``snippetbox.data``."""

from snippetbox.models.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    ModelError,
    NoRecordError,
)
from snippetbox.models.snippets import Snippet, SnippetModel, Snippets
from snippetbox.models.users import User, UserModel, Users

__all__ = [
    "DuplicateEmailError",
    "InvalidCredentialsError",
    "ModelError",
    "NoRecordError",
    "Snippet",
    "SnippetModel",
    "Snippets",
    "User",
    "UserModel",
    "Users",
]

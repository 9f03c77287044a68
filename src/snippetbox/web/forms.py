"""Form values as the templates see them.

Each form is a frozen dataclass of the values to show in its inputs.
Passwords are never echoed back, so the password fields are absent.
Errors travel separately (``errors`` for fields, ``non_field_errors``
for the form as a whole).
"""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Self

from snippetbox.validation import email, equals, max_chars, min_chars, permitted, required
from snippetbox.validation.rules import Validator

# Snippet lifetimes offered by the create form, in days
EXPIRY_CHOICES = ("1", "7", "365")


class _FormValues:
    __slots__ = ()

    @classmethod
    def from_values(cls, values: Mapping[str, str]) -> Self:
        names = [f.name for f in dataclasses.fields(cls)]  # type: ignore[arg-type]
        return cls(**{name: values[name] for name in names if name in values})


@dataclass(frozen=True, slots=True)
class SnippetCreateForm(_FormValues):
    title: str = ""
    content: str = ""
    expires: str = "365"


@dataclass(frozen=True, slots=True)
class SignupForm(_FormValues):
    name: str = ""
    email: str = ""


@dataclass(frozen=True, slots=True)
class LoginForm(_FormValues):
    email: str = ""


SNIPPET_CREATE_RULES: dict[str, list[Validator]] = {
    "title": [required, max_chars(100)],
    "content": [required],
    "expires": [permitted(*EXPIRY_CHOICES)],
}

SIGNUP_RULES: dict[str, list[Validator]] = {
    "name": [required],
    "email": [required, email],
    "password": [required, min_chars(8)],
}

LOGIN_RULES: dict[str, list[Validator]] = {
    "email": [required, email],
    "password": [required],
}


def password_update_rules(new_password: str) -> dict[str, list[Validator]]:
    """Rules for the password form; the confirmation must equal *new_password*."""
    return {
        "currentPassword": [required],
        "newPassword": [required, min_chars(8)],
        "newPasswordConfirmation": [required, equals(new_password, "Passwords do not match")],
    }

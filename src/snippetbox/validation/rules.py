"""Validation rules for snippetbox forms.

Each rule is a callable with the signature::

    def rule(value: str) -> str | None:
        '''Return an error message, or None if valid.'''

Parameterised rules are factories returning a rule::

    max_chars(100)("x" * 101)  # "This field cannot be more than 100 characters long"
"""

import re
from collections.abc import Callable

type Validator = Callable[[str], str | None]


def required(value: str) -> str | None:
    """Field must be present and not just whitespace."""
    if not value or not value.strip():
        return "This field cannot be blank"
    return None


def max_chars(n: int) -> Validator:
    """At most *n* characters (not bytes)."""

    def check(value: str) -> str | None:
        if len(value) > n:
            return f"This field cannot be more than {n} characters long"
        return None

    return check


def min_chars(n: int) -> Validator:
    def check(value: str) -> str | None:
        if len(value) < n:
            return f"This field must be at least {n} characters long"
        return None

    return check


# The pattern browsers use for <input type=email>, with a dotted domain required
_EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)


def email(value: str) -> str | None:
    """Value must look like an email address."""
    if not _EMAIL_RE.match(value):
        return "This field must be a valid email address"
    return None


def permitted(*choices: str) -> Validator:
    """Value must be one of *choices*."""
    allowed = tuple(choices)

    def check(value: str) -> str | None:
        if value not in allowed:
            if len(allowed) > 1:
                options = f"{', '.join(allowed[:-1])} or {allowed[-1]}"
            else:
                options = allowed[0] if allowed else ""
            return f"This field must equal {options}"
        return None

    return check


def equals(other: str, message: str = "This field must match") -> Validator:
    """Value must equal *other* (confirmation fields)."""

    def check(value: str) -> str | None:
        if value != other:
            return message
        return None

    return check

"""Template filters registered on every snippetbox kida Environment."""

from datetime import UTC, datetime
from typing import Any


def human_date(value: datetime | None) -> str:
    """Format a timestamp as ``02 Jan 2006 at 15:04`` in UTC.

    ``None`` renders as an empty string.
    """
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%d %b %Y at %H:%M")


def field_errors(errors: Any, field_name: str) -> list[str]:
    """Validation messages for one form field.

    Safely navigates a ``{field: [messages]}`` dict, returning an empty
    list when *errors* is None or the field has no errors.

    Example:
        {% for msg in errors | field_errors("title") %}
          <label class='error'>{{ msg }}</label>
        {% end %}
    """
    if not isinstance(errors, dict):
        return []
    return list(errors.get(field_name) or [])


BUILTIN_FILTERS = {
    "field_errors": field_errors,
    "human_date": human_date,
}

"""Form validation: composable rules, clean results.

Usage::

    from snippetbox.validation import validate, required, max_chars, permitted

    form = await request.form()
    result = validate(form, {
        "title": [required, max_chars(100)],
        "content": [required],
        "expires": [permitted("1", "7", "365")],
    })
    if not result:
        return Template("pages/create.html", form=result.values, errors=result.errors), 422
"""

from collections.abc import Mapping

from snippetbox.validation.result import ValidationResult
from snippetbox.validation.rules import (
    Validator,
    email,
    equals,
    max_chars,
    min_chars,
    permitted,
    required,
)

__all__ = [
    "ValidationResult",
    "Validator",
    "email",
    "equals",
    "max_chars",
    "min_chars",
    "permitted",
    "required",
    "validate",
]


def validate(data: Mapping[str, str], rules: dict[str, list[Validator]]) -> ValidationResult:
    """Validate *data* against *rules*.

    Each field reports its first failing rule only, so an empty field
    gets "cannot be blank" and nothing else.
    """
    values = {name: data.get(name) or "" for name in rules}
    errors: dict[str, list[str]] = {}
    cleaned: dict[str, str] = {}

    for field_name, validators in rules.items():
        value = values[field_name]
        for validator in validators:
            error = validator(value)
            if error is not None:
                errors[field_name] = [error]
                break
        else:
            cleaned[field_name] = value

    return ValidationResult(values=values, data=cleaned, errors=errors)

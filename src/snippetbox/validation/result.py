"""Validation result: cleaned values or errors."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating submitted form data.

    Falsy when invalid, so handlers can write::

        result = validate(form, rules)
        if not result:
            return Template("pages/signup.html", form=result.values, errors=result.errors), 422

    ``values`` holds every submitted value (valid or not) so a failed
    form can be re-rendered as the user typed it. ``data`` holds the
    values of fields that passed. ``errors`` maps field names to their
    messages; ``non_field_errors`` holds messages about the form as a
    whole (bad credentials).
    """

    values: dict[str, str]
    data: dict[str, str]
    errors: dict[str, list[str]]
    non_field_errors: tuple[str, ...] = field(default=())

    @property
    def is_valid(self) -> bool:
        return not self.errors and not self.non_field_errors

    def __bool__(self) -> bool:
        return self.is_valid

    def with_field_error(self, field_name: str, message: str) -> ValidationResult:
        """A copy with *message* added to *field_name*'s errors."""
        errors = {name: list(messages) for name, messages in self.errors.items()}
        errors.setdefault(field_name, []).append(message)
        data = {k: v for k, v in self.data.items() if k != field_name}
        return ValidationResult(self.values, data, errors, self.non_field_errors)

    def with_non_field_error(self, message: str) -> ValidationResult:
        return ValidationResult(
            self.values, self.data, self.errors, (*self.non_field_errors, message)
        )

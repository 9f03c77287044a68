"""Tests for validation rules and the snippetbox form rule sets."""

import pytest

from snippetbox.validation import (
    ValidationResult,
    email,
    equals,
    max_chars,
    min_chars,
    permitted,
    required,
    validate,
)
from snippetbox.web.forms import (
    LOGIN_RULES,
    SIGNUP_RULES,
    SNIPPET_CREATE_RULES,
    SnippetCreateForm,
    password_update_rules,
)


class TestRules:
    @pytest.mark.parametrize("value", ["", "   ", "\t\n"])
    def test_required_rejects_blank(self, value: str) -> None:
        assert required(value) == "This field cannot be blank"

    def test_required_accepts_text(self) -> None:
        assert required(" x ") is None

    def test_max_chars_counts_characters(self) -> None:
        rule = max_chars(100)
        assert rule("é" * 100) is None
        assert rule("a" * 101) == "This field cannot be more than 100 characters long"

    def test_min_chars(self) -> None:
        rule = min_chars(8)
        assert rule("1234567") == "This field must be at least 8 characters long"
        assert rule("12345678") is None

    @pytest.mark.parametrize(
        "value",
        ["bob@example.com", "first.last+tag@mail.example.co.uk", "a@b.io"],
    )
    def test_email_accepts(self, value: str) -> None:
        assert email(value) is None

    @pytest.mark.parametrize(
        "value",
        ["bob", "bob@", "@example.com", "bob@example", "bob@exa mple.com", "bob@-example.com"],
    )
    def test_email_rejects(self, value: str) -> None:
        assert email(value) == "This field must be a valid email address"

    def test_permitted(self) -> None:
        rule = permitted("1", "7", "365")
        assert rule("7") is None
        assert rule("30") == "This field must equal 1, 7 or 365"
        assert rule("") == "This field must equal 1, 7 or 365"

    def test_permitted_single_choice(self) -> None:
        assert permitted("yes")("no") == "This field must equal yes"

    def test_equals(self) -> None:
        rule = equals("secret123", "Passwords do not match")
        assert rule("secret123") is None
        assert rule("secret124") == "Passwords do not match"


class TestValidate:
    def test_first_error_per_field(self) -> None:
        result = validate({"title": ""}, {"title": [required, max_chars(3)]})
        assert result.errors == {"title": ["This field cannot be blank"]}

    def test_missing_fields_are_empty(self) -> None:
        result = validate({}, {"name": [required]})
        assert result.values == {"name": ""}
        assert not result

    def test_valid_data(self) -> None:
        result = validate({"name": "Alice", "extra": "ignored"}, {"name": [required]})
        assert result
        assert result.is_valid
        assert result.data == {"name": "Alice"}
        assert "extra" not in result.values

    def test_values_kept_for_invalid_fields(self) -> None:
        result = validate({"title": "x" * 101}, {"title": [max_chars(100)]})
        assert result.values["title"] == "x" * 101
        assert "title" not in result.data


class TestValidationResult:
    def test_with_field_error(self) -> None:
        result = ValidationResult(values={"email": "a@b.io"}, data={"email": "a@b.io"}, errors={})
        failed = result.with_field_error("email", "Email address is already in use")

        assert result.is_valid
        assert not failed
        assert failed.errors == {"email": ["Email address is already in use"]}
        assert "email" not in failed.data

    def test_with_non_field_error(self) -> None:
        result = ValidationResult(values={}, data={}, errors={})
        failed = result.with_non_field_error("Email or password is incorrect")
        assert not failed
        assert failed.non_field_errors == ("Email or password is incorrect",)
        assert failed.errors == {}


class TestFormRules:
    def test_snippet_create(self) -> None:
        result = validate(
            {"title": "", "content": "", "expires": "2"},
            SNIPPET_CREATE_RULES,
        )
        assert result.errors == {
            "title": ["This field cannot be blank"],
            "content": ["This field cannot be blank"],
            "expires": ["This field must equal 1, 7 or 365"],
        }

    def test_signup(self) -> None:
        result = validate(
            {"name": "Bob", "email": "bob@example.", "password": "pa$$"},
            SIGNUP_RULES,
        )
        assert result.errors == {
            "email": ["This field must be a valid email address"],
            "password": ["This field must be at least 8 characters long"],
        }

    def test_login_password_has_no_length_rule(self) -> None:
        result = validate({"email": "alice@example.com", "password": "x"}, LOGIN_RULES)
        assert result

    def test_password_update_confirmation(self) -> None:
        values = {
            "currentPassword": "old-password",
            "newPassword": "new-password",
            "newPasswordConfirmation": "new-passw0rd",
        }
        result = validate(values, password_update_rules(values["newPassword"]))
        assert result.errors == {"newPasswordConfirmation": ["Passwords do not match"]}

    def test_form_values_fill_defaults(self) -> None:
        form = SnippetCreateForm.from_values({"title": "T", "unrelated": "x"})
        assert form == SnippetCreateForm(title="T", content="", expires="365")

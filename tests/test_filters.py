"""Tests for the built-in template filters."""

from datetime import UTC, datetime, timedelta, timezone

from snippetbox.templating.filters import BUILTIN_FILTERS, field_errors, human_date


class TestHumanDate:
    def test_utc(self) -> None:
        assert human_date(datetime(2024, 3, 17, 10, 15, tzinfo=UTC)) == "17 Mar 2024 at 10:15"

    def test_converts_to_utc(self) -> None:
        cet = timezone(timedelta(hours=1))
        assert human_date(datetime(2024, 3, 17, 10, 15, tzinfo=cet)) == "17 Mar 2024 at 09:15"

    def test_naive_is_treated_as_utc(self) -> None:
        assert human_date(datetime(2024, 3, 17, 10, 15)) == "17 Mar 2024 at 10:15"

    def test_none(self) -> None:
        assert human_date(None) == ""


class TestFieldErrors:
    def test_messages_for_field(self) -> None:
        errors = {"title": ["This field cannot be blank"]}
        assert field_errors(errors, "title") == ["This field cannot be blank"]

    def test_missing_field(self) -> None:
        assert field_errors({"title": ["x"]}, "content") == []

    def test_not_a_dict(self) -> None:
        assert field_errors(None, "title") == []

    def test_registered(self) -> None:
        assert set(BUILTIN_FILTERS) == {"field_errors", "human_date"}

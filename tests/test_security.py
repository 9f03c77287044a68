"""Tests for password hashing and redirect target checks."""

import pytest

from snippetbox.security.passwords import hash_password, needs_rehash, verify_password
from snippetbox.security.urls import is_safe_url


class TestPasswords:
    def test_round_trip(self) -> None:
        hashed = hash_password("pa$$word")
        assert hashed.startswith("$argon2id$")
        assert verify_password("pa$$word", hashed) is True

    def test_wrong_password(self) -> None:
        assert verify_password("wrong", hash_password("pa$$word")) is False

    def test_hashes_are_salted(self) -> None:
        assert hash_password("pa$$word") != hash_password("pa$$word")

    def test_empty_password_cannot_be_hashed(self) -> None:
        with pytest.raises(ValueError, match="empty"):
            hash_password("")

    def test_empty_inputs_never_verify(self) -> None:
        assert verify_password("", hash_password("pa$$word")) is False
        assert verify_password("pa$$word", "") is False

    def test_unknown_hash_format(self) -> None:
        with pytest.raises(ValueError, match="Unknown hash format"):
            verify_password("pa$$word", "plaintext-is-not-a-hash")

    def test_fresh_hash_needs_no_rehash(self) -> None:
        assert needs_rehash(hash_password("pa$$word")) is False


class TestIsSafeUrl:
    @pytest.mark.parametrize("url", ["/", "/snippet/create", "/account/view?tab=1"])
    def test_local_paths(self, url: str) -> None:
        assert is_safe_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "snippet/create",
            "//evil.example",
            "/\\evil.example",
            "https://evil.example",
            "/redirect?to=https://evil.example",
            "javascript:alert(1)",
        ],
    )
    def test_rejected(self, url: str) -> None:
        assert is_safe_url(url) is False

"""Security helpers: password hashing and redirect checks."""

from snippetbox.security.passwords import hash_password, needs_rehash, verify_password
from snippetbox.security.urls import is_safe_url

__all__ = ["hash_password", "is_safe_url", "needs_rehash", "verify_password"]

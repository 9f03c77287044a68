"""Password hashing with argon2id.

Hashes are PHC-format strings (``$argon2id$v=19$m=...``) produced by
``argon2-cffi``'s ``PasswordHasher`` with its default parameters. The
parameters travel inside the hash, so ``needs_rehash`` can tell when a
stored hash predates a change of defaults.

Usage::

    from snippetbox.security.passwords import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash *password* with argon2id.

    Raises:
        ValueError: If *password* is empty.
    """
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    return _hasher.hash(password)


def verify_password(password: str, phc_hash: str) -> bool:
    """``True`` if *password* matches *phc_hash*.

    A mismatch is ``False``. A stored value that is not an argon2 hash
    is a data problem and raises ``ValueError``.
    """
    if not password or not phc_hash:
        return False
    try:
        return _hasher.verify(phc_hash, password)
    except VerificationError:
        return False
    except InvalidHashError as exc:
        msg = f"Unknown hash format: {phc_hash[:20]}..."
        raise ValueError(msg) from exc


def needs_rehash(phc_hash: str) -> bool:
    return _hasher.check_needs_rehash(phc_hash)

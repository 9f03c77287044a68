"""Users: signup, credential checks and password changes.

Passwords are stored only as argon2id hashes. Email addresses are
unique; the ``users_uc_email`` index enforces it and a violation is
reported as ``DuplicateEmailError``.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import cache
from typing import Protocol

import anyio

from snippetbox.data.database import Database
from snippetbox.data.errors import IntegrityError
from snippetbox.models.errors import DuplicateEmailError, InvalidCredentialsError, NoRecordError
from snippetbox.models.snippets import timestamp
from snippetbox.security.passwords import hash_password, needs_rehash, verify_password

logger = logging.getLogger("snippetbox.security")


@dataclass(frozen=True, slots=True)
class User:
    id: int
    name: str
    email: str
    hashed_password: str
    created: datetime


@dataclass(frozen=True, slots=True)
class _Credentials:
    id: int
    hashed_password: str


class Users(Protocol):
    """What the handlers and the authenticator need from user storage."""

    async def insert(self, name: str, email: str, password: str) -> None: ...
    async def authenticate(self, email: str, password: str) -> int: ...
    async def exists(self, user_id: int) -> bool: ...
    async def get(self, user_id: int) -> User: ...
    async def password_update(self, user_id: int, current: str, new: str) -> None: ...


@cache
def _dummy_hash() -> str:
    return hash_password(secrets.token_hex(16))


def _check_password(password: str, phc_hash: str | None) -> bool:
    # Unknown accounts still pay for one argon2 check
    if phc_hash is None:
        verify_password(password, _dummy_hash())
        return False
    return verify_password(password, phc_hash)


async def _verify(password: str, phc_hash: str | None) -> bool:
    return await anyio.to_thread.run_sync(_check_password, password, phc_hash)


async def _hash(password: str) -> str:
    return await anyio.to_thread.run_sync(hash_password, password)


class UserModel:
    """User storage on the ``users`` table.

    Argon2 work runs in worker threads, never while the database lock is
    held.
    """

    __slots__ = ("_db",)

    def __init__(self, db: Database) -> None:
        self._db = db

    async def insert(self, name: str, email: str, password: str) -> None:
        """Create a user.

        Raises:
            DuplicateEmailError: *email* is already registered.
        """
        hashed = await _hash(password)
        try:
            await self._db.insert(
                "INSERT INTO users (name, email, hashed_password, created) VALUES (?, ?, ?, ?)",
                name,
                email,
                hashed,
                timestamp(datetime.now(UTC)),
            )
        except IntegrityError as exc:
            if "users.email" in str(exc) or "users_uc_email" in str(exc):
                raise DuplicateEmailError(email) from exc
            raise

    async def authenticate(self, email: str, password: str) -> int:
        """The id of the user with these credentials.

        A hash made with older argon2 parameters is replaced on success.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
        """
        row = await self._db.fetch_one(
            _Credentials, "SELECT id, hashed_password FROM users WHERE email = ?", email
        )
        if row is None:
            await _verify(password, None)
            raise InvalidCredentialsError(email)
        if not await _verify(password, row.hashed_password):
            raise InvalidCredentialsError(email)

        if needs_rehash(row.hashed_password):
            await self._replace_hash(row, await _hash(password))
            logger.info("rehashed password for user %d", row.id)
        return row.id

    async def exists(self, user_id: int) -> bool:
        found = await self._db.fetch_val("SELECT EXISTS(SELECT 1 FROM users WHERE id = ?)", user_id)
        return bool(found)

    async def get(self, user_id: int) -> User:
        user = await self._db.fetch_one(
            User,
            "SELECT id, name, email, hashed_password, created FROM users WHERE id = ?",
            user_id,
        )
        if user is None:
            raise NoRecordError(f"user {user_id}")
        return user

    async def password_update(self, user_id: int, current: str, new: str) -> None:
        """Replace the password after checking *current*.

        Raises:
            NoRecordError: Unknown user.
            InvalidCredentialsError: *current* is wrong, or the password
                changed while the new hash was computed.
        """
        row = await self._db.fetch_one(
            _Credentials, "SELECT id, hashed_password FROM users WHERE id = ?", user_id
        )
        if row is None:
            raise NoRecordError(f"user {user_id}")
        if not await _verify(current, row.hashed_password):
            raise InvalidCredentialsError(f"user {user_id}")

        if not await self._replace_hash(row, await _hash(new)):
            raise InvalidCredentialsError(f"user {user_id}")
        logger.info("password updated for user %d", user_id)

    async def _replace_hash(self, row: _Credentials, new_hash: str) -> bool:
        """Swap in *new_hash* only if the stored hash is still the one checked."""
        async with self._db.transaction():
            stored = await self._db.fetch_val(
                "SELECT hashed_password FROM users WHERE id = ?", row.id
            )
            if stored != row.hashed_password:
                return False
            await self._db.execute(
                "UPDATE users SET hashed_password = ? WHERE id = ?", new_hash, row.id
            )
        return True

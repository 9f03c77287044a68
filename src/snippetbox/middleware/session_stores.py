"""Session stores.

A store maps an opaque token to a JSON-serialisable dict with an
absolute expiry (Unix seconds). Expired entries are treated as absent.

``MemoryStore`` keeps everything in process (tests, single-process dev).
``DatabaseStore`` keeps sessions in the ``sessions`` table so they
survive restarts.
"""

import json
import threading
from dataclasses import dataclass
from time import time
from typing import Any, Protocol

from snippetbox.data.database import Database


class SessionStore(Protocol):
    async def find(self, token: str) -> dict[str, Any] | None: ...
    async def commit(self, token: str, data: dict[str, Any], expiry: float) -> None: ...
    async def delete(self, token: str) -> None: ...


class MemoryStore:
    """In-process session store. Thread-safe; expiry checked on read."""

    __slots__ = ("_entries", "_lock")

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    async def find(self, token: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return None
            payload, expiry = entry
            if expiry <= time():
                del self._entries[token]
                return None
        return json.loads(payload)

    async def commit(self, token: str, data: dict[str, Any], expiry: float) -> None:
        payload = json.dumps(data)
        with self._lock:
            self._entries[token] = (payload, expiry)

    async def delete(self, token: str) -> None:
        with self._lock:
            self._entries.pop(token, None)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True, slots=True)
class _SessionRow:
    data: str
    expiry: float


class DatabaseStore:
    """Session store backed by the ``sessions`` table."""

    __slots__ = ("_db",)

    def __init__(self, db: Database) -> None:
        self._db = db

    async def find(self, token: str) -> dict[str, Any] | None:
        row = await self._db.fetch_one(
            _SessionRow,
            "SELECT data, expiry FROM sessions WHERE token = ? AND expiry > ?",
            token,
            time(),
        )
        if row is None:
            return None
        return json.loads(row.data)

    async def commit(self, token: str, data: dict[str, Any], expiry: float) -> None:
        await self._db.execute(
            "INSERT INTO sessions (token, data, expiry) VALUES (?, ?, ?) "
            "ON CONFLICT(token) DO UPDATE SET data = excluded.data, expiry = excluded.expiry",
            token,
            json.dumps(data),
            expiry,
        )

    async def delete(self, token: str) -> None:
        await self._db.execute("DELETE FROM sessions WHERE token = ?", token)

    async def delete_expired(self) -> int:
        """Remove expired rows; returns how many were deleted."""
        return await self._db.execute("DELETE FROM sessions WHERE expiry <= ?", time())

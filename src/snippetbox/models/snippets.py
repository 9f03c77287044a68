"""Snippets: short texts with an expiry date."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from snippetbox.data.database import Database
from snippetbox.models.errors import NoRecordError

# How many snippets the home page lists
LATEST_LIMIT = 10


def timestamp(moment: datetime) -> str:
    """Storage form of *moment*: ISO 8601 in UTC, second precision.

    Fixed width, so stored values compare correctly as text.
    """
    return moment.astimezone(UTC).isoformat(sep=" ", timespec="seconds")


@dataclass(frozen=True, slots=True)
class Snippet:
    id: int
    title: str
    content: str
    created: datetime
    expires: datetime


class Snippets(Protocol):
    """What the handlers need from snippet storage."""

    async def insert(self, title: str, content: str, expires_days: int) -> int: ...
    async def get(self, snippet_id: int) -> Snippet: ...
    async def latest(self) -> list[Snippet]: ...


class SnippetModel:
    """Snippet storage on the ``snippets`` table."""

    __slots__ = ("_db",)

    def __init__(self, db: Database) -> None:
        self._db = db

    async def insert(self, title: str, content: str, expires_days: int) -> int:
        """Store a new snippet expiring *expires_days* from now; returns its id."""
        now = datetime.now(UTC)
        return await self._db.insert(
            "INSERT INTO snippets (title, content, created, expires) VALUES (?, ?, ?, ?)",
            title,
            content,
            timestamp(now),
            timestamp(now + timedelta(days=expires_days)),
        )

    async def get(self, snippet_id: int) -> Snippet:
        """The unexpired snippet with *snippet_id*.

        Raises:
            NoRecordError: Unknown id, or the snippet has expired.
        """
        snippet = await self._db.fetch_one(
            Snippet,
            "SELECT id, title, content, created, expires FROM snippets "
            "WHERE expires > ? AND id = ?",
            timestamp(datetime.now(UTC)),
            snippet_id,
        )
        if snippet is None:
            raise NoRecordError(f"snippet {snippet_id}")
        return snippet

    async def latest(self) -> list[Snippet]:
        """The newest unexpired snippets, newest first."""
        return await self._db.fetch(
            Snippet,
            "SELECT id, title, content, created, expires FROM snippets "
            "WHERE expires > ? ORDER BY id DESC LIMIT ?",
            timestamp(datetime.now(UTC)),
            LATEST_LIMIT,
        )

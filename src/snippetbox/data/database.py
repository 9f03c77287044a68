"""Typed async database access over SQLite.

SQL in, frozen dataclasses out. Blocking ``sqlite3`` calls run in worker
threads via ``anyio``; a single connection is shared and serialised with
an ``anyio.Lock``.

Connection URL format::

    sqlite:///path/to/snippetbox.db
    sqlite:///:memory:
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

import anyio

from snippetbox.data._mapping import map_row, map_rows
from snippetbox.data._sqlite import AsyncConnection, AsyncCursor
from snippetbox.data._sqlite import connect as sqlite_connect
from snippetbox.data.errors import DataError, IntegrityError, QueryError

logger = logging.getLogger("snippetbox.data")

# Set inside transaction() so queries in the same task reuse its connection
# (the lock is already held) instead of waiting on the lock again.
_current_conn: ContextVar[AsyncConnection] = ContextVar("snippetbox_db_conn")


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    url: str
    echo: bool = False


def _parse_sqlite_path(url: str) -> str:
    """``sqlite:///path/to/db`` → ``path/to/db``; ``sqlite:///:memory:`` → ``:memory:``."""
    for prefix in ("sqlite:///", "sqlite://"):
        if url.startswith(prefix):
            path = url[len(prefix) :]
            if path:
                return path
    msg = f"Unsupported database URL: {url!r}. Expected sqlite:///path"
    raise DataError(msg)


def _wrap(exc: Exception) -> QueryError:
    if isinstance(exc, sqlite3.IntegrityError):
        return IntegrityError(str(exc))
    return QueryError(str(exc))


def _rows(cursor: AsyncCursor, rows: list[Any]) -> list[dict[str, Any]]:
    columns = [desc[0] for desc in cursor.description]
    return [dict(zip(columns, row, strict=True)) for row in rows]


class Database:
    """Typed async database access.

    Usage::

        db = Database("sqlite:///snippetbox.db")

        @dataclass(frozen=True, slots=True)
        class User:
            id: int
            name: str

        users = await db.fetch(User, "SELECT id, name FROM users")
        user = await db.fetch_one(User, "SELECT id, name FROM users WHERE id = ?", 42)
        new_id = await db.insert("INSERT INTO users (name) VALUES (?)", "Alice")
        count = await db.fetch_val("SELECT COUNT(*) FROM users")

        async with db.transaction():
            await db.execute("UPDATE ...")
            await db.execute("DELETE ...")
    """

    __slots__ = ("_config", "_conn", "_lock", "_path")

    def __init__(self, url: str, /, *, echo: bool = False) -> None:
        self._config = DatabaseConfig(url=url, echo=echo)
        self._path = _parse_sqlite_path(url)
        self._conn: AsyncConnection | None = None
        self._lock: anyio.Lock | None = None  # created on first use, inside a loop

    @property
    def url(self) -> str:
        return self._config.url

    # -- Lifecycle --

    async def connect(self) -> None:
        """Open the connection. Called automatically on first query."""
        if self._conn is not None:
            return
        conn = await sqlite_connect(self._path)
        await conn.execute("PRAGMA foreign_keys=ON")
        if self._path != ":memory:":
            await conn.execute("PRAGMA journal_mode=WAL")
        self._conn = conn

    async def disconnect(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await conn.close()

    async def __aenter__(self) -> Database:
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.disconnect()

    # -- Connection management --

    def _get_lock(self) -> anyio.Lock:
        if self._lock is None:
            self._lock = anyio.Lock()
        return self._lock

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[AsyncConnection]:
        current = _current_conn.get(None)
        if current is not None:
            yield current
            return

        await self.connect()
        async with self._get_lock():
            assert self._conn is not None
            yield self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed statements atomically.

        Commits on clean exit, rolls back on exception. Nested calls join
        the outer transaction.
        """
        if _current_conn.get(None) is not None:
            yield
            return

        await self.connect()
        async with self._get_lock():
            conn = self._conn
            assert conn is not None
            token = _current_conn.set(conn)
            try:
                conn.autocommit = False
                yield
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            finally:
                conn.autocommit = True
                _current_conn.reset(token)

    def _log_query(self, sql: str, params: Sequence[Any], elapsed: float) -> None:
        if self._config.echo:
            logger.debug("%6.1fms  %s  params=%r", elapsed * 1000, sql, params)

    # -- Public query API --

    async def fetch[T](self, cls: type[T], sql: str, /, *params: Any) -> list[T]:
        """Execute a query and return all rows as dataclasses."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                cursor = await conn.execute(sql, params)
                rows = _rows(cursor, await cursor.fetchall())
            except sqlite3.Error as exc:
                raise _wrap(exc) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)
        return map_rows(cls, rows)

    async def fetch_one[T](self, cls: type[T], sql: str, /, *params: Any) -> T | None:
        """Execute a query and return the first row, or ``None``."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                cursor = await conn.execute(sql, params)
                row = await cursor.fetchone()
            except sqlite3.Error as exc:
                raise _wrap(exc) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)
            if row is None:
                return None
            mapped = _rows(cursor, [row])[0]
        return map_row(cls, mapped)

    async def fetch_val(self, sql: str, /, *params: Any) -> Any:
        """First column of the first row, or ``None``. For COUNT, EXISTS, etc."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                cursor = await conn.execute(sql, params)
                row = await cursor.fetchone()
            except sqlite3.Error as exc:
                raise _wrap(exc) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)
        return None if row is None else row[0]

    async def execute(self, sql: str, /, *params: Any) -> int:
        """Execute a statement (INSERT/UPDATE/DELETE); returns rows affected."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                cursor = await conn.execute(sql, params)
            except sqlite3.Error as exc:
                raise _wrap(exc) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)
        return cursor.rowcount

    async def insert(self, sql: str, /, *params: Any) -> int:
        """Execute an INSERT and return the new row's id."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                cursor = await conn.execute(sql, params)
            except sqlite3.Error as exc:
                raise _wrap(exc) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)
        if cursor.lastrowid is None:
            msg = "INSERT did not produce a row id"
            raise QueryError(msg)
        return cursor.lastrowid

    async def execute_script(self, sql: str, /) -> None:
        """Execute several statements at once (migrations, seed data)."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                await conn.executescript(sql)
            except sqlite3.Error as exc:
                raise _wrap(exc) from exc
            finally:
                self._log_query(sql, (), time.perf_counter() - t0)

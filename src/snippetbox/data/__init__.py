"""Typed async SQLite access for snippetbox.

SQL in, frozen dataclasses out. Not an ORM::

    from snippetbox.data import Database, migrate

    db = Database("sqlite:///snippetbox.db")
    await migrate(db)
    count = await db.fetch_val("SELECT COUNT(*) FROM snippets")
"""

from snippetbox.data.database import Database
from snippetbox.data.errors import DataError, IntegrityError, MigrationError, QueryError
from snippetbox.data.migrate import MIGRATIONS_DIR, MigrationResult, migrate

__all__ = [
    "MIGRATIONS_DIR",
    "DataError",
    "Database",
    "IntegrityError",
    "MigrationError",
    "MigrationResult",
    "QueryError",
    "migrate",
]

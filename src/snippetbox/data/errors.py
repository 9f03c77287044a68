"""Data layer error hierarchy."""

from snippetbox.errors import SnippetboxError


class DataError(SnippetboxError):
    """Base for all snippetbox.data errors."""


class QueryError(DataError):
    """Raised when a SQL statement fails."""


class IntegrityError(QueryError):
    """Raised when a statement violates a constraint (UNIQUE, NOT NULL, ...)."""


class MigrationError(DataError):
    """Raised when a migration file is invalid or fails to apply."""

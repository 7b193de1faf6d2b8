"""Persistence layer exceptions.

All exceptions inherit from PersistenceError so callers can catch database
problems with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be initialized or reached.

    Examples: empty URL, unreadable SQLite file, missing driver, or
    get_session() called before init_database().
    """


class RecordNotFoundError(PersistenceError):
    """Raised when an operation requires a row that does not exist.

    Plain lookups return None instead.
    """


class DataIntegrityError(PersistenceError):
    """Raised on constraint violations that are not part of a normal upsert path."""

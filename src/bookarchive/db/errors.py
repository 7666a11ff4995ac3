# ABOUTME: Exception types raised by the Book Archive persistence layer.
# ABOUTME: Only connection and schema errors escape the core; the rest become failed results.

import sqlite3


class ArchiveError(Exception):
    """Base class for persistence-layer errors."""


class StoreConnectionError(ArchiveError):
    """Raised when the database file cannot be opened."""


class SchemaError(ArchiveError):
    """Raised when the books table cannot be created."""


class CompileError(ArchiveError):
    """Raised when a SQL template fails to compile against the store."""


class BindError(ArchiveError):
    """Raised when a parameter cannot be bound to a compiled statement."""

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"Failed to bind parameter {index}: {reason}")
        self.index = index


class ContentionExhausted(ArchiveError):
    """Raised when the store stays busy after every retry, or interrupts a scan."""


class ConstraintViolation(ArchiveError):
    """Raised when a write is rejected by a table constraint (e.g. duplicate id)."""


_BUSY_CODES = frozenset(
    code
    for code in (
        getattr(sqlite3, "SQLITE_BUSY", None),
        getattr(sqlite3, "SQLITE_BUSY_RECOVERY", None),
        getattr(sqlite3, "SQLITE_BUSY_SNAPSHOT", None),
        getattr(sqlite3, "SQLITE_LOCKED", None),
        getattr(sqlite3, "SQLITE_LOCKED_SHAREDCACHE", None),
    )
    if isinstance(code, int)
)

_BUSY_MESSAGES = (
    "database is locked",
    "database table is locked",
    "database schema is locked",
)


def is_busy_error(exc: BaseException) -> bool:
    """Whether a sqlite3 error signals transient contention rather than a real failure."""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    if getattr(exc, "sqlite_errorcode", None) in _BUSY_CODES:
        return True
    message = str(exc).lower()
    return any(fragment in message for fragment in _BUSY_MESSAGES)

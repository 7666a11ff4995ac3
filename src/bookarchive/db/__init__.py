# ABOUTME: Public API for the Book Archive persistence layer.
# ABOUTME: Exports connection management, record operations, the engine, and error types.

from bookarchive.db.archive import BookArchive
from bookarchive.db.connection import DEFAULT_DB_PATH, open_store
from bookarchive.db.engine import ExecutionEngine, RetryPolicy
from bookarchive.db.errors import (
    ArchiveError,
    BindError,
    CompileError,
    ConstraintViolation,
    ContentionExhausted,
    SchemaError,
    StoreConnectionError,
)
from bookarchive.db.mapping import BookRecord
from bookarchive.db.statements import CompiledStatement, StatementCache

__all__ = [
    "DEFAULT_DB_PATH",
    "ArchiveError",
    "BindError",
    "BookArchive",
    "BookRecord",
    "CompileError",
    "CompiledStatement",
    "ConstraintViolation",
    "ContentionExhausted",
    "ExecutionEngine",
    "RetryPolicy",
    "SchemaError",
    "StatementCache",
    "StoreConnectionError",
    "open_store",
]

# ABOUTME: Compiled statement handles and the read-through cache that owns them.
# ABOUTME: Each distinct SQL template is compiled once per connection and reused until shutdown.

import logging
import sqlite3
import threading
from collections.abc import Callable
from functools import partial
from typing import Any

from bookarchive.db.errors import BindError, CompileError
from bookarchive.db.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


def count_placeholders(sql: str) -> int:
    """Count positional `?` placeholders, ignoring any inside quoted literals."""
    count = 0
    quote: str | None = None
    for char in sql:
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "?":
            count += 1
    return count


class CompiledStatement:
    """A reusable handle for one parameterized SQL template.

    Holds the exact SQL text, its placeholder count, the current bindings and
    a dedicated cursor on the shared connection. Statements are reused
    across calls, so callers reset and clear bindings before every
    invocation. `lock` serializes whole invocations of this handle; take it
    before any connection-level lock.
    """

    def __init__(self, sql: str, param_count: int, cursor: Any) -> None:
        self.sql = sql
        self.param_count = param_count
        self.lock = threading.Lock()
        self._cursor = cursor
        self._bindings: list[str | None] = [None] * param_count
        self._active = False
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def active(self) -> bool:
        """Whether a scan is in progress, so the next step continues it."""
        return self._active

    @property
    def bindings(self) -> tuple[str | None, ...]:
        return tuple(self._bindings)

    def reset(self) -> None:
        """Return the statement to its initial state; the next step re-executes it."""
        self._active = False

    def clear_bindings(self) -> None:
        """Set every parameter back to NULL."""
        self._bindings = [None] * self.param_count

    def bind(self, index: int, value: str) -> None:
        """Bind a text value to the 1-based parameter `index`.

        Strings are immutable, so the statement never shares caller-owned
        state past this call.

        Raises:
            BindError: If the index is out of range, the value is not text,
                or the statement has been finalized.
        """
        if self._finalized:
            raise BindError(index, "statement has been finalized")
        if not 1 <= index <= self.param_count:
            raise BindError(index, f"index out of range (statement takes {self.param_count})")
        if not isinstance(value, str):
            raise BindError(index, f"expected text, got {type(value).__name__}")
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise BindError(index, str(exc)) from exc
        self._bindings[index - 1] = value

    def step(self) -> Any:
        """Advance the statement by one row.

        Returns:
            The next result row, or None once the statement is done.

        Raises:
            sqlite3.Error: On any engine failure, including busy conditions.
        """
        if self._finalized:
            raise sqlite3.ProgrammingError("Cannot operate on a finalized statement.")
        if not self._active:
            self._cursor.execute(self.sql, self._bindings)
            self._active = True
        try:
            row = self._cursor.fetchone()
        except sqlite3.Error:
            # The cursor drops its result set when a step fails.
            self._active = False
            raise
        if row is None:
            self._active = False
        return row

    def finalize(self) -> None:
        """Release the underlying cursor. Waits for any in-flight invocation."""
        with self.lock:
            if self._finalized:
                return
            self._finalized = True
            self._active = False
            self._cursor.close()


def compile_statement(conn: sqlite3.Connection, sql: str) -> CompiledStatement:
    """Compile a SQL template against the live connection.

    The template is checked with EXPLAIN (NULL bindings), which parses and
    plans it against the current schema without running it.

    Raises:
        CompileError: If SQLite rejects the template.
    """
    param_count = count_placeholders(sql)
    try:
        conn.execute(f"EXPLAIN {sql}", (None,) * param_count).close()
        cursor = conn.cursor()
    except sqlite3.Error as exc:
        raise CompileError(f"Failed to prepare statement: {exc} for SQL: {sql}") from exc
    return CompiledStatement(sql, param_count, cursor)


class StatementCache:
    """Maps exact SQL text to its CompiledStatement.

    Lookups run under the shared side of a reader/writer lock. A miss
    upgrades to the exclusive side and checks again before compiling, so
    concurrent callers never compile the same text twice. Entries are never
    evicted; `clear()` finalizes them all at shutdown.
    """

    def __init__(self, compile_fn: Callable[[str], CompiledStatement]) -> None:
        self._compile = compile_fn
        self._statements: dict[str, CompiledStatement] = {}
        self._lock = ReadWriteLock()
        self._compile_count = 0

    @classmethod
    def for_connection(cls, conn: sqlite3.Connection) -> "StatementCache":
        """Build a cache that compiles templates against `conn`."""
        return cls(partial(compile_statement, conn))

    def get_or_compile(self, sql: str) -> CompiledStatement:
        """Return the cached statement for `sql`, compiling it on first use.

        Raises:
            CompileError: If the template does not compile. Nothing is cached.
        """
        with self._lock.read_lock():
            statement = self._statements.get(sql)
        if statement is not None:
            return statement

        with self._lock.write_lock():
            statement = self._statements.get(sql)
            if statement is None:
                statement = self._compile(sql)
                self._statements[sql] = statement
                self._compile_count += 1
                logger.debug("Compiled statement: %s", sql)
        return statement

    def clear(self) -> None:
        """Finalize and drop every cached statement."""
        with self._lock.write_lock():
            for statement in self._statements.values():
                statement.finalize()
            count = len(self._statements)
            self._statements.clear()
        logger.debug("Released %d cached statement(s)", count)

    @property
    def compile_count(self) -> int:
        """How many templates have been compiled over the cache's lifetime."""
        with self._lock.read_lock():
            return self._compile_count

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._statements)

    def __contains__(self, sql: object) -> bool:
        with self._lock.read_lock():
            return sql in self._statements

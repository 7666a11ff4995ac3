# ABOUTME: Unit tests for compiled statements and the statement cache.
# ABOUTME: Validates compile-once behavior, compile errors, binding rules, and finalization.

import sqlite3
import threading
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from bookarchive.db.archive import INSERT_SQL, LIST_SQL, SEARCH_SQL
from bookarchive.db.connection import open_store
from bookarchive.db.errors import BindError, CompileError
from bookarchive.db.statements import (
    CompiledStatement,
    StatementCache,
    compile_statement,
    count_placeholders,
)


@pytest.fixture()
def conn(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Provide an open store connection."""
    connection = open_store(db_path)
    yield connection
    connection.close()


class TestCountPlaceholders:
    """Tests for count_placeholders."""

    def test_counts_positional_markers(self) -> None:
        """Each bare ? counts once."""
        assert count_placeholders(INSERT_SQL) == 3
        assert count_placeholders(SEARCH_SQL) == 2
        assert count_placeholders(LIST_SQL) == 0

    def test_ignores_quoted_question_marks(self) -> None:
        """A ? inside a string literal is not a placeholder."""
        assert count_placeholders("SELECT * FROM books WHERE title = '?' AND id = ?") == 1


class TestCompileStatement:
    """Tests for compile_statement."""

    def test_compiles_valid_template(self, conn: sqlite3.Connection) -> None:
        """A valid template yields a statement with the right parameter count."""
        statement = compile_statement(conn, INSERT_SQL)
        assert statement.sql == INSERT_SQL
        assert statement.param_count == 3
        statement.finalize()

    def test_unknown_table_raises(self, conn: sqlite3.Connection) -> None:
        """Templates referencing missing tables fail at compile time."""
        with pytest.raises(CompileError, match="Failed to prepare statement"):
            compile_statement(conn, "SELECT * FROM no_such_table WHERE id = ?;")

    def test_syntax_error_raises(self, conn: sqlite3.Connection) -> None:
        """Malformed SQL fails at compile time."""
        with pytest.raises(CompileError):
            compile_statement(conn, "SELEC * FROM books;")

    def test_compile_does_not_execute(self, conn: sqlite3.Connection) -> None:
        """Compiling an INSERT does not write a row."""
        compile_statement(conn, INSERT_SQL).finalize()
        assert conn.execute("SELECT COUNT(*) FROM books").fetchone()[0] == 0


class TestCompiledStatement:
    """Tests for binding and stepping a CompiledStatement."""

    def test_bind_out_of_range_raises(self, conn: sqlite3.Connection) -> None:
        """Binding past the last placeholder reports the 1-based index."""
        statement = compile_statement(conn, INSERT_SQL)
        with pytest.raises(BindError, match="parameter 4") as excinfo:
            statement.bind(4, "x")
        assert excinfo.value.index == 4

    def test_bind_rejects_non_text(self, conn: sqlite3.Connection) -> None:
        """Only text values can be bound."""
        statement = compile_statement(conn, INSERT_SQL)
        with pytest.raises(BindError, match="expected text"):
            statement.bind(1, 7)  # type: ignore[arg-type]

    def test_bind_rejects_unencodable_text(self, conn: sqlite3.Connection) -> None:
        """Lone surrogates cannot be stored and fail at bind time."""
        statement = compile_statement(conn, INSERT_SQL)
        with pytest.raises(BindError, match="parameter 2"):
            statement.bind(2, "bad \ud800 title")

    def test_clear_bindings_resets_to_null(self, conn: sqlite3.Connection) -> None:
        """clear_bindings sets every parameter back to None."""
        statement = compile_statement(conn, INSERT_SQL)
        statement.bind(1, "1")
        statement.bind(2, "Title")
        statement.clear_bindings()
        assert statement.bindings == (None, None, None)

    def test_step_runs_to_done(self, conn: sqlite3.Connection) -> None:
        """Stepping an INSERT writes the row and reports done."""
        statement = compile_statement(conn, INSERT_SQL)
        for index, value in enumerate(["1", "Dune", "Frank Herbert"], start=1):
            statement.bind(index, value)
        assert statement.step() is None
        row = conn.execute("SELECT id, title FROM books").fetchone()
        assert (row["id"], row["title"]) == (1, "Dune")

    def test_step_after_finalize_raises(self, conn: sqlite3.Connection) -> None:
        """A finalized statement cannot be stepped."""
        statement = compile_statement(conn, LIST_SQL)
        statement.finalize()
        assert statement.finalized
        with pytest.raises(sqlite3.ProgrammingError):
            statement.step()

    def test_failed_mid_scan_step_ends_the_scan(self) -> None:
        """A step that fails after rows were returned leaves the statement inactive."""
        cursor = MagicMock()
        cursor.fetchone.side_effect = [{"id": 1}, sqlite3.OperationalError("database is locked")]
        statement = CompiledStatement(LIST_SQL, 0, cursor)

        assert statement.step() == {"id": 1}
        assert statement.active
        with pytest.raises(sqlite3.OperationalError):
            statement.step()
        assert not statement.active

    def test_scan_tracks_active_state(self, conn: sqlite3.Connection) -> None:
        """A scan is active between its first row and done."""
        conn.execute("INSERT INTO books (id, title, author) VALUES (1, 'A', 'B')")
        statement = compile_statement(conn, LIST_SQL)
        assert not statement.active
        assert statement.step()["id"] == 1
        assert statement.active
        assert statement.step() is None
        assert not statement.active


class TestStatementCache:
    """Tests for StatementCache."""

    def test_miss_compiles_and_caches(self, conn: sqlite3.Connection) -> None:
        """First lookup compiles; the second returns the same handle."""
        cache = StatementCache.for_connection(conn)
        first = cache.get_or_compile(LIST_SQL)
        second = cache.get_or_compile(LIST_SQL)
        assert first is second
        assert cache.compile_count == 1
        assert LIST_SQL in cache
        assert len(cache) == 1

    def test_keyed_by_exact_text(self, conn: sqlite3.Connection) -> None:
        """Texts differing only in whitespace are separate entries."""
        cache = StatementCache.for_connection(conn)
        cache.get_or_compile(LIST_SQL)
        cache.get_or_compile(LIST_SQL.replace(" ", "  "))
        assert cache.compile_count == 2

    def test_compile_error_is_not_cached(self, conn: sqlite3.Connection) -> None:
        """A failed compile raises and leaves the cache empty."""
        cache = StatementCache.for_connection(conn)
        with pytest.raises(CompileError):
            cache.get_or_compile("SELECT * FROM missing;")
        assert len(cache) == 0
        assert cache.compile_count == 0

    def test_concurrent_callers_compile_once(self, conn: sqlite3.Connection) -> None:
        """1000 concurrent lookups of one template compile it exactly once."""
        cache = StatementCache.for_connection(conn)
        with ThreadPoolExecutor(max_workers=16) as pool:
            handles = list(pool.map(lambda _: cache.get_or_compile(SEARCH_SQL), range(1000)))

        assert cache.compile_count == 1
        assert all(handle is handles[0] for handle in handles)

    def test_double_check_under_slow_compile(self) -> None:
        """Callers racing on a slow compile still share one compilation."""
        calls: list[str] = []
        calls_lock = threading.Lock()

        def slow_compile(sql: str) -> CompiledStatement:
            with calls_lock:
                calls.append(sql)
            time.sleep(0.02)
            return CompiledStatement(sql, 0, cursor=None)

        cache = StatementCache(slow_compile)
        start = threading.Barrier(8, timeout=5)

        def lookup() -> CompiledStatement:
            start.wait()
            return cache.get_or_compile(LIST_SQL)

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(lookup) for _ in range(8)]
            results = [f.result(timeout=5) for f in futures]

        assert calls == [LIST_SQL]
        assert len({id(r) for r in results}) == 1

    def test_clear_finalizes_every_entry(self, conn: sqlite3.Connection) -> None:
        """clear() finalizes all statements and empties the cache."""
        cache = StatementCache.for_connection(conn)
        statements = [cache.get_or_compile(sql) for sql in (INSERT_SQL, LIST_SQL, SEARCH_SQL)]
        cache.clear()
        assert len(cache) == 0
        assert all(statement.finalized for statement in statements)

# ABOUTME: Record operations for the Book Archive: insert, remove, modify, find, list.
# ABOUTME: Owns the connection, statement cache, and execution engine for one store.

import logging
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path
from types import TracebackType

from bookarchive.db.connection import open_store
from bookarchive.db.engine import ExecutionEngine, RetryPolicy
from bookarchive.db.mapping import BookRecord
from bookarchive.db.statements import StatementCache

logger = logging.getLogger(__name__)

INSERT_SQL = "INSERT INTO books (id, title, author) VALUES (?, ?, ?);"
DELETE_SQL = "DELETE FROM books WHERE id = ?;"
UPDATE_SQL = "UPDATE books SET title = ?, author = ? WHERE id = ?;"
SEARCH_SQL = "SELECT * FROM books WHERE title LIKE ? OR author LIKE ? ORDER BY id;"
LIST_SQL = "SELECT * FROM books ORDER BY id;"


class BookArchive:
    """Typed CRUD for the books table over a single shared connection.

    Values always travel as bound parameters; no operation formats values
    into SQL. Writes report success as a bool, reads return lists of
    BookRecord. Store errors are logged rather than raised.

    Use as a context manager (or call `close()`) to release cached
    statements and then the connection.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._conn = conn
        self._cache = StatementCache.for_connection(conn)
        self._engine = ExecutionEngine(self._cache, retry_policy=retry_policy, sleep=sleep)
        self._closed = False

    @classmethod
    def open(cls, path: Path | None = None, **kwargs: object) -> "BookArchive":
        """Open the store at `path` and wrap it.

        Raises:
            StoreConnectionError: If the database cannot be opened.
            SchemaError: If the books table cannot be created.
        """
        return cls(open_store(path), **kwargs)  # type: ignore[arg-type]

    @property
    def cache(self) -> StatementCache:
        return self._cache

    @property
    def engine(self) -> ExecutionEngine:
        return self._engine

    @property
    def closed(self) -> bool:
        return self._closed

    def insert(self, book_id: int, title: str, author: str) -> bool:
        """Add a book. A duplicate id is rejected by the primary key and returns False."""
        logger.info("Adding book: ID=%d, Title='%s', Author='%s'", book_id, title, author)
        if not self._engine.execute_write(INSERT_SQL, [book_id, title, author]):
            logger.error("Failed to add book")
            return False
        return True

    def remove(self, book_id: int) -> bool:
        """Delete a book by id. Deleting an id that does not exist still succeeds."""
        logger.info("Deleting book with ID: %d", book_id)
        if not self._engine.execute_write(DELETE_SQL, [book_id]):
            logger.error("Failed to delete book")
            return False
        return True

    def modify(self, book_id: int, title: str, author: str) -> bool:
        """Replace the title and author of a book. id and created_at are untouched."""
        logger.info(
            "Updating book: ID=%d, New Title='%s', New Author='%s'", book_id, title, author
        )
        if not self._engine.execute_write(UPDATE_SQL, [title, author, book_id]):
            logger.error("Failed to update book")
            return False
        return True

    def find(self, keyword: str) -> list[BookRecord]:
        """Books whose title or author contains `keyword`, ordered by id.

        Matching uses SQLite LIKE, which is case-insensitive for ASCII.
        """
        logger.info("Searching for books with keyword: '%s'", keyword)
        pattern = f"%{keyword}%"
        return self._engine.execute_read(SEARCH_SQL, [pattern, pattern])

    def list_all(self) -> list[BookRecord]:
        """Every book in the archive, ordered by id."""
        logger.info("Displaying all books")
        return self._engine.execute_read(LIST_SQL)

    def close(self) -> None:
        """Release every cached statement, then close the connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        logger.info("Shutting down Book Archive")
        try:
            self._cache.clear()
        finally:
            self._conn.close()

    def __enter__(self) -> "BookArchive":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

# ABOUTME: SQLite connection management for the Book Archive store.
# ABOUTME: Opens the database, applies best-effort pragmas, and ensures the schema exists.

import logging
import sqlite3
from pathlib import Path

from bookarchive.db.errors import SchemaError, StoreConnectionError
from bookarchive.db.schema import CREATE_BOOKS_TABLE, CREATE_TITLE_AUTHOR_INDEX, PRAGMAS

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".book-archive" / "book_archive.db"


def _apply_pragmas(conn: sqlite3.Connection) -> None:
    """Run each tuning pragma, logging and skipping any that fail."""
    for pragma in PRAGMAS:
        try:
            conn.execute(pragma).close()
        except sqlite3.Error as exc:
            logger.error("Failed to set pragma %r: %s", pragma, exc)


def _ensure_schema(conn: sqlite3.Connection) -> None:
    """Create the books table and its index if they are missing.

    Raises:
        SchemaError: If the books table cannot be created.
    """
    try:
        conn.execute(CREATE_BOOKS_TABLE).close()
    except sqlite3.Error as exc:
        logger.error("Failed to create table: %s", exc)
        raise SchemaError(f"Failed to create books table: {exc}") from exc

    try:
        conn.execute(CREATE_TITLE_AUTHOR_INDEX).close()
    except sqlite3.Error as exc:
        logger.error("Failed to create index: %s", exc)


def open_store(path: Path | None = None) -> sqlite3.Connection:
    """Open or create the Book Archive database.

    Creates parent directories if needed. The connection runs in autocommit
    mode (every statement is its own transaction), may be shared across
    threads, and reports busy conditions immediately instead of waiting in
    SQLite's own busy handler, so contention is handled by the execution
    engine's retry policy.

    Args:
        path: Path to the database file. Defaults to ~/.book-archive/book_archive.db.

    Returns:
        A configured sqlite3.Connection with sqlite3.Row as row factory.

    Raises:
        StoreConnectionError: If the database file cannot be opened.
        SchemaError: If the books table cannot be created.
    """
    db_path = path or DEFAULT_DB_PATH
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(
            str(db_path),
            timeout=0,
            isolation_level=None,
            check_same_thread=False,
        )
    except (OSError, sqlite3.Error) as exc:
        logger.error("Cannot open database %s: %s", db_path, exc)
        raise StoreConnectionError(f"Cannot open database {db_path}: {exc}") from exc

    # connect() does not read the file header; a non-database file only fails here.
    try:
        conn.execute("PRAGMA schema_version").close()
    except sqlite3.Error as exc:
        conn.close()
        logger.error("Cannot open database %s: %s", db_path, exc)
        raise StoreConnectionError(f"Cannot open database {db_path}: {exc}") from exc

    conn.row_factory = sqlite3.Row
    _apply_pragmas(conn)

    try:
        _ensure_schema(conn)
    except SchemaError:
        conn.close()
        raise

    logger.info("Opened database %s", db_path)
    return conn

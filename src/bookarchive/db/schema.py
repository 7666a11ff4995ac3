# ABOUTME: SQL DDL and connection pragmas for the Book Archive store.
# ABOUTME: One books table plus a composite (title, author) index.

# Applied in order on every open. Performance tuning only; failures are not fatal.
PRAGMAS = (
    "PRAGMA foreign_keys = ON;",
    "PRAGMA journal_mode = WAL;",
    "PRAGMA synchronous = NORMAL;",
    "PRAGMA cache_size = 1000;",
    "PRAGMA temp_store = MEMORY;",
)

CREATE_BOOKS_TABLE = """
CREATE TABLE IF NOT EXISTS books (
    id         INTEGER PRIMARY KEY,
    title      TEXT NOT NULL,
    author     TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

CREATE_TITLE_AUTHOR_INDEX = (
    "CREATE INDEX IF NOT EXISTS idx_books_title_author ON books(title, author);"
)

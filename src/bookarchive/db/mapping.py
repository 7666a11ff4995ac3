# ABOUTME: The BookRecord type and its conversion from SQLite result rows.
# ABOUTME: Rows come from `SELECT * FROM books`: id, title, author, created_at.

from dataclasses import dataclass
from typing import Any


@dataclass
class BookRecord:
    """One catalog entry as stored in the books table."""

    id: int
    title: str
    author: str
    created_at: str | None = None


def row_to_record(row: Any) -> BookRecord:
    """Convert a books row (sqlite3.Row or any mapping) to a BookRecord.

    NULL title or author values come back as empty strings.
    """
    keys = row.keys()
    return BookRecord(
        id=int(row["id"]),
        title=row["title"] or "",
        author=row["author"] or "",
        created_at=row["created_at"] if "created_at" in keys else None,
    )

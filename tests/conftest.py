# ABOUTME: Shared pytest fixtures for Book Archive tests.
# ABOUTME: Provides temporary database and log paths and an open archive.

from collections.abc import Iterator
from pathlib import Path

import pytest

from bookarchive.db.archive import BookArchive


@pytest.fixture(autouse=True)
def _isolated_log_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CLI runs from writing to the real ~/.book-archive log."""
    monkeypatch.setenv("BOOK_ARCHIVE_LOG", str(tmp_path / "cli.log"))
    monkeypatch.delenv("BOOK_ARCHIVE_DB", raising=False)
    monkeypatch.delenv("BOOK_ARCHIVE_LOG_LEVEL", raising=False)


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    """Provide a temporary database path."""
    return tmp_path / "archive.db"


@pytest.fixture()
def log_path(tmp_path: Path) -> Path:
    """Provide a temporary log file path."""
    return tmp_path / "archive.log"


@pytest.fixture()
def archive(db_path: Path) -> Iterator[BookArchive]:
    """Provide an open BookArchive backed by a temporary database."""
    with BookArchive.open(db_path) as opened:
        yield opened

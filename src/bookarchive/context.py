# ABOUTME: Application context that owns the log sink and the open archive for one program run.
# ABOUTME: Tears down statements, then the connection, then the log sink on every exit path.

import logging
from contextlib import ExitStack
from pathlib import Path
from types import TracebackType

from bookarchive.db.archive import BookArchive
from bookarchive.db.connection import DEFAULT_DB_PATH
from bookarchive.logsink import LogSink, configure_logging

logger = logging.getLogger(__name__)


class ArchiveContext:
    """Scoped owner of the process-wide archive and log sink.

    Entering opens the log sink first and the store second; leaving unwinds
    in reverse, so the shutdown is logged before the sink closes.

    Raises (on enter):
        StoreConnectionError: If the database cannot be opened.
        SchemaError: If the books table cannot be created.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        *,
        log_level: int = logging.ERROR,
        log_file: Path | None = None,
    ) -> None:
        self._db_path = db_path or DEFAULT_DB_PATH
        self._log_level = log_level
        self._log_file = log_file
        self._stack: ExitStack | None = None
        self._archive: BookArchive | None = None
        self._sink: LogSink | None = None

    @property
    def archive(self) -> BookArchive:
        if self._archive is None:
            raise RuntimeError("ArchiveContext is not open")
        return self._archive

    @property
    def sink(self) -> LogSink:
        if self._sink is None:
            raise RuntimeError("ArchiveContext is not open")
        return self._sink

    def __enter__(self) -> "ArchiveContext":
        stack = ExitStack()
        try:
            self._sink = configure_logging(self._log_level, self._log_file)
            stack.callback(self._sink.close)
            self._archive = stack.enter_context(BookArchive.open(self._db_path))
        except BaseException:
            stack.close()
            raise
        self._stack = stack
        logger.info("*" * 56)
        logger.info(
            "Book Archive initialized with database: %s and logging level: %s",
            self._db_path,
            logging.getLevelName(self._log_level),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._stack is not None:
            self._stack.close()
            self._stack = None

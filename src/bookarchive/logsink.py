# ABOUTME: File-based log sink for Book Archive built on the standard logging package.
# ABOUTME: Appends timestamped records to a log file with DEBUG/INFO/ERROR level filtering.

import logging
from pathlib import Path

DEFAULT_LOG_PATH = Path.home() / ".book-archive" / "book_archive.log"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "ERROR": logging.ERROR,
}

_LOG_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_log_level(name: str) -> int:
    """Map a level name (case-insensitive) to its logging constant.

    Raises:
        ValueError: If the name is not DEBUG, INFO, or ERROR.
    """
    try:
        return LOG_LEVELS[name.upper()]
    except KeyError:
        raise ValueError(f"Unknown log level '{name}'") from None


class LogSink:
    """A file handler attached to the `bookarchive` logger.

    `close()` detaches and closes the handler; records emitted afterwards
    are dropped by the package's NullHandler.
    """

    def __init__(self, handler: logging.Handler, logger: logging.Logger) -> None:
        self._handler = handler
        self._logger = logger
        self._previous_level = logger.level
        self._closed = False

    @property
    def level(self) -> int:
        return self._handler.level

    @property
    def closed(self) -> bool:
        return self._closed

    def set_level(self, level: int) -> None:
        """Change the minimum level written to the file."""
        self._handler.setLevel(level)
        self._logger.setLevel(level)
        self._logger.info("Log level set to: %s", logging.getLevelName(level))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._logger.removeHandler(self._handler)
        self._logger.setLevel(self._previous_level)
        self._handler.close()


def configure_logging(level: int = logging.ERROR, log_file: Path | None = None) -> LogSink:
    """Attach an append-mode file handler to the `bookarchive` logger.

    Creates the log file's parent directory if needed.

    Args:
        level: Minimum level to record.
        log_file: Destination file. Defaults to ~/.book-archive/book_archive.log.

    Returns:
        The LogSink owning the handler.
    """
    path = log_file or DEFAULT_LOG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    handler.setLevel(level)

    logger = logging.getLogger("bookarchive")
    sink = LogSink(handler, logger)
    logger.setLevel(level)
    logger.addHandler(handler)
    return sink

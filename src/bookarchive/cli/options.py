# ABOUTME: Shared Click options for Book Archive CLI commands.
# ABOUTME: Provides --db, --log-level, and --log-file with environment-variable fallbacks.

from pathlib import Path

import click

from bookarchive.db.connection import DEFAULT_DB_PATH
from bookarchive.logsink import DEFAULT_LOG_PATH, LOG_LEVELS

db_option = click.option(
    "--db",
    "-d",
    "db_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    envvar="BOOK_ARCHIVE_DB",
    help=f"Path to the archive database (default: {DEFAULT_DB_PATH})",
)

log_level_option = click.option(
    "--log-level",
    "-l",
    "log_level",
    type=click.Choice(list(LOG_LEVELS), case_sensitive=False),
    default="ERROR",
    show_default=True,
    envvar="BOOK_ARCHIVE_LOG_LEVEL",
    help="Minimum level written to the log file.",
)

log_file_option = click.option(
    "--log-file",
    "log_file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    envvar="BOOK_ARCHIVE_LOG",
    help=f"Path to the log file (default: {DEFAULT_LOG_PATH})",
)

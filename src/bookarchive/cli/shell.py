# ABOUTME: Interactive command shell for Book Archive: parses text commands and runs them.
# ABOUTME: Termination signals only set a flag; shutdown runs through normal control flow.

import logging
import signal
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from types import FrameType

from rich.console import Console
from rich.markup import escape

from bookarchive import __version__
from bookarchive.cli.render import records_table
from bookarchive.context import ArchiveContext

logger = logging.getLogger(__name__)

HELP_TEXT = """
Book Archive {version} - Command List

  add <id> <title>, <author>              - Add a new book
  delete <id>                             - Delete a book by ID
  update <id> <new_title>, <new_author>   - Update a book's information based on ID
  search <keyword>                        - Search books by title or author
  display                                 - Show all books in the database
  help                                    - Show this help menu
  version                                 - Display the tool version
  debug                                   - Toggle debug logging
  exit                                    - Quit the program
"""


class CommandError(ValueError):
    """Raised when a shell command line is malformed."""


class ShutdownRequested(Exception):
    """Raised out of a blocking prompt read when a termination signal arrives."""


@dataclass
class ShellCommand:
    """A parsed shell command. Only the fields the action uses are set."""

    action: str
    book_id: int | None = None
    title: str | None = None
    author: str | None = None
    keyword: str | None = None


def _split_id(rest: str) -> tuple[int, str]:
    parts = rest.split(None, 1)
    if not parts:
        raise CommandError("Missing book ID")
    try:
        book_id = int(parts[0])
    except ValueError:
        raise CommandError(f"Invalid book ID: {parts[0]}") from None
    return book_id, parts[1] if len(parts) > 1 else ""


def _split_title_author(rest: str, usage: str) -> tuple[str, str]:
    title, comma, author = rest.partition(",")
    if not comma:
        raise CommandError(f"Invalid format. Use: {usage}")
    title = title.strip(" \t")
    author = author.strip(" \t")
    if not title or not author:
        raise CommandError("Title and author cannot be empty")
    return title, author


def parse_command(line: str) -> ShellCommand:
    """Parse one shell input line.

    Unknown actions parse successfully; the shell decides what to do with them.

    Raises:
        CommandError: If a known action has missing or invalid arguments.
    """
    parts = line.strip().split(None, 1)
    if not parts:
        raise CommandError("Empty command")
    action = parts[0]
    rest = parts[1] if len(parts) > 1 else ""

    if action == "add":
        book_id, rest = _split_id(rest)
        title, author = _split_title_author(rest, "add <id> <title>, <author>")
        return ShellCommand(action, book_id=book_id, title=title, author=author)
    if action == "update":
        book_id, rest = _split_id(rest)
        title, author = _split_title_author(rest, "update <id> <new_title>, <new_author>")
        return ShellCommand(action, book_id=book_id, title=title, author=author)
    if action == "delete":
        book_id, _ = _split_id(rest)
        return ShellCommand(action, book_id=book_id)
    if action == "search":
        keyword = rest.strip()
        if not keyword:
            raise CommandError("Missing search keyword")
        return ShellCommand(action, keyword=keyword)
    return ShellCommand(action)


class ArchiveShell:
    """Read-eval loop over an open ArchiveContext.

    Args:
        context: The entered application context.
        console: Rich console for output.
        input_fn: Prompt reader; raises EOFError at end of input.
    """

    def __init__(
        self,
        context: ArchiveContext,
        *,
        console: Console | None = None,
        input_fn: Callable[[str], str] | None = None,
    ) -> None:
        self._context = context
        self._console = console or Console()
        self._input = input_fn or self._console.input
        self._shutdown = threading.Event()
        self._awaiting_input = False
        self.running = True
        self._handlers: dict[str, Callable[[ShellCommand], None]] = {
            "add": self._add,
            "delete": self._delete,
            "update": self._update,
            "search": self._search,
            "display": self._display,
            "help": self._help,
            "version": self._version,
            "debug": self._debug,
            "exit": self._exit,
        }

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def request_shutdown(self, signum: int | None = None, frame: FrameType | None = None) -> None:
        """Signal handler: flag shutdown, and break out of the prompt if idle there."""
        self._shutdown.set()
        if self._awaiting_input:
            raise ShutdownRequested

    def run(self) -> None:
        """Prompt and execute commands until `exit`, end of input, or a termination signal."""
        self._console.print(f"Book Archive {__version__} - Library Management Tool")
        self._console.print("Type 'help' for available commands, 'exit' to quit.")

        with self._signal_handlers():
            while self.running and not self._shutdown.is_set():
                try:
                    line = self._read_line()
                except (EOFError, ShutdownRequested):
                    break
                if line.strip():
                    self.execute(line)

        if self._shutdown.is_set():
            self._console.print("\nReceived termination signal. Shutting down gracefully...")

    def execute(self, line: str) -> None:
        """Parse and run a single command line, reporting errors to the user."""
        try:
            command = parse_command(line)
        except CommandError as exc:
            self._console.print(f"[red]Error:[/red] {escape(str(exc))}")
            logger.error("Command error: %s (Command: %s)", exc, line)
            return

        handler = self._handlers.get(command.action)
        if handler is None:
            self._console.print("Invalid command. Type 'help' for a list of commands.")
            return
        handler(command)

    def _read_line(self) -> str:
        self._awaiting_input = True
        try:
            if self._shutdown.is_set():
                raise ShutdownRequested
            return self._input("\n> ")
        finally:
            self._awaiting_input = False

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        # signal.signal is only allowed on the main thread.
        if threading.current_thread() is not threading.main_thread():
            yield
            return
        previous = {
            signum: signal.signal(signum, self.request_shutdown)
            for signum in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            yield
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)

    def _report_write(self, ok: bool, verb: str, past: str) -> None:
        if ok:
            self._console.print(f"[green]Book {past} successfully![/green]")
        else:
            self._console.print(
                f"[red]Error:[/red] Failed to {verb} the book. Check logs for details."
            )

    def _add(self, command: ShellCommand) -> None:
        ok = self._context.archive.insert(
            command.book_id, command.title, command.author  # type: ignore[arg-type]
        )
        self._report_write(ok, "add", "added")

    def _delete(self, command: ShellCommand) -> None:
        ok = self._context.archive.remove(command.book_id)  # type: ignore[arg-type]
        self._report_write(ok, "delete", "deleted")

    def _update(self, command: ShellCommand) -> None:
        ok = self._context.archive.modify(
            command.book_id, command.title, command.author  # type: ignore[arg-type]
        )
        self._report_write(ok, "update", "updated")

    def _search(self, command: ShellCommand) -> None:
        keyword = command.keyword
        results = self._context.archive.find(keyword)  # type: ignore[arg-type]
        if not results:
            self._console.print(f"[yellow]No books found matching '{escape(keyword)}'.[/yellow]")
            return
        self._console.print(f"Search Results for '{escape(keyword)}':")
        self._console.print(records_table(results))

    def _display(self, command: ShellCommand) -> None:
        records = self._context.archive.list_all()
        if not records:
            self._console.print("[yellow]No books found in the database.[/yellow]")
            return
        self._console.print("Book Archive - All Books:")
        self._console.print(records_table(records))
        self._console.print(f"\n[dim]Total: {len(records)} book(s)[/dim]")

    def _help(self, command: ShellCommand) -> None:
        self._console.print(HELP_TEXT.format(version=__version__), markup=False)

    def _version(self, command: ShellCommand) -> None:
        self._console.print(f"Book Archive Version: {__version__}")
        self._console.print(f"SQLite version: {sqlite3.sqlite_version}")

    def _debug(self, command: ShellCommand) -> None:
        sink = self._context.sink
        if sink.level == logging.DEBUG:
            sink.set_level(logging.INFO)
            self._console.print("Logging level switched to INFO.")
        else:
            sink.set_level(logging.DEBUG)
            self._console.print("Logging level switched to DEBUG.")

    def _exit(self, command: ShellCommand) -> None:
        self.running = False
        self._console.print("Exiting Book Archive. Goodbye!")

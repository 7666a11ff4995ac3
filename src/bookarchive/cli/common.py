# ABOUTME: Settings carried from the root command to subcommands, and context opening.
# ABOUTME: Turns fatal startup errors and termination signals into a message and an exit status.

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import FrameType

from rich.console import Console
from rich.markup import escape

from bookarchive.context import ArchiveContext
from bookarchive.db.errors import SchemaError, StoreConnectionError

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass
class ArchiveSettings:
    """Values of the root command's options."""

    db_path: Path | None
    log_level: int
    log_file: Path | None


class TerminationRequested(Exception):
    """Raised from a signal handler so open contexts unwind before exiting."""

    def __init__(self, signum: int) -> None:
        super().__init__(f"received signal {signum}")
        self.signum = signum


def _raise_termination(signum: int, frame: FrameType | None) -> None:
    raise TerminationRequested(signum)


@contextmanager
def termination_signals() -> Iterator[None]:
    """Turn SIGINT and SIGTERM into TerminationRequested for the duration of the block.

    Previous handlers are restored on exit. Off the main thread this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = {
        signum: signal.signal(signum, _raise_termination) for signum in TERMINATION_SIGNALS
    }
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@contextmanager
def open_context(settings: ArchiveSettings, console: Console) -> Iterator[ArchiveContext]:
    """Enter an ArchiveContext with termination signals routed through its teardown.

    Exits with status 1 if the store or log cannot be opened, and with
    128 + signum after a termination signal.
    """
    try:
        with termination_signals(), ArchiveContext(
            settings.db_path, log_level=settings.log_level, log_file=settings.log_file
        ) as context:
            yield context
    except (StoreConnectionError, SchemaError, OSError) as exc:
        console.print(f"[red]Fatal error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc
    except TerminationRequested as exc:
        console.print("Received termination signal. Shutting down gracefully...")
        raise SystemExit(128 + exc.signum) from exc

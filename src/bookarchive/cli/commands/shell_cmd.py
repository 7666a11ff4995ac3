# ABOUTME: The `book-archive shell` command, also run when no subcommand is given.
# ABOUTME: Opens the archive and hands it to the interactive ArchiveShell loop.

import click
from rich.console import Console

from bookarchive.cli.common import ArchiveSettings, open_context
from bookarchive.cli.shell import ArchiveShell


@click.command("shell")
@click.pass_obj
def shell(settings: ArchiveSettings) -> None:
    """Start the interactive command shell."""
    console = Console()
    with open_context(settings, console) as context:
        ArchiveShell(context, console=console).run()

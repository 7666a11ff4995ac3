# ABOUTME: The `book-archive ls` command for listing every book.
# ABOUTME: Prints a Rich table ordered by ID with a total count.

import click
from rich.console import Console

from bookarchive.cli.common import ArchiveSettings, open_context
from bookarchive.cli.render import records_table


@click.command("ls")
@click.pass_obj
def ls(settings: ArchiveSettings) -> None:
    """List all books in the archive."""
    console = Console()
    with open_context(settings, console) as context:
        records = context.archive.list_all()

    if not records:
        console.print("[yellow]No books found in the database.[/yellow]")
        return

    console.print(records_table(records))
    console.print(f"\n[dim]Total: {len(records)} book(s)[/dim]")

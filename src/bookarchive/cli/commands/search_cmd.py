# ABOUTME: The `book-archive search` command for substring search by title or author.
# ABOUTME: Matches with SQLite LIKE, so ASCII letters match case-insensitively.

import click
from rich.console import Console
from rich.markup import escape

from bookarchive.cli.common import ArchiveSettings, open_context
from bookarchive.cli.render import records_table


@click.command("search")
@click.argument("keyword")
@click.pass_obj
def search(settings: ArchiveSettings, keyword: str) -> None:
    """Search the archive by title or author."""
    console = Console()
    with open_context(settings, console) as context:
        results = context.archive.find(keyword)

    if not results:
        console.print(f"[yellow]No books found matching '{escape(keyword)}'.[/yellow]")
        return

    console.print(records_table(results))
    console.print(f"\n[dim]{len(results)} result(s)[/dim]")

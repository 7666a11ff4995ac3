# ABOUTME: The `book-archive add`, `update`, and `delete` commands.
# ABOUTME: One-shot writes against the archive; exit status 1 when the write fails.

import click
from rich.console import Console

from bookarchive.cli.common import ArchiveSettings, open_context


def _report(console: Console, ok: bool, verb: str, past: str) -> None:
    if ok:
        console.print(f"[green]Book {past} successfully![/green]")
        return
    console.print(f"[red]Error:[/red] Failed to {verb} the book. Check logs for details.")
    raise SystemExit(1)


def _require_text(value: str, name: str) -> str:
    value = value.strip()
    if not value:
        raise click.BadParameter(f"{name} cannot be empty", param_hint=name.lower())
    return value


@click.command("add")
@click.argument("book_id", type=int)
@click.argument("title")
@click.argument("author")
@click.pass_obj
def add(settings: ArchiveSettings, book_id: int, title: str, author: str) -> None:
    """Add a book with an explicit ID."""
    title = _require_text(title, "Title")
    author = _require_text(author, "Author")
    console = Console()
    with open_context(settings, console) as context:
        ok = context.archive.insert(book_id, title, author)
    _report(console, ok, "add", "added")


@click.command("update")
@click.argument("book_id", type=int)
@click.argument("title")
@click.argument("author")
@click.pass_obj
def update(settings: ArchiveSettings, book_id: int, title: str, author: str) -> None:
    """Replace the title and author of a book."""
    title = _require_text(title, "Title")
    author = _require_text(author, "Author")
    console = Console()
    with open_context(settings, console) as context:
        ok = context.archive.modify(book_id, title, author)
    _report(console, ok, "update", "updated")


@click.command("delete")
@click.argument("book_id", type=int)
@click.pass_obj
def delete(settings: ArchiveSettings, book_id: int) -> None:
    """Delete a book by ID."""
    console = Console()
    with open_context(settings, console) as context:
        ok = context.archive.remove(book_id)
    _report(console, ok, "delete", "deleted")

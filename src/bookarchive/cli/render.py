# ABOUTME: Rich rendering helpers for Book Archive records.
# ABOUTME: Builds the ID / Title / Author table shared by the shell and one-shot commands.

from rich.table import Table
from rich.text import Text

from bookarchive.db.mapping import BookRecord


def records_table(records: list[BookRecord]) -> Table:
    """Build a table with one row per record, in the order given.

    Titles and authors are rendered as plain text, never as Rich markup.
    """
    table = Table()
    table.add_column("ID", style="dim", justify="right", width=5)
    table.add_column("Title", style="bold", max_width=30, overflow="ellipsis", no_wrap=True)
    table.add_column("Author", max_width=20, overflow="ellipsis", no_wrap=True)

    for record in records:
        table.add_row(str(record.id), Text(record.title), Text(record.author))
    return table

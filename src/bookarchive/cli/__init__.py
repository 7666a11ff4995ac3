# ABOUTME: CLI package for Book Archive, built on Click.
# ABOUTME: Defines the root command group; with no subcommand it starts the interactive shell.

from pathlib import Path

import click

from bookarchive.cli.commands import edit_cmd, ls_cmd, search_cmd, shell_cmd
from bookarchive.cli.common import ArchiveSettings
from bookarchive.cli.options import db_option, log_file_option, log_level_option
from bookarchive.logsink import parse_log_level


@click.group(invoke_without_command=True)
@click.version_option(package_name="book-archive")
@db_option
@log_level_option
@log_file_option
@click.pass_context
def cli(
    ctx: click.Context, db_path: Path | None, log_level: str, log_file: Path | None
) -> None:
    """Book Archive - a personal book-catalog manager.

    Run without a command to start the interactive shell.
    """
    ctx.obj = ArchiveSettings(
        db_path=db_path, log_level=parse_log_level(log_level), log_file=log_file
    )
    if ctx.invoked_subcommand is None:
        ctx.invoke(shell_cmd.shell)


cli.add_command(shell_cmd.shell)
cli.add_command(edit_cmd.add)
cli.add_command(edit_cmd.update)
cli.add_command(edit_cmd.delete)
cli.add_command(ls_cmd.ls)
cli.add_command(search_cmd.search)

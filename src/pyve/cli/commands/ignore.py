"""Ignore command: add one entry to the managed .gitignore section."""

import click

from pyve.artifacts.gitignore import PYVE_ENV_HEADER, insert_entry_file
from pyve.cli.output import success, user_output
from pyve.core.context import PyveContext


@click.command("ignore")
@click.argument("pattern")
@click.option(
    "--section",
    "marker",
    default=PYVE_ENV_HEADER,
    show_default=True,
    help="Section marker line to insert after",
)
@click.pass_obj
def ignore_cmd(ctx: PyveContext, pattern: str, marker: str) -> None:
    """Add PATTERN to .gitignore under a section marker.

    No change when PATTERN is already present. When the marker line is
    missing the pattern is appended at the end of the file.
    """
    if insert_entry_file(ctx.project_dir, marker, pattern):
        success(f"Added {pattern} to .gitignore")
    else:
        user_output(f"{pattern} already in .gitignore")

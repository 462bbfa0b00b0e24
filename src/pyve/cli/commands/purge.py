"""Purge command: remove the environment and pyve-generated files."""

import click

from pyve.cli.constants import EXIT_CONFIRMATION_REQUIRED
from pyve.cli.output import success, user_output, warning
from pyve.cli.prompts import confirm
from pyve.core.context import PyveContext
from pyve.core.provision import default_purge_targets, purge_project
from pyve.core.state_classifier import inspect_config


@click.command("purge")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def purge_cmd(ctx: PyveContext, assume_yes: bool) -> None:
    """Remove the environment and the files pyve generated.

    Files you modified since pyve wrote them are kept and listed.
    """
    inspection = inspect_config(ctx.project_dir)
    if inspection.error is not None:
        warning(f"Configuration is corrupted ({inspection.error}); purging default locations")

    if not confirm(
        ctx,
        "Remove the environment and pyve-generated files?",
        default=False,
        assume_yes=assume_yes,
        automated_answer=False,
    ):
        user_output("Purge cancelled.")
        raise SystemExit(EXIT_CONFIRMATION_REQUIRED)

    env_dirs, groups = default_purge_targets(ctx.project_dir, inspection.record)
    result = purge_project(ctx.project_dir, env_dirs=env_dirs, gitignore_groups=groups)

    for path in result.removed:
        success(f"Removed {path}")
    for path in result.kept_modified:
        warning(f"Kept {path} (modified locally)")
    user_output("Purge complete.")

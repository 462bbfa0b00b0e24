"""Run command: execute a command inside the project environment."""

import click

from pyve.cli.constants import EXIT_COMMAND_NOT_FOUND
from pyve.cli.output import report_error, user_output
from pyve.core.context import PyveContext
from pyve.core.errors import PyveError
from pyve.core.runner import build_run_environment, resolve_run_target
from pyve.core.state_classifier import inspect_config


@click.command(
    "run",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_obj
def run_cmd(ctx: PyveContext, command: tuple[str, ...]) -> None:
    """Run COMMAND with the project environment activated.

    The command's exit code is passed through.

    Examples:

    \b
      pyve run python --version
      pyve run pytest -q tests/
    """
    try:
        target = resolve_run_target(ctx.project_dir, inspect_config(ctx.project_dir))
    except PyveError as e:
        raise SystemExit(report_error(e)) from e

    env = build_run_environment(target, ctx.env)
    exit_code = ctx.environment.run_command(list(command), env=env, cwd=ctx.project_dir)
    if exit_code is None:
        user_output(click.style("Error: ", fg="red") + f"Command not found: {command[0]}")
        raise SystemExit(EXIT_COMMAND_NOT_FOUND)
    raise SystemExit(exit_code)

"""Test command: run pytest from the dedicated test runner env."""

import click

from pyve.cli.constants import EXIT_CONFIRMATION_REQUIRED, EXIT_VALIDATION_ERROR
from pyve.cli.output import report_error, success, user_output
from pyve.cli.prompts import confirm
from pyve.core.context import PyveContext
from pyve.core.errors import PyveError
from pyve.core.runner import (
    build_run_environment,
    ensure_testenv,
    install_test_packages,
    missing_test_packages,
)
from pyve.core.state_classifier import inspect_config


@click.command(
    "test",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("pytest_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
def run_tests_cmd(ctx: PyveContext, pytest_args: tuple[str, ...]) -> None:
    """Run pytest with PYTEST_ARGS in the test runner env.

    The env lives in .pyve/testenv and survives purge and force rebuilds.
    It is created on first use; pytest is installed after confirmation
    (automatically when running non-interactively).
    """
    try:
        target = ensure_testenv(ctx, inspect_config(ctx.project_dir))
        missing = missing_test_packages(ctx, target)
        if missing:
            if not confirm(
                ctx,
                f"Install {', '.join(missing)} into the test environment?",
                default=True,
                assume_yes=False,
                automated_answer=True,
            ):
                user_output("Test run cancelled.")
                raise SystemExit(EXIT_CONFIRMATION_REQUIRED)
            install_test_packages(ctx, target, missing)
            success(f"Installed {', '.join(missing)}")
    except PyveError as e:
        raise SystemExit(report_error(e)) from e

    command = [str(target.bin_dir / "python"), "-m", "pytest", *pytest_args]
    env = build_run_environment(target, ctx.env)
    exit_code = ctx.environment.run_command(command, env=env, cwd=ctx.project_dir)
    if exit_code is None:
        user_output(click.style("Error: ", fg="red") + "Test environment interpreter is missing")
        raise SystemExit(EXIT_VALIDATION_ERROR)
    raise SystemExit(exit_code)

"""Validate command: strict project report with exit codes."""

import click

from pyve.cli.constants import VALIDATE_ERRORS, VALIDATE_PASSED, VALIDATE_WARNINGS
from pyve.cli.output import report_error
from pyve.core.context import PyveContext
from pyve.core.errors import PyveError
from pyve.core.health_checks import CheckResult, run_validation

_ICONS = {
    "ok": ("✓", "green"),
    "warning": ("⚠", "yellow"),
    "error": ("✗", "red"),
}


def format_check_line(result: CheckResult) -> None:
    """Display one check as an icon line plus indented details."""
    icon, color = _ICONS[result.level]
    click.echo(f"{click.style(icon, fg=color)} {result.message}")
    if result.details:
        for line in result.details.split("\n"):
            click.echo(f"  {line}")


def validation_exit_code(results: list[CheckResult]) -> int:
    """Worst level wins: errors, then warnings, then passed."""
    levels = {result.level for result in results}
    if "error" in levels:
        return VALIDATE_ERRORS
    if "warning" in levels:
        return VALIDATE_WARNINGS
    return VALIDATE_PASSED


@click.command("validate")
@click.pass_obj
def validate_cmd(ctx: PyveContext) -> None:
    """Validate the project's pyve installation.

    Exits 0 when every check passes, 1 on errors, 2 on warnings only.
    """
    click.echo("Pyve Installation Validation")
    click.echo("==============================")
    click.echo("")

    try:
        results = run_validation(ctx)
    except PyveError as e:
        raise SystemExit(report_error(e)) from e
    for result in results:
        format_check_line(result)
    click.echo("")

    exit_code = validation_exit_code(results)
    if exit_code == VALIDATE_PASSED:
        click.echo("All validations passed.")
    elif exit_code == VALIDATE_ERRORS:
        click.echo("Validation completed with errors.")
    else:
        click.echo("Validation completed with warnings.")
    raise SystemExit(exit_code)

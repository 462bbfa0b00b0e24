"""Doctor command for pyve setup diagnostics.

Runs the project checks, per-artifact health and collaborator
availability. Informational only: always exits 0.
"""

import click

from pyve.cli.output import report_error
from pyve.core.context import PyveContext
from pyve.core.errors import PyveError
from pyve.core.health_checks import CheckResult, check_artifacts, check_tools, run_validation
from pyve.core.state_classifier import inspect_config


def _format_check_result(result: CheckResult) -> None:
    """Format and display a single check result."""
    if result.level == "ok":
        icon = click.style("✓", fg="green")
    elif result.level == "warning":
        icon = click.style("⚠", fg="yellow")
    else:
        icon = click.style("✗", fg="red")

    click.echo(f"{icon} {result.message}")

    if result.details:
        for line in result.details.split("\n"):
            click.echo(click.style(f"   {line}", dim=True))


@click.command("doctor")
@click.pass_obj
def doctor_cmd(ctx: PyveContext) -> None:
    """Run diagnostic checks on the pyve setup.

    Checks for:

    \b
      - Project: config, version record, environment, lock file, .env
      - Artifacts: generated files against their recorded baselines
      - Tools: version manager, micromamba, direnv
    """
    click.echo(click.style("Checking pyve setup...", bold=True))
    click.echo("")

    inspection = inspect_config(ctx.project_dir)
    if inspection.record is None and inspection.error is None:
        click.echo("Project: not initialized (run 'pyve init')")
        click.echo("")
        results: list[CheckResult] = []
    else:
        try:
            results = run_validation(ctx)
        except PyveError as e:
            raise SystemExit(report_error(e)) from e
        click.echo(click.style("Project", bold=True))
        for result in results:
            _format_check_result(result)
        click.echo("")

        artifact_results = check_artifacts(ctx.project_dir)
        if artifact_results:
            click.echo(click.style("Artifacts", bold=True))
            for result in artifact_results:
                _format_check_result(result)
            click.echo("")
        results.extend(artifact_results)

    tool_results = check_tools(ctx)
    click.echo(click.style("Tools", bold=True))
    for result in tool_results:
        _format_check_result(result)
    click.echo("")
    results.extend(tool_results)

    failed = sum(1 for r in results if not r.passed)
    if failed == 0:
        click.echo(click.style("All checks passed!", fg="green", bold=True))
    else:
        click.echo(click.style(f"{failed} check(s) failed", fg="yellow", bold=True))

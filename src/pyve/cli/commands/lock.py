"""Lock command: report conda-lock.yml freshness."""

from datetime import datetime
from pathlib import Path

import click

from pyve.cli.constants import EXIT_VALIDATION_ERROR
from pyve.cli.output import report_error, success, warning
from pyve.core.context import PyveContext
from pyve.core.errors import StaleDependencyError
from pyve.core.lock_staleness import apply_lock_policy
from pyve.core.types import ENV_LOCK_FILE_NAME, ENV_SPEC_FILE_NAME


def _mtime(path: Path) -> str:
    if not path.exists():
        return "absent"
    return datetime.fromtimestamp(path.stat().st_mtime).isoformat(timespec="seconds")


@click.command("lock")
@click.option("--strict", is_flag=True, help="Exit non-zero when the lock file is stale or missing")
@click.pass_obj
def lock_cmd(ctx: PyveContext, strict: bool) -> None:
    """Check whether conda-lock.yml is up to date with environment.yml."""
    spec_file = ctx.project_dir / ENV_SPEC_FILE_NAME
    lock_file = ctx.project_dir / ENV_LOCK_FILE_NAME
    if not spec_file.is_file():
        warning(f"No {ENV_SPEC_FILE_NAME} in this project")
        raise SystemExit(EXIT_VALIDATION_ERROR)

    click.echo(f"{ENV_SPEC_FILE_NAME}: {_mtime(spec_file)}")
    click.echo(f"{ENV_LOCK_FILE_NAME}: {_mtime(lock_file)}")

    try:
        result = apply_lock_policy(
            spec_file, lock_file, "strict" if strict else "non-interactive"
        )
    except StaleDependencyError as e:
        raise SystemExit(report_error(e)) from e

    if result.status == "fresh":
        success("Lock file is fresh")
    elif result.message is not None:
        warning(result.message)

"""Config commands: inspect the resolved configuration and stored values."""

import click

from pyve.cli.constants import EXIT_VALIDATION_ERROR
from pyve.cli.output import machine_output, report_error, user_output
from pyve.core.context import PyveContext
from pyve.core.errors import PyveError
from pyve.core.resolution import resolve_config
from pyve.core.state_classifier import inspect_config


@click.group("config")
def config_group() -> None:
    """Inspect pyve configuration."""


@config_group.command("show")
@click.pass_obj
def config_show(ctx: PyveContext) -> None:
    """Print the resolved configuration and where each value came from."""
    inspection = inspect_config(ctx.project_dir)
    if inspection.error is not None:
        raise SystemExit(report_error(inspection.error))

    try:
        config = resolve_config(
            ctx.project_dir,
            record=inspection.record,
            backend_flag=None,
            env_name_flag=None,
            python_version_flag=None,
            venv_dir_flag=None,
            fallback=None,
        )
    except PyveError as e:
        raise SystemExit(report_error(e)) from e

    if inspection.record is None:
        user_output("(not initialized - showing values pyve init would use)")

    user_output(click.style("Resolved configuration:", bold=True))
    rows: list[tuple[str, str | None]] = [
        ("backend", config.backend.value),
        ("python.version", config.python_version),
        ("venv.directory", config.venv_directory),
        ("env_name", config.env_name),
    ]
    for key, value in rows:
        if value is None:
            continue
        source = config.sources.get(key, "default")
        user_output(f"  {key}={value}  " + click.style(f"({source})", dim=True))
    if config.paths.env_dir is not None:
        user_output(f"  env_dir={config.paths.env_dir}")
    user_output(f"  config_file={config.paths.config_file}")

    if inspection.record is not None:
        user_output(click.style("\nStored values:", bold=True))
        for key in inspection.record.keys():
            user_output(f"  {key}={inspection.record.get(key)}")


@config_group.command("get")
@click.argument("key", metavar="KEY")
@click.pass_obj
def config_get(ctx: PyveContext, key: str) -> None:
    """Print the stored value of a dotted configuration key (e.g. micromamba.env_name)."""
    inspection = inspect_config(ctx.project_dir)
    if inspection.error is not None:
        raise SystemExit(report_error(inspection.error))
    if inspection.record is None:
        user_output(click.style("Error: ", fg="red") + "Project not initialized")
        raise SystemExit(EXIT_VALIDATION_ERROR)

    value = inspection.record.get(key)
    if value is None:
        user_output(click.style("Error: ", fg="red") + f"Key not found: {key}")
        raise SystemExit(EXIT_VALIDATION_ERROR)
    machine_output(value)

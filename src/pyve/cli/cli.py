import logging

import click

from pyve.cli.commands.config import config_group
from pyve.cli.commands.doctor import doctor_cmd
from pyve.cli.commands.ignore import ignore_cmd
from pyve.cli.commands.init import init_cmd
from pyve.cli.commands.lock import lock_cmd
from pyve.cli.commands.purge import purge_cmd
from pyve.cli.commands.run import run_cmd
from pyve.cli.commands.runtests import run_tests_cmd
from pyve.cli.commands.validate import validate_cmd
from pyve.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="pyve")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Provision and maintain a per-project Python environment."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context()


cli.add_command(config_group)
cli.add_command(doctor_cmd)
cli.add_command(ignore_cmd)
cli.add_command(init_cmd)
cli.add_command(lock_cmd)
cli.add_command(purge_cmd)
cli.add_command(run_cmd)
cli.add_command(run_tests_cmd)
cli.add_command(validate_cmd)


def main() -> None:
    """CLI entry point used by the `pyve` console script."""
    cli()

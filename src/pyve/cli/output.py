"""User-facing output helpers.

user_output writes to stderr so stdout stays clean for machine-readable
values (pyve config get).
"""

import click

from pyve.cli.constants import EXIT_CORRUPTED, EXIT_VALIDATION_ERROR
from pyve.core.errors import CorruptedStateError, ProvisionError, PyveError, ValidationError


def user_output(message: str = "") -> None:
    click.echo(message, err=True)


def machine_output(message: str) -> None:
    click.echo(message)


def success(message: str) -> None:
    user_output(click.style("✓ ", fg="green") + message)


def warning(message: str) -> None:
    user_output(click.style("⚠ ", fg="yellow") + message)


def report_error(error: PyveError) -> int:
    """Print a pyve error and return the exit code it maps to."""
    user_output(click.style("Error: ", fg="red") + str(error))

    if isinstance(error, CorruptedStateError):
        user_output("Run 'pyve init --force' to rebuild the project configuration.")
        return EXIT_CORRUPTED
    if isinstance(error, ProvisionError) and error.diagnostic:
        for line in error.diagnostic.splitlines():
            user_output(click.style(f"   {line}", dim=True))
    if isinstance(error, ValidationError) and error.field:
        user_output(click.style(f"   field: {error.field}", dim=True))
    return EXIT_VALIDATION_ERROR

"""pyve CLI entry point.

This package provisions a per-project Python environment (venv or
micromamba) and keeps its generated files in sync across pyve upgrades.
See `pyve --help` for details.
"""

from pyve.cli.cli import cli

__all__ = ["cli"]

"""Application context with dependency injection."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import click

from pyve.core.versioning import get_current_version
from pyve.gateway.environment.abc import EnvironmentBuilder
from pyve.gateway.environment.real import RealEnvironmentBuilder
from pyve.gateway.terminal.abc import Terminal
from pyve.gateway.terminal.real import RealTerminal
from pyve.gateway.toolchain.abc import PythonToolchain
from pyve.gateway.toolchain.real import RealPythonToolchain

ENV_NON_INTERACTIVE = "PYVE_NON_INTERACTIVE"
ENV_FORCE_YES = "PYVE_FORCE_YES"
ENV_SKIP_VERSION_CHECK = "PYVE_SKIP_VERSION_CHECK"
ENV_CI = "CI"

_TRUTHY = frozenset({"1", "true", "yes"})


def _is_truthy(value: str | None) -> bool:
    return value is not None and value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class PyveContext:
    """Immutable context holding all dependencies for pyve operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    terminal: Terminal
    environment: EnvironmentBuilder
    toolchain: PythonToolchain
    project_dir: Path  # Current working directory at CLI invocation
    env: Mapping[str, str]  # Process environment, for pyve toggles
    version: str  # Running pyve version

    @property
    def is_non_interactive(self) -> bool:
        """True when prompts must not be shown (toggle, CI, or no TTY)."""
        if _is_truthy(self.env.get(ENV_NON_INTERACTIVE)):
            return True
        if self.env.get(ENV_CI, "").lower() == "true":
            return True
        return not self.terminal.is_stdin_interactive()

    @property
    def force_yes(self) -> bool:
        return _is_truthy(self.env.get(ENV_FORCE_YES))

    @property
    def skip_version_check(self) -> bool:
        return _is_truthy(self.env.get(ENV_SKIP_VERSION_CHECK))

    @staticmethod
    def for_test(
        project_dir: Path,
        *,
        terminal: Terminal | None = None,
        environment: EnvironmentBuilder | None = None,
        toolchain: PythonToolchain | None = None,
        env: Mapping[str, str] | None = None,
        version: str = "1.5.3",
    ) -> "PyveContext":
        """Create a context with fake implementations for tests.

        Example:
            >>> ctx = PyveContext.for_test(tmp_path, env={"PYVE_FORCE_YES": "1"})
        """
        from pyve.gateway.environment.fake import FakeEnvironmentBuilder
        from pyve.gateway.terminal.fake import FakeTerminal
        from pyve.gateway.toolchain.fake import FakePythonToolchain

        return PyveContext(
            terminal=terminal if terminal is not None else FakeTerminal(is_interactive=False),
            environment=environment if environment is not None else FakeEnvironmentBuilder(),
            toolchain=toolchain if toolchain is not None else FakePythonToolchain(),
            project_dir=project_dir,
            env=env if env is not None else {},
            version=version,
        )


def create_context() -> PyveContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.
    """
    try:
        project_dir = Path.cwd()
    except (FileNotFoundError, OSError):
        click.echo(
            click.style("Error: ", fg="red") + "Current working directory no longer exists",
            err=True,
        )
        raise SystemExit(1) from None

    return PyveContext(
        terminal=RealTerminal(),
        environment=RealEnvironmentBuilder(),
        toolchain=RealPythonToolchain(),
        project_dir=project_dir,
        env=dict(os.environ),
        version=get_current_version(),
    )

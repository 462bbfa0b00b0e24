"""Environment creation and execution abstraction.

Creating environments is delegated to external tools (python -m venv,
micromamba, pip). Implementations report success or failure with captured
diagnostic text and never interpret the tools' output further.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CommandResult:
    """Outcome of an external command.

    Attributes:
        success: Whether the command exited successfully
        diagnostic: Captured stderr (or stdout) text, empty on success
    """

    success: bool
    diagnostic: str


class EnvironmentBuilder(ABC):
    """Abstract environment creation for dependency injection."""

    @abstractmethod
    def find_micromamba(self, project_dir: Path) -> Path | None:
        """Locate the micromamba executable.

        Search order: project sandbox (.pyve/bin), user sandbox (~/.pyve/bin),
        then PATH.

        Returns:
            Path to the executable, or None if not found
        """
        ...

    @abstractmethod
    def create_venv(self, env_dir: Path, python_executable: str) -> CommandResult:
        """Create a Python virtual environment at env_dir."""
        ...

    @abstractmethod
    def create_micromamba_env(
        self, micromamba: Path, env_dir: Path, source_file: Path
    ) -> CommandResult:
        """Create a micromamba environment at env_dir from an environment or lock file."""
        ...

    @abstractmethod
    def run_command(self, command: list[str], *, env: Mapping[str, str], cwd: Path) -> int | None:
        """Run a command in the foreground with inherited stdio.

        The executable is looked up on the PATH of env.

        Returns:
            The command's exit code, or None if it could not be started
        """
        ...

    @abstractmethod
    def has_module(self, python: Path, module: str) -> bool:
        """Check whether an interpreter can import a module."""
        ...

    @abstractmethod
    def install_packages(self, python: Path, packages: list[str]) -> CommandResult:
        """Install packages into an interpreter's environment with pip."""
        ...

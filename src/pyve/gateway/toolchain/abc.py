"""Python interpreter toolchain abstraction (asdf / pyenv / direnv)."""

from abc import ABC, abstractmethod
from typing import Literal

from pyve.gateway.environment.abc import CommandResult

VersionManager = Literal["asdf", "pyenv"]


class PythonToolchain(ABC):
    """Abstract interpreter management for dependency injection."""

    @abstractmethod
    def detect_version_manager(self) -> VersionManager | None:
        """Detect the available version manager.

        asdf (with its python plugin) is preferred over pyenv.

        Returns:
            "asdf", "pyenv", or None if neither is available
        """
        ...

    @abstractmethod
    def ensure_python_version(self, manager: VersionManager, version: str) -> CommandResult:
        """Install the interpreter version through the manager if missing."""
        ...

    @abstractmethod
    def python_executable(self, manager: VersionManager | None, version: str) -> str:
        """Path to the interpreter for a version, or a PATH fallback."""
        ...

    @abstractmethod
    def is_direnv_installed(self) -> bool:
        """Check if direnv is available in PATH."""
        ...

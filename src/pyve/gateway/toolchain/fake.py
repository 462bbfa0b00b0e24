"""Fake PythonToolchain implementation for testing."""

from pyve.gateway.environment.abc import CommandResult
from pyve.gateway.toolchain.abc import PythonToolchain, VersionManager


class FakePythonToolchain(PythonToolchain):
    """In-memory fake that returns configured state.

    This class has NO public setup methods. All state is provided via constructor.
    """

    def __init__(
        self,
        *,
        version_manager: VersionManager | None = "asdf",
        install_succeeds: bool = True,
        direnv_installed: bool = True,
    ) -> None:
        self._version_manager = version_manager
        self._install_succeeds = install_succeeds
        self._direnv_installed = direnv_installed
        self._ensured: list[str] = []

    @property
    def ensured_versions(self) -> list[str]:
        return list(self._ensured)

    def detect_version_manager(self) -> VersionManager | None:
        return self._version_manager

    def ensure_python_version(self, manager: VersionManager, version: str) -> CommandResult:
        self._ensured.append(version)
        if not self._install_succeeds:
            return CommandResult(success=False, diagnostic=f"python {version} not available")
        return CommandResult(success=True, diagnostic="")

    def python_executable(self, manager: VersionManager | None, version: str) -> str:
        return f"/fake/python-{version}/bin/python"

    def is_direnv_installed(self) -> bool:
        return self._direnv_installed

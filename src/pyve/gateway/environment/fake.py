"""Fake EnvironmentBuilder implementation for testing."""

from collections.abc import Mapping
from pathlib import Path

from pyve.gateway.environment.abc import CommandResult, EnvironmentBuilder


class FakeEnvironmentBuilder(EnvironmentBuilder):
    """In-memory fake that records calls and creates marker directories.

    This class has NO public setup methods. All state is provided via constructor.
    """

    def __init__(
        self,
        *,
        micromamba_path: Path | None = None,
        create_succeeds: bool = True,
        diagnostic: str = "",
        run_exit_code: int | None = 0,
        installed_modules: frozenset[str] = frozenset(),
        install_succeeds: bool = True,
    ) -> None:
        self._micromamba_path = micromamba_path
        self._create_succeeds = create_succeeds
        self._diagnostic = diagnostic
        self._run_exit_code = run_exit_code
        self._modules = set(installed_modules)
        self._install_succeeds = install_succeeds
        self._created: list[tuple[str, Path, str]] = []
        self._runs: list[tuple[list[str], dict[str, str], Path]] = []
        self._installed: list[tuple[Path, list[str]]] = []

    @property
    def created(self) -> list[tuple[str, Path, str]]:
        """Recorded creations as (backend, env_dir, source) tuples."""
        return list(self._created)

    @property
    def runs(self) -> list[tuple[list[str], dict[str, str], Path]]:
        """Recorded commands as (command, env, cwd) tuples."""
        return list(self._runs)

    @property
    def installed(self) -> list[tuple[Path, list[str]]]:
        """Recorded installs as (python, packages) tuples."""
        return list(self._installed)

    def find_micromamba(self, project_dir: Path) -> Path | None:
        return self._micromamba_path

    def create_venv(self, env_dir: Path, python_executable: str) -> CommandResult:
        return self._create("venv", env_dir, python_executable)

    def create_micromamba_env(
        self, micromamba: Path, env_dir: Path, source_file: Path
    ) -> CommandResult:
        return self._create("micromamba", env_dir, str(source_file))

    def run_command(self, command: list[str], *, env: Mapping[str, str], cwd: Path) -> int | None:
        self._runs.append((list(command), dict(env), cwd))
        return self._run_exit_code

    def has_module(self, python: Path, module: str) -> bool:
        return module in self._modules

    def install_packages(self, python: Path, packages: list[str]) -> CommandResult:
        self._installed.append((python, list(packages)))
        if not self._install_succeeds:
            return CommandResult(success=False, diagnostic=self._diagnostic)
        self._modules.update(packages)
        return CommandResult(success=True, diagnostic="")

    def _create(self, backend: str, env_dir: Path, source: str) -> CommandResult:
        self._created.append((backend, env_dir, source))
        if not self._create_succeeds:
            return CommandResult(success=False, diagnostic=self._diagnostic)
        (env_dir / "bin").mkdir(parents=True, exist_ok=True)
        (env_dir / "bin" / "python").touch()
        return CommandResult(success=True, diagnostic="")

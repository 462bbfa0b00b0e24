"""Real environment creation via python -m venv and micromamba."""

import logging
import shutil
import subprocess
from collections.abc import Mapping
from pathlib import Path

from pyve.core.types import PYVE_DIR_NAME
from pyve.gateway.environment.abc import CommandResult, EnvironmentBuilder

logger = logging.getLogger(__name__)


def _run(cmd: list[str]) -> CommandResult:
    logger.debug("Running: %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as e:
        return CommandResult(success=False, diagnostic=str(e))
    if result.returncode != 0:
        return CommandResult(
            success=False,
            diagnostic=result.stderr.strip() or result.stdout.strip(),
        )
    return CommandResult(success=True, diagnostic="")


class RealEnvironmentBuilder(EnvironmentBuilder):
    """Production implementation using subprocess."""

    def find_micromamba(self, project_dir: Path) -> Path | None:
        for sandbox in (project_dir / PYVE_DIR_NAME, Path.home() / PYVE_DIR_NAME):
            candidate = sandbox / "bin" / "micromamba"
            if candidate.is_file():
                return candidate
        on_path = shutil.which("micromamba")
        if on_path is None:
            return None
        return Path(on_path)

    def create_venv(self, env_dir: Path, python_executable: str) -> CommandResult:
        return _run([python_executable, "-m", "venv", str(env_dir)])

    def create_micromamba_env(
        self, micromamba: Path, env_dir: Path, source_file: Path
    ) -> CommandResult:
        return _run([str(micromamba), "create", "-y", "-p", str(env_dir), "-f", str(source_file)])

    def run_command(self, command: list[str], *, env: Mapping[str, str], cwd: Path) -> int | None:
        logger.debug("Running: %s", " ".join(command))
        try:
            result = subprocess.run(command, env=dict(env), cwd=cwd, check=False)
        except FileNotFoundError:
            logger.debug("Executable not found: %s", command[0])
            return None
        return result.returncode

    def has_module(self, python: Path, module: str) -> bool:
        result = subprocess.run(
            [str(python), "-c", f"import {module}"], capture_output=True, check=False
        )
        return result.returncode == 0

    def install_packages(self, python: Path, packages: list[str]) -> CommandResult:
        return _run([str(python), "-m", "pip", "install", *packages])

"""Real toolchain implementation shelling out to asdf and pyenv."""

import logging
import shutil
import subprocess

from pyve.gateway.environment.abc import CommandResult
from pyve.gateway.toolchain.abc import PythonToolchain, VersionManager

logger = logging.getLogger(__name__)


def _capture(cmd: list[str]) -> subprocess.CompletedProcess[str]:
    logger.debug("Running: %s", " ".join(cmd))
    return subprocess.run(cmd, capture_output=True, text=True, check=False)


class RealPythonToolchain(PythonToolchain):
    """Production implementation using subprocess."""

    def detect_version_manager(self) -> VersionManager | None:
        if shutil.which("asdf") is not None:
            plugins = _capture(["asdf", "plugin", "list"])
            if plugins.returncode == 0 and "python" in plugins.stdout.split():
                return "asdf"
            logger.debug("asdf found without python plugin")
        if shutil.which("pyenv") is not None:
            return "pyenv"
        return None

    def ensure_python_version(self, manager: VersionManager, version: str) -> CommandResult:
        if manager == "asdf":
            cmd = ["asdf", "install", "python", version]
        else:
            cmd = ["pyenv", "install", "--skip-existing", version]
        result = _capture(cmd)
        if result.returncode != 0:
            return CommandResult(
                success=False,
                diagnostic=result.stderr.strip() or result.stdout.strip(),
            )
        return CommandResult(success=True, diagnostic="")

    def python_executable(self, manager: VersionManager | None, version: str) -> str:
        if manager == "asdf":
            result = _capture(["asdf", "where", "python", version])
        elif manager == "pyenv":
            result = _capture(["pyenv", "prefix", version])
        else:
            return "python3"
        if result.returncode != 0 or not result.stdout.strip():
            return "python3"
        return f"{result.stdout.strip()}/bin/python"

    def is_direnv_installed(self) -> bool:
        return shutil.which("direnv") is not None

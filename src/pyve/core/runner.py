"""Running commands inside the project environment and the test runner env.

The project environment is located from the recorded config only; running
never resolves or provisions anything. The test runner env lives in
.pyve/testenv/venv, outside the project environment, so purging or
force-rebuilding the project leaves it in place.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from pyve.core.context import PyveContext
from pyve.core.errors import ProvisionError
from pyve.core.resolution import resolve_config
from pyve.core.state_classifier import ConfigInspection
from pyve.core.types import DEFAULT_PYTHON_VERSION, PYVE_DIR_NAME, Backend

logger = logging.getLogger(__name__)

TESTENV_DIR_NAME = "testenv"
TEST_RUNNER_PACKAGES = ["pytest"]

# Variables that would point a child process at a different interpreter
_CLEARED_VARIABLES = ("PYTHONHOME", "__PYVENV_LAUNCHER__")


@dataclass(frozen=True)
class RunTarget:
    """Environment a command runs in.

    Attributes:
        backend: Backend that created the environment
        env_dir: Environment root (venv directory or micromamba prefix)
        env_name: Micromamba environment name, None for venv
    """

    backend: Backend
    env_dir: Path
    env_name: str | None

    @property
    def bin_dir(self) -> Path:
        return self.env_dir / "bin"


def get_testenv_dir(project_dir: Path) -> Path:
    return project_dir / PYVE_DIR_NAME / TESTENV_DIR_NAME / "venv"


def resolve_run_target(project_dir: Path, inspection: ConfigInspection) -> RunTarget:
    """Locate the recorded project environment.

    Raises:
        CorruptedStateError: If the config is corrupted
        ProvisionError: If the project is not initialized or the environment is missing
    """
    if inspection.error is not None:
        raise inspection.error
    if inspection.record is None:
        raise ProvisionError("Project not initialized. Run 'pyve init' first.")

    config = resolve_config(
        project_dir,
        record=inspection.record,
        backend_flag=None,
        env_name_flag=None,
        python_version_flag=None,
        venv_dir_flag=None,
        fallback=None,
    )
    env_dir = config.paths.env_dir
    if env_dir is None or not env_dir.is_dir():
        raise ProvisionError(
            f"Environment missing at {env_dir}",
            diagnostic="Run 'pyve init --update' to recreate it.",
        )
    return RunTarget(backend=config.backend, env_dir=env_dir, env_name=config.env_name)


def build_run_environment(target: RunTarget, base_env: Mapping[str, str]) -> dict[str, str]:
    """Process environment with the target's bin directory first on PATH.

    Example:
        >>> target = RunTarget(Backend.VENV, Path("/p/.venv"), None)
        >>> build_run_environment(target, {"PATH": "/usr/bin"})["PATH"]
        '/p/.venv/bin:/usr/bin'
    """
    env = {key: value for key, value in base_env.items() if key not in _CLEARED_VARIABLES}
    path = env.get("PATH")
    env["PATH"] = str(target.bin_dir) if not path else f"{target.bin_dir}{os.pathsep}{path}"
    if target.backend == Backend.MICROMAMBA:
        env["CONDA_PREFIX"] = str(target.env_dir)
        if target.env_name is not None:
            env["CONDA_DEFAULT_ENV"] = target.env_name
    else:
        env["VIRTUAL_ENV"] = str(target.env_dir)
    return env


def ensure_testenv(ctx: PyveContext, inspection: ConfigInspection) -> RunTarget:
    """Create the test runner env if it does not exist yet.

    Uses the recorded Python version when the project is initialized.

    Raises:
        ProvisionError: If the environment cannot be created
    """
    env_dir = get_testenv_dir(ctx.project_dir)
    target = RunTarget(backend=Backend.VENV, env_dir=env_dir, env_name=None)
    if env_dir.is_dir():
        return target

    python_version = DEFAULT_PYTHON_VERSION
    if inspection.record is not None:
        python_version = inspection.record.get("python.version") or DEFAULT_PYTHON_VERSION
    manager = ctx.toolchain.detect_version_manager()
    python = ctx.toolchain.python_executable(manager, python_version)

    logger.debug("Creating test runner env at %s with %s", env_dir, python)
    result = ctx.environment.create_venv(env_dir, python)
    if not result.success:
        raise ProvisionError(
            f"Failed to create test environment at {env_dir}", diagnostic=result.diagnostic
        )
    return target


def missing_test_packages(ctx: PyveContext, target: RunTarget) -> list[str]:
    python = target.bin_dir / "python"
    return [name for name in TEST_RUNNER_PACKAGES if not ctx.environment.has_module(python, name)]


def install_test_packages(ctx: PyveContext, target: RunTarget, packages: list[str]) -> None:
    """Install packages into the test runner env.

    Raises:
        ProvisionError: If pip fails
    """
    result = ctx.environment.install_packages(target.bin_dir / "python", packages)
    if not result.success:
        raise ProvisionError(
            f"Failed to install {', '.join(packages)} into the test environment",
            diagnostic=result.diagnostic,
        )

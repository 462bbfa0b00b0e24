"""Shared value types threaded through resolution, classification and reconciliation."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

DEFAULT_PYTHON_VERSION = "3.13.7"
DEFAULT_VENV_DIR = ".venv"

PYVE_DIR_NAME = ".pyve"
ENV_SPEC_FILE_NAME = "environment.yml"
ENV_LOCK_FILE_NAME = "conda-lock.yml"
GENERIC_DEPENDENCY_FILE_NAMES = ("pyproject.toml", "requirements.txt")


class Backend(str, Enum):
    """Strategy used to realize the isolated package environment."""

    VENV = "venv"
    MICROMAMBA = "micromamba"
    UNSET = "unset"

    @classmethod
    def recognized_values(cls) -> tuple[str, ...]:
        return (cls.VENV.value, cls.MICROMAMBA.value)


@dataclass(frozen=True)
class ProjectPaths:
    """Filesystem locations derived for one resolved configuration.

    Attributes:
        project_dir: Root of the project
        env_dir: Directory holding the environment (venv dir or micromamba prefix)
        config_file: The project's .pyve/config
        lock_status_dir: Directory holding environment.yml and conda-lock.yml
    """

    project_dir: Path
    env_dir: Path | None
    config_file: Path
    lock_status_dir: Path

    @property
    def spec_file(self) -> Path:
        return self.lock_status_dir / ENV_SPEC_FILE_NAME

    @property
    def lock_file(self) -> Path:
        return self.lock_status_dir / ENV_LOCK_FILE_NAME


@dataclass(frozen=True)
class ResolvedConfig:
    """Fully resolved configuration for one invocation.

    Built fresh on every invocation and passed explicitly to every component.
    Never persisted directly; persisted fields are written individually into
    the project config.

    Attributes:
        backend: Chosen backend (UNSET when no source decided and no fallback applied)
        env_name: Sanitized environment identifier, or None when not applicable
        python_version: Interpreter version in N.N.N form
        venv_directory: Venv directory name relative to the project (venv backend only)
        paths: Derived filesystem locations
        sources: Which priority-chain source produced each resolved field
    """

    backend: Backend
    env_name: str | None
    python_version: str
    venv_directory: str | None
    paths: ProjectPaths
    sources: dict[str, str]

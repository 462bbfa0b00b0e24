"""Priority-chain resolution of backend, environment identity and settings.

Every resolver follows the same rule: sources are consulted in a fixed
order and the first one that yields a value wins outright. A value that
fails validation is fatal and reported with its source; resolution never
skips ahead to a lower-priority source to hide a user error.
"""

import logging
import re
from pathlib import Path

from pyve.core.config_store import ConfigRecord, get_config_path
from pyve.core.errors import CorruptedStateError, ValidationError
from pyve.core.naming import sanitize_env_name, validate_venv_dir_name
from pyve.core.types import (
    DEFAULT_PYTHON_VERSION,
    DEFAULT_VENV_DIR,
    ENV_LOCK_FILE_NAME,
    ENV_SPEC_FILE_NAME,
    GENERIC_DEPENDENCY_FILE_NAMES,
    PYVE_DIR_NAME,
    Backend,
    ProjectPaths,
    ResolvedConfig,
)
from pyve.core.versioning import validate_python_version

logger = logging.getLogger(__name__)

SOURCE_FLAG = "{flag} flag"
SOURCE_CONFIG = ".pyve/config ({key})"
SOURCE_SPEC_FILE = f"{ENV_SPEC_FILE_NAME} (name)"
SOURCE_DIR_NAME = "project directory name"
SOURCE_FILES = "project files"
SOURCE_DEFAULT = "default"

AUTO_BACKEND = "auto"

_NAME_LINE_RE = re.compile(r"^name:\s*(.*?)\s*$")
_DEPENDENCIES_LINE_RE = re.compile(r"^dependencies:")


def _flag_source(flag: str) -> str:
    return SOURCE_FLAG.format(flag=flag)


def _config_source(key: str) -> str:
    return SOURCE_CONFIG.format(key=key)


def _parse_backend_flag(value: str) -> Backend:
    if value not in Backend.recognized_values():
        raise ValidationError(
            f"Invalid backend {value!r}. Valid backends: "
            f"{', '.join(Backend.recognized_values())}, {AUTO_BACKEND}",
            field="backend",
            source=_flag_source("--backend"),
            value=value,
        )
    return Backend(value)


def detect_backend_from_files(project_dir: Path) -> Backend | None:
    """Infer the backend from dependency files present in the project.

    A micromamba environment file (environment.yml or conda-lock.yml) implies
    micromamba; otherwise a generic dependency file implies venv. When both
    kinds are present micromamba wins.

    Returns:
        The inferred backend, or None if no dependency file is present
    """
    has_conda_files = any(
        (project_dir / name).is_file() for name in (ENV_SPEC_FILE_NAME, ENV_LOCK_FILE_NAME)
    )
    has_python_files = any((project_dir / name).is_file() for name in GENERIC_DEPENDENCY_FILE_NAMES)

    if has_conda_files and has_python_files:
        logger.warning(
            "Both conda/micromamba and Python dependency files found; using micromamba. "
            "Pass --backend venv to override."
        )
        return Backend.MICROMAMBA
    if has_conda_files:
        return Backend.MICROMAMBA
    if has_python_files:
        return Backend.VENV
    return None


def resolve_backend(
    project_dir: Path,
    *,
    flag: str | None,
    record: ConfigRecord | None,
    fallback: Backend | None,
) -> tuple[Backend, str]:
    """Resolve the backend from its priority chain.

    Order: --backend flag (unless "auto"), recorded config, dependency files,
    then the fallback.

    Args:
        project_dir: Project root
        flag: Value of --backend, or None when not given
        record: Parsed project config, or None when uninitialized
        fallback: Backend used when no source decides; None yields Backend.UNSET

    Returns:
        (backend, source) where source names the winning priority-chain entry

    Raises:
        ValidationError: If the flag value is not a recognized backend
        CorruptedStateError: If the recorded backend is not recognized
    """
    if flag is not None and flag != AUTO_BACKEND:
        backend = _parse_backend_flag(flag)
        logger.debug("Backend %s from --backend flag", backend.value)
        return backend, _flag_source("--backend")

    if record is not None:
        recorded = record.get("backend")
        if recorded is not None:
            if recorded not in Backend.recognized_values():
                raise CorruptedStateError(
                    get_config_path(project_dir),
                    "backend",
                    f"invalid value {recorded!r}",
                )
            logger.debug("Backend %s from config", recorded)
            return Backend(recorded), _config_source("backend")

    detected = detect_backend_from_files(project_dir)
    if detected is not None:
        logger.debug("Backend %s from project files", detected.value)
        return detected, SOURCE_FILES

    if fallback is None:
        return Backend.UNSET, SOURCE_DEFAULT
    logger.debug("Backend %s from fallback", fallback.value)
    return fallback, SOURCE_DEFAULT


def parse_environment_name(spec_file: Path) -> str | None:
    """Read the top-level name field from an environment.yml.

    Only a top-level "name:" line is considered; no general YAML parsing.

    Returns:
        The raw name, or None if the file or field is absent or empty
    """
    if not spec_file.is_file():
        return None
    for line in spec_file.read_text(encoding="utf-8").splitlines():
        match = _NAME_LINE_RE.match(line)
        if match is None:
            continue
        value = match.group(1).strip("'\"")
        return value or None
    return None


def resolve_env_name(
    project_dir: Path,
    *,
    flag: str | None,
    record: ConfigRecord | None,
) -> tuple[str, str]:
    """Resolve the environment name from its priority chain.

    Order: --env-name flag, recorded micromamba.env_name, the name field of
    environment.yml, then the project directory name. Every candidate is
    sanitized; a sanitization failure is fatal and names its source.

    Returns:
        (env_name, source)

    Raises:
        ValidationError: If the winning candidate cannot be sanitized
    """
    recorded = record.get("micromamba.env_name") if record is not None else None
    candidates: list[tuple[str | None, str]] = [
        (flag, _flag_source("--env-name")),
        (recorded, _config_source("micromamba.env_name")),
        (parse_environment_name(project_dir / ENV_SPEC_FILE_NAME), SOURCE_SPEC_FILE),
        (project_dir.resolve().name, SOURCE_DIR_NAME),
    ]

    for raw, source in candidates:
        if raw is None:
            continue
        try:
            name = sanitize_env_name(raw)
        except ValidationError as e:
            raise e.with_source(source) from e
        logger.debug("Environment name %r from %s", name, source)
        return name, source

    raise ValidationError(
        "Could not determine an environment name",
        field="env_name",
    )


def resolve_python_version(flag: str | None, record: ConfigRecord | None) -> tuple[str, str]:
    """Resolve the interpreter version: --python-version, config, then default."""
    if flag is not None:
        source = _flag_source("--python-version")
        raw = flag
    elif record is not None and record.get("python.version") is not None:
        source = _config_source("python.version")
        raw = record.get("python.version") or ""
    else:
        return DEFAULT_PYTHON_VERSION, SOURCE_DEFAULT
    try:
        return validate_python_version(raw), source
    except ValidationError as e:
        raise e.with_source(source) from e


def resolve_venv_directory(flag: str | None, record: ConfigRecord | None) -> tuple[str, str]:
    """Resolve the venv directory name: positional argument, config, then default."""
    if flag is not None:
        source = "venv directory argument"
        raw = flag
    elif record is not None and record.get("venv.directory") is not None:
        source = _config_source("venv.directory")
        raw = record.get("venv.directory") or ""
    else:
        return DEFAULT_VENV_DIR, SOURCE_DEFAULT
    try:
        return validate_venv_dir_name(raw), source
    except ValidationError as e:
        raise e.with_source(source) from e


def detect_environment_file(project_dir: Path) -> Path | None:
    """Pick the file micromamba should create the environment from.

    conda-lock.yml is preferred over environment.yml for reproducibility.

    Raises:
        ValidationError: If environment.yml is used and has no dependencies section
    """
    lock_file = project_dir / ENV_LOCK_FILE_NAME
    if lock_file.is_file():
        return lock_file

    spec_file = project_dir / ENV_SPEC_FILE_NAME
    if not spec_file.is_file():
        return None

    lines = spec_file.read_text(encoding="utf-8").splitlines()
    if not any(_DEPENDENCIES_LINE_RE.match(line) for line in lines):
        raise ValidationError(
            f"{ENV_SPEC_FILE_NAME} is missing a 'dependencies:' section",
            field="dependencies",
            source=ENV_SPEC_FILE_NAME,
        )
    return spec_file


def build_project_paths(
    project_dir: Path,
    backend: Backend,
    *,
    env_name: str | None,
    venv_directory: str | None,
) -> ProjectPaths:
    """Derive filesystem locations for a resolved configuration."""
    env_dir: Path | None = None
    if backend == Backend.VENV and venv_directory is not None:
        env_dir = project_dir / venv_directory
    elif backend == Backend.MICROMAMBA and env_name is not None:
        env_dir = project_dir / PYVE_DIR_NAME / "envs" / env_name
    return ProjectPaths(
        project_dir=project_dir,
        env_dir=env_dir,
        config_file=get_config_path(project_dir),
        lock_status_dir=project_dir,
    )


def resolve_config(
    project_dir: Path,
    *,
    record: ConfigRecord | None,
    backend_flag: str | None,
    env_name_flag: str | None,
    python_version_flag: str | None,
    venv_dir_flag: str | None,
    fallback: Backend | None,
) -> ResolvedConfig:
    """Resolve every field of the configuration for one invocation.

    The environment name applies to micromamba only; the venv directory
    applies to venv only.

    Raises:
        ValidationError: If any value fails validation, or a flag does not
            apply to the resolved backend
        CorruptedStateError: If the recorded backend is not recognized
    """
    backend, backend_source = resolve_backend(
        project_dir, flag=backend_flag, record=record, fallback=fallback
    )
    sources = {"backend": backend_source}

    python_version, sources["python.version"] = resolve_python_version(python_version_flag, record)

    env_name: str | None = None
    venv_directory: str | None = None
    if backend == Backend.MICROMAMBA:
        if venv_dir_flag is not None:
            raise ValidationError(
                "A venv directory cannot be used with the micromamba backend",
                field="venv.directory",
                source="venv directory argument",
                value=venv_dir_flag,
            )
        env_name, sources["env_name"] = resolve_env_name(
            project_dir, flag=env_name_flag, record=record
        )
    elif backend == Backend.VENV:
        if env_name_flag is not None:
            raise ValidationError(
                "--env-name only applies to the micromamba backend",
                field="env_name",
                source=_flag_source("--env-name"),
                value=env_name_flag,
            )
        venv_directory, sources["venv.directory"] = resolve_venv_directory(venv_dir_flag, record)

    return ResolvedConfig(
        backend=backend,
        env_name=env_name,
        python_version=python_version,
        venv_directory=venv_directory,
        paths=build_project_paths(
            project_dir, backend, env_name=env_name, venv_directory=venv_directory
        ),
        sources=sources,
    )

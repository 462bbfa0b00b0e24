"""Provisioning orchestration: desired state, reconciliation and teardown.

Functions here perform the work once the CLI layer has settled every
confirmation. They never prompt and never print; they log and return
results, and raise pyve errors on failure.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from pyve.artifacts.gitignore import (
    PYVE_ENV_HEADER,
    ManagedGroup,
    build_managed_groups,
    reconcile_gitignore_file,
    remove_managed_section_file,
)
from pyve.artifacts.models import ReconcileOutcome
from pyve.artifacts.reconcile import is_unmodified, reconcile_artifacts
from pyve.artifacts.state import (
    delete_artifact_state,
    load_artifact_state,
    save_artifact_state,
)
from pyve.artifacts.templates import (
    ASDF_PIN_FILE_NAME,
    PYENV_PIN_FILE_NAME,
    build_desired_artifacts,
)
from pyve.core.config_store import (
    ConfigRecord,
    build_config_record,
    get_config_path,
    save_config,
)
from pyve.core.context import PyveContext
from pyve.core.errors import CorruptedStateError, ProvisionError
from pyve.core.resolution import detect_environment_file
from pyve.core.state_classifier import DesiredState
from pyve.core.types import DEFAULT_VENV_DIR, PYVE_DIR_NAME, Backend, ResolvedConfig
from pyve.gateway.toolchain.abc import VersionManager

logger = logging.getLogger(__name__)

# Files pyve regenerates unconditionally; removed on purge regardless of content
TOOL_OWNED_PATHS = frozenset({ASDF_PIN_FILE_NAME, PYENV_PIN_FILE_NAME})


def pin_file_for(manager: VersionManager | None) -> str | None:
    """Interpreter pin file written for a version manager."""
    if manager == "asdf":
        return ASDF_PIN_FILE_NAME
    if manager == "pyenv":
        return PYENV_PIN_FILE_NAME
    return None


def build_desired_state(
    config: ResolvedConfig,
    *,
    version: str,
    manager: VersionManager | None,
    include_envrc: bool,
    base_record: ConfigRecord | None,
) -> DesiredState:
    """Compute the full desired state for a resolved configuration."""
    return DesiredState(
        config_record=build_config_record(config, version, base=base_record),
        artifacts=build_desired_artifacts(
            config, pin_file_name=pin_file_for(manager), include_envrc=include_envrc
        ),
        gitignore_groups=build_managed_groups(config, include_envrc=include_envrc),
        env_dir=config.paths.env_dir,
    )


def ensure_environment(
    ctx: PyveContext, config: ResolvedConfig, manager: VersionManager | None
) -> bool:
    """Create the environment if it does not exist yet.

    Returns:
        True if an environment was created, False if one already existed

    Raises:
        ProvisionError: If a collaborator is missing or reports failure
    """
    env_dir = config.paths.env_dir
    if env_dir is None:
        raise ProvisionError(f"Cannot create an environment for backend {config.backend.value!r}")
    if env_dir.is_dir():
        logger.debug("Environment already exists at %s", env_dir)
        return False

    if config.backend == Backend.MICROMAMBA:
        micromamba = ctx.environment.find_micromamba(ctx.project_dir)
        if micromamba is None:
            raise ProvisionError(
                "micromamba not found",
                diagnostic="Searched .pyve/bin, ~/.pyve/bin and PATH",
            )
        source_file = detect_environment_file(ctx.project_dir)
        if source_file is None:
            raise ProvisionError("No environment.yml or conda-lock.yml found")
        logger.debug("Creating micromamba environment from %s", source_file.name)
        result = ctx.environment.create_micromamba_env(micromamba, env_dir, source_file)
    else:
        if manager is not None:
            installed = ctx.toolchain.ensure_python_version(manager, config.python_version)
            if not installed.success:
                raise ProvisionError(
                    f"Failed to install Python {config.python_version} with {manager}",
                    diagnostic=installed.diagnostic,
                )
        python = ctx.toolchain.python_executable(manager, config.python_version)
        result = ctx.environment.create_venv(env_dir, python)

    if not result.success:
        raise ProvisionError(
            f"Failed to create {config.backend.value} environment at {env_dir}",
            diagnostic=result.diagnostic,
        )
    return True


@dataclass(frozen=True)
class ProvisionResult:
    """Summary of one reconciliation run."""

    env_created: bool
    outcomes: list[ReconcileOutcome]
    gitignore_changed: bool
    config_changed: bool

    @property
    def changed(self) -> bool:
        return (
            self.env_created
            or self.gitignore_changed
            or self.config_changed
            or any(o.action not in ("unchanged", "kept-modified") for o in self.outcomes)
        )


def reconcile_project(
    ctx: PyveContext,
    config: ResolvedConfig,
    desired: DesiredState,
    *,
    manager: VersionManager | None,
    current_record: ConfigRecord | None,
) -> ProvisionResult:
    """Converge the project to its desired state.

    The config (and with it the version record) is written last, so it only
    changes after every other step succeeded.

    Raises:
        ProvisionError: If the environment cannot be created
    """
    env_created = ensure_environment(ctx, config, manager)

    prior_state = load_artifact_state(ctx.project_dir)
    result = reconcile_artifacts(
        ctx.project_dir,
        desired.artifacts,
        prior_state=prior_state,
        current_version=ctx.version,
    )
    if prior_state != result.state:
        save_artifact_state(ctx.project_dir, result.state)

    gitignore_changed = reconcile_gitignore_file(ctx.project_dir, desired.gitignore_groups)

    config_changed = current_record != desired.config_record
    if config_changed:
        save_config(ctx.project_dir, desired.config_record)

    return ProvisionResult(
        env_created=env_created,
        outcomes=result.outcomes,
        gitignore_changed=gitignore_changed,
        config_changed=config_changed,
    )


@dataclass(frozen=True)
class PurgeResult:
    """What teardown removed and what it kept."""

    removed: list[str]
    kept_modified: list[str]


def default_purge_targets(
    project_dir: Path, record: ConfigRecord | None
) -> tuple[list[Path], list[ManagedGroup]]:
    """Environment directories and managed .gitignore groups to tear down.

    Uses the recorded venv directory when the config is readable, the
    default otherwise. Corrupted configs must still be purgeable.
    """
    venv_directory = DEFAULT_VENV_DIR
    if record is not None and record.get("venv.directory") is not None:
        venv_directory = record.get("venv.directory") or DEFAULT_VENV_DIR

    env_dirs = [project_dir / PYVE_DIR_NAME / "envs"]
    if record is None or record.get("backend") != Backend.MICROMAMBA.value:
        env_dirs.insert(0, project_dir / venv_directory)
    # Every other managed line is covered by the historical set
    groups: list[ManagedGroup] = [(PYVE_ENV_HEADER, [venv_directory])]
    return env_dirs, groups


def purge_project(
    project_dir: Path,
    *,
    env_dirs: list[Path],
    gitignore_groups: list[ManagedGroup],
) -> PurgeResult:
    """Remove everything pyve created, keeping user-modified files.

    Removes environment directories, tool-owned artifacts, user-owned
    artifacts still equal to their baseline, the managed .gitignore section,
    and the config and baseline ledger.
    """
    removed: list[str] = []
    kept: list[str] = []

    for env_dir in env_dirs:
        if env_dir.is_dir():
            shutil.rmtree(env_dir)
            removed.append(_relative(project_dir, env_dir))

    try:
        prior_state = load_artifact_state(project_dir)
    except CorruptedStateError as e:
        logger.warning("Ignoring unreadable baseline ledger: %s", e)
        prior_state = None
    baselines = prior_state.files if prior_state is not None else {}

    for relative_path, baseline in sorted(baselines.items()):
        path = project_dir / relative_path
        if not path.is_file():
            continue
        if relative_path in TOOL_OWNED_PATHS or is_unmodified(project_dir, relative_path, baseline):
            path.unlink()
            removed.append(relative_path)
        else:
            kept.append(relative_path)

    remove_managed_section_file(project_dir, gitignore_groups)

    config_path = get_config_path(project_dir)
    if config_path.exists():
        config_path.unlink()
        removed.append(_relative(project_dir, config_path))
    if delete_artifact_state(project_dir):
        removed.append(f"{PYVE_DIR_NAME}/state.toml")

    pyve_dir = project_dir / PYVE_DIR_NAME
    if pyve_dir.is_dir() and not any(pyve_dir.iterdir()):
        pyve_dir.rmdir()

    logger.debug("Purged %d paths, kept %d modified", len(removed), len(kept))
    return PurgeResult(removed=removed, kept_modified=kept)


def _relative(project_dir: Path, path: Path) -> str:
    return str(path.relative_to(project_dir))

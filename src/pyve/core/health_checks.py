"""Health check implementations for pyve validate and pyve doctor.

Checks inspect the project read-only and report a level per item:
"ok", "warning" or "error". validate turns the worst level into its exit
code; doctor only reports.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pyve.artifacts.fs import compute_file_hash
from pyve.artifacts.state import load_artifact_state
from pyve.artifacts.templates import DOTENV_FILE_NAME
from pyve.core.context import PyveContext
from pyve.core.errors import CorruptedStateError, ValidationError
from pyve.core.lock_staleness import check_lock_status
from pyve.core.resolution import resolve_env_name
from pyve.core.state_classifier import ConfigInspection, inspect_config
from pyve.core.types import (
    DEFAULT_VENV_DIR,
    ENV_LOCK_FILE_NAME,
    ENV_SPEC_FILE_NAME,
    PYVE_DIR_NAME,
    Backend,
)
from pyve.core.versioning import compare_versions

CheckLevel = Literal["ok", "warning", "error"]


@dataclass
class CheckResult:
    """Result of a single health check.

    Attributes:
        name: Name of the check
        level: "ok", "warning" or "error"
        message: Human-readable message describing the result
        details: Optional additional details (e.g., a remediation hint)
    """

    name: str
    level: CheckLevel
    message: str
    details: str | None = None

    @property
    def passed(self) -> bool:
        return self.level != "error"


def check_pyve_version(inspection: ConfigInspection, current_version: str) -> CheckResult:
    """Compare the recorded pyve version against the running one."""
    recorded = inspection.settings.pyve_version if inspection.settings is not None else None
    if recorded is None:
        return CheckResult(
            name="pyve version",
            level="warning",
            message="Pyve version: not recorded (legacy project)",
            details="Run 'pyve init --update' to add version tracking",
        )
    try:
        order = compare_versions(recorded, current_version)
    except ValidationError:
        return CheckResult(
            name="pyve version",
            level="warning",
            message=f"Pyve version: {recorded} (current: {current_version}, not comparable)",
            details="Running pyve version is not a release version",
        )
    if order == "equal":
        return CheckResult(
            name="pyve version", level="ok", message=f"Pyve version: {recorded} (current)"
        )
    if order == "less":
        details = "Migration recommended. Run 'pyve init --update' to update."
    else:
        details = "Project uses newer Pyve version. Consider upgrading."
    return CheckResult(
        name="pyve version",
        level="warning",
        message=f"Pyve version: {recorded} (current: {current_version})",
        details=details,
    )


def check_configuration(inspection: ConfigInspection) -> CheckResult:
    """Check that .pyve/config exists and parses."""
    if inspection.error is not None:
        return CheckResult(
            name="configuration",
            level="error",
            message=f"Configuration: corrupted ({inspection.error.field})",
            details=f"{inspection.error}\nRun 'pyve init --force' to rebuild",
        )
    if inspection.record is None:
        return CheckResult(
            name="configuration",
            level="error",
            message="Configuration: missing",
            details="Run 'pyve init' to initialize",
        )
    return CheckResult(name="configuration", level="ok", message="Configuration: valid")


def check_backend(backend: Backend) -> CheckResult:
    if backend == Backend.UNSET:
        return CheckResult(name="backend", level="error", message="Backend: not configured")
    return CheckResult(name="backend", level="ok", message=f"Backend: {backend.value}")


def check_venv(project_dir: Path, venv_directory: str) -> CheckResult:
    if (project_dir / venv_directory).is_dir():
        return CheckResult(
            name="environment",
            level="ok",
            message=f"Virtual environment: {venv_directory} (exists)",
        )
    return CheckResult(
        name="environment",
        level="error",
        message=f"Virtual environment: {venv_directory} (missing)",
        details="Run 'pyve init' to create.",
    )


def check_environment_file(project_dir: Path) -> CheckResult:
    if (project_dir / ENV_SPEC_FILE_NAME).is_file():
        return CheckResult(
            name="environment file",
            level="ok",
            message=f"Environment file: {ENV_SPEC_FILE_NAME} (exists)",
        )
    return CheckResult(
        name="environment file",
        level="error",
        message=f"Environment file: {ENV_SPEC_FILE_NAME} (missing)",
    )


def check_environment_name(project_dir: Path, inspection: ConfigInspection) -> CheckResult:
    try:
        env_name, source = resolve_env_name(project_dir, flag=None, record=inspection.record)
    except ValidationError as e:
        return CheckResult(
            name="environment name",
            level="error",
            message="Environment name: could not determine",
            details=str(e),
        )
    env_dir = project_dir / PYVE_DIR_NAME / "envs" / env_name
    if not env_dir.is_dir():
        return CheckResult(
            name="environment name",
            level="error",
            message=f"Environment name: {env_name} (environment missing)",
            details="Run 'pyve init' to create.",
        )
    return CheckResult(
        name="environment name",
        level="ok",
        message=f"Environment name: {env_name}",
        details=f"from {source}",
    )


def check_lock_file(project_dir: Path) -> CheckResult:
    status = check_lock_status(project_dir / ENV_SPEC_FILE_NAME, project_dir / ENV_LOCK_FILE_NAME)
    if status == "fresh":
        return CheckResult(
            name="lock file", level="ok", message=f"Lock file: {ENV_LOCK_FILE_NAME} (fresh)"
        )
    if status == "stale":
        return CheckResult(
            name="lock file",
            level="warning",
            message=f"Lock file: {ENV_LOCK_FILE_NAME} (stale)",
            details=f"{ENV_SPEC_FILE_NAME} was modified after {ENV_LOCK_FILE_NAME}",
        )
    return CheckResult(
        name="lock file",
        level="warning",
        message=f"Lock file: {ENV_LOCK_FILE_NAME} (missing)",
        details="Builds are not reproducible without a lock file",
    )


def check_python_version(inspection: ConfigInspection) -> CheckResult | None:
    if inspection.record is None:
        return None
    version = inspection.record.get("python.version")
    if version is None:
        return None
    return CheckResult(name="python version", level="ok", message=f"Python version: {version}")


def check_dotenv(project_dir: Path) -> CheckResult:
    path = project_dir / DOTENV_FILE_NAME
    if not path.is_file():
        return CheckResult(
            name="dotenv",
            level="warning",
            message=f"direnv integration: {DOTENV_FILE_NAME} (missing)",
        )
    mode = path.stat().st_mode & 0o777
    if mode & 0o077:
        return CheckResult(
            name="dotenv",
            level="warning",
            message=f"direnv integration: {DOTENV_FILE_NAME} (permissions {oct(mode)})",
            details=f"Restrict with: chmod 600 {DOTENV_FILE_NAME}",
        )
    return CheckResult(
        name="dotenv",
        level="ok",
        message=f"direnv integration: {DOTENV_FILE_NAME} (exists)",
    )


def run_validation(ctx: PyveContext) -> list[CheckResult]:
    """Run the project checks reported by pyve validate."""
    project_dir = ctx.project_dir
    inspection = inspect_config(project_dir)
    results: list[CheckResult] = []

    if inspection.error is None and inspection.record is not None:
        results.append(check_pyve_version(inspection, ctx.version))

    backend = inspection.settings.backend if inspection.settings is not None else Backend.UNSET
    if inspection.error is None:
        results.append(check_backend(backend))

    if backend == Backend.VENV:
        venv_directory = DEFAULT_VENV_DIR
        if inspection.record is not None:
            venv_directory = inspection.record.get("venv.directory") or DEFAULT_VENV_DIR
        results.append(check_venv(project_dir, venv_directory))
    elif backend == Backend.MICROMAMBA:
        results.append(check_environment_file(project_dir))
        results.append(check_environment_name(project_dir, inspection))
        if (project_dir / ENV_SPEC_FILE_NAME).is_file():
            results.append(check_lock_file(project_dir))

    results.append(check_configuration(inspection))

    python_check = check_python_version(inspection)
    if python_check is not None:
        results.append(python_check)

    if inspection.record is not None:
        results.append(check_dotenv(project_dir))
    return results


def check_artifacts(project_dir: Path) -> list[CheckResult]:
    """Report each tracked artifact against its recorded baseline."""
    try:
        state = load_artifact_state(project_dir)
    except CorruptedStateError as e:
        return [
            CheckResult(
                name="artifacts",
                level="error",
                message="Artifact ledger: corrupted",
                details=str(e),
            )
        ]
    if state is None:
        return []

    results: list[CheckResult] = []
    for relative_path, baseline in sorted(state.files.items()):
        current_hash = compute_file_hash(project_dir / relative_path)
        if current_hash is None:
            results.append(
                CheckResult(
                    name="artifacts",
                    level="warning",
                    message=f"{relative_path}: not installed",
                    details="Run 'pyve init --update' to restore",
                )
            )
        elif current_hash != baseline.hash:
            results.append(
                CheckResult(
                    name="artifacts",
                    level="ok",
                    message=f"{relative_path}: locally modified",
                )
            )
        else:
            results.append(
                CheckResult(
                    name="artifacts",
                    level="ok",
                    message=f"{relative_path}: up-to-date (v{baseline.version})",
                )
            )
    return results


def check_tools(ctx: PyveContext) -> list[CheckResult]:
    """Check availability of the external collaborators."""
    results: list[CheckResult] = []

    manager = ctx.toolchain.detect_version_manager()
    if manager is None:
        results.append(
            CheckResult(
                name="version manager",
                level="warning",
                message="Version manager: not found",
                details="Install asdf (with the python plugin) or pyenv",
            )
        )
    else:
        results.append(
            CheckResult(name="version manager", level="ok", message=f"Version manager: {manager}")
        )

    micromamba = ctx.environment.find_micromamba(ctx.project_dir)
    if micromamba is None:
        results.append(
            CheckResult(
                name="micromamba",
                level="warning",
                message="micromamba: not found",
                details="Needed only for the micromamba backend",
            )
        )
    else:
        results.append(
            CheckResult(name="micromamba", level="ok", message=f"micromamba: {micromamba}")
        )

    if ctx.toolchain.is_direnv_installed():
        results.append(CheckResult(name="direnv", level="ok", message="direnv: installed"))
    else:
        results.append(
            CheckResult(
                name="direnv",
                level="warning",
                message="direnv: not found",
                details="Shell auto-activation via .envrc requires direnv",
            )
        )
    return results

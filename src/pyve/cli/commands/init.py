"""Init command: set up or re-initialize a project environment."""

import logging
from pathlib import Path
from typing import NoReturn

import click

from pyve.cli.constants import (
    EXIT_CONFIRMATION_REQUIRED,
    EXIT_CORRUPTED,
    EXIT_VALIDATION_ERROR,
)
from pyve.cli.output import report_error, success, user_output, warning
from pyve.cli.prompts import choose_reinit_action, confirm, confirm_conflicts
from pyve.artifacts.state import get_state_path
from pyve.core.config_store import ConfigRecord, get_config_path
from pyve.core.context import PyveContext
from pyve.core.errors import PyveError, ValidationError
from pyve.core.lock_staleness import LockPolicy, apply_lock_policy
from pyve.core.provision import (
    ProvisionResult,
    build_desired_state,
    default_purge_targets,
    purge_project,
    reconcile_project,
)
from pyve.core.resolution import resolve_config
from pyve.core.state_classifier import (
    ConfigInspection,
    ProjectState,
    classify_project,
    inspect_config,
)
from pyve.core.types import Backend, ResolvedConfig
from pyve.core.versioning import format_version_drift

logger = logging.getLogger(__name__)


def _lock_policy(ctx: PyveContext, strict: bool) -> LockPolicy:
    if strict:
        return "strict"
    if ctx.is_non_interactive:
        return "non-interactive"
    return "interactive"


def _check_lock(
    ctx: PyveContext, config: ResolvedConfig, *, strict: bool, assume_yes: bool
) -> None:
    """Apply the lock policy for micromamba projects with an environment.yml."""
    if config.backend != Backend.MICROMAMBA or not config.paths.spec_file.is_file():
        return
    result = apply_lock_policy(
        config.paths.spec_file, config.paths.lock_file, _lock_policy(ctx, strict)
    )
    if result.message is None:
        return
    warning(result.message)
    if result.action == "confirm" and not confirm(
        ctx, "Continue anyway?", default=False, assume_yes=assume_yes, automated_answer=True
    ):
        user_output("Initialization cancelled.")
        raise SystemExit(EXIT_CONFIRMATION_REQUIRED)


def _report(result: ProvisionResult) -> None:
    if result.env_created:
        success("Environment created")
    for outcome in result.outcomes:
        if outcome.action == "created":
            success(f"Created {outcome.relative_path}")
        elif outcome.action == "updated":
            success(f"Updated {outcome.relative_path}")
        elif outcome.action == "conflict-copied" and outcome.conflict_path is not None:
            warning(
                f"{outcome.relative_path} was modified locally; "
                f"new version saved as {outcome.conflict_path.name}"
            )
        elif outcome.action == "kept-modified":
            logger.debug("Kept locally modified %s", outcome.relative_path)
    if result.gitignore_changed:
        success("Updated .gitignore")


def _converge(
    ctx: PyveContext,
    config: ResolvedConfig,
    record: ConfigRecord | None,
    inspection: ConfigInspection,
    *,
    include_envrc: bool,
    strict: bool,
    assume_yes: bool,
) -> ProvisionResult:
    """Classify, settle conflicts, check the lock file and reconcile."""
    manager = ctx.toolchain.detect_version_manager()
    desired = build_desired_state(
        config,
        version=ctx.version,
        manager=manager,
        include_envrc=include_envrc,
        base_record=record,
    )
    classification = classify_project(
        ctx.project_dir, inspection, desired, current_version=ctx.version
    )
    if classification.state == ProjectState.CORRUPTED and classification.error is not None:
        _fail_corrupted(classification.error.path, classification.error)
    if classification.pending_paths:
        if not confirm_conflicts(ctx, classification.pending_paths, assume_yes=assume_yes):
            user_output("Initialization cancelled. No files were changed.")
            raise SystemExit(EXIT_CONFIRMATION_REQUIRED)

    _check_lock(ctx, config, strict=strict, assume_yes=assume_yes)
    result = reconcile_project(ctx, config, desired, manager=manager, current_record=record)
    _report(result)
    return result


def _resolve(
    ctx: PyveContext,
    record: ConfigRecord | None,
    *,
    venv_dir: str | None,
    backend: str | None,
    env_name: str | None,
    python_version: str | None,
) -> ResolvedConfig:
    return resolve_config(
        ctx.project_dir,
        record=record,
        backend_flag=backend,
        env_name_flag=env_name,
        python_version_flag=python_version,
        venv_dir_flag=venv_dir,
        fallback=Backend.VENV,
    )


def _purge_for_rebuild(ctx: PyveContext, inspection: ConfigInspection) -> None:
    env_dirs, groups = default_purge_targets(ctx.project_dir, inspection.record)
    result = purge_project(ctx.project_dir, env_dirs=env_dirs, gitignore_groups=groups)
    for path in result.kept_modified:
        warning(f"Kept locally modified {path}")
    success("Purged existing environment")


def _fail_corrupted(path: Path, error: PyveError) -> NoReturn:
    user_output(click.style("Error: ", fg="red") + f"Project state is corrupted: {error}")
    user_output(f"Fix {path} or run 'pyve init --force' to rebuild.")
    raise SystemExit(EXIT_CORRUPTED)


def _warn_version_drift(ctx: PyveContext, inspection: ConfigInspection) -> None:
    if ctx.skip_version_check or inspection.settings is None:
        return
    recorded = inspection.settings.pyve_version
    if recorded is None:
        return
    try:
        drift = format_version_drift(recorded, ctx.version)
    except ValidationError:
        logger.debug("Cannot compare recorded version %s with %s", recorded, ctx.version)
        return
    if drift is not None:
        warning(drift)


def run_init(
    ctx: PyveContext,
    *,
    venv_dir: str | None,
    backend: str | None,
    env_name: str | None,
    python_version: str | None,
    update: bool,
    force: bool,
    no_direnv: bool,
    strict: bool,
    assume_yes: bool,
) -> None:
    """Initialize or re-initialize the project in ctx.project_dir.

    Modes:
    - Uninitialized project: fresh setup.
    - --update: safe in-place reconciliation; never changes the backend.
    - --force: purge, then fresh setup; allowed to change the backend and
      the only way out of a corrupted configuration.
    - No flag on an initialized project: no-op when up to date, otherwise
      ask what to do.
    """
    resolve_args = {
        "venv_dir": venv_dir,
        "backend": backend,
        "env_name": env_name,
        "python_version": python_version,
    }
    converge_args = {"include_envrc": not no_direnv, "strict": strict, "assume_yes": assume_yes}

    if update and force:
        user_output(click.style("Error: ", fg="red") + "--update and --force cannot be combined")
        raise SystemExit(EXIT_VALIDATION_ERROR)

    inspection = inspect_config(ctx.project_dir)
    initialized = inspection.record is not None or inspection.error is not None

    # A leftover ledger without a config is purged too
    if force and (initialized or get_state_path(ctx.project_dir).exists()):
        warning("Force re-initialization will purge the existing environment.")
        if not confirm(
            ctx, "Continue?", default=False, assume_yes=assume_yes, automated_answer=False
        ):
            user_output("Initialization cancelled.")
            raise SystemExit(EXIT_CONFIRMATION_REQUIRED)
        _purge_for_rebuild(ctx, inspection)
        inspection = inspect_config(ctx.project_dir)
        initialized = False

    if inspection.error is not None:
        _fail_corrupted(get_config_path(ctx.project_dir), inspection.error)

    if not initialized:
        config = _resolve(ctx, None, **resolve_args)
        user_output(f"Initializing {config.backend.value} environment...")
        _converge(ctx, config, None, inspection, **converge_args)
        success(f"Project initialized with Pyve v{ctx.version}")
        return

    _warn_version_drift(ctx, inspection)
    record = inspection.record
    assert inspection.settings is not None
    recorded_backend = inspection.settings.backend

    config = _resolve(ctx, record, **resolve_args)
    if config.backend != recorded_backend and update:
        user_output(
            click.style("Error: ", fg="red")
            + f"Backend change detected ({recorded_backend.value} -> {config.backend.value})"
        )
        user_output("Cannot update in-place. Use 'pyve init --force' to change backends.")
        raise SystemExit(EXIT_VALIDATION_ERROR)

    if not update:
        desired = build_desired_state(
            config,
            version=ctx.version,
            manager=ctx.toolchain.detect_version_manager(),
            include_envrc=not no_direnv,
            base_record=record,
        )
        classification = classify_project(
            ctx.project_dir, inspection, desired, current_version=ctx.version
        )
        if classification.state == ProjectState.CORRUPTED and classification.error is not None:
            _fail_corrupted(classification.error.path, classification.error)
        if classification.state == ProjectState.UP_TO_DATE:
            success("Project already initialized and up to date")
            return

        user_output("Project already initialized:")
        for reason in classification.reasons:
            user_output(f"  - {reason}")
        for path in classification.pending_paths:
            user_output(f"  - {path} modified locally")

        if ctx.is_non_interactive:
            user_output("Pass --update or --force to re-initialize without prompting.")
            raise SystemExit(EXIT_CONFIRMATION_REQUIRED)

        choice = choose_reinit_action(ctx)
        if choice == "cancel":
            user_output("Initialization cancelled.")
            return
        if choice == "invalid":
            user_output(click.style("Error: ", fg="red") + "Invalid choice")
            raise SystemExit(EXIT_VALIDATION_ERROR)
        if choice == "purge":
            _purge_for_rebuild(ctx, inspection)
            inspection = inspect_config(ctx.project_dir)
            config = _resolve(ctx, None, **resolve_args)
            _converge(ctx, config, None, inspection, **converge_args)
            success(f"Project re-initialized with Pyve v{ctx.version}")
            return
        if config.backend != recorded_backend:
            user_output(
                click.style("Error: ", fg="red")
                + f"Backend change detected ({recorded_backend.value} -> {config.backend.value})"
            )
            user_output("Cannot update in-place. Choose purge to change backends.")
            raise SystemExit(EXIT_VALIDATION_ERROR)

    result = _converge(ctx, config, record, inspection, **converge_args)
    if result.changed:
        success(f"Project updated to Pyve v{ctx.version}")
    else:
        success("Project already up to date")


@click.command("init")
@click.argument("venv_dir", required=False)
@click.option("--backend", help="Environment backend: venv, micromamba or auto")
@click.option("--env-name", help="Micromamba environment name")
@click.option("--python-version", help="Python version (e.g. 3.13.7)")
@click.option("--update", is_flag=True, help="Update an existing project in place")
@click.option("--force", is_flag=True, help="Purge and re-initialize from scratch")
@click.option("--no-direnv", is_flag=True, help="Do not generate .envrc")
@click.option("--strict", is_flag=True, help="Fail when conda-lock.yml is stale or missing")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Answer yes to confirmations")
@click.pass_obj
def init_cmd(
    ctx: PyveContext,
    venv_dir: str | None,
    backend: str | None,
    env_name: str | None,
    python_version: str | None,
    update: bool,
    force: bool,
    no_direnv: bool,
    strict: bool,
    assume_yes: bool,
) -> None:
    """Initialize the Python environment for this project.

    Examples:

    \b
      # venv in .venv, backend detected from project files
      pyve init

    \b
      # micromamba environment from environment.yml
      pyve init --backend micromamba

    \b
      # Bring an existing project up to the current pyve version
      pyve init --update
    """
    try:
        run_init(
            ctx,
            venv_dir=venv_dir,
            backend=backend,
            env_name=env_name,
            python_version=python_version,
            update=update,
            force=force,
            no_direnv=no_direnv,
            strict=strict,
            assume_yes=assume_yes,
        )
    except PyveError as e:
        raise SystemExit(report_error(e)) from e

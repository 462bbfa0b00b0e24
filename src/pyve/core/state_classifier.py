"""Classify a project's state before reconciliation.

Classification reads the project config, the baseline ledger and the
artifacts on disk, and compares them to the desired state. It never writes.
Unparsable input always maps to CORRUPTED, never to a guessed valid state.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pyve.artifacts.gitignore import ManagedGroup, gitignore_is_current
from pyve.artifacts.models import ArtifactDescriptor, ArtifactState
from pyve.artifacts.reconcile import plan_artifact
from pyve.artifacts.state import load_artifact_state
from pyve.core.config_store import (
    ConfigRecord,
    ProjectSettings,
    get_config_path,
    load_config,
    read_project_settings,
)
from pyve.core.errors import CorruptedStateError, ValidationError
from pyve.core.versioning import compare_versions

logger = logging.getLogger(__name__)


class ProjectState(Enum):
    """Closed set of project states."""

    UNINITIALIZED = "uninitialized"
    UP_TO_DATE = "up-to-date"
    NEEDS_RECONCILIATION = "needs-reconciliation"
    CORRUPTED = "corrupted"
    OPERATOR_CONFLICT_PENDING = "operator-conflict-pending"


@dataclass(frozen=True)
class ConfigInspection:
    """Result of loading .pyve/config without resolving anything.

    Exactly one of these holds:
    - record is None and error is None: no config (uninitialized)
    - error is set: config exists but is corrupted
    - record and settings are set: config is usable
    """

    record: ConfigRecord | None
    settings: ProjectSettings | None
    error: CorruptedStateError | None


def inspect_config(project_dir: Path) -> ConfigInspection:
    """Load and validate the project config, capturing corruption."""
    try:
        record = load_config(project_dir)
        if record is None:
            return ConfigInspection(record=None, settings=None, error=None)
        settings = read_project_settings(record, get_config_path(project_dir))
    except CorruptedStateError as e:
        logger.debug("Config is corrupted: %s", e)
        return ConfigInspection(record=None, settings=None, error=e)
    return ConfigInspection(record=record, settings=settings, error=None)


@dataclass(frozen=True)
class DesiredState:
    """Everything reconciliation would converge the project to."""

    config_record: ConfigRecord
    artifacts: list[ArtifactDescriptor]
    gitignore_groups: list[ManagedGroup]
    env_dir: Path | None


@dataclass(frozen=True)
class Classification:
    """Outcome of classifying a project.

    Attributes:
        state: The classified state
        recorded_version: Version in the config, None when absent
        current_version: Running pyve version
        reasons: Why reconciliation is needed (empty when up to date)
        pending_paths: User-modified artifacts that would get a conflict copy
        error: The corruption, when state is CORRUPTED
    """

    state: ProjectState
    recorded_version: str | None
    current_version: str
    reasons: list[str] = field(default_factory=list)
    pending_paths: list[str] = field(default_factory=list)
    error: CorruptedStateError | None = None


def classify_project(
    project_dir: Path,
    inspection: ConfigInspection,
    desired: DesiredState | None,
    *,
    current_version: str,
) -> Classification:
    """Classify the project against a desired state.

    Args:
        project_dir: Project root
        inspection: Result of inspect_config
        desired: Desired state, required unless the project is uninitialized
            or corrupted
        current_version: Running pyve version

    Returns:
        Classification with the state and what led to it
    """
    if inspection.error is not None:
        return Classification(
            state=ProjectState.CORRUPTED,
            recorded_version=None,
            current_version=current_version,
            error=inspection.error,
        )
    if inspection.record is None or inspection.settings is None:
        # Pre-existing files that a fresh setup would not overwrite
        try:
            pending = find_pending_conflicts(project_dir, desired.artifacts) if desired else []
        except CorruptedStateError as e:
            return Classification(
                state=ProjectState.CORRUPTED,
                recorded_version=None,
                current_version=current_version,
                error=e,
            )
        return Classification(
            state=ProjectState.UNINITIALIZED,
            recorded_version=None,
            current_version=current_version,
            pending_paths=pending,
        )

    recorded_version = inspection.settings.pyve_version
    try:
        prior_state = load_artifact_state(project_dir)
    except CorruptedStateError as e:
        return Classification(
            state=ProjectState.CORRUPTED,
            recorded_version=recorded_version,
            current_version=current_version,
            error=e,
        )

    if desired is None:
        raise ValueError("desired state is required for an initialized project")

    reasons = _collect_reasons(
        project_dir, inspection.record, recorded_version, desired, current_version
    )
    pending = _collect_pending(project_dir, desired.artifacts, prior_state, reasons)

    if pending:
        state = ProjectState.OPERATOR_CONFLICT_PENDING
    elif reasons:
        state = ProjectState.NEEDS_RECONCILIATION
    else:
        state = ProjectState.UP_TO_DATE
    logger.debug("Project state: %s (%s)", state.value, "; ".join(reasons) or "no changes")

    return Classification(
        state=state,
        recorded_version=recorded_version,
        current_version=current_version,
        reasons=reasons,
        pending_paths=pending,
    )


def _collect_reasons(
    project_dir: Path,
    record: ConfigRecord,
    recorded_version: str | None,
    desired: DesiredState,
    current_version: str,
) -> list[str]:
    reasons: list[str] = []
    if recorded_version is None:
        reasons.append("no pyve version recorded")
    else:
        try:
            order = compare_versions(recorded_version, current_version)
        except ValidationError:
            order = None
        if order != "equal":
            reasons.append(f"recorded version {recorded_version} differs from {current_version}")

    if record != desired.config_record:
        reasons.append("configuration changed")

    if desired.env_dir is not None and not desired.env_dir.is_dir():
        reasons.append("environment missing")

    if not gitignore_is_current(project_dir, desired.gitignore_groups):
        reasons.append(".gitignore outdated")
    return reasons


def _collect_pending(
    project_dir: Path,
    artifacts: list[ArtifactDescriptor],
    prior_state: ArtifactState | None,
    reasons: list[str],
) -> list[str]:
    """Plan every artifact; appends to reasons, returns conflict-pending paths."""
    prior_files = prior_state.files if prior_state is not None else {}
    pending: list[str] = []
    for artifact in artifacts:
        baseline = prior_files.get(artifact.relative_path)
        action = plan_artifact(project_dir, artifact, baseline)
        if action == "conflict-copied":
            pending.append(artifact.relative_path)
        elif action == "created":
            reasons.append(f"{artifact.relative_path} missing")
        elif action == "updated":
            reasons.append(f"{artifact.relative_path} outdated")
        elif baseline is None:
            reasons.append(f"{artifact.relative_path} has no recorded baseline")
    return pending


def find_pending_conflicts(project_dir: Path, artifacts: list[ArtifactDescriptor]) -> list[str]:
    """User-owned artifacts that reconciliation would leave alone and copy beside.

    Raises:
        CorruptedStateError: If the baseline ledger cannot be read
    """
    prior_state = load_artifact_state(project_dir)
    return _collect_pending(project_dir, artifacts, prior_state, reasons=[])

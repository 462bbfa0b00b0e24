"""Three-way reconciliation of generated artifacts.

For each user-owned artifact three values are compared: the baseline (the
desired content recorded when pyve last wrote it), the file on disk, and the
new desired content.

- File missing: create it.
- File equals the new desired content: nothing to write.
- File equals the baseline (never edited): overwrite with the new content.
- File differs from the baseline (edited): leave it alone and write the new
  content to a version-suffixed sibling for manual review. When the new
  desired content is the baseline itself there is nothing to review.
- File exists with no baseline and the artifact adopts existing files
  (.env): keep it as is.

Tool-owned artifacts are always overwritten.

After reconciliation every baseline moves to the new desired content, so an
immediate re-run writes nothing.
"""

import logging
from pathlib import Path

from pyve.artifacts.fs import atomic_write, compute_content_hash, read_text
from pyve.artifacts.models import (
    ArtifactDescriptor,
    ArtifactFileState,
    ArtifactState,
    ReconcileAction,
    ReconcileOutcome,
    ReconcileResult,
)

logger = logging.getLogger(__name__)

CONFLICT_SUFFIX = ".pyve-{version}"


def get_conflict_path(destination: Path, version: str) -> Path:
    """Sibling path holding new desired content that could not be applied.

    Example: .envrc -> .envrc.pyve-1.5.3
    """
    return destination.with_name(destination.name + CONFLICT_SUFFIX.format(version=version))


def plan_artifact(
    project_dir: Path,
    artifact: ArtifactDescriptor,
    baseline: ArtifactFileState | None,
) -> ReconcileAction:
    """Decide what reconciliation would do to one artifact, without writing.

    Args:
        project_dir: Project root
        artifact: Desired state
        baseline: Recorded baseline, or None if pyve never recorded one

    Returns:
        The action reconcile_artifacts would take
    """
    destination = artifact.destination(project_dir)
    if not destination.is_file():
        return "created"

    on_disk_hash = compute_content_hash(read_text(destination))
    desired_hash = compute_content_hash(artifact.desired_content)

    if on_disk_hash == desired_hash:
        return "unchanged"
    if artifact.ownership == "tool":
        return "updated"
    if baseline is not None and on_disk_hash == baseline.hash:
        return "updated"
    if baseline is None and artifact.adopt_existing:
        return "kept-modified"
    # User edited the file (or it predates baseline tracking)
    if baseline is not None and baseline.hash == desired_hash:
        return "kept-modified"
    return "conflict-copied"


def reconcile_artifacts(
    project_dir: Path,
    artifacts: list[ArtifactDescriptor],
    *,
    prior_state: ArtifactState | None,
    current_version: str,
) -> ReconcileResult:
    """Converge the on-disk artifacts to their desired content.

    Every write is atomic. The returned state holds the new baselines; the
    caller persists it once all artifacts are reconciled.

    Args:
        project_dir: Project root
        artifacts: Desired artifact set
        prior_state: Baselines from the previous run, or None
        current_version: Running pyve version, recorded with each baseline
            and used to name conflict copies

    Returns:
        ReconcileResult with one outcome per artifact and the new baselines
    """
    prior_files = prior_state.files if prior_state is not None else {}
    outcomes: list[ReconcileOutcome] = []
    new_files: dict[str, ArtifactFileState] = {}

    for artifact in artifacts:
        baseline = prior_files.get(artifact.relative_path)
        action = plan_artifact(project_dir, artifact, baseline)
        destination = artifact.destination(project_dir)
        conflict_path: Path | None = None

        if action in ("created", "updated"):
            atomic_write(destination, artifact.desired_content, mode=artifact.mode)
        elif action == "conflict-copied":
            conflict_path = get_conflict_path(destination, current_version)
            atomic_write(conflict_path, artifact.desired_content, mode=artifact.mode)
            logger.warning(
                "%s was modified locally; new version written to %s",
                artifact.relative_path,
                conflict_path.name,
            )

        logger.debug("Reconciled %s: %s", artifact.relative_path, action)
        outcomes.append(
            ReconcileOutcome(
                relative_path=artifact.relative_path,
                action=action,
                conflict_path=conflict_path,
            )
        )
        new_files[artifact.relative_path] = ArtifactFileState(
            version=current_version,
            hash=compute_content_hash(artifact.desired_content),
        )

    return ReconcileResult(outcomes=outcomes, state=ArtifactState(files=new_files))


def is_unmodified(
    project_dir: Path,
    relative_path: str,
    baseline: ArtifactFileState | None,
) -> bool:
    """Check whether an existing artifact still matches its recorded baseline.

    Used by teardown to decide which user-owned files are safe to remove.
    """
    path = project_dir / relative_path
    if not path.is_file() or baseline is None:
        return False
    return compute_content_hash(read_text(path)) == baseline.hash

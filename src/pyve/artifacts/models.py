"""Data models for generated project artifacts."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

# Tool-owned artifacts are regenerated unconditionally; user-owned artifacts
# go through three-way reconciliation against their baseline.
Ownership = Literal["tool", "user"]

ReconcileAction = Literal["created", "updated", "unchanged", "conflict-copied", "kept-modified"]


@dataclass(frozen=True)
class ArtifactDescriptor:
    """Desired state of one generated file.

    Recomputed each run from the current template set; never persisted.
    """

    relative_path: str  # e.g. ".envrc", relative to the project root
    desired_content: str
    ownership: Ownership
    mode: int | None  # permission bits applied on write, None to keep the default
    # An existing file with no baseline is kept as the user's own
    adopt_existing: bool = False

    def destination(self, project_dir: Path) -> Path:
        return project_dir / self.relative_path


@dataclass(frozen=True)
class ArtifactFileState:
    """Baseline recorded in .pyve/state.toml for one artifact."""

    version: str  # pyve version that wrote the baseline
    hash: str  # content hash of the desired content at that version


@dataclass(frozen=True)
class ArtifactState:
    """State stored in .pyve/state.toml tracking artifact baselines."""

    files: dict[str, ArtifactFileState]


@dataclass(frozen=True)
class ReconcileOutcome:
    """What reconciliation did to one artifact.

    conflict_path is set only for "conflict-copied": the suffixed sibling
    holding the new desired content for manual review.
    """

    relative_path: str
    action: ReconcileAction
    conflict_path: Path | None


@dataclass(frozen=True)
class ReconcileResult:
    """Result of reconciling a full artifact set."""

    outcomes: list[ReconcileOutcome]
    state: ArtifactState

    @property
    def changed(self) -> bool:
        return any(
            outcome.action not in ("unchanged", "kept-modified") for outcome in self.outcomes
        )

    @property
    def conflicts(self) -> list[ReconcileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.action == "conflict-copied"]

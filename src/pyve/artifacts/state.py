"""State file I/O for .pyve/state.toml."""

from pathlib import Path

import tomli
import tomli_w

from pyve.artifacts.fs import atomic_write
from pyve.artifacts.models import ArtifactFileState, ArtifactState
from pyve.core.errors import CorruptedStateError
from pyve.core.types import PYVE_DIR_NAME


def get_state_path(project_dir: Path) -> Path:
    """Get path to state.toml file."""
    return project_dir / PYVE_DIR_NAME / "state.toml"


def load_artifact_state(project_dir: Path) -> ArtifactState | None:
    """Load artifact baselines from .pyve/state.toml.

    Returns None if file does not exist.

    Raises:
        CorruptedStateError: If the file is not valid TOML or an entry is incomplete
    """
    path = get_state_path(project_dir)
    if not path.exists():
        return None
    with open(path, "rb") as f:
        try:
            data = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise CorruptedStateError(path, "artifacts", f"invalid TOML: {e}") from e

    files: dict[str, ArtifactFileState] = {}
    for relative_path, entry in data.get("artifacts", {}).items():
        if "version" not in entry or "hash" not in entry:
            raise CorruptedStateError(path, f"artifacts.{relative_path}", "missing version or hash")
        files[relative_path] = ArtifactFileState(version=entry["version"], hash=entry["hash"])
    return ArtifactState(files=files)


def save_artifact_state(project_dir: Path, state: ArtifactState) -> None:
    """Save state to .pyve/state.toml.

    Entries are written in sorted order so repeated saves are byte-identical.
    """
    path = get_state_path(project_dir)
    data = {
        "artifacts": {
            relative_path: {"version": entry.version, "hash": entry.hash}
            for relative_path, entry in sorted(state.files.items())
        }
    }
    atomic_write(path, tomli_w.dumps(data))


def delete_artifact_state(project_dir: Path) -> bool:
    """Remove .pyve/state.toml. Returns True if a file was removed."""
    path = get_state_path(project_dir)
    if not path.exists():
        return False
    path.unlink()
    return True

"""Tests for project state classification."""

import shutil
from pathlib import Path

from pyve.artifacts.models import ArtifactFileState, ArtifactState
from pyve.artifacts.state import get_state_path, load_artifact_state, save_artifact_state
from pyve.core.config_store import get_config_path, load_config
from pyve.core.context import PyveContext
from pyve.core.provision import build_desired_state, reconcile_project
from pyve.core.resolution import resolve_config
from pyve.core.state_classifier import (
    Classification,
    DesiredState,
    ProjectState,
    classify_project,
    find_pending_conflicts,
    inspect_config,
)
from pyve.core.types import Backend


def _desired(project_dir: Path, version: str = "1.5.3") -> DesiredState:
    record = load_config(project_dir)
    config = resolve_config(
        project_dir,
        record=record,
        backend_flag=None,
        env_name_flag=None,
        python_version_flag=None,
        venv_dir_flag=None,
        fallback=Backend.VENV,
    )
    return build_desired_state(
        config, version=version, manager="asdf", include_envrc=True, base_record=record
    )


def _initialize(project_dir: Path) -> None:
    ctx = PyveContext.for_test(project_dir)
    desired = _desired(project_dir)
    config = resolve_config(
        project_dir,
        record=None,
        backend_flag=None,
        env_name_flag=None,
        python_version_flag=None,
        venv_dir_flag=None,
        fallback=Backend.VENV,
    )
    reconcile_project(ctx, config, desired, manager="asdf", current_record=None)


def _classify(project_dir: Path, version: str = "1.5.3") -> Classification:
    return classify_project(
        project_dir,
        inspect_config(project_dir),
        _desired(project_dir, version),
        current_version=version,
    )


def test_inspect_config_uninitialized(tmp_project: Path) -> None:
    inspection = inspect_config(tmp_project)
    assert inspection.record is None
    assert inspection.error is None


def test_inspect_config_captures_corruption(tmp_project: Path) -> None:
    get_config_path(tmp_project).parent.mkdir()
    get_config_path(tmp_project).write_text("backend: conda\n", encoding="utf-8")

    inspection = inspect_config(tmp_project)

    assert inspection.record is None
    assert inspection.error is not None
    assert inspection.error.field == "backend"


def test_classify_uninitialized(tmp_project: Path) -> None:
    classification = _classify(tmp_project)
    assert classification.state == ProjectState.UNINITIALIZED
    assert classification.pending_paths == []


def test_classify_uninitialized_reports_preexisting_files(tmp_project: Path) -> None:
    """Test that files a fresh setup would not overwrite are listed up front."""
    (tmp_project / ".envrc").write_text("export MINE=1\n", encoding="utf-8")

    classification = _classify(tmp_project)

    assert classification.state == ProjectState.UNINITIALIZED
    assert classification.pending_paths == [".envrc"]


def test_classify_up_to_date(tmp_project: Path) -> None:
    _initialize(tmp_project)

    classification = _classify(tmp_project)

    assert classification.state == ProjectState.UP_TO_DATE
    assert classification.reasons == []
    assert classification.recorded_version == "1.5.3"


def test_classify_version_drift_needs_reconciliation(tmp_project: Path) -> None:
    _initialize(tmp_project)

    classification = _classify(tmp_project, version="1.6.0")

    assert classification.state == ProjectState.NEEDS_RECONCILIATION
    assert "recorded version 1.5.3 differs from 1.6.0" in classification.reasons


def test_classify_missing_environment(tmp_project: Path) -> None:
    _initialize(tmp_project)
    shutil.rmtree(tmp_project / ".venv")

    classification = _classify(tmp_project)

    assert classification.state == ProjectState.NEEDS_RECONCILIATION
    assert classification.reasons == ["environment missing"]


def test_classify_missing_artifact(tmp_project: Path) -> None:
    _initialize(tmp_project)
    (tmp_project / ".envrc").unlink()

    classification = _classify(tmp_project)

    assert classification.state == ProjectState.NEEDS_RECONCILIATION
    assert ".envrc missing" in classification.reasons


def test_classify_edited_artifact_is_up_to_date(tmp_project: Path) -> None:
    """Test that an edit against the current template needs nothing."""
    _initialize(tmp_project)
    (tmp_project / ".envrc").write_text("export MINE=1\n", encoding="utf-8")

    assert _classify(tmp_project).state == ProjectState.UP_TO_DATE


def test_classify_conflict_pending(tmp_project: Path) -> None:
    """Test that an edited file whose template changed needs an operator decision."""
    _initialize(tmp_project)
    state = load_artifact_state(tmp_project)
    assert state is not None
    files = dict(state.files)
    files[".envrc"] = ArtifactFileState(version="1.4.0", hash="0000000000000000")
    save_artifact_state(tmp_project, ArtifactState(files=files))
    (tmp_project / ".envrc").write_text("export MINE=1\n", encoding="utf-8")

    classification = _classify(tmp_project)

    assert classification.state == ProjectState.OPERATOR_CONFLICT_PENDING
    assert classification.pending_paths == [".envrc"]
    assert find_pending_conflicts(tmp_project, _desired(tmp_project).artifacts) == [".envrc"]


def test_classify_corrupted_config(tmp_project: Path) -> None:
    get_config_path(tmp_project).parent.mkdir()
    get_config_path(tmp_project).write_text("pyve_version: 1.5\nbackend: venv\n", encoding="utf-8")

    classification = classify_project(
        tmp_project, inspect_config(tmp_project), None, current_version="1.5.3"
    )

    assert classification.state == ProjectState.CORRUPTED
    assert classification.error is not None


def test_classify_corrupted_ledger(tmp_project: Path) -> None:
    _initialize(tmp_project)
    get_state_path(tmp_project).write_text("[[[\n", encoding="utf-8")

    assert _classify(tmp_project).state == ProjectState.CORRUPTED

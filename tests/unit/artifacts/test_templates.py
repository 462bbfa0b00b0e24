"""Tests for the desired artifact set."""

from pathlib import Path

from pyve.artifacts.templates import (
    DOTENV_MODE,
    build_desired_artifacts,
    render_envrc,
    render_pin_file,
)
from pyve.core.resolution import resolve_config
from pyve.core.types import Backend, ResolvedConfig


def _resolve(project_dir: Path, backend: str, **flags: str) -> ResolvedConfig:
    return resolve_config(
        project_dir,
        record=None,
        backend_flag=backend,
        env_name_flag=flags.get("env_name"),
        python_version_flag=flags.get("python_version"),
        venv_dir_flag=flags.get("venv_dir"),
        fallback=Backend.VENV,
    )


def test_render_envrc_for_venv(tmp_project: Path) -> None:
    envrc = render_envrc(_resolve(tmp_project, "venv", venv_dir="env"))

    assert 'export VIRTUAL_ENV="$PWD/env"' in envrc
    assert 'PATH_add "$VIRTUAL_ENV/bin"' in envrc
    assert "dotenv_if_exists .env" in envrc


def test_render_envrc_for_micromamba(tmp_project: Path) -> None:
    envrc = render_envrc(_resolve(tmp_project, "micromamba", env_name="Data Lab"))

    assert 'export CONDA_PREFIX="$PWD/.pyve/envs/data-lab"' in envrc
    assert 'export CONDA_DEFAULT_ENV="data-lab"' in envrc


def test_render_pin_file() -> None:
    assert render_pin_file(".tool-versions", "3.13.7") == "python 3.13.7\n"
    assert render_pin_file(".python-version", "3.13.7") == "3.13.7\n"


def test_build_desired_artifacts_for_venv(tmp_project: Path) -> None:
    """Test the artifact set, ownership and order for a venv project."""
    artifacts = build_desired_artifacts(
        _resolve(tmp_project, "venv", python_version="3.12.4"),
        pin_file_name=".tool-versions",
        include_envrc=True,
    )

    assert [a.relative_path for a in artifacts] == [".tool-versions", ".envrc", ".env"]
    assert [a.ownership for a in artifacts] == ["tool", "user", "user"]
    assert artifacts[0].desired_content == "python 3.12.4\n"
    assert artifacts[2].desired_content == ""
    assert artifacts[2].mode == DOTENV_MODE


def test_build_desired_artifacts_without_envrc_or_pin(tmp_project: Path) -> None:
    artifacts = build_desired_artifacts(
        _resolve(tmp_project, "venv"), pin_file_name=None, include_envrc=False
    )
    assert [a.relative_path for a in artifacts] == [".env"]


def test_build_desired_artifacts_micromamba_has_no_pin_file(tmp_project: Path) -> None:
    """Test that micromamba projects get their interpreter from the environment."""
    artifacts = build_desired_artifacts(
        _resolve(tmp_project, "micromamba"),
        pin_file_name=".python-version",
        include_envrc=True,
    )
    assert [a.relative_path for a in artifacts] == [".envrc", ".env"]

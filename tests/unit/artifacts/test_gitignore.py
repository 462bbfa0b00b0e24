"""Tests for the managed .gitignore section."""

from pathlib import Path

import pytest

from pyve.artifacts.gitignore import (
    PYVE_ENV_HEADER,
    ManagedGroup,
    build_managed_groups,
    extract_user_lines,
    gitignore_is_current,
    insert_entry,
    insert_entry_file,
    reconcile_gitignore_file,
    remove_managed_section,
    remove_managed_section_file,
    render_gitignore,
)
from pyve.core.resolution import resolve_config
from pyve.core.types import Backend

MANAGED_VENV = (
    "# macOS\n"
    ".DS_Store\n"
    "\n"
    "# Python build and test artifacts\n"
    "__pycache__\n"
    "*.egg-info\n"
    ".coverage\n"
    ".pytest_cache\n"
    "\n"
    "# Pyve virtual environment\n"
    ".venv\n"
    ".pyve/testenv\n"
    ".env\n"
    ".envrc\n"
)


def _groups(
    project_dir: Path, backend: str = "venv", include_envrc: bool = True
) -> list[ManagedGroup]:
    config = resolve_config(
        project_dir,
        record=None,
        backend_flag=backend,
        env_name_flag=None,
        python_version_flag=None,
        venv_dir_flag=None,
        fallback=Backend.VENV,
    )
    return build_managed_groups(config, include_envrc=include_envrc)


@pytest.fixture
def venv_groups(tmp_project: Path) -> list[ManagedGroup]:
    return _groups(tmp_project)


def test_render_gitignore_for_new_file(venv_groups: list[ManagedGroup]) -> None:
    assert render_gitignore(None, venv_groups) == MANAGED_VENV


def test_micromamba_groups_ignore_env_prefix(tmp_project: Path) -> None:
    groups = _groups(tmp_project, backend="micromamba", include_envrc=False)
    assert groups[-1] == (PYVE_ENV_HEADER, [".pyve/envs", ".pyve/testenv", ".env"])


def test_render_gitignore_preserves_user_lines_in_order(venv_groups: list[ManagedGroup]) -> None:
    existing = "node_modules/\n# my notes\n*.log\n"

    result = render_gitignore(existing, venv_groups)

    assert result == MANAGED_VENV + "\nnode_modules/\n# my notes\n*.log\n"


def test_render_gitignore_deduplicates_managed_entries(venv_groups: list[ManagedGroup]) -> None:
    """Test that managed entries copied into the user section appear exactly once."""
    existing = MANAGED_VENV + "\n*.log\n.venv\n__pycache__\n.env\n"

    result = render_gitignore(existing, venv_groups)

    lines = result.splitlines()
    assert lines.count(".venv") == 1
    assert lines.count("__pycache__") == 1
    assert lines.count(".env") == 1
    assert result.endswith("\n*.log\n")


def test_render_gitignore_absorbs_historical_lines(venv_groups: list[ManagedGroup]) -> None:
    """Test that entries written by earlier versions do not linger in the user section."""
    existing = "# Pyve\n*.pyc\n.tool-versions\n\ndist/\n"

    result = render_gitignore(existing, venv_groups)

    assert "# Pyve\n" not in result
    assert "*.pyc" not in result
    assert result.endswith("\ndist/\n")


def test_render_gitignore_collapses_blank_runs(venv_groups: list[ManagedGroup]) -> None:
    existing = "\n\n\nbuild/\n\n\n\ndist/\n\n\n"

    result = render_gitignore(existing, venv_groups)

    assert "\n\n\n" not in result
    assert result.endswith("\nbuild/\n\ndist/\n")


def test_render_gitignore_is_idempotent(venv_groups: list[ManagedGroup]) -> None:
    existing = "*.log\n\n\n.venv\n# notes\n"
    once = render_gitignore(existing, venv_groups)
    assert render_gitignore(once, venv_groups) == once


def test_extract_user_lines_ignores_surrounding_whitespace() -> None:
    assert extract_user_lines("  .venv  \nkeep\n", [".venv"]) == ["keep"]


def test_remove_managed_section(venv_groups: list[ManagedGroup]) -> None:
    content = render_gitignore("*.log\n", venv_groups)
    assert remove_managed_section(content, venv_groups) == "*.log\n"
    assert remove_managed_section(MANAGED_VENV, venv_groups) is None


def test_insert_entry_appends_to_marker_block() -> None:
    content = "# Pyve virtual environment\n.env\n\n# mine\n*.log\n"
    assert insert_entry(content, PYVE_ENV_HEADER, "build/") == (
        "# Pyve virtual environment\n.env\nbuild/\n\n# mine\n*.log\n"
    )


def test_render_gitignore_keeps_extras_in_their_group(venv_groups: list[ManagedGroup]) -> None:
    """Test that an entry added under a managed header is not moved to the user section."""
    existing = MANAGED_VENV + "build/\n\n*.log\n"

    assert render_gitignore(existing, venv_groups) == existing


def test_inserted_entry_survives_rewrite(venv_groups: list[ManagedGroup]) -> None:
    inserted = insert_entry(render_gitignore("*.log\n", venv_groups), PYVE_ENV_HEADER, "build/")

    assert render_gitignore(inserted, venv_groups) == inserted
    assert inserted.splitlines().count("build/") == 1


def test_group_extra_duplicated_in_user_section_appears_once(
    venv_groups: list[ManagedGroup],
) -> None:
    existing = MANAGED_VENV + "build/\n\nbuild/\n*.log\n"

    result = render_gitignore(existing, venv_groups)

    assert result == MANAGED_VENV + "build/\n\n*.log\n"


def test_insert_entry_is_noop_when_present() -> None:
    content = "# Pyve virtual environment\n.env\n"
    assert insert_entry(content, PYVE_ENV_HEADER, ".env") == content


def test_insert_entry_appends_without_marker() -> None:
    assert insert_entry("*.log", PYVE_ENV_HEADER, "out/") == "*.log\nout/\n"
    assert insert_entry("", PYVE_ENV_HEADER, "out/") == "out/\n"


def test_reconcile_gitignore_file(tmp_project: Path, venv_groups: list[ManagedGroup]) -> None:
    """Test that the file is written once and then left alone."""
    assert gitignore_is_current(tmp_project, venv_groups) is False

    assert reconcile_gitignore_file(tmp_project, venv_groups) is True
    assert (tmp_project / ".gitignore").read_text(encoding="utf-8") == MANAGED_VENV
    assert gitignore_is_current(tmp_project, venv_groups) is True
    assert reconcile_gitignore_file(tmp_project, venv_groups) is False


def test_insert_entry_file_creates_file(tmp_project: Path) -> None:
    assert insert_entry_file(tmp_project, PYVE_ENV_HEADER, "data/") is True
    assert (tmp_project / ".gitignore").read_text(encoding="utf-8") == "data/\n"
    assert insert_entry_file(tmp_project, PYVE_ENV_HEADER, "data/") is False


def test_remove_managed_section_file(tmp_project: Path, venv_groups: list[ManagedGroup]) -> None:
    gitignore = tmp_project / ".gitignore"
    gitignore.write_text(MANAGED_VENV + "\n*.log\n", encoding="utf-8")

    remove_managed_section_file(tmp_project, venv_groups)

    assert gitignore.read_text(encoding="utf-8") == "*.log\n"


def test_remove_managed_section_file_deletes_empty_file(
    tmp_project: Path, venv_groups: list[ManagedGroup]
) -> None:
    gitignore = tmp_project / ".gitignore"
    gitignore.write_text(MANAGED_VENV, encoding="utf-8")

    remove_managed_section_file(tmp_project, venv_groups)

    assert not gitignore.exists()

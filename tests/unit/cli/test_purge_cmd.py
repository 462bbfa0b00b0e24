"""Tests for pyve purge."""

from pathlib import Path

from click.testing import CliRunner

from pyve.cli.cli import cli
from pyve.core.config_store import get_config_path
from pyve.core.context import PyveContext


def _initialize(ctx: PyveContext) -> None:
    result = CliRunner().invoke(cli, ["init"], obj=ctx)
    assert result.exit_code == 0, result.output


def test_purge_removes_generated_files(tmp_project: Path) -> None:
    ctx = PyveContext.for_test(tmp_project)
    _initialize(ctx)

    result = CliRunner().invoke(cli, ["purge", "--yes"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Removed .venv" in result.output
    assert "Purge complete." in result.output
    assert list(tmp_project.iterdir()) == []


def test_purge_keeps_modified_files(tmp_project: Path) -> None:
    ctx = PyveContext.for_test(tmp_project)
    _initialize(ctx)
    (tmp_project / ".env").write_text("TOKEN=abc\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["purge", "--yes"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "Kept .env (modified locally)" in result.output
    assert (tmp_project / ".env").read_text(encoding="utf-8") == "TOKEN=abc\n"


def test_purge_declined_when_non_interactive(tmp_project: Path) -> None:
    """Test that automated runs never purge without --yes."""
    ctx = PyveContext.for_test(tmp_project)
    _initialize(ctx)

    result = CliRunner().invoke(cli, ["purge"], obj=ctx)

    assert result.exit_code == 2
    assert "Purge cancelled." in result.output
    assert (tmp_project / ".venv").is_dir()


def test_purge_with_force_yes_environment(tmp_project: Path) -> None:
    ctx = PyveContext.for_test(tmp_project, env={"PYVE_FORCE_YES": "true"})
    _initialize(ctx)

    result = CliRunner().invoke(cli, ["purge"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert not get_config_path(tmp_project).exists()


def test_purge_corrupted_project(tmp_project: Path) -> None:
    config_path = get_config_path(tmp_project)
    config_path.parent.mkdir()
    config_path.write_text("::::\n", encoding="utf-8")
    (tmp_project / ".venv").mkdir()

    result = CliRunner().invoke(cli, ["purge", "-y"], obj=PyveContext.for_test(tmp_project))

    assert result.exit_code == 0, result.output
    assert "Configuration is corrupted" in result.output
    assert not (tmp_project / ".venv").exists()
    assert not config_path.exists()

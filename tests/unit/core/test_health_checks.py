"""Tests for validate and doctor health checks."""

import os
from pathlib import Path

from pyve.cli.commands.validate import validation_exit_code
from pyve.core.config_store import ConfigRecord, save_config
from pyve.core.context import PyveContext
from pyve.core.health_checks import (
    CheckResult,
    check_artifacts,
    check_dotenv,
    check_lock_file,
    check_pyve_version,
    check_tools,
    run_validation,
)
from pyve.core.provision import build_desired_state, reconcile_project
from pyve.core.resolution import resolve_config
from pyve.core.state_classifier import inspect_config
from pyve.core.types import Backend
from pyve.gateway.environment.fake import FakeEnvironmentBuilder
from pyve.gateway.toolchain.fake import FakePythonToolchain


def _initialize(ctx: PyveContext) -> None:
    config = resolve_config(
        ctx.project_dir,
        record=None,
        backend_flag=None,
        env_name_flag=None,
        python_version_flag=None,
        venv_dir_flag=None,
        fallback=Backend.VENV,
    )
    desired = build_desired_state(
        config, version=ctx.version, manager="asdf", include_envrc=True, base_record=None
    )
    reconcile_project(ctx, config, desired, manager="asdf", current_record=None)


def _levels(results: list[CheckResult]) -> dict[str, str]:
    return {result.name: result.level for result in results}


def test_validation_exit_code() -> None:
    ok = CheckResult(name="a", level="ok", message="")
    warn = CheckResult(name="b", level="warning", message="")
    error = CheckResult(name="c", level="error", message="")

    assert validation_exit_code([ok]) == 0
    assert validation_exit_code([ok, warn]) == 2
    assert validation_exit_code([warn, error]) == 1
    assert error.passed is False
    assert warn.passed is True


def test_run_validation_on_initialized_project(tmp_project: Path) -> None:
    ctx = PyveContext.for_test(tmp_project)
    _initialize(ctx)

    results = run_validation(ctx)

    assert _levels(results) == {
        "pyve version": "ok",
        "backend": "ok",
        "environment": "ok",
        "configuration": "ok",
        "python version": "ok",
        "dotenv": "ok",
    }
    assert validation_exit_code(results) == 0


def test_run_validation_uninitialized(tmp_project: Path) -> None:
    results = run_validation(PyveContext.for_test(tmp_project))

    assert _levels(results) == {"backend": "error", "configuration": "error"}
    assert validation_exit_code(results) == 1


def test_run_validation_corrupted(tmp_project: Path) -> None:
    save_config(tmp_project, ConfigRecord(scalars={"backend": "pip"}))

    results = run_validation(PyveContext.for_test(tmp_project))

    assert _levels(results) == {"configuration": "error"}
    assert "corrupted" in results[0].message


def test_run_validation_micromamba_missing_environment(tmp_project: Path) -> None:
    (tmp_project / "environment.yml").write_text(
        "name: lab\ndependencies:\n  - python\n", encoding="utf-8"
    )
    save_config(
        tmp_project,
        ConfigRecord(
            scalars={"pyve_version": "1.5.3", "backend": "micromamba"},
            sections={"micromamba": {"env_name": "lab"}},
        ),
    )

    results = run_validation(PyveContext.for_test(tmp_project))
    levels = _levels(results)

    assert levels["environment file"] == "ok"
    assert levels["environment name"] == "error"
    assert levels["lock file"] == "warning"


def test_check_pyve_version_legacy_and_drift(tmp_project: Path) -> None:
    save_config(tmp_project, ConfigRecord(scalars={"backend": "venv"}))
    legacy = check_pyve_version(inspect_config(tmp_project), "1.5.3")
    assert legacy.level == "warning"
    assert "legacy" in legacy.message

    save_config(tmp_project, ConfigRecord(scalars={"pyve_version": "1.4.0", "backend": "venv"}))
    drift = check_pyve_version(inspect_config(tmp_project), "1.5.3")
    assert drift.level == "warning"
    assert drift.message == "Pyve version: 1.4.0 (current: 1.5.3)"


def test_check_lock_file_stale(tmp_project: Path) -> None:
    spec = tmp_project / "environment.yml"
    lock = tmp_project / "conda-lock.yml"
    lock.write_text("version: 1\n", encoding="utf-8")
    spec.write_text("dependencies: []\n", encoding="utf-8")
    os.utime(lock, (1_000, 1_000))
    os.utime(spec, (2_000, 2_000))

    result = check_lock_file(tmp_project)

    assert result.level == "warning"
    assert "stale" in result.message


def test_check_dotenv_warns_on_open_permissions(tmp_project: Path) -> None:
    dotenv = tmp_project / ".env"
    dotenv.write_text("", encoding="utf-8")
    dotenv.chmod(0o644)

    result = check_dotenv(tmp_project)

    assert result.level == "warning"
    assert result.details == "Restrict with: chmod 600 .env"


def test_check_artifacts(tmp_project: Path) -> None:
    ctx = PyveContext.for_test(tmp_project)
    _initialize(ctx)
    (tmp_project / ".envrc").write_text("export MINE=1\n", encoding="utf-8")
    (tmp_project / ".tool-versions").unlink()

    messages = {result.message: result.level for result in check_artifacts(tmp_project)}

    assert messages == {
        ".env: up-to-date (v1.5.3)": "ok",
        ".envrc: locally modified": "ok",
        ".tool-versions: not installed": "warning",
    }


def test_check_artifacts_without_ledger(tmp_project: Path) -> None:
    assert check_artifacts(tmp_project) == []


def test_check_tools(tmp_project: Path) -> None:
    ctx = PyveContext.for_test(
        tmp_project,
        environment=FakeEnvironmentBuilder(micromamba_path=Path("/usr/bin/micromamba")),
        toolchain=FakePythonToolchain(version_manager=None, direnv_installed=False),
    )

    levels = _levels(check_tools(ctx))

    assert levels == {"version manager": "warning", "micromamba": "ok", "direnv": "warning"}


def test_check_pyve_version_with_development_build(tmp_project: Path) -> None:
    save_config(tmp_project, ConfigRecord(scalars={"pyve_version": "1.5.3", "backend": "venv"}))

    result = check_pyve_version(inspect_config(tmp_project), "1.6.0.dev0")

    assert result.level == "warning"
    assert "not comparable" in result.message

"""Tests for running commands in the project and test runner environments."""

from pathlib import Path

import pytest

from pyve.core.config_store import ConfigRecord, save_config
from pyve.core.context import PyveContext
from pyve.core.errors import CorruptedStateError, ProvisionError
from pyve.core.runner import (
    RunTarget,
    build_run_environment,
    ensure_testenv,
    get_testenv_dir,
    missing_test_packages,
    resolve_run_target,
)
from pyve.core.state_classifier import inspect_config
from pyve.core.types import Backend
from pyve.gateway.environment.fake import FakeEnvironmentBuilder


def test_resolve_run_target_for_venv(tmp_project: Path) -> None:
    save_config(
        tmp_project,
        ConfigRecord(
            scalars={"pyve_version": "1.5.3", "backend": "venv"},
            sections={"venv": {"directory": "env"}},
        ),
    )
    (tmp_project / "env").mkdir()

    target = resolve_run_target(tmp_project, inspect_config(tmp_project))

    assert target == RunTarget(backend=Backend.VENV, env_dir=tmp_project / "env", env_name=None)


def test_resolve_run_target_for_micromamba(tmp_project: Path) -> None:
    save_config(
        tmp_project,
        ConfigRecord(
            scalars={"pyve_version": "1.5.3", "backend": "micromamba"},
            sections={"micromamba": {"env_name": "lab"}},
        ),
    )
    (tmp_project / ".pyve" / "envs" / "lab").mkdir(parents=True)

    target = resolve_run_target(tmp_project, inspect_config(tmp_project))

    assert target.env_dir == tmp_project / ".pyve" / "envs" / "lab"
    assert target.env_name == "lab"


def test_resolve_run_target_requires_initialized_project(tmp_project: Path) -> None:
    with pytest.raises(ProvisionError, match="not initialized"):
        resolve_run_target(tmp_project, inspect_config(tmp_project))


def test_resolve_run_target_requires_environment(tmp_project: Path) -> None:
    save_config(tmp_project, ConfigRecord(scalars={"pyve_version": "1.5.3", "backend": "venv"}))

    with pytest.raises(ProvisionError, match="Environment missing"):
        resolve_run_target(tmp_project, inspect_config(tmp_project))


def test_resolve_run_target_propagates_corruption(tmp_project: Path) -> None:
    save_config(tmp_project, ConfigRecord(scalars={"backend": "pip"}))

    with pytest.raises(CorruptedStateError):
        resolve_run_target(tmp_project, inspect_config(tmp_project))


def test_build_run_environment_for_venv() -> None:
    target = RunTarget(backend=Backend.VENV, env_dir=Path("/p/.venv"), env_name=None)

    env = build_run_environment(target, {"PATH": "/usr/bin", "PYTHONHOME": "/x", "HOME": "/h"})

    assert env["PATH"].startswith("/p/.venv/bin")
    assert env["PATH"].endswith("/usr/bin")
    assert env["VIRTUAL_ENV"] == "/p/.venv"
    assert env["HOME"] == "/h"
    assert "PYTHONHOME" not in env


def test_build_run_environment_for_micromamba() -> None:
    target = RunTarget(
        backend=Backend.MICROMAMBA, env_dir=Path("/p/.pyve/envs/lab"), env_name="lab"
    )

    env = build_run_environment(target, {})

    assert env["PATH"] == "/p/.pyve/envs/lab/bin"
    assert env["CONDA_PREFIX"] == "/p/.pyve/envs/lab"
    assert env["CONDA_DEFAULT_ENV"] == "lab"
    assert "VIRTUAL_ENV" not in env


def test_ensure_testenv_creates_once_with_recorded_python(tmp_project: Path) -> None:
    save_config(
        tmp_project,
        ConfigRecord(
            scalars={"pyve_version": "1.5.3", "backend": "venv"},
            sections={"python": {"version": "3.12.4"}},
        ),
    )
    environment = FakeEnvironmentBuilder()
    ctx = PyveContext.for_test(tmp_project, environment=environment)

    first = ensure_testenv(ctx, inspect_config(tmp_project))
    second = ensure_testenv(ctx, inspect_config(tmp_project))

    assert first == second
    assert first.env_dir == get_testenv_dir(tmp_project)
    assert len(environment.created) == 1
    assert "3.12.4" in environment.created[0][2]


def test_ensure_testenv_failure(tmp_project: Path) -> None:
    environment = FakeEnvironmentBuilder(create_succeeds=False, diagnostic="no python")
    ctx = PyveContext.for_test(tmp_project, environment=environment)

    with pytest.raises(ProvisionError) as exc_info:
        ensure_testenv(ctx, inspect_config(tmp_project))

    assert exc_info.value.diagnostic == "no python"


def test_missing_test_packages(tmp_project: Path) -> None:
    target = RunTarget(backend=Backend.VENV, env_dir=get_testenv_dir(tmp_project), env_name=None)
    without = PyveContext.for_test(tmp_project)
    with_pytest = PyveContext.for_test(
        tmp_project, environment=FakeEnvironmentBuilder(installed_modules=frozenset({"pytest"}))
    )

    assert missing_test_packages(without, target) == ["pytest"]
    assert missing_test_packages(with_pytest, target) == []

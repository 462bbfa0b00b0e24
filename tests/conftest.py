"""Shared fixtures for pyve tests."""

from pathlib import Path

import pytest


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Alias for tmp_path with semantic meaning as a project directory.

    Tests that use 'tmp_project' communicate that they are testing
    project-level operations. The directory gets a stable, sanitizable
    name so environment-name derivation is deterministic.
    """
    project = tmp_path / "my-project"
    project.mkdir()
    return project

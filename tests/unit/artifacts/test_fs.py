"""Tests for atomic writes and content hashing."""

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from pyve.artifacts.fs import (
    atomic_write,
    compute_content_hash,
    compute_file_hash,
    read_text,
)


def test_atomic_write_creates_parent_directories(tmp_project: Path) -> None:
    path = tmp_project / ".pyve" / "config"

    atomic_write(path, "backend: venv\n")

    assert path.read_text(encoding="utf-8") == "backend: venv\n"


def test_atomic_write_replaces_existing_content(tmp_project: Path) -> None:
    path = tmp_project / ".envrc"
    path.write_text("old\n", encoding="utf-8")

    atomic_write(path, "new\n")

    assert path.read_text(encoding="utf-8") == "new\n"
    assert sorted(p.name for p in tmp_project.iterdir()) == [".envrc"]


def test_atomic_write_applies_mode(tmp_project: Path) -> None:
    path = tmp_project / ".env"

    atomic_write(path, "", mode=0o600)

    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_atomic_write_preserves_line_endings(tmp_project: Path) -> None:
    """Test that content is written byte-for-byte, without newline translation."""
    path = tmp_project / "crlf.txt"

    atomic_write(path, "a\r\nb\n")

    assert path.read_bytes() == b"a\r\nb\n"
    assert read_text(path) == "a\r\nb\n"


def test_atomic_write_failure_keeps_original_and_cleans_up(tmp_project: Path) -> None:
    """Test that an interrupted write leaves the old content and no temp file."""
    path = tmp_project / ".envrc"
    path.write_text("original\n", encoding="utf-8")

    with patch("pyve.artifacts.fs.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError, match="disk full"):
            atomic_write(path, "replacement\n")

    assert path.read_text(encoding="utf-8") == "original\n"
    assert os.listdir(tmp_project) == [".envrc"]


def test_compute_content_hash_is_stable_and_short() -> None:
    digest = compute_content_hash("hello\n")
    assert digest == compute_content_hash("hello\n")
    assert len(digest) == 16
    assert digest != compute_content_hash("hello")


def test_compute_file_hash(tmp_project: Path) -> None:
    path = tmp_project / "file.txt"
    assert compute_file_hash(path) is None

    path.write_text("content", encoding="utf-8")
    assert compute_file_hash(path) == compute_content_hash("content")

"""Filesystem primitives for generated artifacts.

All writes go through atomic_write: content is written to a temporary file in
the destination directory and renamed over the destination, so an interrupted
write leaves either the old or the new content, never a partial file.
"""

import hashlib
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write(path: Path, content: str, *, mode: int | None = None) -> None:
    """Atomically replace the contents of a file.

    The temporary file lives next to the destination so the final rename
    never crosses a filesystem boundary. The temporary file is removed on
    every failure path.

    Args:
        path: Destination file
        content: Full text content to write (UTF-8)
        mode: Optional permission bits applied before the rename (e.g. 0o600)
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    logger.debug("Wrote %s (%d bytes)", path, len(content.encode("utf-8")))


def compute_content_hash(content: str) -> str:
    """Compute SHA256 hash of text content, truncated like artifact hashes."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


def compute_file_hash(path: Path) -> str | None:
    """Compute the content hash of a file, returning None if it doesn't exist."""
    if not path.is_file():
        return None
    return compute_content_hash(read_text(path))


def read_text(path: Path) -> str:
    """Read a file as UTF-8 without newline translation."""
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()

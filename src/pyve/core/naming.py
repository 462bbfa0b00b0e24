"""Naming utilities for environment identifiers and directory names.

This module provides pure functions that turn free-form text (display names,
directory basenames, flag values) into canonical environment identifiers.
All functions are pure (no I/O).
"""

import re
import unicodedata

from pyve.core.errors import ValidationError

MAX_ENV_NAME_LENGTH = 255

# Names the environment backends reserve for themselves
RESERVED_ENV_NAMES = frozenset({"base", "root", "default", "conda", "mamba", "micromamba"})

# Files and directories the venv directory must not shadow
RESERVED_DIR_NAMES = frozenset(
    {".env", ".git", ".gitignore", ".tool-versions", ".python-version", ".envrc"}
)

_INVALID_CHARS_RE = re.compile(r"[^a-z0-9_-]")
_HYPHEN_RUN_RE = re.compile(r"-{2,}")
_VALID_START_RE = re.compile(r"^[a-z_]")
_VENV_DIR_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def sanitize_env_name(raw: str) -> str:
    """Convert arbitrary text into a canonical environment identifier.

    Lowercases, folds accents to ASCII, replaces runs of whitespace and
    special characters with a single hyphen, strips leading/trailing hyphens,
    prefixes "_" when the result does not start with a letter or underscore,
    and truncates to 255 characters.

    The transformation is idempotent: sanitize(sanitize(x)) == sanitize(x).

    Args:
        raw: Free-form text

    Returns:
        Canonical identifier

    Raises:
        ValidationError: If nothing usable remains or the result is reserved

    Examples:
        >>> sanitize_env_name("My Project")
        'my-project'
        >>> sanitize_env_name("2024 analysis")
        '_2024-analysis'
    """
    folded = unicodedata.normalize("NFKD", raw).encode("ascii", "ignore").decode("ascii")
    name = _INVALID_CHARS_RE.sub("-", folded.lower())
    name = _HYPHEN_RUN_RE.sub("-", name).strip("-")

    if not name:
        raise ValidationError(
            f"Environment name {raw!r} contains no usable characters",
            field="env_name",
            value=raw,
        )

    if _VALID_START_RE.match(name) is None:
        name = f"_{name}"

    # Truncation can expose a trailing hyphen; strip again to stay idempotent
    name = name[:MAX_ENV_NAME_LENGTH].rstrip("-")

    if is_reserved_env_name(name):
        reserved = ", ".join(sorted(RESERVED_ENV_NAMES))
        raise ValidationError(
            f"Environment name {name!r} is reserved (reserved names: {reserved})",
            field="env_name",
            value=raw,
        )
    return name


def is_reserved_env_name(name: str) -> bool:
    """Check whether a name collides with a backend-reserved environment name."""
    return name.lower() in RESERVED_ENV_NAMES


def validate_venv_dir_name(raw: str) -> str:
    """Validate a virtual environment directory name.

    Args:
        raw: Directory name relative to the project root

    Returns:
        The directory name unchanged

    Raises:
        ValidationError: If empty, has invalid characters, or shadows a reserved file
    """
    if not raw:
        raise ValidationError(
            "Virtual environment directory name cannot be empty",
            field="venv.directory",
            value=raw,
        )
    if _VENV_DIR_RE.match(raw) is None:
        raise ValidationError(
            f"Invalid directory name {raw!r}. "
            "Use only alphanumeric characters, dots, underscores, and hyphens.",
            field="venv.directory",
            value=raw,
        )
    if raw in RESERVED_DIR_NAMES:
        raise ValidationError(
            f"Directory name {raw!r} is reserved and cannot be used",
            field="venv.directory",
            value=raw,
        )
    return raw

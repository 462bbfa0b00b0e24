"""Version parsing and comparison.

Versions recorded by pyve are plain dotted integers ("1.5.3"). Comparison
treats missing trailing components as zero, so "1.0" and "1.0.0" are equal.
"""

import importlib.metadata
import re
from typing import Literal

from packaging.version import Version

from pyve.core.errors import ValidationError

VersionOrder = Literal["less", "equal", "greater"]

_NUMERIC_VERSION_RE = re.compile(r"^\d+(\.\d+)*$")
_PYTHON_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")


def get_current_version() -> str:
    """Get the currently installed version of pyve.

    Returns:
        Version string (e.g., "1.5.3")
    """
    return importlib.metadata.version("pyve")


def parse_version(raw: str) -> tuple[int, ...]:
    """Parse a dotted numeric version into its integer components.

    Args:
        raw: Version string such as "3", "1.2" or "1.2.3"

    Returns:
        Tuple of non-negative integers

    Raises:
        ValidationError: If any component is not a non-negative integer

    Examples:
        >>> parse_version("1.2.3")
        (1, 2, 3)
        >>> parse_version("1.2")
        (1, 2)
    """
    value = raw.strip()
    if _NUMERIC_VERSION_RE.match(value) is None:
        raise ValidationError(
            f"Invalid version {raw!r} (expected dotted integers like '1.5.3')",
            field="version",
            value=raw,
        )
    return tuple(int(part) for part in value.split("."))


def compare_versions(left: str, right: str) -> VersionOrder:
    """Order two dotted numeric versions.

    The shorter version is padded with zeros, then components are compared
    left to right; the first differing component decides.

    Args:
        left: First version
        right: Second version

    Returns:
        "less" if left < right, "equal" if equivalent, "greater" otherwise

    Raises:
        ValidationError: If either version is malformed

    Examples:
        >>> compare_versions("1.2", "1.2.0")
        'equal'
        >>> compare_versions("0.9.9", "1.0.0")
        'less'
    """
    # Validate first: packaging accepts forms (pre-releases, epochs) we do not
    left_v = Version(".".join(str(part) for part in parse_version(left)))
    right_v = Version(".".join(str(part) for part in parse_version(right)))

    if left_v < right_v:
        return "less"
    if left_v > right_v:
        return "greater"
    return "equal"


def validate_python_version(raw: str) -> str:
    """Validate an interpreter version in major.minor.patch form.

    Raises:
        ValidationError: If the version is not of the form N.N.N
    """
    value = raw.strip()
    if _PYTHON_VERSION_RE.match(value) is None:
        raise ValidationError(
            f"Invalid Python version format {raw!r}. Expected format: #.#.# (e.g., 3.13.7)",
            field="python.version",
            value=raw,
        )
    return value


def format_version_drift(recorded: str, current: str) -> str | None:
    """Describe drift between the recorded project version and the running tool.

    Returns:
        Warning text, or None when the versions are equal
    """
    order = compare_versions(recorded, current)
    if order == "equal":
        return None
    if order == "less":
        return (
            f"Project initialized with Pyve v{recorded} (current: v{current})\n"
            "   Run: pyve init --update"
        )
    return (
        f"Project initialized with newer Pyve v{recorded} (current: v{current})\n"
        "   Consider upgrading Pyve or re-initializing the project"
    )

""".gitignore management with a pyve-managed section and a user section.

The managed section sits at the top of the file and is regenerated on every
run. Everything else is user content and is preserved in order, with the
following exceptions:

- Lines pyve manages now, or managed in any earlier version, are absorbed
  into the managed section so they never appear twice.
- Extra entries listed inside a managed group (added with `pyve ignore`)
  stay in that group, after its own entries.
- Runs of blank lines collapse to a single blank line.

These functions are pure (content in, content out) except for the *_file
helpers at the bottom, which read and atomically write the file.
"""

import logging
from pathlib import Path

from pyve.artifacts.fs import atomic_write, read_text
from pyve.artifacts.templates import (
    ASDF_PIN_FILE_NAME,
    DOTENV_FILE_NAME,
    ENVRC_FILE_NAME,
    PYENV_PIN_FILE_NAME,
)
from pyve.core.types import PYVE_DIR_NAME, Backend, ResolvedConfig

logger = logging.getLogger(__name__)

GITIGNORE_FILE_NAME = ".gitignore"

MACOS_HEADER = "# macOS"
BUILD_ARTIFACTS_HEADER = "# Python build and test artifacts"
PYVE_ENV_HEADER = "# Pyve virtual environment"

MICROMAMBA_ENVS_ENTRY = f"{PYVE_DIR_NAME}/envs"
TESTENV_ENTRY = f"{PYVE_DIR_NAME}/testenv"

BUILD_ARTIFACT_ENTRIES = ("__pycache__", "*.egg-info", ".coverage", ".pytest_cache")

# Lines written by earlier pyve versions. Absorbed so an upgrade does not
# leave stale duplicates in the user section.
HISTORICAL_MANAGED_LINES = frozenset(
    {
        MACOS_HEADER,
        BUILD_ARTIFACTS_HEADER,
        PYVE_ENV_HEADER,
        ".DS_Store",
        *BUILD_ARTIFACT_ENTRIES,
        MICROMAMBA_ENVS_ENTRY,
        TESTENV_ENTRY,
        DOTENV_FILE_NAME,
        ENVRC_FILE_NAME,
        ".venv",
        "*.pyc",
        "# Pyve",
        "# pyve",
        ASDF_PIN_FILE_NAME,
        PYENV_PIN_FILE_NAME,
    }
)

ManagedGroup = tuple[str, list[str]]


def build_managed_groups(config: ResolvedConfig, *, include_envrc: bool) -> list[ManagedGroup]:
    """Managed section content for a configuration, as (header, entries) groups."""
    if config.backend == Backend.MICROMAMBA:
        env_entry = MICROMAMBA_ENVS_ENTRY
    else:
        env_entry = config.venv_directory or ".venv"

    pyve_entries = [env_entry, TESTENV_ENTRY, DOTENV_FILE_NAME]
    if include_envrc:
        pyve_entries.append(ENVRC_FILE_NAME)

    return [
        (MACOS_HEADER, [".DS_Store"]),
        (BUILD_ARTIFACTS_HEADER, list(BUILD_ARTIFACT_ENTRIES)),
        (PYVE_ENV_HEADER, pyve_entries),
    ]


def render_managed_section(groups: list[ManagedGroup]) -> list[str]:
    """Render managed groups as lines, one blank line between groups."""
    lines: list[str] = []
    for header, entries in groups:
        if lines:
            lines.append("")
        lines.append(header)
        lines.extend(entries)
    return lines


def _collapse_blank_runs(lines: list[str]) -> list[str]:
    result: list[str] = []
    for line in lines:
        if not line.strip() and result and not result[-1].strip():
            continue
        result.append(line)
    while result and not result[0].strip():
        result.pop(0)
    while result and not result[-1].strip():
        result.pop()
    return result


def _ends_block(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def find_group_extras(content: str, groups: list[ManagedGroup]) -> dict[str, list[str]]:
    """Entries listed under a managed group header that pyve does not manage.

    A group block runs from its header to the next blank or comment line.
    """
    headers = {header for header, _ in groups}
    known = set(render_managed_section(groups)) | HISTORICAL_MANAGED_LINES
    extras: dict[str, list[str]] = {}
    current: str | None = None
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if line in headers:
            current = line
        elif _ends_block(line):
            current = None
        elif current is not None and line not in known:
            group_extras = extras.setdefault(current, [])
            if line not in group_extras:
                group_extras.append(line)
    return extras


def merge_group_extras(
    groups: list[ManagedGroup], extras: dict[str, list[str]]
) -> list[ManagedGroup]:
    """Append preserved extras to their groups."""
    merged: list[ManagedGroup] = []
    for header, entries in groups:
        added = [entry for entry in extras.get(header, []) if entry not in entries]
        merged.append((header, [*entries, *added]))
    return merged


def extract_user_lines(content: str, managed_lines: list[str]) -> list[str]:
    """Return the user section of existing content.

    A line is dropped when it matches a current or historical managed line.
    That covers entries duplicated from the managed section into the user
    section, so each managed entry survives exactly once.
    """
    known = set(managed_lines) | HISTORICAL_MANAGED_LINES
    known.discard("")
    preserved = [line.rstrip() for line in content.splitlines() if line.strip() not in known]
    return _collapse_blank_runs(preserved)


def render_gitignore(existing: str | None, groups: list[ManagedGroup]) -> str:
    """Regenerate .gitignore content.

    Args:
        existing: Current file content, or None if the file does not exist
        groups: Managed section groups

    Returns:
        Managed section, a single blank line, then the preserved user section
    """
    content = existing or ""
    merged = merge_group_extras(groups, find_group_extras(content, groups))
    managed_lines = render_managed_section(merged)
    user_lines = extract_user_lines(content, managed_lines)

    lines = list(managed_lines)
    if user_lines:
        lines.append("")
        lines.extend(user_lines)
    return "\n".join(lines) + "\n"


def remove_managed_section(content: str, groups: list[ManagedGroup]) -> str | None:
    """Strip managed lines, keeping only the user section.

    Returns:
        Remaining content, or None when nothing but managed lines was present
    """
    user_lines = extract_user_lines(content, render_managed_section(groups))
    if not user_lines:
        return None
    return "\n".join(user_lines) + "\n"


def insert_entry(content: str, marker: str, entry: str) -> str:
    """Insert a single entry at the end of the block under a section marker.

    The block runs from the marker to the next blank or comment line, the
    same extent render_gitignore keeps for a managed group. No-op when the
    entry is already present anywhere in the file. When the marker is absent
    the entry is appended at the end of the file.

    Example:
        >>> content = "# Pyve virtual environment\\n.env\\n\\n# mine\\n"
        >>> insert_entry(content, "# Pyve virtual environment", "build/")
        '# Pyve virtual environment\\n.env\\nbuild/\\n\\n# mine\\n'
    """
    lines = content.splitlines()
    if any(line.strip() == entry for line in lines):
        return content

    for index, line in enumerate(lines):
        if line.strip() == marker:
            end = index + 1
            while end < len(lines) and not _ends_block(lines[end]):
                end += 1
            lines.insert(end, entry)
            return "\n".join(lines) + "\n"

    if content and not content.endswith("\n"):
        content += "\n"
    return content + f"{entry}\n"


def get_gitignore_path(project_dir: Path) -> Path:
    return project_dir / GITIGNORE_FILE_NAME


def read_gitignore(project_dir: Path) -> str | None:
    path = get_gitignore_path(project_dir)
    if not path.is_file():
        return None
    return read_text(path)


def gitignore_is_current(project_dir: Path, groups: list[ManagedGroup]) -> bool:
    """Check whether .gitignore already has the desired content."""
    existing = read_gitignore(project_dir)
    if existing is None:
        return False
    return render_gitignore(existing, groups) == existing


def reconcile_gitignore_file(project_dir: Path, groups: list[ManagedGroup]) -> bool:
    """Regenerate .gitignore in place.

    Returns:
        True if the file was written, False if it was already current
    """
    existing = read_gitignore(project_dir)
    desired = render_gitignore(existing, groups)
    if desired == existing:
        logger.debug(".gitignore already current")
        return False
    atomic_write(get_gitignore_path(project_dir), desired)
    logger.debug(".gitignore updated")
    return True


def insert_entry_file(project_dir: Path, marker: str, entry: str) -> bool:
    """Insert one entry into .gitignore, creating the file if needed.

    Returns:
        True if the file changed
    """
    existing = read_gitignore(project_dir) or ""
    updated = insert_entry(existing, marker, entry)
    if updated == existing:
        return False
    atomic_write(get_gitignore_path(project_dir), updated)
    return True


def remove_managed_section_file(project_dir: Path, groups: list[ManagedGroup]) -> None:
    """Remove the managed section, deleting the file if nothing remains."""
    path = get_gitignore_path(project_dir)
    existing = read_gitignore(project_dir)
    if existing is None:
        return
    remaining = remove_managed_section(existing, groups)
    if remaining is None:
        path.unlink()
        logger.debug("Removed .gitignore (no user entries)")
        return
    if remaining != existing:
        atomic_write(path, remaining)

"""Project configuration file I/O for .pyve/config.

The file is a line-oriented key/value document with at most one level of
nesting:

    pyve_version: "1.5.3"
    backend: micromamba
    micromamba:
      env_name: my-project

Values are read through dotted-path lookup only ("micromamba.env_name").
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from pyve.artifacts.fs import atomic_write, read_text
from pyve.core.errors import ConfigParseError, CorruptedStateError
from pyve.core.types import PYVE_DIR_NAME, Backend, ResolvedConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config"
VERSION_KEY = "pyve_version"

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_VERSION_TRIPLE_RE = re.compile(r"^\d+\.\d+\.\d+$")


@dataclass(frozen=True)
class ConfigRecord:
    """Parsed key/value tree with one level of nesting.

    Attributes:
        scalars: Top-level keys mapped to their values, in file order
        sections: Section names mapped to their child keys, in file order
    """

    scalars: dict[str, str] = field(default_factory=dict)
    sections: dict[str, dict[str, str]] = field(default_factory=dict)

    def get(self, dotted_key: str) -> str | None:
        """Look up a value by dotted path ("backend", "micromamba.env_name")."""
        section, _, child = dotted_key.partition(".")
        if not child:
            return self.scalars.get(section)
        return self.sections.get(section, {}).get(child)

    def with_value(self, dotted_key: str, value: str) -> "ConfigRecord":
        """Return a copy with one value set, creating its section if needed."""
        scalars = dict(self.scalars)
        sections = {name: dict(children) for name, children in self.sections.items()}
        section, _, child = dotted_key.partition(".")
        if not child:
            scalars[section] = value
        else:
            sections.setdefault(section, {})[child] = value
        return ConfigRecord(scalars=scalars, sections=sections)

    def without(self, dotted_key: str) -> "ConfigRecord":
        """Return a copy with one value removed. Empty sections are dropped."""
        scalars = dict(self.scalars)
        sections = {name: dict(children) for name, children in self.sections.items()}
        section, _, child = dotted_key.partition(".")
        if not child:
            scalars.pop(section, None)
        elif section in sections:
            sections[section].pop(child, None)
            if not sections[section]:
                del sections[section]
        return ConfigRecord(scalars=scalars, sections=sections)

    def keys(self) -> list[str]:
        """All dotted keys in canonical order."""
        result = list(self.scalars)
        for section, children in self.sections.items():
            result.extend(f"{section}.{child}" for child in children)
        return result


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_config(text: str, path: Path) -> ConfigRecord:
    """Parse config text into a ConfigRecord.

    Blank lines and lines starting with "#" are ignored.

    Args:
        text: File content
        path: File path, used in error messages only

    Raises:
        ConfigParseError: On any line that does not follow the format,
            including duplicate keys and nesting deeper than one level
    """
    scalars: dict[str, str] = {}
    sections: dict[str, dict[str, str]] = {}
    current_section: str | None = None

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.rstrip()
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        key, sep, value = stripped.partition(":")
        key = key.strip()
        value = _strip_quotes(value.strip())
        if not sep:
            raise ConfigParseError(path, line_number, raw_line, "expected 'key: value'")
        if _KEY_RE.match(key) is None:
            raise ConfigParseError(path, line_number, raw_line, f"invalid key {key!r}")

        indented = line[0] in (" ", "\t")
        if not indented:
            if key in scalars or key in sections:
                raise ConfigParseError(path, line_number, raw_line, f"duplicate key {key!r}")
            if value:
                scalars[key] = value
                current_section = None
            else:
                sections[key] = {}
                current_section = key
            continue

        if current_section is None:
            raise ConfigParseError(path, line_number, raw_line, "indented line outside a section")
        if not value:
            raise ConfigParseError(path, line_number, raw_line, "nesting deeper than one level")
        children = sections[current_section]
        if key in children:
            raise ConfigParseError(
                path, line_number, raw_line, f"duplicate key {current_section}.{key!r}"
            )
        children[key] = value

    return ConfigRecord(scalars=scalars, sections=sections)


def _render_value(value: str) -> str:
    needs_quotes = (
        not value
        or value != value.strip()
        or value[0] in ("'", '"', "#")
    )
    if needs_quotes:
        return f'"{value}"'
    return value


def render_config(record: ConfigRecord) -> str:
    """Render a ConfigRecord canonically.

    The version key comes first and is always double-quoted, then the
    remaining top-level keys, then sections. Empty sections are omitted.
    """
    lines: list[str] = []
    version = record.scalars.get(VERSION_KEY)
    if version is not None:
        lines.append(f'{VERSION_KEY}: "{version}"')
    for key, value in record.scalars.items():
        if key == VERSION_KEY:
            continue
        lines.append(f"{key}: {_render_value(value)}")
    for section, children in record.sections.items():
        if not children:
            continue
        lines.append(f"{section}:")
        for key, value in children.items():
            lines.append(f"  {key}: {_render_value(value)}")
    return "\n".join(lines) + "\n"


def get_config_path(project_dir: Path) -> Path:
    """Get path to the project's .pyve/config file."""
    return project_dir / PYVE_DIR_NAME / CONFIG_FILE_NAME


def load_config(project_dir: Path) -> ConfigRecord | None:
    """Load .pyve/config.

    Returns None if the file does not exist.

    Raises:
        ConfigParseError: If the file exists but cannot be parsed
    """
    path = get_config_path(project_dir)
    if not path.exists():
        return None
    return parse_config(read_text(path), path)


def save_config(project_dir: Path, record: ConfigRecord) -> None:
    """Save .pyve/config atomically."""
    path = get_config_path(project_dir)
    atomic_write(path, render_config(record))
    logger.debug("Saved config with keys: %s", ", ".join(record.keys()))


def build_config_record(
    config: ResolvedConfig,
    version: str,
    *,
    base: ConfigRecord | None,
) -> ConfigRecord:
    """Merge the persisted fields of a resolved configuration into a record.

    Keys pyve does not manage are carried over from base unchanged. Keys
    that do not apply to the resolved backend are dropped.
    """
    record = base if base is not None else ConfigRecord()
    record = record.with_value(VERSION_KEY, version)
    record = record.with_value("backend", config.backend.value)
    record = record.with_value("python.version", config.python_version)
    if config.venv_directory is not None:
        record = record.with_value("venv.directory", config.venv_directory)
    else:
        record = record.without("venv.directory")
    if config.env_name is not None:
        record = record.with_value("micromamba.env_name", config.env_name)
    else:
        record = record.without("micromamba.env_name")
    return record


@dataclass(frozen=True)
class ProjectSettings:
    """Typed view over the required fields of a ConfigRecord.

    Attributes:
        backend: Recorded backend
        pyve_version: Recorded tool version, or None for legacy projects
    """

    backend: Backend
    pyve_version: str | None


def read_project_settings(record: ConfigRecord, path: Path) -> ProjectSettings:
    """Extract the required fields from a ConfigRecord.

    Never guesses: a missing or unrecognized backend, or a malformed
    version record, is reported as corrupted state.

    Raises:
        CorruptedStateError: If a required field is missing or invalid
    """
    backend_value = record.get("backend")
    if backend_value is None:
        raise CorruptedStateError(path, "backend", "missing")
    if backend_value not in Backend.recognized_values():
        raise CorruptedStateError(
            path,
            "backend",
            f"invalid value {backend_value!r} (expected one of: "
            f"{', '.join(Backend.recognized_values())})",
        )

    version = record.get(VERSION_KEY)
    if version is not None and _VERSION_TRIPLE_RE.match(version) is None:
        raise CorruptedStateError(
            path, VERSION_KEY, f"invalid value {version!r} (expected major.minor.patch)"
        )

    return ProjectSettings(backend=Backend(backend_value), pyve_version=version)

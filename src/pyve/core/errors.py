"""Error taxonomy for pyve.

Lower-level components raise these; only the CLI layer turns them into
styled output and exit codes.
"""

from pathlib import Path


class PyveError(Exception):
    """Base class for all pyve errors."""


class ValidationError(PyveError):
    """A user-supplied or stored value failed validation.

    Raised for bad identifiers, bad version strings, bad backend values and
    bad directory names. Always fatal to the current resolution step.

    Attributes:
        field: Name of the offending field (e.g. "micromamba.env_name")
        source: Where the value came from in the priority chain
            (e.g. "--env-name flag", ".pyve/config"), or None when not applicable
        value: The offending raw value
    """

    def __init__(
        self,
        message: str,
        *,
        field: str,
        source: str | None = None,
        value: str | None = None,
    ) -> None:
        self.field = field
        self.source = source
        self.value = value
        super().__init__(message)

    def with_source(self, source: str) -> "ValidationError":
        """Return a copy of this error attributed to a priority-chain source."""
        return ValidationError(
            f"{self} (from {source})",
            field=self.field,
            source=source,
            value=self.value,
        )


class CorruptedStateError(PyveError):
    """Project configuration exists but a required field cannot be parsed.

    Recoverable only through an explicit force rebuild. Never repaired by
    guessing values.
    """

    def __init__(self, path: Path, field: str, reason: str) -> None:
        self.path = path
        self.field = field
        self.reason = reason
        super().__init__(f"{path}: {field}: {reason}")


class ConfigParseError(CorruptedStateError):
    """A line in the configuration file does not follow the config format."""

    def __init__(self, path: Path, line_number: int, line: str, reason: str) -> None:
        self.line_number = line_number
        self.line = line
        super().__init__(path, f"line {line_number}", f"{reason}: {line!r}")


class StaleDependencyError(PyveError):
    """The lock file is stale or missing and the strict lock policy is active."""

    def __init__(self, status: str, spec_file: Path, lock_file: Path) -> None:
        self.status = status
        self.spec_file = spec_file
        self.lock_file = lock_file
        if status == "missing":
            message = f"Lock file missing: {lock_file.name} (strict mode)"
        else:
            message = f"Lock file is stale: {spec_file.name} was modified after {lock_file.name}"
        super().__init__(message)


class ProvisionError(PyveError):
    """An external collaborator (environment or interpreter tooling) failed.

    Attributes:
        diagnostic: Captured diagnostic text from the collaborator, if any
    """

    def __init__(self, message: str, diagnostic: str | None = None) -> None:
        self.diagnostic = diagnostic
        super().__init__(message)

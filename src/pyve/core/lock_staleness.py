"""Lock file staleness detection for environment.yml / conda-lock.yml.

The mechanism (check_lock_status) only compares modification times. The
policy (apply_lock_policy) decides what a stale or missing lock means for
the current invocation. Prompting is left to the caller.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pyve.core.errors import StaleDependencyError

logger = logging.getLogger(__name__)

LockStatus = Literal["fresh", "stale", "missing"]
LockPolicy = Literal["strict", "interactive", "non-interactive"]
LockAction = Literal["proceed", "confirm"]


def check_lock_status(spec_file: Path, lock_file: Path) -> LockStatus:
    """Compare a dependency file against its derived lock file.

    Computed at call time and never cached.

    Args:
        spec_file: Dependency file (environment.yml)
        lock_file: Derived lock file (conda-lock.yml), may not exist

    Returns:
        "missing" if the lock file does not exist, "stale" if the dependency file
        is newer than the lock file, "fresh" otherwise
    """
    if not lock_file.exists():
        return "missing"
    if not spec_file.exists():
        return "fresh"
    if spec_file.stat().st_mtime > lock_file.stat().st_mtime:
        return "stale"
    return "fresh"


@dataclass(frozen=True)
class LockCheckResult:
    """Outcome of applying a lock policy to a lock status.

    Attributes:
        status: The computed lock status
        action: "proceed" to continue, "confirm" when the caller must ask the operator
        message: Warning text for non-fresh statuses, None when fresh
    """

    status: LockStatus
    action: LockAction
    message: str | None


def describe_lock_status(status: LockStatus, spec_file: Path, lock_file: Path) -> str | None:
    """Human-readable warning for a non-fresh lock status."""
    if status == "stale":
        return (
            f"{spec_file.name} is newer than {lock_file.name}\n"
            f"   Regenerate the lock file: conda-lock -f {spec_file.name} -p <platform>"
        )
    if status == "missing":
        return (
            f"{lock_file.name} not found\n"
            "   Builds from environment.yml alone are not reproducible"
        )
    return None


def apply_lock_policy(spec_file: Path, lock_file: Path, policy: LockPolicy) -> LockCheckResult:
    """Check the lock status and decide the next action under a policy.

    Args:
        spec_file: Dependency file
        lock_file: Derived lock file
        policy: "strict" fails on stale/missing, "interactive" asks for
            confirmation, "non-interactive" proceeds silently

    Raises:
        StaleDependencyError: Under strict policy when the lock is stale or missing
    """
    status = check_lock_status(spec_file, lock_file)
    logger.debug("Lock status for %s: %s (policy=%s)", lock_file, status, policy)

    if status == "fresh":
        return LockCheckResult(status=status, action="proceed", message=None)

    if policy == "strict":
        raise StaleDependencyError(status, spec_file, lock_file)

    message = describe_lock_status(status, spec_file, lock_file)
    if policy == "interactive":
        return LockCheckResult(status=status, action="confirm", message=message)
    return LockCheckResult(status=status, action="proceed", message=message)

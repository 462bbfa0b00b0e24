"""Shared constants for pyve CLI commands."""

# Exit codes for init, purge and the other mutating commands
EXIT_VALIDATION_ERROR = 1  # bad input, or an external tool failed
EXIT_CONFIRMATION_REQUIRED = 2  # conflict pending or destructive action not confirmed
EXIT_CORRUPTED = 3
EXIT_COMMAND_NOT_FOUND = 127  # pyve run, as in POSIX shells

# Exit codes for pyve validate
VALIDATE_PASSED = 0
VALIDATE_ERRORS = 1
VALIDATE_WARNINGS = 2

# Answers for the re-initialization menu
REINIT_UPDATE = "1"
REINIT_PURGE = "2"
REINIT_CANCEL = "3"

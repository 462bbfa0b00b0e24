"""Real terminal implementation using sys.stdin.isatty()."""

import sys

from pyve.gateway.terminal.abc import Terminal


class RealTerminal(Terminal):
    """Production implementation using sys.stdin.isatty()."""

    def is_stdin_interactive(self) -> bool:
        return sys.stdin.isatty()

"""Fake Terminal implementation for testing."""

from pyve.gateway.terminal.abc import Terminal


class FakeTerminal(Terminal):
    """In-memory fake implementation that returns configured state.

    This class has NO public setup methods. All state is provided via constructor.
    """

    def __init__(self, *, is_interactive: bool) -> None:
        self._is_interactive = is_interactive

    def is_stdin_interactive(self) -> bool:
        return self._is_interactive

"""Interactive password prompt.

The credentials only depend on the ``PasswordPrompt`` protocol, so the
console prompt can be replaced by any object with an ``ask`` method.
"""

from typing import Protocol

from rich.console import Console
from rich.prompt import Prompt


class PasswordPrompt(Protocol):
    """Asks a human for a password."""

    def ask(self, message: str) -> tuple[str, bool]:
        """Block until the user answers.

        Returns:
            Tuple of (value, accepted). ``accepted`` is False when the
            user cancelled.
        """
        ...


class ConsolePasswordPrompt:
    """Password prompt on the terminal with hidden input."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def ask(self, message: str) -> tuple[str, bool]:
        self.console.print("[bold]Enter Password[/bold]")
        try:
            value = Prompt.ask(message, password=True, console=self.console)
        except (KeyboardInterrupt, EOFError):
            self.console.print()
            return "", False
        return value, bool(value)

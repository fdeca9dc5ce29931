"""CLI utility functions and decorators."""

from functools import wraps
from typing import Callable, TypeVar

import typer
from rich.console import Console

from synccreds.cli.errors import format_error
from synccreds.exceptions import SyncCredsError

console = Console()

F = TypeVar("F", bound=Callable)


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def handle_errors(f: F) -> F:
    """Decorator to render synccreds errors in CLI commands.

    Any SyncCredsError is shown as a panel with a suggestion and the
    command exits with status 1.

    Usage:
        @app.command()
        @handle_errors
        def my_command():
            ...
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except SyncCredsError as e:
            format_error(e, console, verbose=bool(kwargs.get("verbose")))
            raise typer.Exit(1)

    return wrapper  # type: ignore

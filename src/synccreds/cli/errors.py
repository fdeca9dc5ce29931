"""User-friendly error messages with actionable suggestions."""

from dataclasses import dataclass

from rich.console import Console
from rich.panel import Panel

from synccreds.exceptions import (
    AuthRejectedError,
    NoAccountError,
    NotReadyError,
    PromptCancelled,
    SyncCredsError,
)


@dataclass
class ErrorInfo:
    """Structured error information for display."""

    title: str
    message: str
    suggestion: str
    command: str | None = None


ERROR_MESSAGES = {
    "auth_rejected": ErrorInfo(
        title="Authentication failed",
        message="The server did not accept your username or password.",
        suggestion="The stored password has been removed. Log in again",
        command="synccreds login",
    ),
    "not_ready": ErrorInfo(
        title="Not logged in",
        message="No password is available for this account.",
        suggestion="Log in with your server account",
        command="synccreds login",
    ),
    "prompt_cancelled": ErrorInfo(
        title="Login cancelled",
        message="No password was entered.",
        suggestion="Run the login again when you are ready.",
        command="synccreds login",
    ),
    "no_account": ErrorInfo(
        title="No account configured",
        message="There is no sync server configured.",
        suggestion="Set SYNCCREDS_SERVER_URL or pass --url",
        command="synccreds login --url https://cloud.example.com --user <name>",
    ),
    "network_timeout": ErrorInfo(
        title="Connection failed",
        message="Could not reach the sync server.",
        suggestion="Check your internet connection and try again.",
        command=None,
    ),
    "server_error": ErrorInfo(
        title="Server error",
        message="The sync server reported an error.",
        suggestion="This is probably temporary. Try again later.",
        command=None,
    ),
    "unknown": ErrorInfo(
        title="Unexpected error",
        message="An unexpected error occurred.",
        suggestion="If this keeps happening, log out and log in again.",
        command="synccreds logout && synccreds login",
    ),
}


def get_error_type(error: Exception) -> str:
    """Determine error type from exception."""
    if isinstance(error, AuthRejectedError):
        return "auth_rejected"
    elif isinstance(error, NotReadyError):
        return "not_ready"
    elif isinstance(error, NoAccountError):
        return "no_account"
    elif isinstance(error, PromptCancelled):
        return "prompt_cancelled"
    elif isinstance(error, SyncCredsError):
        status = getattr(error, "status_code", None)
        if status and status >= 500:
            return "server_error"

    error_str = str(error).lower()
    if "timed_out" in error_str or "timeout" in error_str or "connection_refused" in error_str:
        return "network_timeout"

    return "unknown"


def format_error(
    error: Exception,
    console: Console,
    verbose: bool = False,
) -> None:
    """Format and display a user-friendly error message."""
    info = ERROR_MESSAGES.get(get_error_type(error), ERROR_MESSAGES["unknown"])

    content_lines = [
        f"[white]{info.message}[/white]",
        "",
        f"[yellow]Suggestion:[/yellow] {info.suggestion}",
    ]

    if info.command:
        content_lines.append("")
        content_lines.append(f"[cyan]{info.command}[/cyan]")

    # Show technical details in verbose mode
    if verbose:
        content_lines.append("")
        content_lines.append("[dim]" + "-" * 40 + "[/dim]")
        content_lines.append(f"[dim]Type: {type(error).__name__}[/dim]")
        content_lines.append(f"[dim]Details: {error}[/dim]")

    console.print()
    console.print(Panel(
        "\n".join(content_lines),
        title=f"[red bold]Error: {info.title}[/red bold]",
        border_style="red",
        padding=(1, 2),
    ))
    console.print()

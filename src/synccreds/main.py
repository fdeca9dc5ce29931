"""Main CLI entry point for synccreds."""

import threading
from typing import Annotated

import typer
from rich.console import Console

from synccreds.account import Account, AccountSettings, load_account
from synccreds.api.client import SyncServerClient
from synccreds.cli.utils import handle_errors, print_error, print_success, print_warning
from synccreds.config import Settings, get_settings
from synccreds.creds.common import keychain_key
from synccreds.creds.http import HttpCredentials
from synccreds.creds.keychain import CallerThreadExecutor, SecureStorageClient
from synccreds.exceptions import AuthRejectedError, NoAccountError, PromptCancelled
from synccreds.logging_setup import configure_logging

console = Console()

app = typer.Typer(
    name="synccreds",
    help="Manage the sync server password in the OS keyring",
    no_args_is_help=True,
)

UrlOption = Annotated[
    str | None,
    typer.Option("--url", "-u", help="Sync server URL (e.g., https://cloud.example.com)"),
]
UserOption = Annotated[
    str | None,
    typer.Option("--user", help="Username on the sync server"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show log output"),
]


def _open_account(
    settings: Settings, url: str | None = None, user: str | None = None
) -> tuple[Account, HttpCredentials]:
    """Load the account, applying --url and --user overrides.

    Keychain jobs run on the calling thread so the password prompt can be
    cancelled with Ctrl+C.
    """
    storage = SecureStorageClient(settings.app_name, executor=CallerThreadExecutor())
    credentials = HttpCredentials(storage=storage, settings=settings)

    if url:
        account = Account(url, AccountSettings(settings.accounts_file, settings.app_name), credentials)
        account.save()
    else:
        account = load_account(settings, credentials)
        if account is None:
            raise NoAccountError()

    if user:
        account.set_credential_setting("user", user)
    return account, credentials


def fetch_and_wait(credentials: HttpCredentials, account: Account) -> bool:
    """Run a fetch and block until ``fetched`` fires.

    Returns:
        Whether the credentials are ready afterwards
    """
    done = threading.Event()
    credentials.fetched.connect(done.set)
    try:
        credentials.fetch(account)
        done.wait()
    finally:
        credentials.fetched.disconnect(done.set)
    return credentials.ready()


def _setup(verbose: bool) -> Settings:
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    return settings


@app.command()
@handle_errors
def login(url: UrlOption = None, user: UserOption = None, verbose: VerboseOption = False):
    """Make the password available, asking for it if the keyring has none."""
    settings = _setup(verbose)
    account, credentials = _open_account(settings, url, user)

    try:
        if not fetch_and_wait(credentials, account):
            raise PromptCancelled(credentials.user())
    finally:
        credentials.storage.close()

    print_success("Password available.")
    console.print(f"  Server: [cyan]{account.url}[/cyan]")
    console.print(f"  User: [bold]{credentials.user()}[/bold]")


@app.command()
@handle_errors
def logout(url: UrlOption = None, verbose: VerboseOption = False):
    """Remove the stored password from the keyring."""
    settings = _setup(verbose)
    account, credentials = _open_account(settings, url)

    credentials.fetch_user(account)
    credentials.invalidate_token(account)
    credentials.storage.close()

    print_success(f"Password for '{credentials.user()}' removed.")


@app.command()
@handle_errors
def status(url: UrlOption = None, verbose: VerboseOption = False):
    """Show the configured account and whether a password is stored."""
    settings = _setup(verbose)
    account, credentials = _open_account(settings, url)
    user = credentials.fetch_user(account)

    console.print(f"Server: [cyan]{account.url}[/cyan]")
    if not user:
        print_warning("No user configured.")
        raise typer.Exit(1)
    console.print(f"User: [bold]{user}[/bold]")

    try:
        job = credentials.storage.read(keychain_key(account.url, user)).result()
    finally:
        credentials.storage.close()

    if job.failed:
        print_error(f"Password not stored in keyring ({job.error_string}).")
        raise typer.Exit(1)
    console.print("Password: [green]stored in keyring[/green]")


@app.command()
@handle_errors
def check(url: UrlOption = None, verbose: VerboseOption = False):
    """Log in to the server once to verify the stored password."""
    settings = _setup(verbose)
    account, credentials = _open_account(settings, url)

    try:
        if not fetch_and_wait(credentials, account):
            raise PromptCancelled(credentials.user())

        with console.status("[bold green]Contacting server...", spinner="dots"):
            with SyncServerClient(account, timeout=settings.timeout) as client:
                try:
                    server_status = client.check_server()
                except AuthRejectedError:
                    credentials.invalidate_token(account)
                    raise
    finally:
        credentials.storage.close()

    print_success("Server accepted the credentials.")
    version = server_status.get("versionstring") or server_status.get("version")
    if version:
        console.print(f"  Server version: [cyan]{version}[/cyan]")


if __name__ == "__main__":
    app()

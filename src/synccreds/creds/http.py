"""HTTP Basic credentials backed by the OS keyring.

Lifecycle of one set of credentials::

    unfetched --fetch()--> fetching --+--> ready
        ^                             |
        |                             +--> unfetched (prompt cancelled)
        +---------invalidate_token()------ ready

``fetch()`` reads the password from the keyring. When the keyring has no
usable password the user is prompted, and an accepted answer is written
back to the keyring. Concurrent ``fetch()`` calls collapse into the one
already running.

Keychain callbacks may run on a worker thread, so all state changes happen
under ``_lock``. The lock is released before prompting and before
``fetched`` is emitted.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

import httpx

from synccreds.config import Settings, get_settings
from synccreds.creds.abstract import AbstractCredentials
from synccreds.creds.common import keychain_key
from synccreds.creds.keychain import KeychainJob, SecureStorageClient
from synccreds.creds.prompt import ConsolePasswordPrompt, PasswordPrompt
from synccreds.creds.transport import AuthOutcome, Reply, classify, create_client

if TYPE_CHECKING:
    from synccreds.account import Account

logger = logging.getLogger(__name__)

USER_SETTING = "user"

USERNAME_CHALLENGE = "Enter your username:"
PASSWORD_CHALLENGE = "Enter your password:"


class HttpCredentials(AbstractCredentials):
    """Username and password sent as HTTP Basic auth."""

    def __init__(
        self,
        user: str | None = None,
        password: str | None = None,
        *,
        storage: SecureStorageClient | None = None,
        prompt: PasswordPrompt | None = None,
        settings: Settings | None = None,
    ):
        super().__init__()
        self._user = user or ""
        self._password = password or ""
        # Credentials given up front are usable without a fetch
        self._ready = user is not None and bool(self._password)
        self._fetch_in_progress = False
        self._lock = threading.RLock()
        self._storage = storage
        self._prompt = prompt
        self._settings = settings

    def __repr__(self) -> str:
        return f"HttpCredentials(user={self._user!r}, ready={self._ready})"

    @property
    def auth_type(self) -> str:
        return "http"

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def storage(self) -> SecureStorageClient:
        if self._storage is None:
            self._storage = SecureStorageClient(self.settings.app_name)
        return self._storage

    @property
    def prompt(self) -> PasswordPrompt:
        if self._prompt is None:
            self._prompt = ConsolePasswordPrompt()
        return self._prompt

    @property
    def fetch_in_progress(self) -> bool:
        return self._fetch_in_progress

    def user(self) -> str:
        return self._user

    def password(self) -> str:
        return self._password

    def ready(self) -> bool:
        return self._ready

    def snapshot(self) -> tuple[str, str]:
        """Return (user, password) as one consistent pair."""
        with self._lock:
            return self._user, self._password

    def changed(self, other: AbstractCredentials | None) -> bool:
        """Different kind of credentials or a different user.

        A new password for the same user is not a change of identity.
        """
        if not isinstance(other, HttpCredentials):
            return True
        return other.user() != self.user()

    def fetch_user(self, account: Account) -> str:
        """Load the configured username for ``account``."""
        with self._lock:
            self._user = account.credential_setting(USER_SETTING) or ""
            return self._user

    def fetch(self, account: Account | None) -> None:
        """Make the credentials ready, emitting ``fetched`` when done.

        Returns immediately if a fetch is already running; that call does
        not emit its own ``fetched``.
        """
        if account is None:
            return

        with self._lock:
            if self._fetch_in_progress:
                logger.debug("Fetch already in progress")
                return

            self.fetch_user(account)
            key = keychain_key(account.url, self._user)
            self._remove_plaintext_password(account, key)

            if self._ready:
                start_read = False
            else:
                self._fetch_in_progress = True
                start_read = True

        if not start_read:
            self.fetched.emit()
            return

        self.storage.read(key, lambda job: self._on_read_done(account, job))

    def _remove_plaintext_password(self, account: Account, key: str) -> None:
        """Scrub a password that old versions stored in the settings file."""
        if not key:
            return
        settings = account.settings
        data_key = f"{key}/data"
        if settings.contains(data_key):
            logger.info("Removing plaintext password from settings file")
            settings.remove(data_key)
            settings.remove(f"{key}/type")
            settings.remove(key)
            settings.sync()

    def _on_read_done(self, account: Account, job: KeychainJob) -> None:
        with self._lock:
            if not self._user:
                logger.warning("Strange: user is empty!")

            if not job.failed and job.text_data:
                self._password = job.text_data
                self._ready = True
                self._fetch_in_progress = False
                done = True
            else:
                done = False

        if done:
            self.fetched.emit()
            return

        if job.failed:
            logger.warning(str(job.to_exception()))

        password, accepted = self.query_password()
        accepted = accepted and bool(password)

        with self._lock:
            self._fetch_in_progress = False
            if accepted:
                self._password = password
                self._ready = True

        if accepted:
            self.persist(account)
        else:
            logger.info(f"No password entered for user '{self._user}'")

        self.fetched.emit()

    def query_password(self) -> tuple[str, bool]:
        """Ask the user for the password; blocks until answered."""
        message = f"Please enter {self.settings.app_name_gui} password for user '{self._user}':"
        return self.prompt.ask(message)

    def persist(self, account: Account) -> None:
        """Save the username to settings and the password to the keyring."""
        user, password = self.snapshot()
        account.set_credential_setting(USER_SETTING, user)
        if not password:
            return
        self.storage.write(keychain_key(account.url, user), password, self._on_write_done)

    def _on_write_done(self, job: KeychainJob) -> None:
        if job.failed:
            logger.warning(str(job.to_exception()))

    def invalidate_token(self, account: Account) -> None:
        """Forget the password and delete it from the keyring.

        The username is kept so the next fetch prompts for the same user.
        """
        with self._lock:
            self._password = ""
            self._ready = False
            key = keychain_key(account.url, self._user)

        self.storage.delete(key, self._on_delete_done)

    def _on_delete_done(self, job: KeychainJob) -> None:
        if job.failed:
            logger.warning(str(job.to_exception()))

    def still_valid(self, reply: Reply) -> bool:
        """False if the reply says the credentials were not accepted."""
        return classify(reply) is AuthOutcome.VALID

    def create_client(self, account: Account, timeout: float | None = None) -> httpx.Client:
        """HTTP client that sends these credentials to ``account.url``."""
        return create_client(self, account, timeout=timeout or self.settings.timeout)

    def answer_challenge(self, prompt: str) -> str | None:
        """Answer a username or password question from a sync engine.

        Returns None for questions this object cannot answer, such as
        certificate prompts.
        """
        question = prompt.strip()
        user, password = self.snapshot()
        if question == USERNAME_CHALLENGE:
            return user
        if question == PASSWORD_CHALLENGE:
            return password
        return None

    def session_cookie_header(self, account: Account) -> str:
        """Cookies from the last authenticated reply as ``name=value; `` pairs."""
        return "".join(
            f"{cookie.name}={cookie.value}; " for cookie in account.last_auth_cookies.jar
        )

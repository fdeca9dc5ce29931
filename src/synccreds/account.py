"""Sync server account and its settings file.

Account settings live in ``<config_dir>/accounts.yaml``, one group per
application name. The group holds the server URL and the credential
settings (``http_user`` and friends). Passwords are never written here;
they belong in the OS keyring.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
import yaml

from synccreds.config import Settings, get_settings, validate_server_url

if TYPE_CHECKING:
    from synccreds.creds.abstract import AbstractCredentials

logger = logging.getLogger(__name__)


class AccountSettings:
    """Key/value settings of one application group in the accounts file.

    Keys may contain ``/``; removing a key also removes every key below
    it (``"a"`` removes ``"a/data"`` and ``"a/type"``).
    """

    def __init__(self, path: Path, group: str):
        self.path = path
        self.group = group
        self._values: dict[str, Any] = dict(self._load_file().get(group) or {})

    def _load_file(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError:
            logger.warning(f"Ignoring unreadable settings file {self.path}")
            return {}

    def contains(self, key: str) -> bool:
        return key in self._values

    def value(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        prefix = f"{key}/"
        for existing in [k for k in self._values if k == key or k.startswith(prefix)]:
            del self._values[existing]

    def keys(self) -> list[str]:
        return list(self._values)

    def sync(self) -> None:
        """Write the group back to disk.

        Other groups in the file are preserved. The file is replaced
        atomically and is readable by the owner only.
        """
        data = self._load_file()
        data[self.group] = dict(self._values)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".accounts-", suffix=".yaml")
        try:
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class Account:
    """One sync server account.

    The account owns its credentials. Credential settings are namespaced by
    the credentials' auth type, so ``credential_setting("user")`` reads
    ``http_user`` for HTTP credentials.
    """

    def __init__(
        self,
        url: str,
        settings: AccountSettings,
        credentials: AbstractCredentials | None = None,
    ):
        self.url = validate_server_url(url)
        self.settings = settings
        self.last_auth_cookies = httpx.Cookies()
        self._credentials: AbstractCredentials | None = credentials

    def __repr__(self) -> str:
        return f"Account(url={self.url!r})"

    @property
    def credentials(self) -> AbstractCredentials | None:
        return self._credentials

    def set_credentials(self, credentials: AbstractCredentials) -> None:
        self._credentials = credentials

    def _credential_key(self, key: str) -> str:
        if self._credentials is None:
            return key
        return f"{self._credentials.auth_type}_{key}"

    def credential_setting(self, key: str) -> Any:
        """Read a credential setting, e.g. the username."""
        return self.settings.value(self._credential_key(key))

    def set_credential_setting(self, key: str, value: Any) -> None:
        """Store a credential setting and write the settings file."""
        self.settings.set_value(self._credential_key(key), value)
        self.settings.sync()

    def save(self) -> None:
        """Write the account URL to the settings file."""
        self.settings.set_value("url", self.url)
        self.settings.sync()


def load_account(
    settings: Settings | None = None,
    credentials: AbstractCredentials | None = None,
) -> Account | None:
    """Load the configured account.

    The URL comes from the accounts file, falling back to the
    ``server_url`` setting. A ``user`` setting seeds the credential
    settings when the accounts file has no username yet.

    Returns:
        The account, or None if no server URL is configured
    """
    settings = settings or get_settings()
    account_settings = AccountSettings(settings.accounts_file, settings.app_name)

    url = account_settings.value("url") or settings.server_url
    if not url:
        return None

    account = Account(url, account_settings, credentials)
    if credentials is not None and settings.user and not account.credential_setting("user"):
        account.set_credential_setting("user", settings.user)
    return account

"""Shared fixtures for synccreds tests."""

from concurrent.futures import Executor, Future
from unittest.mock import MagicMock, patch

import keyring.errors
import pytest

from synccreds import config
from synccreds.account import Account, AccountSettings
from synccreds.config import Settings
from synccreds.creds.http import HttpCredentials
from synccreds.creds.keychain import CallerThreadExecutor, SecureStorageClient

SERVICE = "synccreds-test"
SERVER_URL = "https://cloud.example.com/remote.php/webdav"


class DeferredExecutor(Executor):
    """Queues submitted work until run_pending() is called."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_pending(self):
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)


class FakePrompt:
    """Password prompt that answers from a script."""

    def __init__(self, value="", accepted=False):
        self.value = value
        self.accepted = accepted
        self.messages = []

    def ask(self, message):
        self.messages.append(message)
        return self.value, self.accepted


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's config file and environment."""
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "config.yaml")
    for name in ("SYNCCREDS_SERVER_URL", "SYNCCREDS_USER", "SYNCCREDS_APP_NAME"):
        monkeypatch.delenv(name, raising=False)
    config.reset_settings()
    yield
    config.reset_settings()


@pytest.fixture
def settings(tmp_path):
    return Settings(config_dir=tmp_path / "conf", app_name=SERVICE, app_name_gui="SyncCreds")


@pytest.fixture
def keyring_store():
    """Backing dict of the fake keyring, keyed by (service, key)."""
    return {}


@pytest.fixture
def mock_keyring(keyring_store):
    """Dict-backed replacement for the keyring module."""

    def delete_password(service, key):
        if (service, key) not in keyring_store:
            raise keyring.errors.PasswordDeleteError("Password not found")
        del keyring_store[(service, key)]

    with patch("synccreds.creds.keychain.keyring") as mock:
        mock.errors = keyring.errors
        mock.get_password.side_effect = lambda service, key: keyring_store.get((service, key))
        mock.set_password.side_effect = lambda service, key, value: keyring_store.__setitem__(
            (service, key), value
        )
        mock.delete_password.side_effect = delete_password
        yield mock


@pytest.fixture
def storage(mock_keyring):
    return SecureStorageClient(SERVICE, executor=CallerThreadExecutor())


@pytest.fixture
def prompt():
    return FakePrompt()


@pytest.fixture
def account_settings(settings):
    return AccountSettings(settings.accounts_file, settings.app_name)


@pytest.fixture
def credentials(storage, prompt, settings):
    return HttpCredentials(storage=storage, prompt=prompt, settings=settings)


@pytest.fixture
def account(account_settings, credentials):
    account = Account(SERVER_URL, account_settings, credentials)
    account.set_credential_setting("user", "alice")
    return account


@pytest.fixture
def fetched_counter(credentials):
    """Counts `fetched` emissions of the credentials fixture."""
    counter = MagicMock()
    credentials.fetched.connect(counter)
    return counter

"""Exceptions for synccreds."""


class SyncCredsError(Exception):
    """Base exception for synccreds errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class KeychainJobError(SyncCredsError):
    """A secure storage job finished with an error.

    These are never raised out of the credential state machine. They are
    built from a finished job so the failure can be logged and inspected.
    """

    operation = "accessing"

    def __init__(self, key: str, error_string: str):
        super().__init__(f"Error while {self.operation} password for '{key}': {error_string}")
        self.key = key
        self.error_string = error_string


class StorageReadError(KeychainJobError):
    """Reading the secret failed or returned an empty secret."""

    operation = "reading"


class StorageWriteError(KeychainJobError):
    """Writing the secret to secure storage failed."""

    operation = "writing"


class StorageDeleteError(KeychainJobError):
    """Deleting the secret from secure storage failed."""

    operation = "deleting"


class PromptCancelled(SyncCredsError):
    """The user dismissed the password prompt."""

    def __init__(self, user: str | None = None):
        msg = "Password prompt cancelled"
        if user:
            msg += f" for user '{user}'"
        super().__init__(msg)


class AuthRejectedError(SyncCredsError):
    """The server rejected the credentials for a request."""

    def __init__(self, url: str | None = None):
        msg = "Authentication failed"
        if url:
            msg += f" for {url}"
        super().__init__(msg, 401)
        self.url = url


class NotReadyError(SyncCredsError):
    """Credentials are not ready for authenticated requests."""

    def __init__(self, user: str | None = None):
        msg = "No usable password"
        if user:
            msg += f" for user '{user}'"
        msg += ". Run 'synccreds login' first."
        super().__init__(msg)


class RequestCancelledError(SyncCredsError):
    """A request was stopped locally before the server answered.

    Raised for requests to the account's server while the credentials are
    not ready.
    """

    def __init__(self, url: str | None = None):
        msg = "Request cancelled: no usable credentials"
        if url:
            msg += f" for {url}"
        super().__init__(msg)
        self.url = url


class NoAccountError(SyncCredsError):
    """No sync server account is configured."""

    def __init__(self):
        super().__init__("No sync server configured")

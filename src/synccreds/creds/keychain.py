"""Asynchronous access to the OS secure storage.

Secrets are kept in the OS keyring (macOS Keychain, Windows Credential
Manager, Secret Service / KWallet on Linux) through the ``keyring``
package. Every operation is a job that runs on a background executor and
reports back through a completion callback, so callers never block on a
keyring unlock dialog.

There is no plaintext fallback: when no keyring backend is
available the job finishes with ``KeychainError.NO_BACKEND``.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import keyring
import keyring.errors

from synccreds.config import get_settings
from synccreds.exceptions import (
    KeychainJobError,
    StorageDeleteError,
    StorageReadError,
    StorageWriteError,
)

logger = logging.getLogger(__name__)


class KeychainError(Enum):
    """Outcome of a keychain job."""

    NO_ERROR = "no_error"
    ENTRY_NOT_FOUND = "entry_not_found"
    ACCESS_DENIED = "access_denied"
    NO_BACKEND = "no_backend"
    OTHER_ERROR = "other_error"


class JobType(Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


_JOB_ERRORS: dict[JobType, type[KeychainJobError]] = {
    JobType.READ: StorageReadError,
    JobType.WRITE: StorageWriteError,
    JobType.DELETE: StorageDeleteError,
}


@dataclass
class KeychainJob:
    """A single read, write or delete against the keyring."""

    job_type: JobType
    service: str
    key: str
    text_data: str = field(default="", repr=False)
    error: KeychainError = KeychainError.NO_ERROR
    error_string: str = ""

    @property
    def failed(self) -> bool:
        return self.error is not KeychainError.NO_ERROR

    def to_exception(self) -> KeychainJobError | None:
        """Describe a failed job as an exception, or None on success."""
        if not self.failed:
            return None
        return _JOB_ERRORS[self.job_type](self.key, self.error_string)


JobCallback = Callable[[KeychainJob], None]


class CallerThreadExecutor(Executor):
    """Runs each job on the submitting thread before submit() returns.

    Interactive front ends use it so the password prompt that follows a
    failed read runs on the main thread, where Ctrl+C is delivered.
    """

    def submit(self, fn, /, *args, **kwargs):
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class SecureStorageClient:
    """Runs keychain jobs for one keyring service."""

    def __init__(self, service_name: str | None = None, executor: Executor | None = None):
        self.service_name = service_name or get_settings().app_name
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="keychain"
        )

    def read(self, key: str, callback: JobCallback | None = None) -> "Future[KeychainJob]":
        """Read the secret stored under ``key``."""
        job = KeychainJob(JobType.READ, self.service_name, key)
        return self._start(job, callback)

    def write(
        self, key: str, secret: str, callback: JobCallback | None = None
    ) -> "Future[KeychainJob]":
        """Store ``secret`` under ``key``, replacing any previous value."""
        job = KeychainJob(JobType.WRITE, self.service_name, key, text_data=secret)
        return self._start(job, callback)

    def delete(self, key: str, callback: JobCallback | None = None) -> "Future[KeychainJob]":
        """Remove the secret stored under ``key``."""
        job = KeychainJob(JobType.DELETE, self.service_name, key)
        return self._start(job, callback)

    def close(self, wait: bool = True) -> None:
        """Stop accepting jobs; pending writes and deletes still finish."""
        self._executor.shutdown(wait=wait)

    def _start(self, job: KeychainJob, callback: JobCallback | None) -> "Future[KeychainJob]":
        def run() -> KeychainJob:
            _run_job(job)
            if callback is not None:
                callback(job)
            return job

        try:
            future = self._executor.submit(run)
        except RuntimeError as e:
            # Shut down, or no worker thread could be started
            job.error = KeychainError.OTHER_ERROR
            job.error_string = f"Could not start keychain job: {e}"
            future = Future()
            if callback is not None:
                callback(job)
            future.set_result(job)
            return future

        future.add_done_callback(_log_callback_failure)
        return future


def _run_job(job: KeychainJob) -> None:
    if not job.key:
        job.error = KeychainError.OTHER_ERROR
        job.error_string = "No key given"
        return

    try:
        if job.job_type is JobType.READ:
            value = keyring.get_password(job.service, job.key)
            if value is None:
                job.error = KeychainError.ENTRY_NOT_FOUND
                job.error_string = "Entry not found"
            else:
                job.text_data = value
        elif job.job_type is JobType.WRITE:
            keyring.set_password(job.service, job.key, job.text_data)
        else:
            keyring.delete_password(job.service, job.key)
    except keyring.errors.NoKeyringError as e:
        job.error = KeychainError.NO_BACKEND
        job.error_string = str(e) or "No keyring backend available"
    except keyring.errors.PasswordDeleteError as e:
        job.error = KeychainError.ENTRY_NOT_FOUND
        job.error_string = str(e) or "Entry not found"
    except keyring.errors.KeyringLocked as e:
        job.error = KeychainError.ACCESS_DENIED
        job.error_string = str(e) or "Keyring is locked"
    except keyring.errors.KeyringError as e:
        job.error = KeychainError.OTHER_ERROR
        job.error_string = str(e) or type(e).__name__
    except Exception as e:
        # Backends raise their own errors (D-Bus, Win32) outside keyring.errors
        logger.debug(f"Unexpected keyring failure for '{job.key}'", exc_info=True)
        job.error = KeychainError.OTHER_ERROR
        job.error_string = str(e) or type(e).__name__


def _log_callback_failure(future: "Future[KeychainJob]") -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Keychain job callback failed", exc_info=exc)

"""Credentials module for synccreds."""

from synccreds.creds.abstract import AbstractCredentials
from synccreds.creds.common import keychain_key
from synccreds.creds.http import HttpCredentials
from synccreds.creds.keychain import KeychainError, KeychainJob, SecureStorageClient
from synccreds.creds.prompt import ConsolePasswordPrompt, PasswordPrompt
from synccreds.creds.transport import (
    AuthOutcome,
    HttpCredentialsAuth,
    Reply,
    ReplyError,
    basic_auth_header,
    classify,
)

__all__ = [
    # Credentials
    "AbstractCredentials",
    "HttpCredentials",
    "keychain_key",
    # Secure storage
    "SecureStorageClient",
    "KeychainJob",
    "KeychainError",
    # Prompt
    "PasswordPrompt",
    "ConsolePasswordPrompt",
    # Requests
    "HttpCredentialsAuth",
    "AuthOutcome",
    "Reply",
    "ReplyError",
    "basic_auth_header",
    "classify",
]

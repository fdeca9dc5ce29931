"""Attach credentials to outgoing requests and judge the replies.

httpx's ``BasicAuth`` is not used: the header is built here from UTF-8
encoded username and password, and a 401 is never answered by sending the
request again. A rejected reply is terminal for that request; the caller
decides whether to invalidate the credentials and fetch new ones.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Generator, Protocol

import httpx

from synccreds import __version__
from synccreds.exceptions import RequestCancelledError

if TYPE_CHECKING:
    from synccreds.account import Account

logger = logging.getLogger(__name__)


class ReplyError(Enum):
    """Transport level outcome of a request."""

    NO_ERROR = "no_error"
    AUTHENTICATION_REQUIRED = "authentication_required"
    OPERATION_CANCELED = "operation_canceled"
    TIMED_OUT = "timed_out"
    CONNECTION_REFUSED = "connection_refused"
    CONTENT_ACCESS_DENIED = "content_access_denied"
    CONTENT_NOT_FOUND = "content_not_found"
    SERVER_ERROR = "server_error"
    PROTOCOL_FAILURE = "protocol_failure"
    UNKNOWN_NETWORK_ERROR = "unknown_network_error"


class AuthOutcome(Enum):
    """What a reply says about the credentials."""

    VALID = "valid"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass
class Reply:
    """Result of one request, successful or not."""

    url: str
    error: ReplyError = ReplyError.NO_ERROR
    status_code: int | None = None
    error_string: str = ""
    response: httpx.Response | None = field(default=None, repr=False)


class CredentialSource(Protocol):
    def ready(self) -> bool: ...

    def snapshot(self) -> tuple[str, str]: ...


def classify(reply: Reply) -> AuthOutcome:
    """Tell whether ``reply`` rejected the credentials.

    Wrong passwords and expired sessions both come back as
    AUTHENTICATION_REQUIRED and are not told apart. Timeouts and other
    network failures say nothing about the credentials.
    """
    if reply.error is ReplyError.AUTHENTICATION_REQUIRED:
        return AuthOutcome.REJECTED
    if reply.error is ReplyError.OPERATION_CANCELED:
        return AuthOutcome.CANCELLED
    return AuthOutcome.VALID


def basic_auth_header(user: str, password: str) -> str:
    """``Basic`` header value with UTF-8 encoded credentials."""
    token = base64.b64encode(user.encode("utf-8") + b":" + password.encode("utf-8"))
    return f"Basic {token.decode('ascii')}"


def reply_from_response(response: httpx.Response) -> Reply:
    status = response.status_code
    if status == 401:
        error = ReplyError.AUTHENTICATION_REQUIRED
    elif status == 403:
        error = ReplyError.CONTENT_ACCESS_DENIED
    elif status == 404:
        error = ReplyError.CONTENT_NOT_FOUND
    elif status >= 500:
        error = ReplyError.SERVER_ERROR
    elif status >= 400:
        error = ReplyError.PROTOCOL_FAILURE
    else:
        error = ReplyError.NO_ERROR

    return Reply(
        url=str(response.request.url),
        error=error,
        status_code=status,
        error_string=response.reason_phrase if error is not ReplyError.NO_ERROR else "",
        response=response,
    )


def reply_from_exception(url: str, exc: Exception) -> Reply:
    if isinstance(exc, RequestCancelledError):
        error = ReplyError.OPERATION_CANCELED
    elif isinstance(exc, httpx.TimeoutException):
        error = ReplyError.TIMED_OUT
    elif isinstance(exc, httpx.ConnectError):
        error = ReplyError.CONNECTION_REFUSED
    elif isinstance(exc, httpx.RemoteProtocolError):
        error = ReplyError.PROTOCOL_FAILURE
    else:
        error = ReplyError.UNKNOWN_NETWORK_ERROR
    return Reply(url=url, error=error, error_string=str(exc))


class HttpCredentialsAuth(httpx.Auth):
    """Adds the Authorization header to requests for one server.

    The header is computed for every request from the current credentials,
    so a new password is used from the next request on. Requests for other
    hosts are sent without credentials.
    """

    def __init__(self, credentials: CredentialSource, server_url: str):
        self._credentials = credentials
        self._server = httpx.URL(server_url)
        self._server_path = self._server.path.rstrip("/") + "/"

    def targets_server(self, url: httpx.URL) -> bool:
        return (
            url.scheme == self._server.scheme
            and url.host == self._server.host
            and url.port == self._server.port
            and (url.path.rstrip("/") + "/").startswith(self._server_path)
        )

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if self.targets_server(request.url):
            if not self._credentials.ready():
                raise RequestCancelledError(str(request.url))
            request.headers["Authorization"] = basic_auth_header(*self._credentials.snapshot())

        response = yield request

        if response.status_code == 401:
            logger.info(f"Stop request: authentication failed for {request.url}")


def create_client(credentials: CredentialSource, account: Account, timeout: float) -> httpx.Client:
    """HTTP client for ``account`` that authenticates with ``credentials``."""
    return httpx.Client(
        base_url=account.url,
        auth=HttpCredentialsAuth(credentials, account.url),
        headers={"User-Agent": f"synccreds/{__version__}"},
        timeout=timeout,
    )

"""HTTP client for the sync server with retry logic for transient failures."""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from synccreds.account import Account
from synccreds.creds.transport import (
    AuthOutcome,
    Reply,
    classify,
    reply_from_exception,
    reply_from_response,
)
from synccreds.exceptions import AuthRejectedError, NotReadyError, SyncCredsError

logger = logging.getLogger(__name__)

STATUS_ENDPOINT = "status.php"


class SyncServerClient:
    """Synchronous client for one sync server account.

    Requests carry the account's credentials. A rejected reply raises
    AuthRejectedError and is never retried; only timeouts and connection
    errors are retried.
    """

    def __init__(self, account: Account, timeout: int | None = None):
        if account.credentials is None:
            raise ValueError("Account has no credentials")
        self.account = account
        self._timeout = timeout
        self._client: httpx.Client | None = None

    def __enter__(self) -> "SyncServerClient":
        """Enter context manager, creating HTTP client."""
        self._client = self.account.credentials.create_client(self.account, timeout=self._timeout)
        return self

    def __exit__(self, *args) -> None:
        """Exit context manager, closing HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def _check_client(self) -> None:
        """Ensure client is initialized."""
        if self._client is None:
            raise RuntimeError("Client not initialized - use 'with' context manager")

    @retry(
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        self._check_client()
        assert self._client is not None
        return self._client.request(method, endpoint, **kwargs)

    def request(self, method: str, endpoint: str, **kwargs) -> Reply:
        """Send a request and describe the outcome as a Reply.

        Transport errors are reported in the reply instead of raised.
        """
        self._check_client()
        assert self._client is not None
        url = str(self._client.base_url.join(endpoint))

        try:
            response = self._send(method, endpoint, **kwargs)
        except (httpx.HTTPError, SyncCredsError) as e:
            reply = reply_from_exception(url, e)
            logger.warning(f"Request to {url} failed: {reply.error.value}")
            return reply

        self.account.last_auth_cookies.extract_cookies(response)
        return reply_from_response(response)

    def _handle_reply(self, reply: Reply) -> Any:
        """Raise for replies that carry no usable data."""
        outcome = classify(reply)
        if outcome is AuthOutcome.REJECTED:
            raise AuthRejectedError(reply.url)
        if outcome is AuthOutcome.CANCELLED:
            raise NotReadyError(self.account.credentials.user())

        if reply.response is None:
            raise SyncCredsError(f"Request to {reply.url} failed ({reply.error.value})")

        if reply.status_code is not None and reply.status_code >= 400:
            logger.error(f"Server error: {reply.status_code} - {reply.response.text}")
            raise SyncCredsError(
                f"Server request failed ({reply.status_code})",
                reply.status_code,
            )

        return reply.response.json()

    def get(self, endpoint: str, **kwargs) -> Any:
        """GET ``endpoint`` and decode the JSON body."""
        return self._handle_reply(self.request("GET", endpoint, **kwargs))

    def check_server(self) -> dict[str, Any]:
        """Fetch the server status document with the current credentials."""
        return self.get(STATUS_ENDPOINT)

"""Tests for request authentication and reply classification."""

import base64

import httpx
import pytest
import respx

from synccreds.creds.http import HttpCredentials
from synccreds.creds.transport import (
    AuthOutcome,
    HttpCredentialsAuth,
    Reply,
    ReplyError,
    basic_auth_header,
    classify,
    reply_from_exception,
    reply_from_response,
)
from synccreds.exceptions import RequestCancelledError

SERVER = "https://cloud.example.com/remote.php/webdav"


def _decode(header: str) -> str:
    scheme, token = header.split(" ", 1)
    assert scheme == "Basic"
    return base64.b64decode(token).decode("utf-8")


class TestBasicAuthHeader:
    """Tests for the Authorization header value."""

    def test_ascii_credentials(self):
        """Plain credentials produce the usual header."""
        assert basic_auth_header("alice", "s3cr3t") == "Basic YWxpY2U6czNjcjN0"

    def test_unicode_is_utf8_encoded(self):
        """Non Latin-1 characters survive the round trip."""
        header = basic_auth_header("ユーザー", "pässwörd€")

        assert _decode(header) == "ユーザー:pässwörd€"


class TestClassify:
    """Tests for classify()."""

    def test_authentication_required_is_rejected(self):
        """A 401 style error rejects the credentials."""
        reply = Reply(url=SERVER, error=ReplyError.AUTHENTICATION_REQUIRED)

        assert classify(reply) is AuthOutcome.REJECTED

    def test_timeout_is_not_rejected(self):
        """Timeouts say nothing about the credentials."""
        reply = Reply(url=SERVER, error=ReplyError.TIMED_OUT)

        assert classify(reply) is AuthOutcome.VALID

    def test_local_cancel(self):
        """A locally aborted request is cancelled."""
        reply = Reply(url=SERVER, error=ReplyError.OPERATION_CANCELED)

        assert classify(reply) is AuthOutcome.CANCELLED

    @pytest.mark.parametrize(
        "error",
        [
            ReplyError.NO_ERROR,
            ReplyError.CONNECTION_REFUSED,
            ReplyError.CONTENT_NOT_FOUND,
            ReplyError.SERVER_ERROR,
        ],
    )
    def test_other_errors_are_valid(self, error):
        """Non-auth failures keep the credentials."""
        assert classify(Reply(url=SERVER, error=error)) is AuthOutcome.VALID


class TestReplyMapping:
    """Tests for turning httpx results into replies."""

    @pytest.mark.parametrize(
        "status, error",
        [
            (200, ReplyError.NO_ERROR),
            (207, ReplyError.NO_ERROR),
            (401, ReplyError.AUTHENTICATION_REQUIRED),
            (403, ReplyError.CONTENT_ACCESS_DENIED),
            (404, ReplyError.CONTENT_NOT_FOUND),
            (423, ReplyError.PROTOCOL_FAILURE),
            (503, ReplyError.SERVER_ERROR),
        ],
    )
    def test_from_response(self, status, error):
        """Status codes map to reply errors."""
        request = httpx.Request("GET", SERVER + "/status.php")
        response = httpx.Response(status, request=request)

        reply = reply_from_response(response)

        assert reply.error is error
        assert reply.status_code == status
        assert reply.url == SERVER + "/status.php"

    def test_from_timeout(self):
        """Timeouts become TIMED_OUT."""
        reply = reply_from_exception(SERVER, httpx.ReadTimeout("slow"))

        assert reply.error is ReplyError.TIMED_OUT

    def test_from_connect_error(self):
        """Refused connections become CONNECTION_REFUSED."""
        reply = reply_from_exception(SERVER, httpx.ConnectError("refused"))

        assert reply.error is ReplyError.CONNECTION_REFUSED

    def test_from_local_cancel(self):
        """Requests stopped for lack of credentials become OPERATION_CANCELED."""
        reply = reply_from_exception(SERVER, RequestCancelledError(SERVER))

        assert reply.error is ReplyError.OPERATION_CANCELED


class TestHttpCredentialsAuth:
    """Tests for the httpx auth hook."""

    @respx.mock
    def test_adds_header_for_server(self):
        """Requests to the account's server carry the credentials."""
        route = respx.get(SERVER + "/status.php").mock(return_value=httpx.Response(200))
        creds = HttpCredentials("alice", "s3cr3t")

        with httpx.Client(auth=HttpCredentialsAuth(creds, SERVER)) as client:
            client.get(SERVER + "/status.php")

        assert _decode(route.calls.last.request.headers["Authorization"]) == "alice:s3cr3t"

    @respx.mock
    def test_no_header_for_other_hosts(self):
        """Credentials are not sent to other servers."""
        route = respx.get("https://elsewhere.example.org/file").mock(
            return_value=httpx.Response(200)
        )
        creds = HttpCredentials("alice", "s3cr3t")

        with httpx.Client(auth=HttpCredentialsAuth(creds, SERVER)) as client:
            client.get("https://elsewhere.example.org/file")

        assert "Authorization" not in route.calls.last.request.headers

    @respx.mock
    def test_no_header_outside_server_path(self):
        """Same host but outside the account path gets no credentials."""
        route = respx.get("https://cloud.example.com/other/file").mock(
            return_value=httpx.Response(200)
        )
        creds = HttpCredentials("alice", "s3cr3t")

        with httpx.Client(auth=HttpCredentialsAuth(creds, SERVER)) as client:
            client.get("https://cloud.example.com/other/file")

        assert "Authorization" not in route.calls.last.request.headers

    @respx.mock
    def test_401_is_not_resubmitted(self):
        """A rejected request is sent exactly once."""
        route = respx.get(SERVER + "/status.php").mock(return_value=httpx.Response(401))
        creds = HttpCredentials("alice", "wrong")

        with httpx.Client(auth=HttpCredentialsAuth(creds, SERVER)) as client:
            response = client.get(SERVER + "/status.php")

        assert response.status_code == 401
        assert route.call_count == 1

    @respx.mock
    def test_header_follows_credential_updates(self):
        """A new password is used from the next request on."""
        route = respx.get(SERVER + "/status.php").mock(return_value=httpx.Response(200))
        creds = HttpCredentials("alice", "first")

        with httpx.Client(auth=HttpCredentialsAuth(creds, SERVER)) as client:
            client.get(SERVER + "/status.php")
            creds._password = "second"
            client.get(SERVER + "/status.php")

        first, second = route.calls
        assert _decode(first.request.headers["Authorization"]) == "alice:first"
        assert _decode(second.request.headers["Authorization"]) == "alice:second"

    @respx.mock
    def test_unready_credentials_cancel_request(self):
        """Nothing is sent to the server without a usable password."""
        route = respx.get(SERVER + "/status.php").mock(return_value=httpx.Response(200))
        creds = HttpCredentials()

        with httpx.Client(auth=HttpCredentialsAuth(creds, SERVER)) as client:
            with pytest.raises(RequestCancelledError):
                client.get(SERVER + "/status.php")

        assert route.call_count == 0

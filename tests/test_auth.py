"""Tests for AuthenticationHandler."""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from vesyncair.auth import AuthenticationHandler, AuthState, hash_password, mask_email, redact_email
from vesyncair.const import ANDROID_FINGERPRINT, IOS_FINGERPRINT
from vesyncair.exceptions import (
    AuthenticationError,
    ConfigurationError,
    VeSyncConnectionError,
    VeSyncProtocolError,
    VeSyncTransportError,
)


if TYPE_CHECKING:
    from tests.conftest import FakeClock


def forbidden() -> VeSyncTransportError:
    """Build the error the server returns for a rejected client identity."""
    return VeSyncTransportError("HTTP 403 from /cloud/v1/user/login", status=403)


@pytest.fixture
def mock_api(login_response: dict[str, Any]) -> MagicMock:
    """Create a mock VeSyncAPI answering every login successfully."""
    api = MagicMock()
    api.login = AsyncMock(return_value=login_response)
    return api


@pytest.fixture
def handler(mock_api: MagicMock, clock: FakeClock) -> AuthenticationHandler:
    """Create an authentication handler with a fake sleep."""
    return AuthenticationHandler(
        email="user@example.com",
        password="secret",
        api=mock_api,
        terminal_id="terminal-1",
        sleep_fn=clock.sleep,
    )


def login_call(api: MagicMock, index: int) -> tuple[dict[str, Any], dict[str, str]]:
    """Return (body, headers) of the index-th login call."""
    args = api.login.await_args_list[index].args
    return args[0], args[1]


class TestHelpers:
    """Test module-level helpers."""

    def test_hash_password(self) -> None:
        """Test passwords are sent as unsalted MD5 hex."""
        assert hash_password("secret") == hashlib.md5(b"secret").hexdigest()  # noqa: S324
        assert hash_password("secret") == "5ebe2294ecd0e0f08eab7690d2a6ee69"

    @pytest.mark.parametrize(
        ("email", "expected"),
        [
            ("jane@example.com", "j***@example.com"),
            ("ab@example.com", "a***@example.com"),
            ("not-an-email", "not-an-email"),
        ],
    )
    def test_mask_email(self, email: str, expected: str) -> None:
        """Test emails keep only their first character and domain."""
        assert mask_email(email) == expected

    def test_redact_email(self) -> None:
        """Test every occurrence is masked, ignoring case."""
        text = "Login failed for User@Example.com (user@example.com)"

        redacted = redact_email(text, "user@example.com")

        assert "user@example.com" not in redacted.lower()
        assert redacted.count("u***@example.com") == 2

    def test_redact_without_email(self) -> None:
        """Test redaction is a no-op without an email."""
        assert redact_email("text", "") == "text"


class TestInitialState:
    """Test handler initial state."""

    def test_unauthenticated(self, handler: AuthenticationHandler) -> None:
        """Test a fresh handler has no session."""
        assert handler.state is AuthState.UNAUTHENTICATED
        assert handler.session is None
        assert handler.is_authenticated() is False
        assert handler.last_authenticated_at is None

    def test_require_session_fails_before_login(self, handler: AuthenticationHandler) -> None:
        """Test require_session raises before the first login."""
        with pytest.raises(AuthenticationError, match="not logged in"):
            handler.require_session()

        with pytest.raises(AuthenticationError):
            handler.headers()

    def test_terminal_id_generated_when_missing(self, mock_api: MagicMock) -> None:
        """Test a terminal id is generated when the host supplies none."""
        first = AuthenticationHandler("user@example.com", "secret", mock_api)
        second = AuthenticationHandler("user@example.com", "secret", mock_api)

        assert first.terminal_id
        assert first.terminal_id != second.terminal_id


class TestLogin:
    """Test the login flow."""

    async def test_login_success(self, handler: AuthenticationHandler, mock_api: MagicMock) -> None:
        """Test a successful login stores the session."""
        session = await handler.login()

        assert session.token == "test-token"
        assert session.account_id == "1234567"
        assert session.fingerprint == ANDROID_FINGERPRINT
        assert session.terminal_id == "terminal-1"
        assert handler.session is session
        assert handler.state is AuthState.AUTHENTICATED
        assert handler.is_authenticated() is True
        assert handler.last_authenticated_at is not None
        mock_api.login.assert_awaited_once()

    async def test_login_body(self, handler: AuthenticationHandler, mock_api: MagicMock) -> None:
        """Test the login body carries the hashed password and terminal id."""
        await handler.login()

        body, headers = login_call(mock_api, 0)
        assert body["account"] == "user@example.com"
        assert body["password"] == hash_password("secret")
        assert body["password"] != "secret"
        assert body["terminalId"] == "terminal-1"
        assert body["clientType"] == "Android"
        assert headers["User-Agent"] == ANDROID_FINGERPRINT.user_agent

    async def test_settle_delay_after_login(self, handler: AuthenticationHandler, clock: FakeClock) -> None:
        """Test a successful login waits before returning."""
        await handler.login()

        assert clock.sleeps == [0.5]

    async def test_headers_after_login(self, handler: AuthenticationHandler) -> None:
        """Test authenticated headers use the session token."""
        await handler.login()

        headers = handler.headers()
        assert headers["tk"] == "test-token"
        assert headers["accountid"] == "1234567"

    async def test_falls_back_to_email_field(
        self, handler: AuthenticationHandler, mock_api: MagicMock, login_response: dict[str, Any]
    ) -> None:
        """Test a transport failure retries with the alternate account field."""
        mock_api.login.side_effect = [VeSyncConnectionError("reset"), login_response]

        await handler.login()

        assert mock_api.login.await_count == 2
        first_body, _ = login_call(mock_api, 0)
        second_body, _ = login_call(mock_api, 1)
        assert "account" in first_body
        assert second_body["email"] == "user@example.com"
        assert "account" not in second_body

    async def test_falls_back_to_ios_fingerprint(
        self, handler: AuthenticationHandler, mock_api: MagicMock, login_response: dict[str, Any]
    ) -> None:
        """Test a rejected client identity is retried once as iOS."""
        mock_api.login.side_effect = [forbidden(), forbidden(), login_response]

        session = await handler.login()

        assert session.fingerprint == IOS_FINGERPRINT
        _, third_headers = login_call(mock_api, 2)
        third_body, _ = login_call(mock_api, 2)
        assert third_headers["User-Agent"] == IOS_FINGERPRINT.user_agent
        assert third_body["clientType"] == "iOS"
        assert third_body["account"] == "user@example.com"

    async def test_ios_session_headers(
        self, handler: AuthenticationHandler, mock_api: MagicMock, login_response: dict[str, Any]
    ) -> None:
        """Test later requests keep the fingerprint that logged in."""
        mock_api.login.side_effect = [forbidden(), forbidden(), login_response]

        await handler.login()

        assert handler.headers()["User-Agent"] == IOS_FINGERPRINT.user_agent
        assert handler.headers()["clientType"] == "iOS"

    async def test_fingerprint_fallback_happens_once(self, handler: AuthenticationHandler, mock_api: MagicMock) -> None:
        """Test no third identity is tried after iOS is rejected."""
        mock_api.login.side_effect = forbidden()

        with pytest.raises(VeSyncTransportError):
            await handler.login()

        assert mock_api.login.await_count == 4
        user_agents = [login_call(mock_api, i)[1]["User-Agent"] for i in range(4)]
        assert user_agents == [
            ANDROID_FINGERPRINT.user_agent,
            ANDROID_FINGERPRINT.user_agent,
            IOS_FINGERPRINT.user_agent,
            IOS_FINGERPRINT.user_agent,
        ]

    async def test_forbidden_message_triggers_fallback(
        self, handler: AuthenticationHandler, mock_api: MagicMock, login_response: dict[str, Any]
    ) -> None:
        """Test a 'Forbidden' vendor message also triggers the iOS retry."""
        rejected = VeSyncTransportError("HTTP 500", status=500, msg="Forbidden")
        mock_api.login.side_effect = [rejected, rejected, login_response]

        session = await handler.login()

        assert session.fingerprint == IOS_FINGERPRINT

    async def test_other_transport_errors_skip_fingerprint_fallback(
        self, handler: AuthenticationHandler, mock_api: MagicMock
    ) -> None:
        """Test only identity rejections switch the fingerprint."""
        mock_api.login.side_effect = VeSyncTransportError("HTTP 500", status=500)

        with pytest.raises(VeSyncTransportError):
            await handler.login()

        assert mock_api.login.await_count == 2

    async def test_vendor_error_code(self, handler: AuthenticationHandler, mock_api: MagicMock) -> None:
        """Test a non-zero vendor code fails the login."""
        mock_api.login.return_value = {"code": -11201022, "msg": "password error", "result": None}

        with pytest.raises(VeSyncProtocolError) as exc_info:
            await handler.login()

        assert exc_info.value.code == -11201022
        assert handler.session is None
        mock_api.login.assert_awaited_once()

    @pytest.mark.parametrize(
        "result",
        [{"accountID": "1234567"}, {"token": "test-token"}, {"token": "", "accountID": "1"}, None],
    )
    async def test_missing_token_or_account(
        self, handler: AuthenticationHandler, mock_api: MagicMock, result: Any
    ) -> None:
        """Test a response without both credentials is rejected."""
        mock_api.login.return_value = {"code": 0, "msg": "request success", "result": result}

        with pytest.raises(AuthenticationError):
            await handler.login()

        assert handler.session is None
        assert handler.state is AuthState.UNAUTHENTICATED

    @pytest.mark.parametrize(("email", "password"), [("", "secret"), ("user@example.com", "")])
    async def test_missing_credentials(self, mock_api: MagicMock, email: str, password: str) -> None:
        """Test empty credentials fail without calling the API."""
        handler = AuthenticationHandler(email=email, password=password, api=mock_api)

        with pytest.raises(ConfigurationError):
            await handler.login()

        mock_api.login.assert_not_awaited()

    async def test_failed_login_resets_state(self, handler: AuthenticationHandler, mock_api: MagicMock) -> None:
        """Test a failed first login leaves the handler unauthenticated."""
        mock_api.login.side_effect = VeSyncConnectionError("down")

        with pytest.raises(VeSyncConnectionError):
            await handler.login()

        assert handler.state is AuthState.UNAUTHENTICATED
        assert handler.session is None

    async def test_failed_refresh_keeps_previous_session(
        self, handler: AuthenticationHandler, mock_api: MagicMock
    ) -> None:
        """Test a failed re-login keeps the still-usable session."""
        previous = await handler.login()
        mock_api.login.side_effect = VeSyncConnectionError("down")

        with pytest.raises(VeSyncConnectionError):
            await handler.login()

        assert handler.session is previous
        assert handler.state is AuthState.AUTHENTICATED

    async def test_relogin_replaces_session(
        self, handler: AuthenticationHandler, mock_api: MagicMock, login_response: dict[str, Any]
    ) -> None:
        """Test a successful re-login swaps token and account id together."""
        await handler.login()
        mock_api.login.return_value = {"code": 0, "result": {"token": "new-token", "accountID": "7654321"}}

        session = await handler.login()

        assert session.token == "new-token"
        assert session.account_id == "7654321"
        assert handler.session is session

    async def test_session_updated_callback(self, mock_api: MagicMock, clock: FakeClock) -> None:
        """Test the callback is invoked with the handler after login."""
        callback = MagicMock()
        handler = AuthenticationHandler(
            "user@example.com",
            "secret",
            mock_api,
            on_session_updated=callback,
            sleep_fn=clock.sleep,
        )

        await handler.login()

        callback.assert_called_once_with(handler)

    async def test_failing_callback_keeps_login(
        self, mock_api: MagicMock, clock: FakeClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a raising callback is logged and the login still succeeds."""
        callback = MagicMock(side_effect=KeyError("host store broken"))
        handler = AuthenticationHandler(
            "user@example.com",
            "secret",
            mock_api,
            on_session_updated=callback,
            sleep_fn=clock.sleep,
        )

        session = await handler.login()

        assert handler.session is session
        assert handler.state is AuthState.AUTHENTICATED
        assert 0.5 in clock.sleeps
        assert "Session update callback failed" in caplog.text

    async def test_callback_not_invoked_on_failure(self, mock_api: MagicMock, clock: FakeClock) -> None:
        """Test the callback is skipped when login fails."""
        callback = MagicMock()
        mock_api.login.side_effect = VeSyncConnectionError("down")
        handler = AuthenticationHandler(
            "user@example.com",
            "secret",
            mock_api,
            on_session_updated=callback,
            sleep_fn=clock.sleep,
        )

        with pytest.raises(VeSyncConnectionError):
            await handler.login()

        callback.assert_not_called()
        assert clock.sleeps == []

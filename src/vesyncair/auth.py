"""Authentication handler for the VeSync API."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from vesyncair.api import ensure_success
from vesyncair.const import (
    ALTERNATE_ACCOUNT_FIELD,
    ANDROID_FINGERPRINT,
    IOS_FINGERPRINT,
    LOGIN_SETTLE_DELAY,
    PRIMARY_ACCOUNT_FIELD,
)
from vesyncair.exceptions import AuthenticationError, ConfigurationError, VeSyncTransportError
from vesyncair.models import Fingerprint, Session
from vesyncair.serializers import build_headers, build_login_body


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from vesyncair.api import VeSyncAPI

_LOGGER = logging.getLogger(__name__)

_EMAIL_MASK = re.compile(r"(.).+(@.*)")


def hash_password(password: str) -> str:
    """Hash a password the way the VeSync app does (unsalted MD5, hex)."""
    return hashlib.md5(password.encode("utf-8")).hexdigest()  # noqa: S324


def mask_email(email: str) -> str:
    """Mask an email address for logging (``jane@example.com`` -> ``j***@example.com``)."""
    return _EMAIL_MASK.sub(r"\1***\2", email)


def redact_email(text: str, email: str) -> str:
    """Replace every occurrence of email in text with its masked form."""
    if not email:
        return text
    return re.sub(re.escape(email), mask_email(email), text, flags=re.IGNORECASE)


class AuthState(Enum):
    """Authentication states."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


class AuthenticationHandler:
    """Handle authentication with the VeSync cloud.

    This class owns the account credentials, performs login and caches the
    resulting token/account id pair. It does not serialize its own calls;
    VeSyncClient runs every login inside the shared request slot.

    Login strategy:
        1. Post the credentials under the primary field name ("account").
           On a transport failure, post once more under "email".
        2. If the server rejects the declared client identity (HTTP 400/403
           or a "Forbidden" message), repeat step 1 once with the iOS
           fingerprint. There is no further fallback.
        3. The response must carry both a token and an account id.

    Session Update Callback:
        When login succeeds, on_session_updated is invoked with the handler
        so hosts can persist the new token:

        Example:
            def handle_session_update(handler: AuthenticationHandler) -> None:
                store.save(handler.session.token, handler.session.account_id)

            handler = AuthenticationHandler(
                email="user@example.com",
                password="password",
                api=api,
                on_session_updated=handle_session_update,
            )

    Attributes:
        email: Account email.
        password: Account password (hashed only when sent).
        terminal_id: Stable per-installation identifier sent with every login.
        session: Current session, or None before the first successful login.
        state: Current authentication state.
        last_authenticated_at: Timestamp of the last successful login.
    """

    def __init__(
        self,
        email: str,
        password: str,
        api: VeSyncAPI,
        *,
        terminal_id: str | None = None,
        on_session_updated: Callable[[AuthenticationHandler], None] | None = None,
        sleep_fn: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the authentication handler.

        Args:
            email: Account email.
            password: Account password.
            api: Low-level API client used for the login request.
            terminal_id: Host-persisted terminal identifier. A random one is
                generated for the process lifetime when omitted.
            on_session_updated: Optional callback invoked after each successful login.
            sleep_fn: Async sleep used for the post-login settling delay.
        """
        self.email = email
        self.password = password
        self.terminal_id = terminal_id or str(uuid.uuid4())
        self.session: Session | None = None
        self.state = AuthState.UNAUTHENTICATED
        self.last_authenticated_at: datetime | None = None

        self._api = api
        self._on_session_updated = on_session_updated
        self._sleep_fn = sleep_fn

    def is_authenticated(self) -> bool:
        """Check if a session exists."""
        return self.session is not None

    def require_session(self) -> Session:
        """Return the current session.

        Raises:
            AuthenticationError: If no login has succeeded yet.
        """
        if self.session is None:
            msg = "The user is not logged in"
            raise AuthenticationError(msg)
        return self.session

    def headers(self) -> dict[str, str]:
        """Build authenticated request headers.

        Raises:
            AuthenticationError: If no login has succeeded yet.
        """
        session = self.require_session()
        return build_headers(session.fingerprint, session)

    async def login(self) -> Session:
        """Log in and cache the resulting session.

        Returns:
            The new session.

        Raises:
            ConfigurationError: If email or password is empty.
            AuthenticationError: If the response lacks a token or account id.
            VeSyncProtocolError: If the vendor code is not 0.
            VeSyncTransportError: If every login variant failed at the transport level.
        """
        if not self.email or not self.password:
            msg = "Email and password are required"
            raise ConfigurationError(msg)

        self.state = AuthState.AUTHENTICATING
        _LOGGER.debug("Logging in as %s", mask_email(self.email))

        session: Session | None = None
        try:
            try:
                session = await self._login_as(ANDROID_FINGERPRINT)
            except VeSyncTransportError as exc:
                if not exc.is_identity_rejected:
                    raise
                _LOGGER.warning(
                    "Login rejected for client %s (status %s), retrying as %s",
                    ANDROID_FINGERPRINT.client_type,
                    exc.status,
                    IOS_FINGERPRINT.client_type,
                )
                session = await self._login_as(IOS_FINGERPRINT)
        finally:
            if session is None:
                # A failed refresh keeps the previous session; its token may still be valid
                self.state = AuthState.AUTHENTICATED if self.session is not None else AuthState.UNAUTHENTICATED

        self.session = session
        self.state = AuthState.AUTHENTICATED
        self.last_authenticated_at = datetime.now(UTC)
        _LOGGER.info("Authentication successful for %s", mask_email(self.email))

        if self._on_session_updated is not None:
            try:
                self._on_session_updated(self)
            except Exception:
                # Host callback errors never fail a completed login
                _LOGGER.exception("Session update callback failed")

        await self._sleep_fn(LOGIN_SETTLE_DELAY)
        return session

    async def _login_as(self, fingerprint: Fingerprint) -> Session:
        """Log in under one client fingerprint, trying both account field names."""
        headers = build_headers(fingerprint)
        password_hash = hash_password(self.password)

        def body(account_field: str) -> dict[str, Any]:
            return build_login_body(self.email, password_hash, self.terminal_id, fingerprint, account_field)

        try:
            data = await self._api.login(body(PRIMARY_ACCOUNT_FIELD), headers)
        except VeSyncTransportError as exc:
            _LOGGER.debug(
                "Login with '%s' field failed (%s), retrying with '%s'",
                PRIMARY_ACCOUNT_FIELD,
                exc,
                ALTERNATE_ACCOUNT_FIELD,
            )
            data = await self._api.login(body(ALTERNATE_ACCOUNT_FIELD), headers)

        return self._session_from_response(data, fingerprint)

    def _session_from_response(self, data: dict[str, Any], fingerprint: Fingerprint) -> Session:
        """Extract a session from a login response envelope."""
        ensure_success(data, "Login")

        result = data.get("result") or {}
        token = result.get("token")
        account_id = result.get("accountID")
        if not token or not account_id:
            msg = "Login response is missing the token or account id"
            raise AuthenticationError(msg)

        return Session(
            account_id=str(account_id),
            token=str(token),
            fingerprint=fingerprint,
            terminal_id=self.terminal_id,
        )

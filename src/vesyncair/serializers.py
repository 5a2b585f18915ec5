"""Request envelope construction for the VeSync API.

This module provides stateless functions building the JSON bodies and
headers the VeSync cloud expects. Keeping them free of client state lets the
authentication handler, the client and the tests share one definition of
every envelope.

Design Philosophy:
    - Stateless functions (no classes, no state)
    - Session/auth metadata is passed in explicitly
    - Each call produces a fresh dict (envelopes are never reused or persisted)
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from vesyncair.const import (
    APP_VERSION,
    COUNTRY_CODE,
    DEVICE_PAGE_SIZE,
    LOCALE,
    TIMEZONE,
)


if TYPE_CHECKING:
    from vesyncair.devices import VeSyncDevice
    from vesyncair.models import Fingerprint, Session


def trace_id() -> int:
    """Generate a request trace id (milliseconds since the epoch)."""
    return int(time.time() * 1000)


def build_headers(fingerprint: Fingerprint, session: Session | None = None) -> dict[str, str]:
    """Build HTTP headers for a request.

    Args:
        fingerprint: Client identity to declare.
        session: Authenticated session; when given, account and token headers are added.

    Returns:
        Header dictionary.
    """
    headers = {
        "Content-Type": "application/json",
        "Accept-Language": LOCALE,
        "User-Agent": fingerprint.user_agent,
    }
    if session is not None:
        headers.update(
            {
                "accountid": session.account_id,
                "tk": session.token,
                "appVersion": APP_VERSION,
                "clientType": session.fingerprint.client_type,
                "timeZone": TIMEZONE,
                "countryCode": COUNTRY_CODE,
            }
        )
    return headers


def build_detail_body() -> dict[str, Any]:
    """Build the per-request detail fields (app version and trace id)."""
    return {
        "appVersion": APP_VERSION,
        "traceId": trace_id(),
    }


def build_base_body(fingerprint: Fingerprint, session: Session | None = None) -> dict[str, Any]:
    """Build the locale/client fields common to every request body.

    Args:
        fingerprint: Client identity to declare.
        session: Authenticated session; when given, accountID and token are added.

    Returns:
        Body fragment.
    """
    body: dict[str, Any] = {
        "acceptLanguage": LOCALE,
        "timeZone": TIMEZONE,
        "countryCode": COUNTRY_CODE,
        "clientType": fingerprint.client_type,
    }
    if session is not None:
        body["accountID"] = session.account_id
        body["token"] = session.token
    return body


def build_login_body(
    email: str,
    password_hash: str,
    terminal_id: str,
    fingerprint: Fingerprint,
    account_field: str,
) -> dict[str, Any]:
    """Build the login request body.

    Args:
        email: Account email.
        password_hash: Hex digest of the password.
        terminal_id: Stable per-installation identifier.
        fingerprint: Client identity to declare.
        account_field: Field name carrying the email ("account" or "email").

    Returns:
        Login body.
    """
    return {
        account_field: email,
        "password": password_hash,
        "devToken": "",
        "userType": 1,
        "method": "login",
        "token": "",
        "terminalId": terminal_id,
        "traceId": trace_id(),
        "appVersion": APP_VERSION,
        "clientType": fingerprint.client_type,
        "timeZone": TIMEZONE,
        "countryCode": COUNTRY_CODE,
    }


def build_devices_body(session: Session) -> dict[str, Any]:
    """Build the device list request body."""
    return {
        "method": "devices",
        "pageNo": 1,
        "pageSize": DEVICE_PAGE_SIZE,
        **build_detail_body(),
        **build_base_body(session.fingerprint, session),
    }


def build_bypass_body(
    device: VeSyncDevice,
    method: str,
    data: dict[str, Any] | None,
    session: Session,
) -> dict[str, Any]:
    """Build a bypassV2 command envelope.

    The outer envelope addresses the device and carries transport metadata;
    the inner payload names the device method and its data.

    Args:
        device: Target device.
        method: Device method (e.g., "getPurifierStatus", "setSwitch").
        data: Method-specific data.
        session: Authenticated session.

    Returns:
        Command envelope.
    """
    return {
        "method": "bypassV2",
        "debugMode": False,
        "deviceRegion": device.region,
        "cid": device.cid,
        "configModule": device.config_module,
        "payload": {
            "data": dict(data or {}),
            "method": method,
            "source": "APP",
        },
        **build_detail_body(),
        **build_base_body(session.fingerprint, session),
    }

"""Client and coordinator for VeSync air purifiers and humidifiers.

This module provides the public surface used by host integrations. Every
operation runs inside the client's single request slot, is paced and retried
by the API layer, and converts failures into benign return values.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from vesyncair.api import VeSyncAPI, ensure_success
from vesyncair.auth import AuthenticationHandler, redact_email
from vesyncair.classifier import classify_devices
from vesyncair.const import (
    COUNTRY_CODE,
    DEFAULT_BASE_URL,
    DEVICE_SETTLE_DELAY,
    DISCOVERY_SETTLE_DELAY,
    SESSION_REFRESH_INTERVAL,
)
from vesyncair.exceptions import VeSyncError, VeSyncProtocolError
from vesyncair.models import DeviceCollections
from vesyncair.queue import RequestQueue
from vesyncair.serializers import build_bypass_body, build_devices_body


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from aiohttp import ClientSession

    from vesyncair.devices import VeSyncDevice
    from vesyncair.resilience import ExponentialBackoff, RateLimiter

_LOGGER = logging.getLogger(__name__)


class VeSyncClient:
    """Client for VeSync smart-home air devices.

    The client authenticates, discovers devices, reads their status and sends
    commands. All traffic of one client is strictly serialized: login, device
    listing, status reads and commands never overlap, and the periodic
    re-login queues behind whatever is running.

    Example:
        ```python
        from vesyncair import PurifierMethod, VeSyncClient

        async with VeSyncClient(email="user@example.com", password="password") as client:
            if not await client.start_session():
                return

            devices = await client.get_devices()
            for purifier in devices.purifiers:
                status = await client.get_device_info(purifier)
                await client.send_command(purifier, PurifierMethod.SPEED, {"level": 2, "type": "wind", "id": 0})
        ```

    Attributes:
        api: Low-level VeSyncAPI instance for HTTP communication.
        auth: Authentication handler holding the session.
    """

    def __init__(
        self,
        email: str,
        password: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        session: ClientSession | None = None,
        terminal_id: str | None = None,
        refresh_interval: float = SESSION_REFRESH_INTERVAL,
        rate_limiter: RateLimiter | None = None,
        backoff: ExponentialBackoff | None = None,
        on_session_updated: Callable[[AuthenticationHandler], None] | None = None,
        sleep_fn: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the VeSync client.

        Args:
            email: Account email.
            password: Account password.
            base_url: Base URL for the API. Defaults to VeSync production API.
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            terminal_id: Host-persisted terminal identifier.
            refresh_interval: Seconds between scheduled re-logins (default 55 minutes).
            rate_limiter: Optional RateLimiter (default 1 request/s, 60/min).
            backoff: Optional ExponentialBackoff for 429 retries.
            on_session_updated: Optional callback invoked after each successful login.
            sleep_fn: Async sleep for settling delays and scheduling, injectable for tests.
        """
        self._api = VeSyncAPI(
            session=session,
            base_url=base_url,
            rate_limiter=rate_limiter,
            backoff=backoff,
            sleep_fn=sleep_fn,
        )
        self._auth = AuthenticationHandler(
            email,
            password,
            self._api,
            terminal_id=terminal_id,
            on_session_updated=on_session_updated,
            sleep_fn=sleep_fn,
        )
        self._queue = RequestQueue()
        self._refresh_interval = refresh_interval
        self._refresh_task: asyncio.Task[None] | None = None
        self._sleep_fn = sleep_fn

    @property
    def api(self) -> VeSyncAPI:
        """Get the underlying API client."""
        return self._api

    @property
    def auth(self) -> AuthenticationHandler:
        """Get the authentication handler."""
        return self._auth

    async def __aenter__(self) -> VeSyncClient:
        """Enter the context manager, creating a session if needed."""
        await self._api.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager.

        Stops the refresh task and the request queue, then closes the API client.
        """
        await self.close()
        await self._api.__aexit__(exc_type, exc_val, exc_tb)

    async def close(self) -> None:
        """Cancel the scheduled re-login and every queued operation."""
        if self._refresh_task is not None:
            self._refresh_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._refresh_task
            self._refresh_task = None
            _LOGGER.debug("Stopped session refresh")

        await self._queue.shutdown()

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def start_session(self) -> bool:
        """Log in and schedule a re-login every refresh interval.

        The refresh is scheduled whether or not the first login succeeds.
        Failures of later refreshes are logged only.

        Returns:
            True if the first login succeeded.
        """
        _LOGGER.debug("Starting auth session")
        success = await self._login()

        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_loop())
            _LOGGER.info("Scheduled session refresh every %ds", self._refresh_interval)

        return success

    async def _login(self) -> bool:
        """Run one login in the request slot."""
        try:
            await self._queue.run("login", self._auth.login)
        except VeSyncError as exc:
            self._log_failure("Failed to login", exc)
            return False
        except Exception:
            _LOGGER.exception("Unexpected error during login")
            return False
        return True

    async def _refresh_loop(self) -> None:
        """Background task re-authenticating at a fixed interval."""
        while True:
            await self._sleep_fn(self._refresh_interval)
            _LOGGER.debug("Refreshing auth session")
            if not await self._login():
                _LOGGER.warning("Scheduled session refresh failed")

    # -------------------------------------------------------------------------
    # Devices
    # -------------------------------------------------------------------------

    async def get_devices(self) -> DeviceCollections:
        """Discover the account's purifiers and humidifiers.

        Returns:
            DeviceCollections. On failure (no session, vendor error, malformed
            list) both collections are empty and ``success`` is False.
        """
        try:
            return await self._queue.run("devices", self._fetch_devices)
        except VeSyncError as exc:
            self._log_failure("Failed to get devices", exc)
            return DeviceCollections.failed()
        except Exception:
            _LOGGER.exception("Unexpected error while getting devices")
            return DeviceCollections.failed()

    async def _fetch_devices(self) -> DeviceCollections:
        session = self._auth.require_session()

        try:
            data = await self._api.get_devices(build_devices_body(session), self._auth.headers())
            ensure_success(data, "Device list")

            result = data.get("result") or {}
            records = result.get("list")
            if not isinstance(records, list):
                msg = "Device list response has no list"
                raise VeSyncProtocolError(msg)

            region = result.get("deviceRegion")
            if region and region != COUNTRY_CODE:
                _LOGGER.warning("Account device region is %s, not %s", region, COUNTRY_CODE)

            _LOGGER.debug("Device list contains %d record(s)", len(records))
            return classify_devices(records, self)
        finally:
            await self._sleep_fn(DISCOVERY_SETTLE_DELAY)

    async def get_device_info(self, device: VeSyncDevice) -> dict[str, Any] | None:
        """Read a device's current status.

        Args:
            device: Purifier or humidifier from get_devices().

        Returns:
            Decoded response envelope for the caller to interpret, or None on failure.
        """
        try:
            return await self._queue.run("status", lambda: self._fetch_status(device))
        except VeSyncError as exc:
            self._log_failure(f"Failed to get device info for {device.name}", exc)
            return None
        except Exception:
            _LOGGER.exception("Unexpected error while getting device info for %s", device.name)
            return None

    async def _fetch_status(self, device: VeSyncDevice) -> dict[str, Any]:
        session = self._auth.require_session()
        _LOGGER.debug("Getting device info for %s", device.name)

        try:
            body = build_bypass_body(device, device.status_method, {}, session)
            data = await self._api.bypass_v2("POST", body, self._auth.headers())
            return ensure_success(data, f"Status of {device.name}")
        finally:
            await self._sleep_fn(DEVICE_SETTLE_DELAY)

    async def send_command(
        self,
        device: VeSyncDevice,
        method: str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Send a bypass command to a device.

        Args:
            device: Purifier or humidifier from get_devices().
            method: Device method (e.g., PurifierMethod.SWITCH).
            data: Method-specific data.

        Returns:
            True if the vendor answered with code 0, False otherwise.
        """
        try:
            return await self._queue.run("command", lambda: self._send(device, method, data))
        except VeSyncError as exc:
            self._log_failure(f"Failed to send command {method} to {device.name}", exc)
            return False
        except Exception:
            _LOGGER.exception("Unexpected error while sending command %s to %s", method, device.name)
            return False

    async def _send(self, device: VeSyncDevice, method: str, data: dict[str, Any] | None) -> bool:
        session = self._auth.require_session()
        _LOGGER.debug("Sending command %s to %s with %s", method, device.name, data)

        try:
            body = build_bypass_body(device, method, data, session)
            response = await self._api.bypass_v2("PUT", body, self._auth.headers())
            ensure_success(response, f"Command {method} to {device.name}")
        finally:
            await self._sleep_fn(DEVICE_SETTLE_DELAY)

        return True

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    def _log_failure(self, message: str, exc: VeSyncError) -> None:
        """Log an operation failure with the account email masked."""
        details = str(exc)
        code = getattr(exc, "code", None)
        if code is not None:
            details = f"{details} (code: {code}, msg: {getattr(exc, 'msg', None)})"
        _LOGGER.error("%s: %s", message, redact_email(details, self._auth.email))

"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import copy
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import ClientSession

from vesyncair.resilience import RateLimiter


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


class FakeClock:
    """Virtual monotonic clock whose sleeps advance time instantly.

    Every sleep is recorded, so tests can assert pacing, backoff and settling
    delays without waiting in real time. Sleeps of at least ``park_threshold``
    seconds (e.g. the session refresh interval) block until release() is called.
    """

    def __init__(self, start: float = 1000.0, park_threshold: float | None = None) -> None:
        self.now = start
        self.sleeps: list[float] = []
        self.park_threshold = park_threshold
        self._releases: asyncio.Queue[None] = asyncio.Queue()

    def time(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self.park_threshold is not None and seconds >= self.park_threshold:
            await self._releases.get()
        self.now += max(seconds, 0.0)
        # Yield so concurrent tasks interleave as they would on a real sleep
        await asyncio.sleep(0)

    def release(self) -> None:
        """Let one parked sleep complete."""
        self._releases.put_nowait(None)


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    """Create a rate limiter driven by the fake clock."""
    return RateLimiter(time_fn=clock.time, sleep_fn=clock.sleep)


@pytest.fixture
async def mock_session() -> AsyncGenerator[ClientSession]:
    """Create a mock aiohttp ClientSession.

    Yields:
        Mock ClientSession for testing.
    """
    session = AsyncMock(spec=ClientSession)
    session.closed = False

    async def mock_close() -> None:
        session.closed = True

    session.close = mock_close

    yield session

    if not session.closed:
        await session.close()


@pytest.fixture
def mock_response() -> MagicMock:
    """Create a mock aiohttp ClientResponse.

    Returns:
        Mock ClientResponse for testing.
    """
    response = MagicMock()
    response.status = 200
    response.headers = {}
    response.url = "https://smartapi.vesync.com/test"
    return response


def make_response(status: int = 200, body: Any = None) -> MagicMock:
    """Build a mock response usable as ``async with session.request(...)``."""
    response = MagicMock()
    response.status = status
    response.url = "https://smartapi.vesync.com/test"
    response.json = AsyncMock(return_value=body)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=None)
    return context


# Sample device list records as returned by /cloud/v1/deviceManaged/devices
LEGACY_PURIFIER = {
    "cid": "cid-purifier-1",
    "uuid": "uuid-purifier-1",
    "deviceName": "Bedroom Purifier",
    "deviceType": "Core200S",
    "type": "wifi-air",
    "configModule": "WiFi_AirPurifier_Core200S_US",
    "deviceRegion": "US",
    "connectionStatus": "online",
    "deviceStatus": "on",
    "extension": {"fanSpeedLevel": 3, "airQualityLevel": 1, "mode": "manual"},
}

MODERN_PURIFIER = {
    "cid": "cid-purifier-2",
    "uuid": "uuid-purifier-2",
    "deviceName": "Office Purifier",
    "deviceType": "LAP-V201S-WUS",
    "type": "wifi-air",
    "configModule": "VS_WFON_APR_LAP-V201S-WUS_US",
    "deviceRegion": "US",
    "connectionStatus": "online",
    "deviceStatus": "off",
    "extension": None,
    "deviceProp": {"fanSpeedLevel": 2, "AQLevel": 2, "workMode": "auto"},
}

HUMIDIFIER = {
    "cid": "cid-humidifier-1",
    "uuid": "uuid-humidifier-1",
    "deviceName": "Nursery Humidifier",
    "deviceType": "Classic300S",
    "type": "wifi-air",
    "configModule": "WFON_AHM_Classic300S_US",
    "deviceRegion": "US",
    "connectionStatus": "offline",
    "deviceStatus": "off",
    "extension": None,
}

UNSUPPORTED_DEVICE = {
    "cid": "cid-outlet-1",
    "deviceName": "Lamp Outlet",
    "deviceType": "wifi-switch-1.3",
    "type": "wifi-switch",
    "connectionStatus": "online",
    "deviceStatus": "on",
    "extension": None,
}


@pytest.fixture
def device_records() -> list[dict[str, Any]]:
    """Create a device list mixing every supported shape and an unsupported device."""
    return copy.deepcopy([LEGACY_PURIFIER, MODERN_PURIFIER, HUMIDIFIER, UNSUPPORTED_DEVICE])


@pytest.fixture
def login_response() -> dict[str, Any]:
    """Create a successful login envelope."""
    return {
        "code": 0,
        "msg": "request success",
        "result": {"token": "test-token", "accountID": "1234567"},
    }

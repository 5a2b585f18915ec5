"""Python client library for VeSync air purifiers and humidifiers.

This package provides an async client for the VeSync cloud that respects the
vendor's undocumented rate limits and fragile session semantics.

The library is organized into three layers:
1. **API Layer** (vesyncair.api): Paced, retried HTTP communication with the VeSync cloud
2. **Client Layer** (vesyncair.client): Session management, serialization and device discovery
3. **Device Layer** (vesyncair.devices): Typed purifier and humidifier handles

Example:
    Basic usage:

    ```python
    from vesyncair import PurifierMethod, VeSyncClient

    async with VeSyncClient(email="user@example.com", password="password") as client:
        if await client.start_session():
            devices = await client.get_devices()

            for purifier in devices.purifiers:
                print(purifier.name, purifier.fan_speed_level, purifier.air_quality_level)
                await purifier.send_command(PurifierMethod.SWITCH, {"enabled": True, "id": 0})

            for humidifier in devices.humidifiers:
                status = await humidifier.get_status()
    ```
"""

from __future__ import annotations

from vesyncair.api import VeSyncAPI
from vesyncair.auth import AuthenticationHandler, AuthState
from vesyncair.classifier import classify_devices, normalize_record
from vesyncair.client import VeSyncClient
from vesyncair.const import HumidifierMethod, PurifierMethod
from vesyncair.devices import VeSyncDevice, VeSyncHumidifier, VeSyncPurifier
from vesyncair.exceptions import (
    AuthenticationError,
    ConfigurationError,
    MaxRetriesError,
    RateLimitError,
    VeSyncConnectionError,
    VeSyncError,
    VeSyncProtocolError,
    VeSyncTimeoutError,
    VeSyncTransportError,
)
from vesyncair.models import (
    DeviceCollections,
    DeviceModel,
    DeviceRecord,
    Fingerprint,
    RateWindow,
    RecordShape,
    Session,
)
from vesyncair.queue import QueuedRequest, RequestQueue
from vesyncair.resilience import ExponentialBackoff, RateLimiter, retry_with_backoff


__version__ = "0.1.0"

__all__ = [
    "AuthState",
    "AuthenticationError",
    "AuthenticationHandler",
    "ConfigurationError",
    "DeviceCollections",
    "DeviceModel",
    "DeviceRecord",
    "ExponentialBackoff",
    "Fingerprint",
    "HumidifierMethod",
    "MaxRetriesError",
    "PurifierMethod",
    "QueuedRequest",
    "RateLimitError",
    "RateLimiter",
    "RateWindow",
    "RecordShape",
    "RequestQueue",
    "Session",
    "VeSyncAPI",
    "VeSyncClient",
    "VeSyncConnectionError",
    "VeSyncDevice",
    "VeSyncError",
    "VeSyncHumidifier",
    "VeSyncProtocolError",
    "VeSyncPurifier",
    "VeSyncTimeoutError",
    "VeSyncTransportError",
    "__version__",
    "classify_devices",
    "normalize_record",
    "retry_with_backoff",
]

"""Data models for VeSync API sessions and device records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from vesyncair.devices import VeSyncHumidifier, VeSyncPurifier


__all__ = [
    "DeviceCollections",
    "DeviceModel",
    "DeviceRecord",
    "Fingerprint",
    "RateWindow",
    "RecordShape",
    "Session",
]


@dataclass(frozen=True)
class Fingerprint:
    """Client identity declared during login.

    Attributes:
        client_type: Declared client platform (e.g., "Android").
        user_agent: User-Agent header sent with requests.
    """

    client_type: str
    user_agent: str


@dataclass(frozen=True)
class Session:
    """Authenticated session state.

    The token and account id are always replaced together; a Session
    only exists once both were returned by a successful login.

    Attributes:
        account_id: Vendor account identifier.
        token: Session token.
        fingerprint: Client identity the session was obtained with.
        terminal_id: Stable per-installation identifier.
    """

    account_id: str
    token: str
    fingerprint: Fingerprint
    terminal_id: str


@dataclass
class RateWindow:
    """Request pacing counters.

    Attributes:
        last_request: Monotonic timestamp of the last attempted request.
        minute_start: Monotonic timestamp of the current 60-second window.
        requests_in_minute: Requests attempted in the current window.
    """

    last_request: float | None
    minute_start: float
    requests_in_minute: int = 0


@dataclass(frozen=True)
class DeviceModel:
    """Known device family and the deviceType values that identify it.

    Attributes:
        name: Marketing model name.
        device_types: deviceType values reported by the device list.
    """

    name: str
    device_types: tuple[str, ...]

    def matches(self, device_type: str | None) -> bool:
        """Check whether a reported deviceType belongs to this model."""
        return device_type in self.device_types


class RecordShape(Enum):
    """Payload shape carried by a raw device record."""

    LEGACY = "extension"  # Legacy `extension` block
    MODERN = "deviceProp"  # Newer `deviceProp` block
    BARE = "bare"  # Neither block


@dataclass(frozen=True)
class DeviceRecord:
    """Normalized device record produced by the classifier.

    Attributes:
        cid: Cloud device identifier.
        uuid: Device UUID.
        name: User-assigned device name.
        device_type: Reported deviceType.
        connection_type: Reported connectivity family (e.g., "wifi-air").
        config_module: Vendor configuration module.
        region: Vendor device region.
        connection_status: "online" or "offline".
        device_status: "on" or "off".
        shape: Payload shape of the source record.
        extension: Canonical legacy-shaped state block (empty when absent).
        raw_data: Original record for debugging.
    """

    cid: str
    uuid: str | None
    name: str
    device_type: str
    connection_type: str
    config_module: str | None
    region: str | None
    connection_status: str | None
    device_status: str | None
    shape: RecordShape
    extension: dict[str, Any] = field(default_factory=dict)
    raw_data: dict[str, Any] = field(default_factory=dict)


@dataclass
class DeviceCollections:
    """Result of device discovery.

    Attributes:
        purifiers: Discovered air purifiers.
        humidifiers: Discovered humidifiers.
        success: False when discovery failed (no session, vendor error, etc.).
    """

    purifiers: list[VeSyncPurifier] = field(default_factory=list)
    humidifiers: list[VeSyncHumidifier] = field(default_factory=list)
    success: bool = True

    @classmethod
    def failed(cls) -> DeviceCollections:
        """Build the empty failure result."""
        return cls(success=False)

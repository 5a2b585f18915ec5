"""Typed device handles for VeSync purifiers and humidifiers.

Device handles are immutable views over a normalized DeviceRecord, bound to
the client that discovered them. Status reads and commands route back through
that client, so they share its session and request slot.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Self

from vesyncair.const import HUMIDIFIER_MODELS, PURIFIER_MODELS, HumidifierMethod, PurifierMethod


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from vesyncair.client import VeSyncClient
    from vesyncair.models import DeviceModel, DeviceRecord


def _as_int(value: Any) -> int | None:
    """Coerce a numeric field that may arrive as a string."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class VeSyncDevice:
    """Base class for devices discovered on a VeSync account.

    Attributes:
        cid: Cloud device identifier.
        name: User-assigned device name.
        config_module: Vendor configuration module.
        region: Vendor device region.
    """

    status_method: ClassVar[str]
    models: ClassVar[tuple[DeviceModel, ...]] = ()

    def __init__(self, client: VeSyncClient, record: DeviceRecord) -> None:
        """Initialize the device.

        Args:
            client: Client that discovered the device.
            record: Normalized device record.
        """
        self._client = client
        self._record = record

    @classmethod
    def from_record(cls, client: VeSyncClient) -> Callable[[DeviceRecord], Self]:
        """Build a factory creating devices bound to client."""

        def factory(record: DeviceRecord) -> Self:
            return cls(client, record)

        return factory

    # -------------------------------------------------------------------------
    # Record Properties
    # -------------------------------------------------------------------------

    @property
    def record(self) -> DeviceRecord:
        """Get the normalized record this device was built from."""
        return self._record

    @property
    def cid(self) -> str:
        """Get cloud device identifier."""
        return self._record.cid

    @property
    def uuid(self) -> str | None:
        """Get device UUID."""
        return self._record.uuid

    @property
    def name(self) -> str:
        """Get device name."""
        return self._record.name

    @property
    def device_type(self) -> str:
        """Get reported device type."""
        return self._record.device_type

    @property
    def config_module(self) -> str | None:
        """Get vendor configuration module."""
        return self._record.config_module

    @property
    def region(self) -> str | None:
        """Get vendor device region."""
        return self._record.region

    @property
    def model(self) -> str | None:
        """Get the model family name (e.g., "Core200S")."""
        for model in self.models:
            if model.matches(self._record.device_type):
                return model.name
        return None

    @property
    def is_online(self) -> bool:
        """Check if the device was online at discovery time."""
        return self._record.connection_status == "online"

    @property
    def is_on(self) -> bool:
        """Check if the device was switched on at discovery time."""
        return self._record.device_status == "on"

    # -------------------------------------------------------------------------
    # Client Routing
    # -------------------------------------------------------------------------

    async def get_status(self) -> dict[str, Any] | None:
        """Read the current device status.

        Returns:
            Decoded response envelope, or None on failure.
        """
        return await self._client.get_device_info(self)

    async def send_command(self, method: str, data: dict[str, Any] | None = None) -> bool:
        """Send a bypass command to the device.

        Args:
            method: Device method (e.g., PurifierMethod.SWITCH).
            data: Method-specific data.

        Returns:
            True if the vendor accepted the command.
        """
        return await self._client.send_command(self, method, data)

    def __str__(self) -> str:
        """Return string representation of device."""
        return f"{self.name} ({self.cid})"

    def __repr__(self) -> str:
        """Return detailed string representation of device."""
        return f"{type(self).__name__}(cid='{self.cid}', name='{self.name}', device_type='{self.device_type}')"


class VeSyncPurifier(VeSyncDevice):
    """Air purifier.

    Both legacy (`extension`) and modern (`deviceProp`) records are exposed
    through the same legacy-named extension fields.
    """

    status_method = PurifierMethod.STATUS
    models = PURIFIER_MODELS

    @property
    def extension(self) -> Mapping[str, Any]:
        """Get the read-only legacy-shaped state block."""
        return MappingProxyType(self._record.extension)

    @property
    def fan_speed_level(self) -> int | None:
        """Get fan speed level."""
        return _as_int(self._record.extension.get("fanSpeedLevel"))

    @property
    def air_quality_level(self) -> int | None:
        """Get air quality level (1 = best)."""
        return _as_int(self._record.extension.get("airQualityLevel"))

    @property
    def mode(self) -> str | None:
        """Get work mode (manual, auto, sleep...)."""
        return self._record.extension.get("mode")


class VeSyncHumidifier(VeSyncDevice):
    """Humidifier."""

    status_method = HumidifierMethod.STATUS
    models = HUMIDIFIER_MODELS

"""Device list classification for VeSync API responses.

This module turns the heterogeneous device list returned by discovery into
typed purifier and humidifier collections. Records arrive in one of two
shapes for the same device family:
- Legacy: state in an ``extension`` block (``fanSpeedLevel``, ``airQualityLevel``, ``mode``)
- Modern: state in a ``deviceProp`` block (``fanSpeedLevel``, ``AQLevel``, ``workMode``)

Both are normalized into one legacy-shaped extension here, so nothing
downstream branches on the shape.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from vesyncair.const import CONNECTION_TYPE_WIFI_AIR, HUMIDIFIER_MODELS, PURIFIER_MODELS
from vesyncair.devices import VeSyncHumidifier, VeSyncPurifier
from vesyncair.models import DeviceCollections, DeviceRecord, RecordShape


if TYPE_CHECKING:
    from vesyncair.client import VeSyncClient
    from vesyncair.models import DeviceModel


__all__ = [
    "classify_devices",
    "detect_shape",
    "is_humidifier",
    "is_legacy_purifier",
    "is_modern_purifier",
    "normalize_record",
    "synthesize_extension",
]

_LOGGER = logging.getLogger(__name__)


def _known(models: tuple[DeviceModel, ...], device_type: Any) -> bool:
    return any(model.matches(device_type) for model in models)


def _wifi_air(raw: dict[str, Any]) -> bool:
    return raw.get("type") == CONNECTION_TYPE_WIFI_AIR


def is_legacy_purifier(raw: dict[str, Any]) -> bool:
    """Check for a purifier carrying a legacy extension with a fan speed."""
    extension = raw.get("extension")
    return (
        _known(PURIFIER_MODELS, raw.get("deviceType"))
        and _wifi_air(raw)
        and isinstance(extension, dict)
        and bool(extension.get("fanSpeedLevel"))
    )


def is_modern_purifier(raw: dict[str, Any]) -> bool:
    """Check for a purifier carrying a deviceProp block."""
    return (
        _known(PURIFIER_MODELS, raw.get("deviceType"))
        and _wifi_air(raw)
        and isinstance(raw.get("deviceProp"), dict)
    )


def is_humidifier(raw: dict[str, Any]) -> bool:
    """Check for a humidifier (no extension block at all)."""
    return (
        _known(HUMIDIFIER_MODELS, raw.get("deviceType"))
        and _wifi_air(raw)
        and raw.get("extension") is None
    )


def detect_shape(raw: dict[str, Any]) -> RecordShape:
    """Determine which state block a record carries.

    A legacy extension with a fan speed wins over a deviceProp block.
    """
    extension = raw.get("extension")
    if isinstance(extension, dict) and extension.get("fanSpeedLevel"):
        return RecordShape.LEGACY
    if isinstance(raw.get("deviceProp"), dict):
        return RecordShape.MODERN
    if isinstance(extension, dict):
        return RecordShape.LEGACY
    return RecordShape.BARE


def synthesize_extension(device_prop: dict[str, Any]) -> dict[str, Any]:
    """Map a modern deviceProp block onto legacy extension names.

    Example:
        >>> synthesize_extension({"fanSpeedLevel": 2, "AQLevel": 1, "workMode": "auto"})
        {'fanSpeedLevel': 2, 'AQLevel': 1, 'workMode': 'auto', 'airQualityLevel': 1, 'mode': 'auto'}
    """
    return {
        **device_prop,
        "airQualityLevel": device_prop.get("AQLevel"),
        "mode": device_prop.get("workMode"),
    }


def normalize_record(raw: dict[str, Any]) -> DeviceRecord:
    """Normalize a raw device record into its canonical shape.

    Args:
        raw: Device record from the device list.

    Returns:
        DeviceRecord with a legacy-shaped extension.
    """
    shape = detect_shape(raw)
    if shape is RecordShape.MODERN:
        extension = synthesize_extension(raw["deviceProp"])
    elif shape is RecordShape.LEGACY:
        extension = dict(raw["extension"])
    else:
        extension = {}

    return DeviceRecord(
        cid=str(raw.get("cid", "")),
        uuid=raw.get("uuid"),
        name=raw.get("deviceName") or str(raw.get("cid", "")),
        device_type=raw.get("deviceType", ""),
        connection_type=raw.get("type", ""),
        config_module=raw.get("configModule"),
        region=raw.get("deviceRegion"),
        connection_status=raw.get("connectionStatus"),
        device_status=raw.get("deviceStatus"),
        shape=shape,
        extension=extension,
        raw_data=raw,
    )


def classify_devices(raw_list: list[Any], client: VeSyncClient) -> DeviceCollections:
    """Partition a raw device list into purifiers and humidifiers.

    Rules are applied in order and each record lands in at most one
    collection. Records matching no rule are dropped: the account may hold
    device families this library does not support.

    Args:
        raw_list: The ``result.list`` array of the device list response.
        client: Client the typed devices are bound to.

    Returns:
        DeviceCollections with success=True.
    """
    make_purifier = VeSyncPurifier.from_record(client)
    make_humidifier = VeSyncHumidifier.from_record(client)
    collections = DeviceCollections()
    dropped = 0

    for raw in raw_list:
        if not isinstance(raw, dict) or not raw.get("cid"):
            dropped += 1
            continue

        if is_legacy_purifier(raw) or is_modern_purifier(raw):
            collections.purifiers.append(make_purifier(normalize_record(raw)))
        elif is_humidifier(raw):
            collections.humidifiers.append(make_humidifier(normalize_record(raw)))
        else:
            _LOGGER.debug("Skipping unsupported device %s (%s)", raw.get("deviceName"), raw.get("deviceType"))
            dropped += 1

    _LOGGER.debug(
        "Classified %d purifier(s), %d humidifier(s), dropped %d record(s)",
        len(collections.purifiers),
        len(collections.humidifiers),
        dropped,
    )
    return collections

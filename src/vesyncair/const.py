"""Constants for vesyncair library."""

from __future__ import annotations

from enum import StrEnum

from vesyncair.models import DeviceModel, Fingerprint


# API Configuration
DEFAULT_BASE_URL = "https://smartapi.vesync.com"
DEFAULT_TIMEOUT = 30  # seconds
APP_VERSION = "5.6.70"
LOCALE = "en"
TIMEZONE = "America/Chicago"
COUNTRY_CODE = "US"
SUCCESS_CODE = 0

# Client fingerprints presented at login
ANDROID_FINGERPRINT = Fingerprint(
    client_type="Android",
    user_agent=f"VeSync/{APP_VERSION} (Android 14; Pixel 7)",
)
IOS_FINGERPRINT = Fingerprint(
    client_type="iOS",
    user_agent=f"VeSync/{APP_VERSION} (iOS 17; iPhone)",
)

# Account field names accepted by different server revisions
PRIMARY_ACCOUNT_FIELD = "account"
ALTERNATE_ACCOUNT_FIELD = "email"

# Endpoints
ENDPOINT_LOGIN = "/cloud/v1/user/login"
ENDPOINT_DEVICES = "/cloud/v2/deviceManaged/devices"
ENDPOINT_BYPASS_V2 = "/cloud/v2/deviceManaged/bypassV2"

# Device list paging
DEVICE_PAGE_SIZE = 1000

# Connectivity family of supported devices
CONNECTION_TYPE_WIFI_AIR = "wifi-air"

# Rate limiting
MIN_REQUEST_INTERVAL = 1.0  # seconds between requests
MAX_REQUESTS_PER_MINUTE = 60
RATE_WINDOW_SECONDS = 60.0

# Retry
MAX_ATTEMPTS = 5
BACKOFF_BASE_DELAY = 1.0
BACKOFF_MAX_DELAY = 60.0
BACKOFF_MAX_JITTER = 1.0

# Settling delays
LOGIN_SETTLE_DELAY = 0.5
DEVICE_SETTLE_DELAY = 0.5
DISCOVERY_SETTLE_DELAY = 1.5

# Session refresh
SESSION_REFRESH_INTERVAL = 55 * 60  # seconds


class PurifierMethod(StrEnum):
    """Bypass methods understood by air purifiers."""

    STATUS = "getPurifierStatus"
    MODE = "setPurifierMode"
    NIGHT = "setNightLight"
    DISPLAY = "setDisplay"
    LOCK = "setChildLock"
    SWITCH = "setSwitch"
    SPEED = "setLevel"


class HumidifierMethod(StrEnum):
    """Bypass methods understood by humidifiers."""

    HUMIDITY = "setTargetHumidity"
    STATUS = "getHumidifierStatus"
    MIST_LEVEL = "setVirtualLevel"
    MODE = "setHumidityMode"
    DISPLAY = "setDisplay"
    SWITCH = "setSwitch"
    LEVEL = "setLevel"


# Known device models (deviceType values reported by the device list)
PURIFIER_MODELS: tuple[DeviceModel, ...] = (
    DeviceModel("Core200S", ("Core200S", "LAP-C201S-AUSR", "LAP-C202S-WUSR")),
    DeviceModel("Core300S", ("Core300S", "LAP-C301S-WJP", "LAP-C301S-WAAA", "LAP-C302S-WUSB")),
    DeviceModel("Core400S", ("Core400S", "LAP-C401S-WJP", "LAP-C401S-WUSR", "LAP-C401S-WAAA")),
    DeviceModel("Core600S", ("Core600S", "LAP-C601S-WUS", "LAP-C601S-WUSR", "LAP-C601S-WEU")),
    DeviceModel(
        "Vital100S",
        ("LAP-V102S-AASR", "LAP-V102S-WUS", "LAP-V102S-WEU", "LAP-V102S-AUSR", "LAP-V102S-WJP"),
    ),
    DeviceModel(
        "Vital200S",
        ("LAP-V201S-AASR", "LAP-V201S-WJP", "LAP-V201S-WEU", "LAP-V201S-WUS", "LAP-V201-AUSR", "LAP-V201S-AUSR"),
    ),
)

HUMIDIFIER_MODELS: tuple[DeviceModel, ...] = (
    DeviceModel("Classic300S", ("Classic300S", "LUH-A601S-WUSB", "LUH-A601S-AUSW")),
    DeviceModel("Classic200S", ("Classic200S",)),
    DeviceModel("Dual200S", ("Dual200S", "LUH-D301S-WUSR", "LUH-D301S-WJP", "LUH-D301S-WEU", "LUH-D301S-KEUR")),
    DeviceModel(
        "LV600S",
        ("LUH-A602S-WUSR", "LUH-A602S-WUS", "LUH-A602S-WEUR", "LUH-A602S-WEU", "LUH-A602S-WJP", "LUH-A602S-WUSC"),
    ),
    DeviceModel("OasisMist", ("LUH-O451S-WUS", "LUH-O451S-WUSR", "LUH-O451S-WEU", "LUH-O601S-WUS", "LUH-O601S-KUS")),
    DeviceModel("Superior6000S", ("LEH-S601S-WUS", "LEH-S601S-WUSR")),
)

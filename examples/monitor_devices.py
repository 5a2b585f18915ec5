"""Monitor VeSync air devices example.

This example demonstrates:
- Reading the status of every discovered device
- Displaying purifier air quality and fan speed
- Alert on offline devices or failed reads

The client keeps its session fresh on its own: start_session() schedules a
re-login every 55 minutes, so the loop below can run indefinitely.
"""

import asyncio
from datetime import datetime

from vesyncair import VeSyncClient, VeSyncDevice, VeSyncPurifier


async def monitor_device(device: VeSyncDevice) -> dict:
    """Read a single device and return its status.

    Args:
        device: VeSyncPurifier or VeSyncHumidifier instance to monitor.

    Returns:
        Dictionary with device status information.
    """
    envelope = await device.get_status()
    result = (envelope or {}).get("result") or {}
    state = result.get("result") or {}

    alerts = []
    if envelope is None:
        alerts.append("STATUS READ FAILED")
    if not device.is_online:
        alerts.append("OFFLINE")

    data = {
        "name": device.name,
        "model": device.model,
        "kind": "Purifier" if isinstance(device, VeSyncPurifier) else "Humidifier",
        "power": "ON" if state.get("enabled") else "OFF",
        "alerts": alerts,
    }
    if isinstance(device, VeSyncPurifier):
        data["air_quality"] = state.get("air_quality", device.air_quality_level)
        data["fan_speed"] = state.get("level", device.fan_speed_level)
    else:
        data["humidity"] = state.get("humidity")
    return data


def display_status(status_data: list) -> None:
    """Display formatted status for all devices.

    Args:
        status_data: List of status dictionaries from monitor_device().
    """
    print(f"\n{'=' * 70}")
    print(f"VeSync Device Monitor - {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"{'=' * 70}\n")

    for i, data in enumerate(status_data):
        print(f"{data['kind']} {i + 1}: {data['name']}")
        print(f"  Model:       {data['model']}")
        print(f"  Power:       {data['power']}")
        if "air_quality" in data:
            print(f"  Air quality: {data['air_quality']}")
            print(f"  Fan speed:   {data['fan_speed']}")
        if "humidity" in data:
            print(f"  Humidity:    {data['humidity']}%" if data["humidity"] is not None else "  Humidity:    N/A")

        if data["alerts"]:
            print(f"  ALERTS:      {', '.join(data['alerts'])}")

        print()


async def main() -> None:
    """Main monitoring function."""
    # Replace with your credentials
    email = "your@email.com"
    password = "your_password"

    async with VeSyncClient(email=email, password=password) as client:
        if not await client.start_session():
            print("Login failed.")
            return

        devices = await client.get_devices()
        all_devices = [*devices.purifiers, *devices.humidifiers]

        if not all_devices:
            print("No purifiers or humidifiers found.")
            return

        print(f"Monitoring {len(all_devices)} device(s)...")
        print("Press Ctrl+C to stop\n")

        # Reads are serialized by the client, so gather() is safe but not faster
        while True:
            status_data = await asyncio.gather(*(monitor_device(device) for device in all_devices))
            display_status(status_data)

            print("Updating in 60 seconds... (Press Ctrl+C to stop)")
            await asyncio.sleep(60)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting...")

"""Basic usage example for vesyncair library."""

import asyncio

from vesyncair import HumidifierMethod, PurifierMethod, VeSyncClient


async def main() -> None:
    """Demonstrate basic usage of vesyncair."""
    # Initialize client with credentials
    async with VeSyncClient(
        email="your@email.com",
        password="your_password",
    ) as client:
        if not await client.start_session():
            print("Login failed")
            return

        print("Connected to VeSync API")

        # Discover purifiers and humidifiers
        devices = await client.get_devices()
        if not devices.success:
            print("Device discovery failed")
            return

        print(f"Found {len(devices.purifiers)} purifier(s) and {len(devices.humidifiers)} humidifier(s)")

        for purifier in devices.purifiers:
            print(f"\nPurifier: {purifier.name}")
            print(f"  CID: {purifier.cid}")
            print(f"  Model: {purifier.model}")
            print(f"  Online: {purifier.is_online}")
            print(f"  Fan speed: {purifier.fan_speed_level}")
            print(f"  Air quality: {purifier.air_quality_level}")
            print(f"  Mode: {purifier.mode}")

            if purifier.is_online:
                print("Setting fan speed 2...")
                ok = await purifier.send_command(PurifierMethod.SPEED, {"id": 0, "level": 2, "type": "wind"})
                print(f"  Accepted: {ok}")

                status = await purifier.get_status()
                print(f"  Status: {status['result'] if status else 'unavailable'}")

        for humidifier in devices.humidifiers:
            print(f"\nHumidifier: {humidifier.name}")
            print(f"  Model: {humidifier.model}")
            print(f"  Online: {humidifier.is_online}")

            if humidifier.is_online:
                print("Setting target humidity to 45%...")
                ok = await humidifier.send_command(HumidifierMethod.HUMIDITY, {"target_humidity": 45})
                print(f"  Accepted: {ok}")


if __name__ == "__main__":
    asyncio.run(main())

"""Pytest configuration and fixtures for integration tests."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from aiohttp import ClientSession
from dotenv import load_dotenv

from vesyncair import VeSyncClient


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


# Load .env file from project root
env_path = Path(__file__).parents[2] / ".env"
load_dotenv(env_path)


@pytest.fixture(scope="session")
def integration_config() -> dict[str, str]:
    """Load integration test configuration from environment.

    Returns:
        Dictionary with account credentials and configuration.
    """
    email = os.getenv("VESYNC_EMAIL")
    password = os.getenv("VESYNC_PASSWORD")
    base_url = os.getenv("VESYNC_API_BASE_URL", "https://smartapi.vesync.com")

    if not email or not password:
        pytest.skip("Create a .env file with VESYNC_EMAIL and VESYNC_PASSWORD to run integration tests")

    return {
        "email": email,
        "password": password,
        "base_url": base_url,
    }


@pytest.fixture
async def session() -> AsyncGenerator[ClientSession]:
    """Create aiohttp session for tests."""
    async with ClientSession() as sess:
        yield sess


@pytest.fixture
async def client(integration_config: dict[str, str], session: ClientSession) -> AsyncGenerator[VeSyncClient]:
    """Create a client with a live session against the real API."""
    client = VeSyncClient(
        email=integration_config["email"],
        password=integration_config["password"],
        base_url=integration_config["base_url"],
        session=session,
        terminal_id=os.getenv("VESYNC_TERMINAL_ID"),
    )

    async with client:
        yield client


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for integration tests."""
    config.addinivalue_line("markers", "integration: Integration tests requiring real API access")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")


@pytest.fixture(autouse=True)
async def rate_limit_delay(request: pytest.FixtureRequest) -> AsyncGenerator[None]:
    """Add delay between integration tests to stay clear of the vendor's rate limit."""
    yield
    if "integration" in request.keywords:
        await asyncio.sleep(2.0)

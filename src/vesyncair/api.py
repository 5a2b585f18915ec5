"""Low-level API client for VeSync cloud endpoints.

This module provides raw HTTP communication with the VeSync cloud. Every
request is paced by the rate limiter and retried on 429 responses. Methods
return the decoded response envelope ``{"code", "msg", "result"}`` and raise
on transport failures; interpreting the vendor code is left to callers.
"""

from __future__ import annotations

import asyncio
import json
import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from aiohttp import ClientError, ClientSession, ClientTimeout

from vesyncair.const import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    ENDPOINT_BYPASS_V2,
    ENDPOINT_DEVICES,
    ENDPOINT_LOGIN,
    SUCCESS_CODE,
)
from vesyncair.exceptions import (
    ConfigurationError,
    RateLimitError,
    VeSyncConnectionError,
    VeSyncProtocolError,
    VeSyncTimeoutError,
    VeSyncTransportError,
)
from vesyncair.resilience import ExponentialBackoff, RateLimiter, retry_with_backoff


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

_LOGGER = logging.getLogger(__name__)


def ensure_success(data: dict[str, Any], context: str) -> dict[str, Any]:
    """Check the vendor code of a response envelope.

    Args:
        data: Decoded response envelope.
        context: Operation name used in the error message.

    Returns:
        The same envelope when ``code`` is the success sentinel.

    Raises:
        VeSyncProtocolError: If ``code`` is anything but 0.
    """
    code = data.get("code")
    if code != SUCCESS_CODE:
        msg = data.get("msg")
        message = f"{context} failed with code {code}, msg: {msg}"
        raise VeSyncProtocolError(message, code=code, msg=msg)
    return data


class VeSyncAPI:
    """Low-level API client for the VeSync cloud.

    This class handles raw HTTP communication, including request pacing,
    429 retry, timeout handling and response decoding. It holds no session
    state: authentication headers and body fields are supplied by callers.

    Example:
        ```python
        from aiohttp import ClientSession
        from vesyncair.api import VeSyncAPI

        async with ClientSession() as session:
            api = VeSyncAPI(session=session)
            data = await api.login(body, headers)
        ```

    Attributes:
        base_url: Base URL for the API (default: https://smartapi.vesync.com).
        rate_limiter: Pacing applied before every attempt.
        backoff: Backoff used between 429 retries.
    """

    def __init__(
        self,
        *,
        session: ClientSession | None = None,
        base_url: str = DEFAULT_BASE_URL,
        rate_limiter: RateLimiter | None = None,
        backoff: ExponentialBackoff | None = None,
        sleep_fn: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the API client.

        Args:
            session: Optional aiohttp ClientSession. If not provided, one will be
                created when entering the context manager.
            base_url: Base URL for the API. Defaults to VeSync production API.
            rate_limiter: Optional RateLimiter. Defaults to 1 request/s, 60/min.
            backoff: Optional ExponentialBackoff for 429 retries.
            sleep_fn: Async sleep used for backoff, injectable for tests.
        """
        self._session = session
        self._owns_session = session is None
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter(sleep_fn=sleep_fn)
        self.backoff = backoff if backoff is not None else ExponentialBackoff()
        self._sleep_fn = sleep_fn

    def set_session(self, session: ClientSession) -> None:
        """Set the aiohttp session without taking ownership of it."""
        self._session = session
        self._owns_session = False

    async def __aenter__(self) -> VeSyncAPI:
        """Enter the context manager, creating a session if needed."""
        if self._session is None:
            self._session = ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager, closing the session if we own it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make a paced API request with bounded retry on 429.

        Args:
            method: HTTP method (POST, PUT).
            endpoint: API endpoint path (e.g., "/cloud/v1/user/login").
            json_data: Optional JSON request body.
            headers: Optional request headers.

        Returns:
            Decoded response envelope.

        Raises:
            ConfigurationError: If the HTTP session is not initialized or is closed.
            VeSyncTransportError: On HTTP errors, timeouts and connection failures.
            VeSyncProtocolError: If the body is empty or not a JSON object.
        """
        return await retry_with_backoff(
            lambda: self._request_once(method, endpoint, json_data=json_data, headers=headers),
            rate_limiter=self.rate_limiter,
            backoff=self.backoff,
            sleep_fn=self._sleep_fn,
        )

    async def _request_once(
        self,
        method: str,
        endpoint: str,
        *,
        json_data: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> dict[str, Any]:
        """Perform a single HTTP attempt."""
        if self._session is None:
            msg = "Session not initialized. Use 'async with' or provide a session."
            raise ConfigurationError(msg)

        if self._session.closed:
            msg = "Session is closed. Cannot make request."
            raise ConfigurationError(msg)

        url = f"{self.base_url}{endpoint}"
        timeout = ClientTimeout(total=DEFAULT_TIMEOUT)
        _LOGGER.debug("%s %s", method, endpoint)

        try:
            async with self._session.request(
                method,
                url,
                json=json_data,
                headers=headers,
                timeout=timeout,
            ) as response:
                data = await self._read_json(response)

                if response.status == HTTPStatus.TOO_MANY_REQUESTS:
                    code, msg = self._error_details(data)
                    message = f"Rate limited by {endpoint}"
                    raise RateLimitError(message, code=code, msg=msg)

                if response.status >= HTTPStatus.BAD_REQUEST:
                    code, msg = self._error_details(data)
                    message = f"HTTP {response.status} from {endpoint}"
                    raise VeSyncTransportError(message, status=response.status, code=code, msg=msg)

        except TimeoutError as exc:
            message = f"Request to {endpoint} timed out"
            raise VeSyncTimeoutError(message) from exc

        except ClientError as exc:
            message = f"Failed to connect to API: {exc}"
            raise VeSyncConnectionError(message) from exc

        if data is None:
            message = f"Empty response body from {endpoint}"
            raise VeSyncProtocolError(message)

        if not isinstance(data, dict):
            message = f"Malformed response body from {endpoint}"
            raise VeSyncProtocolError(message)

        return data

    @staticmethod
    async def _read_json(response: Any) -> Any:
        """Decode a response body, tolerating missing or wrong content types."""
        try:
            return await response.json(content_type=None)
        except (json.JSONDecodeError, UnicodeDecodeError):
            _LOGGER.debug("Response body from %s is not JSON", response.url)
            return None

    @staticmethod
    def _error_details(data: Any) -> tuple[int | None, str | None]:
        """Extract vendor code and message from an error body."""
        if isinstance(data, dict):
            return data.get("code"), data.get("msg")
        return None, None

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    async def login(self, body: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        """Authenticate with the account credentials.

        Returns:
            Envelope whose result carries ``token`` and ``accountID``.
        """
        return await self.request("POST", ENDPOINT_LOGIN, json_data=body, headers=headers)

    async def get_devices(self, body: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        """List the devices registered to the account.

        Returns:
            Envelope whose result has format {"list": [...], "deviceRegion": str}.
        """
        return await self.request("POST", ENDPOINT_DEVICES, json_data=body, headers=headers)

    async def bypass_v2(self, method: str, body: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        """Call the generic device read/write endpoint.

        Args:
            method: HTTP method: POST for status reads, PUT for commands.
            body: Command envelope.
            headers: Authenticated headers.

        Returns:
            Envelope whose result carries the device response.
        """
        return await self.request(method, ENDPOINT_BYPASS_V2, json_data=body, headers=headers)

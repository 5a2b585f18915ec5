"""Custom exceptions for vesyncair library."""

from __future__ import annotations

from http import HTTPStatus


FORBIDDEN_MESSAGE = "Forbidden"


class VeSyncError(Exception):
    """Base exception for all VeSync errors."""


class VeSyncTransportError(VeSyncError):
    """Exception raised for network or HTTP-level failures.

    Attributes:
        status: HTTP status code, or None when no response was received.
        code: Vendor code from the error body, if any.
        msg: Vendor message from the error body, if any.
    """

    def __init__(
        self,
        message: str = "",
        status: int | None = None,
        code: int | None = None,
        msg: str | None = None,
    ) -> None:
        """Initialize VeSyncTransportError.

        Args:
            message: Error message.
            status: HTTP status code, if a response was received.
            code: Vendor code from the error body.
            msg: Vendor message from the error body.
        """
        super().__init__(message)
        self.status = status
        self.code = code
        self.msg = msg

    @property
    def is_identity_rejected(self) -> bool:
        """Whether the server rejected the declared client identity."""
        return self.status in (HTTPStatus.BAD_REQUEST, HTTPStatus.FORBIDDEN) or self.msg == FORBIDDEN_MESSAGE


class RateLimitError(VeSyncTransportError):
    """Exception raised when the API answers 429 Too Many Requests."""

    def __init__(self, message: str = "", code: int | None = None, msg: str | None = None) -> None:
        """Initialize RateLimitError.

        Args:
            message: Error message.
            code: Vendor code from the error body.
            msg: Vendor message from the error body.
        """
        super().__init__(message, status=HTTPStatus.TOO_MANY_REQUESTS, code=code, msg=msg)


class VeSyncConnectionError(VeSyncTransportError):
    """Exception raised for connection failures."""


class VeSyncTimeoutError(VeSyncTransportError):
    """Exception raised when API requests timeout."""


class VeSyncProtocolError(VeSyncError):
    """Exception raised for a successful HTTP exchange carrying a vendor failure.

    Attributes:
        code: Vendor response code (None when the body was malformed).
        msg: Vendor response message.
    """

    def __init__(self, message: str = "", code: int | None = None, msg: str | None = None) -> None:
        """Initialize VeSyncProtocolError.

        Args:
            message: Error message.
            code: Vendor response code.
            msg: Vendor response message.
        """
        super().__init__(message)
        self.code = code
        self.msg = msg


class AuthenticationError(VeSyncError):
    """Exception raised for authentication failures or a missing session."""


class ConfigurationError(VeSyncError):
    """Exception raised when required credentials are missing."""


class MaxRetriesError(VeSyncError):
    """Exception raised when the retry loop ends without a result."""

"""Ricqchet exception hierarchy.

All library exceptions inherit from :class:`RicqchetError`.  Webhook
verification never raises these for a bad delivery -- it returns a
``Rejected`` outcome instead.  The API client and configuration layer
raise them.
"""

from __future__ import annotations

from typing import Any

from ricqchet.protocol.types import ErrorKind


class RicqchetError(Exception):
    """Base exception for all Ricqchet errors."""


class ConfigurationError(RicqchetError):
    """Raised when a required configuration value is missing or invalid."""


class APIError(RicqchetError):
    """Raised when the Ricqchet API answers with a non-success status.

    ``type`` is a short machine-readable classification derived from the
    HTTP status (``"unauthorized"``, ``"rate_limited"``, ...).
    """

    def __init__(
        self,
        message: str,
        *,
        type: str = "unknown_error",
        status: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type = type
        self.status = status
        self.details = details

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(type={self.type!r}, "
            f"status={self.status!r}, message={self.message!r})"
        )

    @classmethod
    def from_response(cls, status: int, body: Any) -> APIError:
        """Build an error from an HTTP status and decoded JSON body."""
        return cls(
            error_message_from_body(body),
            type=error_type_from_status(status),
            status=status,
            details=body,
        )


class MessageNotFoundError(APIError):
    """Raised when a message ID is unknown to the server (HTTP 404)."""


class AlreadyDispatchedError(APIError):
    """Raised when cancelling a message that was already sent (HTTP 409)."""


class RicqchetConnectionError(RicqchetError):
    """Raised when the API cannot be reached (DNS, TCP, TLS, timeout)."""


class BodyAcquisitionError(RicqchetError):
    """Raised by a raw-body reader that cannot supply the request bytes."""

    kind: ErrorKind = ErrorKind.BODY_READ_ERROR


class BodyTooLargeError(BodyAcquisitionError):
    """Raised when the request body exceeds the configured size limit."""

    kind = ErrorKind.BODY_TOO_LARGE


class BodyReadError(BodyAcquisitionError):
    """Raised when the request body cannot be read."""

    kind = ErrorKind.BODY_READ_ERROR


_STATUS_TYPES: dict[int, str] = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    422: "validation_error",
    429: "rate_limited",
}


def error_type_from_status(status: int) -> str:
    """Map an HTTP status code to an :class:`APIError` type string."""
    if status in _STATUS_TYPES:
        return _STATUS_TYPES[status]
    if status >= 500:
        return "server_error"
    return "unknown_error"


def error_message_from_body(body: Any) -> str:
    """Pull a human-readable message out of an error response body."""
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if isinstance(value, str):
                return value
    return "Unknown error"

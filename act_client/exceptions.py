"""Custom exception hierarchy for the act platform client."""

from __future__ import annotations

from typing import Any

NOT_FOUND_STATUS_CODE = 404

INVALID_PARAMETER_ERROR_TYPE = "invalid-parameter"
REQUEST_FAILED_ERROR_TYPE = "request-failed"
REQUEST_FAILED_ERROR_MESSAGE = "Server request failed."


class ActClientError(Exception):
    """Base exception for all client-specific errors."""

    error_type = "client-error"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ActClientError):
    """Raised when configuration is invalid or missing."""
    pass


class InvalidParameterError(ActClientError):
    """Raised when a call parameter is missing, empty or has the wrong shape.

    Always raised before any network activity.
    """

    error_type = INVALID_PARAMETER_ERROR_TYPE

    def __init__(self, param: str, expected: str, value: Any = None) -> None:
        received = type(value).__name__
        super().__init__(
            f'Parameter "{param}" of type {expected} must be provided (received {received})',
            {"param": param, "expected": expected, "received": received},
        )
        self.param = param
        self.expected = expected


class RequestFailedError(ActClientError):
    """Raised when an HTTP call fails at the network level or returns non-2xx.

    ``status_code`` is ``None`` for network errors (connection refused,
    timeouts, ...).
    """

    error_type = REQUEST_FAILED_ERROR_TYPE

    def __init__(
        self,
        message: str = REQUEST_FAILED_ERROR_MESSAGE,
        *,
        status_code: int | None = None,
        body: str | None = None,
        url: str | None = None,
        method: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if status_code is not None:
            details["status_code"] = status_code
        if url:
            details["url"] = url
        if method:
            details["method"] = method
        if body:
            details["body"] = body
        super().__init__(message, details)
        self.status_code = status_code
        self.body = body
        self.url = url
        self.method = method

    @property
    def is_not_found(self) -> bool:
        return self.status_code == NOT_FOUND_STATUS_CODE


class MalformedSignedUrlResponseError(RequestFailedError):
    """Raised when the direct-upload-url response carries no ``data.signedUrl``."""
    pass


__all__ = [
    "NOT_FOUND_STATUS_CODE",
    "INVALID_PARAMETER_ERROR_TYPE",
    "REQUEST_FAILED_ERROR_TYPE",
    "REQUEST_FAILED_ERROR_MESSAGE",
    "ActClientError",
    "ConfigurationError",
    "InvalidParameterError",
    "RequestFailedError",
    "MalformedSignedUrlResponseError",
]

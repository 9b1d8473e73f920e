"""Domain-specific exception hierarchy for consistent error handling."""

from __future__ import annotations

from typing import Any

GENERIC_ERROR_MESSAGE = "Internal Server Error"


class InsightsGatewayError(Exception):
    """Base exception for all expected gateway errors."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_payload(self) -> dict[str, Any]:
        """Serialise the error into the client-facing envelope.

        Server-side failures never expose their message to clients.
        """

        error = GENERIC_ERROR_MESSAGE if self.status_code >= 500 else self.message
        return {"success": False, "error": error}


class InvalidArgumentError(InsightsGatewayError):
    """Raised when a caller passes a missing or empty required argument."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(
            message=message,
            error_code="INVALID_ARGUMENT",
            status_code=400,
            details=details,
        )


class ConfigurationError(InsightsGatewayError):
    """Raised when required process configuration is missing."""

    def __init__(self, setting: str) -> None:
        super().__init__(
            message=f"{setting} environment variable is not set",
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details={"setting": setting},
        )


class TransportError(InsightsGatewayError):
    """Raised when the upstream API cannot be reached at the network level."""

    def __init__(self, *, url: str, original_error: Exception) -> None:
        super().__init__(
            message=f"Request failed: {_describe(original_error)}",
            error_code="TRANSPORT_ERROR",
            status_code=502,
            details={"url": url, "original_error": repr(original_error)},
        )
        self.original_error = original_error


class UpstreamError(InsightsGatewayError):
    """Raised when the upstream API answers with a non-success status."""

    def __init__(self, *, upstream_status: int, upstream_message: str, url: str) -> None:
        super().__init__(
            message=f"HTTP {upstream_status}: {upstream_message}",
            error_code="UPSTREAM_ERROR",
            status_code=502,
            details={"upstream_status": upstream_status, "url": url},
        )
        self.upstream_status = upstream_status
        self.upstream_message = upstream_message


class StreamError(InsightsGatewayError):
    """Base exception for push-event stream failures."""


class StreamTimeoutError(StreamError):
    """Raised when a stream stays silent for longer than the idle window."""

    def __init__(self, *, stream_url: str, timeout_seconds: float) -> None:
        super().__init__(
            message=f"Stream timeout - no data received for {timeout_seconds:g} seconds",
            error_code="STREAM_TIMEOUT",
            status_code=504,
            details={"stream_url": stream_url, "timeout_seconds": timeout_seconds},
        )


class MalformedEventError(StreamError):
    """Raised when a stream event payload is not valid JSON."""

    def __init__(self, *, stream_url: str, reason: str) -> None:
        super().__init__(
            message=f"Failed to parse stream data: {reason}",
            error_code="MALFORMED_EVENT",
            status_code=502,
            details={"stream_url": stream_url},
        )


class FlowExecutionError(InsightsGatewayError):
    """Raised when starting a flow run fails for any reason."""

    def __init__(self, original_error: Exception) -> None:
        super().__init__(
            message=f"Flow execution failed: {_describe(original_error)}",
            error_code="FLOW_EXECUTION_FAILED",
            status_code=502,
        )
        self.original_error = original_error


class InsightsLookupError(InsightsGatewayError):
    """Raised when an insights lookup cannot produce a result."""

    def __init__(self, message: str, *, error_code: str = "INSIGHTS_LOOKUP_FAILED") -> None:
        super().__init__(message=message, error_code=error_code, status_code=502)

    @classmethod
    def wrap(cls, original_error: Exception) -> InsightsLookupError:
        return cls(f"Failed to get insights: {_describe(original_error)}")


class InvalidResponseFormatError(InsightsLookupError):
    """Raised when the upstream response lacks the expected text payload."""

    def __init__(self, path: str) -> None:
        super().__init__("Invalid response format", error_code="INVALID_RESPONSE_FORMAT")
        self.details = {"expected_path": path}


class RateLimitError(InsightsGatewayError):
    """Raised when a client exceeds the request rate limit."""

    def __init__(self, *, limit: int, window_seconds: int, retry_after: int) -> None:
        super().__init__(
            message=f"Rate limit exceeded, retry in {retry_after} seconds",
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=429,
            details={"limit": limit, "window_seconds": window_seconds},
        )


def _describe(error: Exception) -> str:
    if isinstance(error, InsightsGatewayError):
        return error.message
    return str(error) or type(error).__name__


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "InsightsGatewayError",
    "InvalidArgumentError",
    "ConfigurationError",
    "TransportError",
    "UpstreamError",
    "StreamError",
    "StreamTimeoutError",
    "MalformedEventError",
    "FlowExecutionError",
    "InsightsLookupError",
    "InvalidResponseFormatError",
    "RateLimitError",
]

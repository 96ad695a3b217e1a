"""
WikiSubmission SDK - Unified Error Handling

Every failure the public client can produce is an instance of
WikiSubmissionAPIError. Errors are returned as values, not raised, so a
caller only ever has to branch on ``isinstance(result, WikiSubmissionAPIError)``.

Features:
- Hierarchical error classes refining the single public error kind
- Error severity levels for prioritized handling
- OpenTelemetry integration for error tracing
- Classification of arbitrary exceptions into the taxonomy
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Type

import httpx
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


class ErrorSeverity(Enum):
    """Error severity levels for prioritized handling."""

    DEBUG = "debug"      # Non-critical, informational
    INFO = "info"        # Minor issue, operation continues
    WARNING = "warning"  # Potential problem, degraded operation
    ERROR = "error"      # Significant failure, operation failed
    CRITICAL = "critical"  # Programming or configuration fault


class WikiSubmissionAPIError(Exception):
    """
    Base error for every failure surfaced by the SDK.

    Provides:
    - Human-readable message
    - Severity level
    - Optional HTTP status and chained cause
    - OpenTelemetry span recording
    """

    default_severity: ErrorSeverity = ErrorSeverity.ERROR
    error_code: str = "API_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        severity: Optional[ErrorSeverity] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.severity = severity or self.default_severity
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        # Record to current span if available
        self._record_to_span()

    def _record_to_span(self) -> None:
        """Record error to current OpenTelemetry span."""
        span = trace.get_current_span()
        if span and span.is_recording():
            span.set_status(Status(StatusCode.ERROR, self.message))
            span.record_exception(self)
            span.set_attribute("error.code", self.error_code)
            span.set_attribute("error.severity", self.severity.value)
            if self.status_code is not None:
                span.set_attribute("http.status_code", self.status_code)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging or display."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "status_code": self.status_code,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class InvalidQueryError(WikiSubmissionAPIError):
    """Query string did not classify into any known shape."""

    error_code = "INVALID_QUERY"
    default_severity = ErrorSeverity.WARNING


class EmptyResultError(WikiSubmissionAPIError):
    """Request succeeded but the service returned no records."""

    error_code = "EMPTY_RESULT"
    default_severity = ErrorSeverity.INFO


class TransientNetworkError(WikiSubmissionAPIError):
    """Retryable failure (transport error, timeout, 5xx/408/429) outlived every attempt."""

    error_code = "TRANSIENT_NETWORK_ERROR"
    default_severity = ErrorSeverity.WARNING


class PermanentRequestError(WikiSubmissionAPIError):
    """Non-retryable status or an ``error`` field reported by the service."""

    error_code = "PERMANENT_REQUEST_ERROR"
    default_severity = ErrorSeverity.ERROR


class InternalFaultError(WikiSubmissionAPIError):
    """Unexpected exception inside the SDK."""

    error_code = "INTERNAL_FAULT"
    default_severity = ErrorSeverity.CRITICAL


class RequestCancelledError(WikiSubmissionAPIError):
    """Attempt aborted by a cancel event or a cancel call."""

    error_code = "REQUEST_CANCELLED"
    default_severity = ErrorSeverity.INFO


class ConfigError(WikiSubmissionAPIError):
    """
    Invalid client configuration.

    The only error the SDK raises instead of returning: it signals a
    programming mistake at construction or update time.
    """

    error_code = "CONFIG_ERROR"
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.actual_value = actual_value


# Error mapping for automatic classification
ERROR_TYPE_MAP: Dict[Type[BaseException], Type[WikiSubmissionAPIError]] = {
    asyncio.CancelledError: RequestCancelledError,
    asyncio.TimeoutError: TransientNetworkError,
    TimeoutError: TransientNetworkError,
    httpx.TransportError: TransientNetworkError,
    ConnectionError: TransientNetworkError,
}


def classify_error(error: BaseException) -> WikiSubmissionAPIError:
    """Classify a generic exception into the appropriate WikiSubmissionAPIError type."""
    if isinstance(error, WikiSubmissionAPIError):
        return error
    for error_type, api_type in ERROR_TYPE_MAP.items():
        if isinstance(error, error_type):
            return api_type(message=str(error) or "Network error", cause=error)
    return InternalFaultError(message=str(error) or type(error).__name__, cause=error)

"""
WikiSubmission SDK - Observability Package

Structured logging with trace context. Spans are created through the
OpenTelemetry API only; exporting them is left to the host application.

Usage:
    from observability import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
"""
from .logging import (
    HTTP_LOGGER_NAME,
    SDK_LOGGER_NAME,
    LogContext,
    LoggingConfig,
    get_logger,
    request_logging_hooks,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "HTTP_LOGGER_NAME",
    "SDK_LOGGER_NAME",
    "LogContext",
    "LoggingConfig",
    "get_logger",
    "request_logging_hooks",
    "setup_logging",
    "shutdown_logging",
]

"""
WikiSubmission SDK - Structured Logging with Trace Context

Integrates structlog with OpenTelemetry trace context propagation,
so every log line emitted inside a request span carries trace_id and
span_id for correlation.

Features:
- Structured JSON or console output
- Automatic trace context injection (trace_id, span_id)
- Configurable log levels through the environment
- Request id binding per physical attempt
- httpx event hooks for request/response logging

Importing the SDK leaves logging alone: its loggers sit under the
``wikisubmission`` namespace with a NullHandler until the application
calls setup_logging() or attaches its own handlers.

Usage:
    from observability.logging import setup_logging, get_logger

    # Application startup
    setup_logging(LoggingConfig(level="DEBUG", json_format=False))

    # Get logger
    logger = get_logger(__name__)
    logger.info("Query classified", query="2:255", type="verse")
"""
from __future__ import annotations

import logging
import os
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import structlog
from opentelemetry import trace
from structlog.types import EventDict, WrappedLogger

# Global state
_handler: Optional[logging.Handler] = None

# Every SDK logger lives under this stdlib namespace
SDK_LOGGER_NAME = "wikisubmission"
HTTP_LOGGER_NAME = f"{SDK_LOGGER_NAME}.http"

# Key under which the request hook stores its start time in request.extensions
_STARTED_AT = "wikisubmission.started_at"

# Silent until the host application attaches handlers or calls setup_logging()
logging.getLogger(SDK_LOGGER_NAME).addHandler(logging.NullHandler())


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    service_name: str = "wikisubmission-sdk"
    level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "WARNING")
    )
    json_format: bool = field(
        default_factory=lambda: os.getenv("LOG_FORMAT", "json").lower() == "json"
    )
    enable_trace_context: bool = True
    include_timestamp: bool = True
    environment: str = field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "development")
    )


def add_trace_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """
    Structlog processor that adds OpenTelemetry trace context to log events.

    Only recording spans contribute; with no SDK installed the API hands out
    non-recording spans and nothing is added.
    """
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        if ctx.is_valid:
            event_dict["trace_id"] = format(ctx.trace_id, "032x")
            event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def add_service_context(
    service_name: str,
    environment: str,
) -> structlog.types.Processor:
    """
    Create a processor that adds service context to all log events.

    Args:
        service_name: Name reported in every event
        environment: Deployment environment
    """

    def processor(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["service"] = service_name
        event_dict["environment"] = environment
        return event_dict

    return processor


def add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add ISO8601 timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


# Bound into every SDK logger; rendering is left to the handler's formatter
_LOGGER_PROCESSORS: List[structlog.types.Processor] = [
    structlog.stdlib.filter_by_level,
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Route the SDK's loggers to stderr with trace context integration.

    Only the ``wikisubmission`` logger namespace is touched; the root logger
    and any handlers the host application installed are left alone. Every
    call replaces the handler installed by the previous one.

    Args:
        config: Logging configuration. Uses defaults if not provided.

    Example:
        >>> setup_logging(LoggingConfig(level="DEBUG", json_format=False))
    """
    global _handler

    config = config or LoggingConfig()
    level = getattr(logging, config.level.upper(), logging.WARNING)

    processors: List[structlog.types.Processor] = [
        add_service_context(config.service_name, config.environment),
    ]

    if config.include_timestamp:
        processors.append(add_timestamp)

    if config.enable_trace_context:
        processors.append(add_trace_context)

    processors.append(structlog.stdlib.ProcessorFormatter.remove_processors_meta)

    # Final rendering
    if config.json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processors=processors))

    sdk_logger = logging.getLogger(SDK_LOGGER_NAME)
    if _handler is not None:
        sdk_logger.removeHandler(_handler)
    sdk_logger.addHandler(handler)
    sdk_logger.setLevel(level)
    sdk_logger.propagate = False

    _handler = handler


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger under the ``wikisubmission`` namespace.

    Args:
        name: Logger name, typically __name__

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.warning("Retrying request", attempt=1, delay_ms=1000)
    """
    if name != SDK_LOGGER_NAME and not name.startswith(f"{SDK_LOGGER_NAME}."):
        name = f"{SDK_LOGGER_NAME}.{name}"

    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_LOGGER_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def shutdown_logging() -> None:
    """Remove the handler installed by setup_logging() and hand output back to the host."""
    global _handler

    sdk_logger = logging.getLogger(SDK_LOGGER_NAME)
    if _handler is not None:
        _handler.flush()
        sdk_logger.removeHandler(_handler)
        _handler = None

    sdk_logger.setLevel(logging.NOTSET)
    sdk_logger.propagate = True



class LogContext:
    """
    Context manager for adding contextual information to all logs.

    Example:
        >>> with LogContext(request_id="req_1700000000000_k3j9x0a1b"):
        ...     logger.info("Attempt started")
        ...     # All logs will include request_id
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context.keys())

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, *args: Any) -> None:
        self.__exit__(*args)


# httpx event hooks, installed when request logging is enabled

http_logger = get_logger(HTTP_LOGGER_NAME)


async def log_request(request: httpx.Request) -> None:
    request.extensions[_STARTED_AT] = time.perf_counter()
    http_logger.info(
        f"[REQUEST] {request.method} {request.url}",
        method=request.method,
        url=str(request.url),
    )


async def log_response(response: httpx.Response) -> None:
    started = response.request.extensions.get(_STARTED_AT)
    elapsed_ms = round((time.perf_counter() - started) * 1000) if started else None
    http_logger.info(
        f"[RESPONSE] {response.status_code} ({elapsed_ms}ms)",
        status_code=response.status_code,
        url=str(response.request.url),
        elapsed_ms=elapsed_ms,
    )


def request_logging_hooks() -> Dict[str, list]:
    """
    Event hook mapping for ``httpx.AsyncClient(event_hooks=...)``.

    Lowers the HTTP logger to INFO when it would otherwise drop the lines.
    """
    stdlib_logger = logging.getLogger(HTTP_LOGGER_NAME)
    if not stdlib_logger.isEnabledFor(logging.INFO):
        stdlib_logger.setLevel(logging.INFO)
    return {"request": [log_request], "response": [log_response]}

"""
WikiSubmission SDK - Retry Policy

Exponential backoff for one logical call made of several physical attempts.

- Up to ``retry_count + 1`` attempts
- Retry only when the failure carries no HTTP status, or a 5xx/408/429
- After failed attempt k (0-indexed) wait ``retry_delay_ms * 2**k``
- Nothing is awaited after the final attempt

Cancellation is not a failure: anything an attempt raises other than
AttemptFailure propagates immediately and ends the logical call.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from opentelemetry import trace

from observability.logging import get_logger

T = TypeVar("T")

tracer = trace.get_tracer(__name__)
logger = get_logger(__name__)

# Non-5xx statuses worth another attempt
RETRYABLE_STATUS_CODES = frozenset({408, 429})


@dataclass
class RetryConfig:
    """Configuration for retry policy."""

    retry_count: int = 3
    retry_delay_ms: float = 1000

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise ValueError("retry_count must be >= 0")
        if self.retry_delay_ms < 0:
            raise ValueError("retry_delay_ms must be >= 0")

    @property
    def max_attempts(self) -> int:
        return self.retry_count + 1


class AttemptFailure(Exception):
    """
    One physical attempt failed.

    Carries what is needed to decide on a retry and to build the final
    error: the HTTP status (None for transport faults), the service's own
    ``error`` message when the body had one, and the underlying exception.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        server_message: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.server_message = server_message
        self.cause = cause

    @property
    def resolved_message(self) -> str:
        """Server-supplied message, else transport message, else a generic one."""
        return self.server_message or self.message or "Network error"


class RetryPolicy:
    """
    Retry policy with exponential backoff and no jitter.

    The sleep function is injectable so tests can record delays instead of
    waiting for them.

    Usage:
        policy = RetryPolicy(RetryConfig(retry_count=2, retry_delay_ms=250))
        payload = await policy.run(send_once)
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep

    def calculate_delay(self, attempt: int) -> float:
        """Delay in seconds after failed attempt ``attempt`` (0-indexed)."""
        return self.config.retry_delay_ms * (2 ** attempt) / 1000

    @staticmethod
    def is_retryable_status(status_code: Optional[int]) -> bool:
        if status_code is None:
            return True
        return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES

    def is_retryable(self, failure: AttemptFailure) -> bool:
        return self.is_retryable_status(failure.status_code)

    async def run(self, attempt_fn: Callable[[int], Awaitable[T]]) -> T:
        """
        Call ``attempt_fn(attempt)`` until it returns or the policy gives up.

        Raises the last AttemptFailure when attempts are exhausted or the
        failure is not retryable.
        """
        last_failure: Optional[AttemptFailure] = None
        max_attempts = self.config.max_attempts

        for attempt in range(max_attempts):
            with tracer.start_as_current_span("retry.attempt") as span:
                span.set_attribute("retry.attempt", attempt)
                span.set_attribute("retry.max_attempts", max_attempts)

                try:
                    return await attempt_fn(attempt)
                except AttemptFailure as failure:
                    last_failure = failure
                    if failure.status_code is not None:
                        span.set_attribute("http.status_code", failure.status_code)

                    if not self.is_retryable(failure):
                        raise

                    if attempt < max_attempts - 1:
                        delay = self.calculate_delay(attempt)
                        span.set_attribute("retry.delay_seconds", delay)
                        logger.warning(
                            "Request attempt failed, retrying",
                            attempt=attempt + 1,
                            max_attempts=max_attempts,
                            status_code=failure.status_code,
                            delay_ms=delay * 1000,
                            error=failure.resolved_message,
                        )
                        await self._sleep(delay)

        raise last_failure  # type: ignore[misc]

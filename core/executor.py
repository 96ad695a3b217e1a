"""
WikiSubmission SDK - Resilient Request Executor

Issues one logical HTTP call as a sequence of physical attempts:
- Retry with exponential backoff (core.resilience)
- Per-attempt timeout enforced by the httpx client
- Per-attempt request id, tracked in the active-request table until it settles
- Optional asyncio.Event that aborts the in-flight attempt and every later one

The executor never raises for request failures; it returns a
WikiSubmissionAPIError instead.
"""

from __future__ import annotations

import asyncio
import random
import string
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

import httpx
from opentelemetry import trace

from config import APIConfig
from core.async_utils import cancel_task_threadsafe, race_event
from core.errors import (
    PermanentRequestError,
    RequestCancelledError,
    TransientNetworkError,
    WikiSubmissionAPIError,
)
from core.resilience import AttemptFailure, RetryConfig, RetryPolicy
from observability.logging import LogContext, get_logger, request_logging_hooks

tracer = trace.get_tracer(__name__)
logger = get_logger(__name__)

SDK_USER_AGENT = "wikisubmission-sdk/{version}"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_request_id() -> str:
    """``req_<epoch ms>_<9 random base36 chars>``; unique in practice, not guaranteed."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"req_{int(time.time() * 1000)}_{suffix}"


def _param_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.value
    return value


def serialize_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Flatten request parameters for the query string.

    Sequences become one comma-joined value (``["turkish", "french"]`` ->
    ``"turkish,french"``), booleans become ``true``/``false`` and None values
    are dropped.
    """
    serialized: Dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            serialized[key] = ",".join(str(_param_value(v)) for v in value)
        else:
            serialized[key] = _param_value(value)
    return serialized


def _server_error_message(response: httpx.Response) -> Optional[str]:
    """The ``error`` field of a JSON object body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None


class RequestExecutor:
    """
    HTTP executor owned by a single client.

    Usage:
        executor = RequestExecutor(APIConfig(retry_count=2))
        payload = await executor.execute("GET", "/", {"q": "1:1", "type": "verse"})
        if isinstance(payload, WikiSubmissionAPIError):
            ...
    """

    def __init__(
        self,
        config: APIConfig,
        version: str = "1.0.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self.version = version
        self._sleep = sleep
        self._active_requests: Dict[str, asyncio.Task] = {}
        self.retry_policy = self._build_policy(config)
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers=self._build_headers(config),
            event_hooks=request_logging_hooks() if config.enable_request_logging else None,
            follow_redirects=True,
            transport=transport,
        )

    def _build_policy(self, config: APIConfig) -> RetryPolicy:
        return RetryPolicy(
            RetryConfig(retry_count=config.retry_count, retry_delay_ms=config.retry_delay_ms),
            sleep=self._sleep,
        )

    def _build_headers(self, config: APIConfig) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": SDK_USER_AGENT.format(version=self.version),
            **config.headers,
        }

    @property
    def active_request_ids(self) -> list:
        return list(self._active_requests)

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def apply_config(self, config: APIConfig) -> None:
        """Point the live transport at new settings."""
        self.config = config
        self.retry_policy = self._build_policy(config)
        self._client.base_url = config.base_url
        self._client.timeout = httpx.Timeout(config.timeout_seconds)
        self._client.headers = self._build_headers(config)
        self._client.event_hooks = (
            request_logging_hooks() if config.enable_request_logging else {"request": [], "response": []}
        )

    async def execute(
        self,
        method: str,
        path: str = "/",
        params: Optional[Mapping[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Union[Any, WikiSubmissionAPIError]:
        """
        Perform one logical call.

        Returns the decoded JSON body, or a WikiSubmissionAPIError built from
        the last failure once retries are exhausted, the failure is permanent
        or the call was cancelled.
        """
        wire_params = serialize_params(params or {})

        with tracer.start_as_current_span("wikisubmission.request") as span:
            span.set_attribute("http.method", method)
            span.set_attribute("http.route", path)

            async def attempt(_: int) -> Any:
                return await self._attempt(method, path, wire_params, cancel_event)

            try:
                return await self.retry_policy.run(attempt)
            except RequestCancelledError as cancelled:
                logger.info("Request cancelled", path=path, reason=cancelled.message)
                return cancelled
            except AttemptFailure as failure:
                error_type = (
                    TransientNetworkError
                    if self.retry_policy.is_retryable(failure)
                    else PermanentRequestError
                )
                error = error_type(
                    failure.resolved_message,
                    status_code=failure.status_code,
                    cause=failure.cause or failure,
                )
                logger.error(
                    "Request failed",
                    path=path,
                    status_code=failure.status_code,
                    error_code=error.error_code,
                    error=error.message,
                )
                return error

    async def _attempt(
        self,
        method: str,
        path: str,
        params: Dict[str, Any],
        cancel_event: Optional[asyncio.Event],
    ) -> Any:
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelledError("Request aborted")

        request_id = generate_request_id()
        with LogContext(request_id=request_id):
            task = asyncio.ensure_future(self._send(method, path, params))
            self._active_requests[request_id] = task
            try:
                aborted = await race_event(task, cancel_event)
            finally:
                if not task.done():
                    task.cancel()
                self._active_requests.pop(request_id, None)

        if aborted:
            raise RequestCancelledError("Request aborted")
        if task.cancelled():
            raise RequestCancelledError("Request cancelled")
        return task.result()

    async def _send(self, method: str, path: str, params: Dict[str, Any]) -> Any:
        try:
            response = await self._client.request(method, path, params=params)
        except httpx.TimeoutException as e:
            raise AttemptFailure(
                str(e) or f"timeout of {self.config.timeout_ms}ms exceeded", cause=e
            ) from e
        except httpx.HTTPError as e:
            raise AttemptFailure(str(e) or "Network error", cause=e) from e

        if response.is_error:
            raise AttemptFailure(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
                server_message=_server_error_message(response),
            )

        try:
            body = response.json()
        except ValueError as e:
            raise AttemptFailure(
                "Invalid JSON in response body",
                status_code=response.status_code,
                cause=e,
            ) from e

        if isinstance(body, dict) and body.get("error"):
            raise AttemptFailure(
                f"Service reported an error with status code {response.status_code}",
                status_code=response.status_code,
                server_message=str(body["error"]),
            )
        return body

    def cancel_request(self, request_id: str) -> bool:
        """Cancel one in-flight attempt. False when the id is not tracked."""
        task = self._active_requests.pop(request_id, None)
        if task is None:
            return False
        cancel_task_threadsafe(task)
        return True

    def cancel_all_requests(self) -> int:
        """Cancel every tracked attempt; returns how many were tracked."""
        tasks = list(self._active_requests.values())
        self._active_requests.clear()
        for task in tasks:
            cancel_task_threadsafe(task)
        return len(tasks)

    async def aclose(self) -> None:
        self.cancel_all_requests()
        await self._client.aclose()

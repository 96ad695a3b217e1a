"""
WikiSubmission SDK - Core Module

Transport-level building blocks shared by the service clients:
- Unified error handling (errors returned as values)
- Retry policy with exponential backoff
- TTL response cache with a background sweep
- Resilient request executor over httpx
- Async utilities (chunked gathering, event races)

Usage:
    from core import RetryPolicy, WikiSubmissionAPIError
    from core.executor import RequestExecutor
"""

from core.errors import (
    ConfigError,
    EmptyResultError,
    ErrorSeverity,
    InternalFaultError,
    InvalidQueryError,
    PermanentRequestError,
    RequestCancelledError,
    TransientNetworkError,
    WikiSubmissionAPIError,
    classify_error,
)
from core.resilience import AttemptFailure, RetryConfig, RetryPolicy
from core.cache import CacheEntry, CacheStore, CacheSweeper, make_cache_key
from core.async_utils import cancel_task_threadsafe, gather_in_chunks, race_event

__all__ = [
    # Errors
    "ConfigError",
    "EmptyResultError",
    "ErrorSeverity",
    "InternalFaultError",
    "InvalidQueryError",
    "PermanentRequestError",
    "RequestCancelledError",
    "TransientNetworkError",
    "WikiSubmissionAPIError",
    "classify_error",
    # Resilience
    "AttemptFailure",
    "RetryConfig",
    "RetryPolicy",
    # Cache
    "CacheEntry",
    "CacheStore",
    "CacheSweeper",
    "make_cache_key",
    # Async
    "cancel_task_threadsafe",
    "gather_in_chunks",
    "race_event",
]

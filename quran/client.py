"""
WikiSubmission SDK - Quran API Client

Facade over the classifier, the response cache and the request executor.

Every public coroutine returns either an APIResponse or a
WikiSubmissionAPIError; nothing is raised across this surface except
ConfigError for invalid settings.

Usage:
    async with QuranAPIClient(enable_caching=True) as client:
        result = await client.query("2:255")
        if isinstance(result, WikiSubmissionAPIError):
            print(result.message)
        else:
            print(result.request.metadata.title, len(result.response))
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, fields
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

import httpx
from opentelemetry import trace

from config import APIConfig
from core.async_utils import gather_in_chunks
from core.cache import CacheSweeper, CacheStore, make_cache_key
from core.errors import (
    EmptyResultError,
    InternalFaultError,
    InvalidQueryError,
    WikiSubmissionAPIError,
    classify_error,
)
from core.executor import RequestExecutor, generate_request_id
from data.schemas import APIResponse, InvalidQuery, QueryOptions
from observability.logging import get_logger
from quran.classifier import INTERNAL_ERROR, parse_query
from quran.constants import DATA_SETS, SDK_VERSION

tracer = trace.get_tracer(__name__)
logger = get_logger(__name__)

QueryResult = Union[APIResponse, WikiSubmissionAPIError]
OptionsLike = Union[QueryOptions, Mapping[str, Any], None]


@dataclass
class BatchQuery:
    """One entry of a batch_query() call."""

    query: str
    options: OptionsLike = None
    skip_cache: bool = False
    cancel_event: Optional[asyncio.Event] = None

    @classmethod
    def coerce(cls, item: Union["BatchQuery", str, Mapping[str, Any]]) -> "BatchQuery":
        if isinstance(item, BatchQuery):
            return item
        if isinstance(item, str):
            return cls(query=item)
        if isinstance(item, Mapping):
            unknown = set(item) - {f.name for f in fields(cls)}
            if unknown:
                raise ValueError(f"Unknown batch item key(s): {', '.join(sorted(unknown))}")
            return cls(**item)
        raise TypeError(f"Unsupported batch item: {type(item).__name__}")


def _wire_options(options: OptionsLike) -> Dict[str, Any]:
    """The options exactly as the caller supplied them; defaults are not sent."""
    if options is None:
        return {}
    if isinstance(options, QueryOptions):
        return options.model_dump(mode="json", exclude_unset=True)
    return dict(options)


def _extract_data(payload: Any) -> List[Any]:
    """Records from a bare list body or a ``{"response": {"data": [...]}}`` envelope."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        response = payload.get("response")
        if isinstance(response, dict) and isinstance(response.get("data"), list):
            return response["data"]
    return []


class QuranAPIClient:
    """
    Async client for the WikiSubmission Quran service.

    Owns its configuration, cache, sweep task and active-request table;
    nothing is shared between instances.
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        **overrides: Any,
    ):
        if config is None:
            config = APIConfig.from_mapping(overrides)
        elif overrides:
            config = config.updated(**overrides)

        self._config = config
        self._executor = RequestExecutor(config, version=SDK_VERSION, transport=transport, sleep=sleep)
        self._cache: CacheStore[APIResponse] = CacheStore(max_age_ms=config.cache_max_age_ms, clock=clock)
        self._sweeper = CacheSweeper(self._cache, interval_ms=config.cache_sweep_interval_ms)
        self._destroyed = False

        self._ensure_sweeper()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def query(
        self,
        query: str,
        options: OptionsLike = None,
        *,
        skip_cache: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> QueryResult:
        """
        Classify, fetch and wrap one query.

        Invalid queries are rejected without touching the network. Cached
        responses are served while fresh unless ``skip_cache`` is set.
        """
        with tracer.start_as_current_span("quran.query") as span:
            span.set_attribute("query.text", query[:256] if isinstance(query, str) else repr(query))
            try:
                return await self._query(query, options, skip_cache, cancel_event)
            except Exception as e:
                logger.error("Query failed unexpectedly", query=str(query)[:256], exc_info=True)
                return InternalFaultError(str(e) or "Unknown error", cause=e)

    async def _query(
        self,
        query: str,
        options: OptionsLike,
        skip_cache: bool,
        cancel_event: Optional[asyncio.Event],
    ) -> QueryResult:
        parsed = parse_query(query, options)
        if isinstance(parsed, InvalidQuery):
            if parsed.error == INTERNAL_ERROR:
                return InternalFaultError(parsed.error)
            return InvalidQueryError(parsed.error)

        trace.get_current_span().set_attribute("query.type", parsed.type.value)
        self._ensure_sweeper()

        wire_options = _wire_options(options)
        use_cache = self._config.enable_caching and not skip_cache
        cache_key = self._cache_key(query, wire_options) if use_cache else None

        if cache_key is not None:
            cached = self._cache_get(cache_key)
            if cached is not None:
                logger.debug("Cache hit", query=query)
                return cached

        payload = await self._executor.execute(
            "GET",
            "/",
            {"q": query, "type": parsed.type.value, **wire_options},
            cancel_event=cancel_event,
        )

        if isinstance(payload, WikiSubmissionAPIError):
            return payload

        data = _extract_data(payload)
        if not data:
            return EmptyResultError(f'No verses found with "{query}"')

        result: APIResponse = APIResponse(id=generate_request_id(), request=parsed, response=list(data))

        if cache_key is not None:
            self._cache_set(cache_key, result)

        return result

    async def batch_query(
        self,
        items: Iterable[Union[BatchQuery, str, Mapping[str, Any]]],
        concurrency: int = 3,
    ) -> List[QueryResult]:
        """
        Run several queries, ``concurrency`` at a time.

        Chunks run one after another; a failing item becomes that item's error
        and never affects its siblings. Results line up with ``items``.
        """
        concurrency = max(1, int(concurrency))

        async def run(item: Union[BatchQuery, str, Mapping[str, Any]]) -> QueryResult:
            request = BatchQuery.coerce(item)
            return await self.query(
                request.query,
                request.options,
                skip_cache=request.skip_cache,
                cancel_event=request.cancel_event,
            )

        settled = await gather_in_chunks(list(items), run, concurrency)
        return [
            classify_error(result) if isinstance(result, BaseException) else result
            for result in settled
        ]

    # -------------------------------------------------------------------------
    # Named queries
    # -------------------------------------------------------------------------

    async def get_random_verse(self, options: OptionsLike = None, **kwargs: Any) -> QueryResult:
        return await self.query("random-verse", options, **kwargs)

    async def get_random_chapter(self, options: OptionsLike = None, **kwargs: Any) -> QueryResult:
        return await self.query("random-chapter", options, **kwargs)

    async def get_verse_of_the_day(self, options: OptionsLike = None, **kwargs: Any) -> QueryResult:
        return await self.query("verse-of-the-day", options, **kwargs)

    async def get_chapter_of_the_day(self, options: OptionsLike = None, **kwargs: Any) -> QueryResult:
        return await self.query("chapter-of-the-day", options, **kwargs)

    async def get_recitation_data(self, verse_id: str, **kwargs: Any) -> QueryResult:
        """Audio links for a verse; records validate as QuranAudioLinkData."""
        return await self.query(f"recitations:{verse_id}", {}, **kwargs)

    async def get_verses_with_root(self, root: str, **kwargs: Any) -> QueryResult:
        """Words sharing an Arabic root; records validate as QuranWordByWordData."""
        return await self.query(f"root:{root}", {}, **kwargs)

    async def get_data(self, name: str, **kwargs: Any) -> QueryResult:
        """Whole data set: quran, quran-foreign, quran-word-by-word or quran-chapters."""
        if name not in DATA_SETS:
            return InvalidQueryError(f"Unknown data set: {name}")
        return await self.query(f"data:{name}", {}, **kwargs)

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _cache_key(self, query: str, options: Mapping[str, Any]) -> Optional[str]:
        try:
            return make_cache_key(query, options)
        except (TypeError, ValueError) as e:
            logger.warning("Could not build cache key", query=query, error=str(e))
            return None

    def _cache_get(self, key: str) -> Optional[APIResponse]:
        try:
            return self._cache.get(key)
        except Exception as e:
            logger.warning("Cache read failed", error=str(e))
            return None

    def _cache_set(self, key: str, value: APIResponse) -> None:
        try:
            self._cache.set(key, value)
        except Exception as e:
            logger.warning("Cache write failed", error=str(e))

    def _ensure_sweeper(self) -> None:
        if self._destroyed:
            return
        if self._config.enable_caching and self._config.enable_cache_sweep:
            self._sweeper.start()
        else:
            self._sweeper.stop()

    def get_cache_stats(self) -> Dict[str, Any]:
        return self._cache.stats()

    def clear_cache(self) -> None:
        self._cache.clear()

    # -------------------------------------------------------------------------
    # Requests & lifecycle
    # -------------------------------------------------------------------------

    def cancel_request(self, request_id: str) -> bool:
        return self._executor.cancel_request(request_id)

    def cancel_all_requests(self) -> int:
        return self._executor.cancel_all_requests()

    def get_config(self) -> APIConfig:
        """A copy; changing it does not affect the client."""
        return self._config.updated()

    def update_config(self, **changes: Any) -> None:
        """
        Apply new settings to the live client.

        Raises ConfigError for unknown keys or invalid values, leaving the
        current settings untouched.
        """
        new_config = self._config.updated(**changes)
        restart_sweep = new_config.cache_sweep_interval_ms != self._config.cache_sweep_interval_ms

        self._config = new_config
        self._executor.apply_config(new_config)
        self._cache.max_age_ms = new_config.cache_max_age_ms
        self._sweeper.interval_ms = new_config.cache_sweep_interval_ms

        if restart_sweep:
            self._sweeper.stop()
        self._ensure_sweeper()

    def destroy(self) -> None:
        """Stop the sweep, cancel in-flight requests and clear the cache. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True
        self._sweeper.stop()
        cancelled = self._executor.cancel_all_requests()
        self._cache.clear()
        logger.debug("Client destroyed", cancelled_requests=cancelled)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    async def aclose(self) -> None:
        """destroy() and close the HTTP transport."""
        self.destroy()
        await self._executor.aclose()

    async def __aenter__(self) -> "QuranAPIClient":
        self._ensure_sweeper()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

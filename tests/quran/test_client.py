"""
Tests for quran/client.py - Quran API Client.

Covers:
- Query flow (classification, request, wrapping)
- Error values for each failure class
- Response cache
- Batch queries
- Named query helpers
- Configuration and lifecycle
"""
import asyncio
import re

import pytest

from core.errors import (
    ConfigError,
    EmptyResultError,
    InternalFaultError,
    InvalidQueryError,
    PermanentRequestError,
    RequestCancelledError,
    TransientNetworkError,
    WikiSubmissionAPIError,
)
from data.schemas import APIResponse, QueryOptions, QueryType
from quran.client import BatchQuery, QuranAPIClient
from tests.conftest import RecordingHandler, json_response, make_verse


def verses_for(request):
    """Answer with one verse per query so responses can be told apart."""
    return json_response([make_verse(1, 1, verse_text_english=request.url.params["q"])])


# =============================================================================
# Query Flow Tests
# =============================================================================

class TestQuery:
    """Tests for QuranAPIClient.query."""

    @pytest.mark.asyncio
    async def test_valid_query(self, client_factory, sample_verses):
        handler = RecordingHandler(lambda request: json_response(sample_verses))
        client = client_factory(handler)

        result = await client.query("1:1-3")

        assert isinstance(result, APIResponse)
        assert re.fullmatch(r"req_\d+_[a-z0-9]{9}", result.id)
        assert result.request.type == QueryType.VERSE_RANGE
        assert result.request.metadata.title == "Verses 1:1-3"
        assert result.response == sample_verses
        assert handler.params() == {"q": "1:1-3", "type": "verse_range"}

    @pytest.mark.asyncio
    async def test_envelope_body(self, client_factory, sample_verses):
        handler = RecordingHandler(lambda request: json_response({"response": {"data": sample_verses}}))
        client = client_factory(handler)

        result = await client.query("1")

        assert isinstance(result, APIResponse)
        assert len(result.response) == 3

    @pytest.mark.asyncio
    async def test_each_call_gets_fresh_id(self, client_factory, sample_verses):
        client = client_factory(RecordingHandler(lambda request: json_response(sample_verses)))

        first = await client.query("1:1")
        second = await client.query("1:1")

        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_invalid_query_sends_nothing(self, client_factory):
        handler = RecordingHandler(lambda request: json_response([]))
        client = client_factory(handler)

        result = await client.query("115")

        assert isinstance(result, InvalidQueryError)
        assert result.message == "Invalid query"
        assert handler.call_count == 0

    @pytest.mark.asyncio
    async def test_invalid_options_are_internal_fault(self, client_factory):
        handler = RecordingHandler(lambda request: json_response([]))
        client = client_factory(handler)

        result = await client.query("1:1", {"search_strategy": "telepathic"})

        assert isinstance(result, InternalFaultError)
        assert result.message == "Internal server error"
        assert handler.call_count == 0

    @pytest.mark.asyncio
    async def test_empty_result(self, client_factory):
        client = client_factory(RecordingHandler(lambda request: json_response([])))

        result = await client.query("god")

        assert isinstance(result, EmptyResultError)
        assert result.message == 'No verses found with "god"'

    @pytest.mark.asyncio
    async def test_envelope_without_data_is_empty(self, client_factory):
        client = client_factory(RecordingHandler(lambda request: json_response({"response": {}})))
        assert isinstance(await client.query("god"), EmptyResultError)

    @pytest.mark.asyncio
    async def test_error_field_in_success_body(self, client_factory):
        client = client_factory(RecordingHandler(lambda request: json_response({"error": "Search unavailable"})))

        result = await client.query("god")

        assert isinstance(result, PermanentRequestError)
        assert result.message == "Search unavailable"
        assert result.status_code == 200

    @pytest.mark.asyncio
    async def test_server_failure_retried(self, client_factory, recorded_sleep):
        handler = RecordingHandler(lambda request: json_response({}, 500))
        client = client_factory(handler, retry_count=2)

        result = await client.query("1:1")

        assert isinstance(result, TransientNetworkError)
        assert handler.call_count == 3
        assert recorded_sleep.delays == [0.01, 0.02]

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_internal_fault(self, client_factory):
        def explode(request):
            raise RuntimeError("handler bug")

        client = client_factory(RecordingHandler(explode))

        result = await client.query("1:1")

        assert isinstance(result, InternalFaultError)
        assert "handler bug" in result.message

    @pytest.mark.asyncio
    async def test_pre_set_cancel_event(self, client_factory):
        handler = RecordingHandler(lambda request: json_response([]))
        client = client_factory(handler)
        event = asyncio.Event()
        event.set()

        result = await client.query("1:1", cancel_event=event)

        assert isinstance(result, RequestCancelledError)
        assert handler.call_count == 0

    @pytest.mark.asyncio
    async def test_options_sent_as_supplied(self, client_factory, sample_verses):
        handler = RecordingHandler(lambda request: json_response(sample_verses))
        client = client_factory(handler)

        await client.query("1:1", {"include_language": ["turkish", "french"], "normalize_god_casing": True})
        await client.query("1:1", QueryOptions(include_word_by_word=True))

        assert handler.params(0) == {
            "q": "1:1",
            "type": "verse",
            "include_language": "turkish,french",
            "normalize_god_casing": "true",
        }
        assert handler.params(1) == {"q": "1:1", "type": "verse", "include_word_by_word": "true"}

    @pytest.mark.asyncio
    async def test_errors_are_returned_not_raised(self, client_factory):
        client = client_factory(RecordingHandler(lambda request: json_response([], 404)))
        result = await client.query("1:1")
        assert isinstance(result, WikiSubmissionAPIError)


# =============================================================================
# Cache Tests
# =============================================================================

class TestCaching:
    """Tests for the response cache as seen through the client."""

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, client_factory, sample_verses):
        handler = RecordingHandler(lambda request: json_response(sample_verses))
        client = client_factory(handler, enable_caching=True)

        first = await client.query("1:1")
        second = await client.query("1:1")

        assert second is first
        assert handler.call_count == 1
        assert client.get_cache_stats()["size"] == 1

    @pytest.mark.asyncio
    async def test_option_order_shares_entry(self, client_factory, sample_verses):
        handler = RecordingHandler(lambda request: json_response(sample_verses))
        client = client_factory(handler, enable_caching=True)

        await client.query("1:1", {"include_word_by_word": True, "normalize_god_casing": True})
        await client.query("1:1", {"normalize_god_casing": True, "include_word_by_word": True})

        assert handler.call_count == 1

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self, client_factory, fake_clock, sample_verses):
        handler = RecordingHandler(lambda request: json_response(sample_verses))
        client = client_factory(handler, enable_caching=True, cache_max_age_ms=1000)

        await client.query("1:1")
        fake_clock.advance_ms(1000)
        await client.query("1:1")

        assert handler.call_count == 2

    @pytest.mark.asyncio
    async def test_skip_cache(self, client_factory, sample_verses):
        handler = RecordingHandler(lambda request: json_response(sample_verses))
        client = client_factory(handler, enable_caching=True)

        await client.query("1:1")
        await client.query("1:1", skip_cache=True)

        assert handler.call_count == 2

    @pytest.mark.asyncio
    async def test_disabled_cache_always_fetches(self, client_factory, sample_verses):
        handler = RecordingHandler(lambda request: json_response(sample_verses))
        client = client_factory(handler, enable_caching=False)

        await client.query("1:1")
        await client.query("1:1")

        assert handler.call_count == 2
        assert client.get_cache_stats()["size"] == 0

    @pytest.mark.asyncio
    async def test_errors_not_cached(self, client_factory):
        handler = RecordingHandler(lambda request: json_response([]))
        client = client_factory(handler, enable_caching=True)

        await client.query("god")
        await client.query("god")

        assert handler.call_count == 2

    @pytest.mark.asyncio
    async def test_clear_cache(self, client_factory, sample_verses):
        handler = RecordingHandler(lambda request: json_response(sample_verses))
        client = client_factory(handler, enable_caching=True)

        await client.query("1:1")
        client.clear_cache()
        await client.query("1:1")

        assert handler.call_count == 2

    @pytest.mark.asyncio
    async def test_sweeper_runs_only_when_enabled(self, client_factory, sample_verses):
        handler = RecordingHandler(lambda request: json_response(sample_verses))
        sweeping = client_factory(handler, enable_caching=True, enable_cache_sweep=True)
        idle = client_factory(handler, enable_caching=False, enable_cache_sweep=True)

        await sweeping.query("1:1")
        await idle.query("1:1")

        assert sweeping._sweeper.running is True
        assert idle._sweeper.running is False

        sweeping.destroy()
        assert sweeping._sweeper.running is False


# =============================================================================
# Batch Tests
# =============================================================================

class TestBatchQuery:
    """Tests for QuranAPIClient.batch_query."""

    @pytest.mark.asyncio
    async def test_concurrency_ceiling_and_order(self, client_factory):
        state = {"in_flight": 0, "peak": 0}

        async def respond(request):
            state["in_flight"] += 1
            state["peak"] = max(state["peak"], state["in_flight"])
            await asyncio.sleep(0.01)
            state["in_flight"] -= 1
            return verses_for(request)

        handler = RecordingHandler(respond)
        client = client_factory(handler)
        queries = [f"1:{n}" for n in range(1, 6)]

        results = await client.batch_query(queries, concurrency=2)

        assert state["peak"] <= 2
        assert handler.call_count == 5
        assert [r.request.query for r in results] == queries
        assert [r.response[0]["verse_text_english"] for r in results] == queries

    @pytest.mark.asyncio
    async def test_failures_stay_in_their_slot(self, client_factory):
        client = client_factory(RecordingHandler(verses_for))

        results = await client.batch_query(["1:1", "nonsense?!", "0", "2:255"])

        assert isinstance(results[0], APIResponse)
        assert isinstance(results[1], APIResponse)
        assert isinstance(results[2], InvalidQueryError)
        assert isinstance(results[3], APIResponse)

    @pytest.mark.asyncio
    async def test_item_forms(self, client_factory):
        handler = RecordingHandler(verses_for)
        client = client_factory(handler)

        results = await client.batch_query([
            "1:1",
            {"query": "1:2", "options": {"include_word_by_word": True}},
            BatchQuery(query="1:3"),
            {"query": "1:4", "bogus": True},
        ])

        assert [isinstance(r, APIResponse) for r in results] == [True, True, True, False]
        assert isinstance(results[3], InternalFaultError)
        sent = {r.url.params["q"]: dict(r.url.params) for r in handler.requests}
        assert sent["1:2"]["include_word_by_word"] == "true"

    @pytest.mark.asyncio
    async def test_concurrency_below_one_clamped(self, client_factory):
        client = client_factory(RecordingHandler(verses_for))
        results = await client.batch_query(["1:1", "1:2"], concurrency=0)
        assert all(isinstance(r, APIResponse) for r in results)

    @pytest.mark.asyncio
    async def test_empty_batch(self, client_factory):
        client = client_factory(RecordingHandler(verses_for))
        assert await client.batch_query([]) == []


# =============================================================================
# Named Query Tests
# =============================================================================

class TestNamedQueries:
    """Tests for the named query helpers."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, args, q, query_type", [
        ("get_random_verse", (), "random-verse", "random_verse"),
        ("get_random_chapter", (), "random-chapter", "random_chapter"),
        ("get_verse_of_the_day", (), "verse-of-the-day", "search"),
        ("get_chapter_of_the_day", (), "chapter-of-the-day", "search"),
        ("get_recitation_data", ("1:1",), "recitations:1:1", "search"),
        ("get_verses_with_root", ("smw",), "root:smw", "search"),
        ("get_data", ("quran-chapters",), "data:quran-chapters", "search"),
    ])
    async def test_wire_query(self, client_factory, method, args, q, query_type):
        handler = RecordingHandler(verses_for)
        client = client_factory(handler)

        result = await getattr(client, method)(*args)

        assert isinstance(result, APIResponse)
        assert handler.params() == {"q": q, "type": query_type}

    @pytest.mark.asyncio
    async def test_unknown_data_set(self, client_factory):
        handler = RecordingHandler(verses_for)
        client = client_factory(handler)

        result = await client.get_data("hadith")

        assert isinstance(result, InvalidQueryError)
        assert handler.call_count == 0


# =============================================================================
# Configuration & Lifecycle Tests
# =============================================================================

class TestLifecycle:
    """Tests for configuration updates and teardown."""

    def test_unknown_override_rejected(self):
        with pytest.raises(ConfigError):
            QuranAPIClient(retries=3)

    def test_get_config_is_a_copy(self, client_factory):
        client = client_factory(RecordingHandler(verses_for), retry_count=2)

        copy = client.get_config()
        copy.retry_count = 9

        assert client.get_config().retry_count == 2

    @pytest.mark.asyncio
    async def test_update_config_applies_to_next_call(self, client_factory):
        handler = RecordingHandler(lambda request: json_response([], 503))
        client = client_factory(handler, retry_count=3)

        client.update_config(retry_count=0)
        await client.query("1:1")

        assert handler.call_count == 1

    def test_invalid_update_leaves_config_untouched(self, client_factory):
        client = client_factory(RecordingHandler(verses_for), retry_count=2)

        with pytest.raises(ConfigError):
            client.update_config(retry_count=-1)
        with pytest.raises(ConfigError):
            client.update_config(retries=1)

        assert client.get_config().retry_count == 2

    @pytest.mark.asyncio
    async def test_destroy_is_idempotent(self, client_factory, sample_verses):
        client = client_factory(RecordingHandler(lambda request: json_response(sample_verses)), enable_caching=True)
        await client.query("1:1")

        client.destroy()
        client.destroy()

        assert client.destroyed is True
        assert client.get_cache_stats()["size"] == 0
        assert client.cancel_all_requests() == 0

    @pytest.mark.asyncio
    async def test_cancel_unknown_request(self, client_factory):
        client = client_factory(RecordingHandler(verses_for))
        assert client.cancel_request("req_0_missing") is False

    @pytest.mark.asyncio
    async def test_context_manager_closes_transport(self, client_factory):
        client = client_factory(RecordingHandler(verses_for))

        async with client as entered:
            assert entered is client
            await client.query("1:1")

        assert client.destroyed is True
        assert client._executor.closed is True

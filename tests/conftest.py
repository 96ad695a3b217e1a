"""
WikiSubmission SDK - Test Configuration

Pytest fixtures and configuration for all tests.

HTTP is served by httpx.MockTransport; time is controlled through the
injectable clock (cache) and sleep (retry policy) hooks.
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from observability.logging import HTTP_LOGGER_NAME, shutdown_logging
from quran.client import QuranAPIClient


def make_verse(chapter: int, verse: int, **extra: Any) -> Dict[str, Any]:
    """Minimal verse record as the service returns it."""
    record = {
        "verse_id": f"{chapter}:{verse}",
        "chapter_number": chapter,
        "verse_number": verse,
        "verse_index": verse,
        "verse_text_arabic": "بِسْمِ ٱللَّهِ",
        "verse_text_english": f"English text of {chapter}:{verse}",
        "chapter_title_english": "The Key" if chapter == 1 else f"Chapter {chapter} Title",
    }
    record.update(extra)
    return record


class FakeClock:
    """Monotonic clock advanced by hand, in seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


class RecordedSleep:
    """Sleep replacement that records requested delays and returns immediately."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class RecordingHandler:
    """
    MockTransport handler that records every request and answers from a
    callable (or a fixed list of responses, served in order).
    """

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def params(self, index: int = -1) -> Dict[str, str]:
        return dict(self.requests[index].url.params)


def json_response(body: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo handlers and levels that setup_logging() or request hooks left behind."""
    yield
    shutdown_logging()
    logging.getLogger(HTTP_LOGGER_NAME).setLevel(logging.NOTSET)


@pytest.fixture
def sample_verses() -> List[Dict[str, Any]]:
    """Verses 1:1-3 with a few translations."""
    return [
        make_verse(1, 1, verse_text_turkish="Rahman Rahim Tanrı'nın adıyla", verse_id_arabic="١:١",
                   verse_subtitle_english="The Key", verse_footnote_english="*1:1 The first verse"),
        make_verse(1, 2),
        make_verse(1, 3),
    ]


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorded_sleep() -> RecordedSleep:
    return RecordedSleep()


@pytest.fixture
def handler_factory() -> Callable[..., RecordingHandler]:
    def factory(
        respond: Optional[Callable[[httpx.Request], httpx.Response]] = None,
        body: Any = None,
        status_code: int = 200,
    ) -> RecordingHandler:
        if respond is None:
            def respond(request: httpx.Request) -> httpx.Response:
                return json_response(body if body is not None else [], status_code)
        return RecordingHandler(respond)

    return factory


@pytest.fixture
def client_factory(recorded_sleep, fake_clock) -> Callable[..., QuranAPIClient]:
    """Build clients over a MockTransport; the sweep task stays off unless asked for."""
    created: List[QuranAPIClient] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response], **overrides: Any) -> QuranAPIClient:
        overrides.setdefault("base_url", "https://api.test/quran")
        overrides.setdefault("retry_delay_ms", 10)
        overrides.setdefault("enable_cache_sweep", False)
        client = QuranAPIClient(
            transport=httpx.MockTransport(handler),
            sleep=recorded_sleep,
            clock=fake_clock,
            **overrides,
        )
        created.append(client)
        return client

    yield factory

    for client in created:
        client.destroy()

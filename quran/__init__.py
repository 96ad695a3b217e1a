"""
WikiSubmission SDK - Quran Module

Client, classifier and formatting helpers for the Quran service.

- classifier.py: query string -> ParsedQuery
- client.py: QuranAPIClient (cache, retries, batching)
- formatting.py: display helpers over QuranData
- constants.py: base URL, credits, SDK version
"""
from quran.classifier import (
    is_chapter_type,
    is_multiple_verses_type,
    is_random_chapter_type,
    is_random_verse_type,
    is_search_type,
    is_verse_range_type,
    is_verse_type,
    parse_query,
    resolve_language_query,
)
from quran.client import BatchQuery, QuranAPIClient
from quran.constants import BASE_URL, CREDITS, SDK_VERSION

__all__ = [
    "BASE_URL",
    "BatchQuery",
    "CREDITS",
    "QuranAPIClient",
    "SDK_VERSION",
    "is_chapter_type",
    "is_multiple_verses_type",
    "is_random_chapter_type",
    "is_random_verse_type",
    "is_search_type",
    "is_verse_range_type",
    "is_verse_type",
    "parse_query",
    "resolve_language_query",
]

"""
WikiSubmission SDK - Data Module

Schema definitions and the static verse index table.

- schemas.py: pydantic models for queries, options and response payloads
- verse_indices.py: every verse with its global ordinal, in reading order
"""
from data.schemas import (
    APIResponse,
    InvalidQuery,
    ParsedQuery,
    QueryMetadata,
    QueryOptions,
    QueryType,
    QuranAudioLinkData,
    QuranChaptersData,
    QuranData,
    QuranForeignData,
    QuranWordByWordData,
    SearchStrategy,
    SortOrder,
    StructuredVerseText,
    SupportedLanguage,
    ValidQuery,
    VerseIndex,
    WordByWord,
)
from data.verse_indices import (
    TOTAL_VERSES,
    VERSE_INDICES,
    get_chapter_indices,
    get_verse_index,
    lookup_reference,
)

__all__ = [
    "APIResponse",
    "InvalidQuery",
    "ParsedQuery",
    "QueryMetadata",
    "QueryOptions",
    "QueryType",
    "QuranAudioLinkData",
    "QuranChaptersData",
    "QuranData",
    "QuranForeignData",
    "QuranWordByWordData",
    "SearchStrategy",
    "SortOrder",
    "StructuredVerseText",
    "SupportedLanguage",
    "ValidQuery",
    "VerseIndex",
    "WordByWord",
    "TOTAL_VERSES",
    "VERSE_INDICES",
    "get_chapter_indices",
    "get_verse_index",
    "lookup_reference",
]

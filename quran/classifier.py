"""
WikiSubmission SDK - Query Classifier

Turns a raw query string into a ParsedQuery. Pure functions over the verse
index table: no I/O, no state.

Rules are tried in order and the first match wins:

1. chapter          "2" or "chapter:2"
2. verse            "2:255" (exact reference string)
3. verse_range      "2:255-257"
4. multiple_verses  "1:1, 2:255-257, 3:8"
5. random_chapter   contains both "random" and "chapter"
6. random_verse     contains both "random" and "verse"
7. search           free text with at least one ASCII letter

Anything else is InvalidQuery("Invalid query").

Usage:
    from quran.classifier import parse_query

    parsed = parse_query("1:1-3")
    if isinstance(parsed, ValidQuery):
        print(parsed.type, [i.verse for i in parsed.indices])
"""

import math
import re
from typing import Any, List, Mapping, Optional, Tuple, Union

from data.schemas import (
    InvalidQuery,
    ParsedQuery,
    QueryMetadata,
    QueryOptions,
    QueryType,
    SupportedLanguage,
    ValidQuery,
    VerseIndex,
)
from data.verse_indices import CHAPTER_COUNT, get_chapter_indices, lookup_reference
from observability.logging import get_logger

logger = get_logger(__name__)

INVALID_QUERY = "Invalid query"
INTERNAL_ERROR = "Internal server error"

_CHAPTER_PREFIX = "chapter:"
_DIGITS = re.compile(r"[0-9]+")
_LEADING_INT = re.compile(r"[+-]?[0-9]+")
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}
_REFERENCE_CHARS = re.compile(r"[0-9:,\-\s]+")
_ASCII_LETTER = re.compile(r"[a-zA-Z]")

# (prefix, title label) for search queries; applied only when text follows the prefix
_SEARCH_PREFIXES = (
    ("root:", "Root"),
    ("chapter:", "Chapter"),
    ("verse:", "Verse"),
)


def _parse_leading_int(text: str) -> Optional[int]:
    """Leading decimal integer after optional whitespace ("5abc" -> 5), else None."""
    match = _LEADING_INT.match(text.lstrip())
    return int(match.group()) if match else None


def _to_number(text: Optional[str]) -> float:
    """
    Strict numeric conversion of a reference component.

    Surrounding whitespace is ignored and an empty string is 0; anything that
    is not entirely a number gives NaN, which never compares equal.
    """
    if text is None:
        return math.nan
    text = text.strip()
    if not text:
        return 0.0

    radix = _RADIX_PREFIXES.get(text[:2].lower())
    if radix is not None:
        digits = text[2:]
        if not (digits.isascii() and digits.isalnum()):
            return math.nan
        try:
            return float(int(digits, radix))
        except ValueError:
            return math.nan

    unsigned = text.lstrip("+-")
    if unsigned == "Infinity" and len(text) - len(unsigned) <= 1:
        return -math.inf if text.startswith("-") else math.inf

    if _DECIMAL.fullmatch(text):
        return float(text)
    return math.nan


def _normalize_options(options: Union[QueryOptions, Mapping[str, Any], None]) -> QueryOptions:
    if isinstance(options, QueryOptions):
        return options
    return QueryOptions.model_validate(dict(options or {}))


# =============================================================================
# SHAPE DETECTORS
# =============================================================================

def is_chapter_type(query: Optional[str]) -> Optional[Tuple[VerseIndex, ...]]:
    """All records of the requested chapter, or None."""
    if not query:
        return None

    candidate: Optional[str] = None
    if query.startswith(_CHAPTER_PREFIX):
        candidate = query.split(_CHAPTER_PREFIX)[1]
    if _DIGITS.fullmatch(query):
        candidate = query

    if not candidate:
        return None

    chapter = _parse_leading_int(candidate)
    if chapter is None or not 1 <= chapter <= CHAPTER_COUNT:
        return None

    return get_chapter_indices(chapter) or None


def is_verse_type(query: Optional[str]) -> Optional[VerseIndex]:
    """The record whose "chapter:verse" equals the query exactly, or None."""
    if not query:
        return None
    return lookup_reference(query)


def is_verse_range_type(query: Optional[str]) -> Optional[Tuple[VerseIndex, ...]]:
    """Records of ``chapter:start-end`` (inclusive, reading order), or None."""
    if not query:
        return None
    if "-" not in query or query.endswith("-"):
        return None

    head = query.split("-")[0].split(":")
    chapter = _to_number(query.split(":")[0])
    start = _to_number(head[1] if len(head) > 1 else None)
    end = _to_number(query.split("-")[1])

    if not chapter.is_integer():
        return None

    matches = tuple(
        record for record in get_chapter_indices(int(chapter))
        if start <= record.verse <= end
    )
    return matches or None


def is_multiple_verses_type(query: Optional[str]) -> Optional[Tuple[VerseIndex, ...]]:
    """
    Records for a comma separated list of verses and ranges, in input order.

    Components that resolve to neither are skipped; None when none resolve.
    """
    if not query or "," not in query:
        return None

    results: List[VerseIndex] = []
    for component in query.split(","):
        basis = component.strip()

        single = is_verse_type(basis)
        if single is not None:
            results.append(single)
            continue

        span = is_verse_range_type(basis)
        if span:
            results.extend(span)

    return tuple(results) or None


def is_random_chapter_type(query: Optional[str]) -> bool:
    if not query:
        return False
    lowered = query.lower()
    return "random" in lowered and "chapter" in lowered


def is_random_verse_type(query: Optional[str]) -> bool:
    if not query:
        return False
    lowered = query.lower()
    return "random" in lowered and "verse" in lowered


def is_search_type(query: Optional[str]) -> bool:
    """Free text: not reference punctuation only, and containing an ASCII letter."""
    if not query or not isinstance(query, str):
        return False

    trimmed = query.strip()
    if not trimmed:
        return False

    # Digits and reference punctuation only: a malformed reference, not a search
    if _REFERENCE_CHARS.fullmatch(trimmed):
        return False

    if len(trimmed) <= 2 and not _ASCII_LETTER.search(trimmed):
        return False

    return _ASCII_LETTER.search(trimmed) is not None


def search_title(query: str) -> str:
    """Display title for a search query."""
    for prefix, label in _SEARCH_PREFIXES:
        if query.startswith(prefix) and len(query) > len(prefix):
            return f"{label}: {query.split(prefix)[1]}"

    if query == "random-verse":
        return "Random Verse"
    if query == "random-chapter":
        return "Random Chapter"

    if query.startswith("data:") and len(query) > len("data:"):
        return f"Data: {query.split('data:')[1]}"

    return query


# =============================================================================
# PUBLIC ENTRY POINTS
# =============================================================================

def parse_query(
    query: str,
    options: Union[QueryOptions, Mapping[str, Any], None] = None,
) -> ParsedQuery:
    """
    Classify a query string.

    Never raises: unexpected faults, option validation included, come back as
    InvalidQuery(error="Internal server error").
    """
    try:
        parsed_options = _normalize_options(options)

        def valid(query_type: QueryType, title: str, indices: Tuple[VerseIndex, ...] = ()) -> ValidQuery:
            return ValidQuery(
                type=query_type,
                query=query,
                indices=indices,
                options=parsed_options,
                metadata=QueryMetadata(title=title),
            )

        chapter = is_chapter_type(query)
        if chapter:
            return valid(QueryType.CHAPTER, f"Chapter {chapter[0].chapter}", chapter)

        verse = is_verse_type(query)
        if verse is not None:
            return valid(QueryType.VERSE, f"Verse {verse.chapter}:{verse.verse}", (verse,))

        verse_range = is_verse_range_type(query)
        if verse_range:
            first, last = verse_range[0], verse_range[-1]
            return valid(
                QueryType.VERSE_RANGE,
                f"Verses {first.chapter}:{first.verse}-{last.verse}",
                verse_range,
            )

        multiple = is_multiple_verses_type(query)
        if multiple:
            return valid(QueryType.MULTIPLE_VERSES, f"Verses {query[:256]}", multiple)

        if is_random_chapter_type(query):
            return valid(QueryType.RANDOM_CHAPTER, "Random Chapter")

        if is_random_verse_type(query):
            return valid(QueryType.RANDOM_VERSE, "Random Verse")

        if is_search_type(query):
            return valid(QueryType.SEARCH, search_title(query))

        return InvalidQuery(error=INVALID_QUERY)
    except Exception:
        logger.error("Query classification failed", query=str(query)[:256], exc_info=True)
        return InvalidQuery(error=INTERNAL_ERROR)


def resolve_language_query(text: str) -> List[SupportedLanguage]:
    """
    Supported languages named in a comma separated list.

    Case and surrounding whitespace are ignored, unknown names are dropped,
    order and duplicates are kept. Falls back to English when nothing matches.
    """
    supported = {language.value: language for language in SupportedLanguage}
    resolved = [
        supported[name]
        for name in (part.strip().lower() for part in text.split(","))
        if name in supported
    ]
    return resolved or [SupportedLanguage.ENGLISH]

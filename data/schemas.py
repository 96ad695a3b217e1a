"""
WikiSubmission SDK - Data Schemas

Pydantic models for everything that crosses the SDK boundary: the verse
index records, query options, the parsed-query union and the verse payloads
returned by the service.

Response models keep unknown keys (extra="allow") so new server fields are
never dropped on the floor.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Literal, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field


T = TypeVar("T")


# =============================================================================
# ENUMS - Standard values across the SDK
# =============================================================================

class SupportedLanguage(str, Enum):
    """Languages the service carries translations for."""
    ENGLISH = "english"
    TURKISH = "turkish"
    FRENCH = "french"
    GERMAN = "german"
    BAHASA = "bahasa"
    PERSIAN = "persian"
    TAMIL = "tamil"
    SWEDISH = "swedish"
    RUSSIAN = "russian"


class QueryType(str, Enum):
    """Shapes a query string can be classified into."""
    VERSE = "verse"
    VERSE_RANGE = "verse_range"
    MULTIPLE_VERSES = "multiple_verses"
    CHAPTER = "chapter"
    SEARCH = "search"
    RANDOM_CHAPTER = "random_chapter"
    RANDOM_VERSE = "random_verse"


class SortOrder(str, Enum):
    """Result ordering applied server-side."""
    VERSE_INDEX = "verse_index"
    REVELATION_ORDER = "revelation_order"


class SearchStrategy(str, Enum):
    """Text matching mode for search queries."""
    EXACT = "exact"
    FUZZY = "fuzzy"


# Query types whose indices are resolved locally from the index table
REFERENCE_QUERY_TYPES = frozenset({
    QueryType.VERSE,
    QueryType.VERSE_RANGE,
    QueryType.MULTIPLE_VERSES,
    QueryType.CHAPTER,
})


# =============================================================================
# INDEX & QUERY MODELS
# =============================================================================

class VerseIndex(BaseModel):
    """
    One verse's position in the corpus.

    Example:
    {
        "chapter": 2,
        "verse": 255,
        "verse_index": 262
    }
    """

    model_config = ConfigDict(frozen=True)

    chapter: int = Field(..., ge=1, le=114)
    verse: int = Field(..., ge=1)
    verse_index: int = Field(..., ge=1, description="Global ordinal in reading order")

    @property
    def reference(self) -> str:
        return f"{self.chapter}:{self.verse}"


class QueryOptions(BaseModel):
    """
    Options sent along with a query.

    Keys this model does not know about are kept in ``model_extra`` and
    forwarded to the service untouched.
    """

    model_config = ConfigDict(extra="allow")

    sort_results: SortOrder = Field(default=SortOrder.VERSE_INDEX)
    normalize_god_casing: bool = Field(default=False)
    include_word_by_word: bool = Field(default=False)
    include_language: Union[str, List[str]] = Field(default="none")

    # Search-specific options
    search_strategy: SearchStrategy = Field(default=SearchStrategy.FUZZY)
    search_language: SupportedLanguage = Field(default=SupportedLanguage.ENGLISH)
    search_case_sensitive: bool = Field(default=False)
    search_ignore_commentary: bool = Field(default=False)
    search_apply_highlight: bool = Field(default=False)


class QueryMetadata(BaseModel):
    """Display metadata derived during classification."""

    title: str


class ValidQuery(BaseModel):
    """A query string that was classified successfully."""

    model_config = ConfigDict(frozen=True)

    valid: Literal[True] = True
    type: QueryType
    query: str
    indices: Tuple[VerseIndex, ...] = ()
    options: QueryOptions = Field(default_factory=QueryOptions)
    metadata: QueryMetadata


class InvalidQuery(BaseModel):
    """A query string that could not be classified."""

    model_config = ConfigDict(frozen=True)

    valid: Literal[False] = False
    error: str


ParsedQuery = Union[ValidQuery, InvalidQuery]


@dataclass(frozen=True)
class APIResponse(Generic[T]):
    """Envelope for one completed call; ``id`` is unique per call."""
    id: str
    request: ValidQuery
    response: List[T] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "request": self.request.model_dump(mode="json"),
            "response": [
                item.model_dump(mode="json") if isinstance(item, BaseModel) else item
                for item in self.response
            ],
        }


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class WordByWord(BaseModel):
    """One word of a verse with its root and gloss."""

    model_config = ConfigDict(extra="allow")

    arabic_text: str = ""
    transliteration: str = ""
    transliterated_text: str = ""
    root_word: str = ""
    english_text: str = ""
    word_index: int = 0


class QuranData(BaseModel):
    """
    A verse as returned by the service.

    Example:
    {
        "verse_id": "1:1",
        "chapter_number": 1,
        "verse_number": 1,
        "verse_index": 1,
        "verse_text_arabic": "...",
        "verse_text_english": "In the name of GOD, Most Gracious, Most Merciful.",
        "chapter_title_english": "The Key"
    }
    """

    model_config = ConfigDict(extra="allow")

    # Indices
    verse_id: str
    verse_id_arabic: Optional[str] = None
    chapter_number: int
    verse_number: int
    verse_index: int
    verse_index_numbered: Optional[int] = None

    # Arabic text
    verse_text_arabic: str = ""
    verse_text_transliterated: str = ""

    # Chapter title
    chapter_title_english: str = ""
    chapter_title_turkish: Optional[str] = None
    chapter_title_french: Optional[str] = None
    chapter_title_german: Optional[str] = None
    chapter_title_bahasa: Optional[str] = None
    chapter_title_persian: Optional[str] = None
    chapter_title_tamil: Optional[str] = None
    chapter_title_swedish: Optional[str] = None
    chapter_title_russian: Optional[str] = None

    word_by_word: List[WordByWord] = Field(default_factory=list)

    # Verse text
    verse_text_english: str = ""
    verse_text_turkish: Optional[str] = None
    verse_text_french: Optional[str] = None
    verse_text_german: Optional[str] = None
    verse_text_bahasa: Optional[str] = None
    verse_text_persian: Optional[str] = None
    verse_text_tamil: Optional[str] = None
    verse_text_swedish: Optional[str] = None
    verse_text_russian: Optional[str] = None

    # Verse subtitle
    verse_subtitle_english: Optional[str] = None
    verse_subtitle_turkish: Optional[str] = None
    verse_subtitle_french: Optional[str] = None
    verse_subtitle_german: Optional[str] = None
    verse_subtitle_bahasa: Optional[str] = None
    verse_subtitle_persian: Optional[str] = None
    verse_subtitle_tamil: Optional[str] = None
    verse_subtitle_swedish: Optional[str] = None
    verse_subtitle_russian: Optional[str] = None

    # Verse footnote
    verse_footnote_english: Optional[str] = None
    verse_footnote_turkish: Optional[str] = None
    verse_footnote_french: Optional[str] = None
    verse_footnote_german: Optional[str] = None
    verse_footnote_bahasa: Optional[str] = None
    verse_footnote_persian: Optional[str] = None
    verse_footnote_tamil: Optional[str] = None
    verse_footnote_swedish: Optional[str] = None
    verse_footnote_russian: Optional[str] = None

    def localized(self, prefix: str, language: Union[SupportedLanguage, str]) -> Optional[str]:
        """Value of ``{prefix}_{language}``, or None when absent or empty."""
        lang = language.value if isinstance(language, SupportedLanguage) else language
        return getattr(self, f"{prefix}_{lang}", None) or None


class QuranChaptersData(BaseModel):
    """Chapter-level metadata (``data:quran-chapters``)."""

    model_config = ConfigDict(extra="allow")

    chapter_number: int
    chapter_title_english: str
    chapter_title_arabic: str
    chapter_title_transliterated: str
    chapter_verses: int
    chapter_revelation_order: int


class QuranWordByWordData(BaseModel):
    """A single word record (``data:quran-word-by-word``)."""

    model_config = ConfigDict(extra="allow")

    global_index: int
    word_index: int
    verse_id: str
    root_word: str
    english_text: str
    arabic_text: str
    transliterated_text: str


class QuranForeignData(BaseModel):
    """Translations keyed by verse (``data:quran-foreign``)."""

    model_config = ConfigDict(extra="allow")

    verse_id: str

    verse_text_french: str = ""
    verse_subtitle_french: Optional[str] = None
    verse_footnote_french: Optional[str] = None
    chapter_title_french: str = ""

    verse_text_swedish: str = ""
    verse_subtitle_swedish: Optional[str] = None
    verse_footnote_swedish: Optional[str] = None
    chapter_title_swedish: str = ""

    verse_text_russian: str = ""
    verse_subtitle_russian: Optional[str] = None
    verse_footnote_russian: Optional[str] = None
    chapter_title_russian: str = ""

    verse_text_turkish: str = ""
    verse_subtitle_turkish: Optional[str] = None
    verse_footnote_turkish: Optional[str] = None
    chapter_title_turkish: str = ""

    verse_text_german: str = ""
    verse_subtitle_german: Optional[str] = None
    verse_footnote_german: Optional[str] = None
    chapter_title_german: str = ""

    verse_text_bahasa: str = ""
    verse_subtitle_bahasa: Optional[str] = None
    verse_footnote_bahasa: Optional[str] = None
    chapter_title_bahasa: str = ""

    verse_text_persian: str = ""
    verse_subtitle_persian: Optional[str] = None
    verse_footnote_persian: Optional[str] = None
    chapter_title_persian: str = ""

    verse_text_tamil: str = ""
    verse_subtitle_tamil: Optional[str] = None
    verse_footnote_tamil: Optional[str] = None
    chapter_title_tamil: str = ""


class QuranAudioLinkData(BaseModel):
    """Recitation links for one verse (``recitations:<verse_id>``)."""

    model_config = ConfigDict(extra="allow")

    verse_id: str
    mishary: str
    basit: str
    minshawi: str


class ForeignVerseText(BaseModel):
    """Rendered parts of one verse in an additional language."""

    verse_subtitle: Optional[str] = None
    verse_id: str
    verse_text: str
    verse_footnotes: Optional[str] = None


class StructuredVerseText(BaseModel):
    """Rendered parts of one verse; fields not requested stay None."""

    verse_subtitle: Optional[str] = None
    verse_id: Optional[str] = None
    verse_text: Optional[str] = None
    verse_arabic: Optional[str] = None
    verse_foreign_language_texts: Optional[Dict[str, ForeignVerseText]] = None
    verse_transliteration: Optional[str] = None
    verse_footnotes: Optional[str] = None

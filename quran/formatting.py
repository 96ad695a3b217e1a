"""
WikiSubmission SDK - Output Formatting

Renders verse payloads (QuranData) into display strings. Every per-language
getter falls back to English when the requested translation is missing.

Usage:
    from quran.formatting import format_data_to_text, parse_verses

    verses = parse_verses(result.response)
    for line in format_data_to_text(verses, "turkish", include_arabic=True):
        print(line)
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from data.schemas import ForeignVerseText, QuranData, StructuredVerseText, SupportedLanguage

Language = Union[SupportedLanguage, str]

DEFAULT_BOOK_TITLE = "Quran: The Final Testament"

BOOK_TITLES: Dict[str, str] = {
    "english": DEFAULT_BOOK_TITLE,
    "arabic": DEFAULT_BOOK_TITLE,
    "persian": "Quran: The Final Testament • Persian",
    "turkish": "Kuran: Son Ahit • Turkish",
    "french": "Quran: Le Testament Final • French",
    "german": "Koran: Das Letzte Testament • German",
    "bahasa": "Quran: The Final Testament • Bahasa",
    "tamil": "Quran: The Final Testament இறுதி வேதம் • Tamil",
    "swedish": "Koranen: Det Sista Testamentet • Swedish",
    "russian": "Коран: Последний Завет • Russian",
}

# Languages whose verse ids use Eastern Arabic numerals
_ARABIC_NUMERAL_LANGUAGES = frozenset({"arabic", "persian"})


def _lang(language: Language) -> str:
    return language.value if isinstance(language, SupportedLanguage) else str(language).lower()


def parse_verses(payload: Iterable[Any]) -> List[QuranData]:
    """Validate raw verse dicts into QuranData models (models pass through)."""
    return [
        item if isinstance(item, QuranData) else QuranData.model_validate(item)
        for item in payload
    ]


def get_book_title(language: Language) -> str:
    return BOOK_TITLES.get(_lang(language), DEFAULT_BOOK_TITLE)


def get_title_for_language(data: QuranData, language: Language) -> str:
    """``chapter_title_{language}``, falling back to English."""
    return data.localized("chapter_title", _lang(language)) or data.chapter_title_english or "--"


def get_verse_text_for_language(data: QuranData, language: Language) -> str:
    """``verse_text_{language}``, falling back to English."""
    return data.localized("verse_text", _lang(language)) or data.verse_text_english or "--"


def get_verse_subtitle_for_language(data: QuranData, language: Language) -> Optional[str]:
    return data.localized("verse_subtitle", _lang(language)) or data.verse_subtitle_english or None


def get_verse_footnote_for_language(data: QuranData, language: Language) -> Optional[str]:
    return data.localized("verse_footnote", _lang(language)) or data.verse_footnote_english or None


def format_data_to_chapter_title(
    data: Sequence[QuranData],
    language: Language,
    use_sura_as_prefix: bool = False,
) -> str:
    """
    Readable chapter title, e.g. "Chapter 1, The Key".

    Returns "Multiple Chapters" when the verses span more than one chapter.
    """
    if not data:
        return ""
    first = data[0]
    if any(verse.chapter_number != first.chapter_number for verse in data):
        return "Multiple Chapters"
    prefix = "Sura" if use_sura_as_prefix else "Chapter"
    return f"{prefix} {first.chapter_number}, {get_title_for_language(first, language)}"


def format_data_to_verse_id(data: QuranData, language: Language) -> str:
    """Verse id in the language's numerals ("1:1" or "١:١" when available)."""
    if _lang(language) in _ARABIC_NUMERAL_LANGUAGES and data.verse_id_arabic:
        return data.verse_id_arabic
    return data.verse_id


def _wrap(text: Optional[str], marker: str, enabled: bool) -> Optional[str]:
    if text and enabled:
        return f"{marker}{text}{marker}"
    return text


def format_data_to_structured_text(
    data: Sequence[QuranData],
    language: Language,
    *,
    verse_subtitle: bool = False,
    verse_id: bool = False,
    verse_text: bool = False,
    verse_arabic: bool = False,
    verse_foreign_language_texts: Sequence[Language] = (),
    verse_transliteration: bool = False,
    verse_footnotes: bool = False,
    markdown: bool = False,
) -> List[StructuredVerseText]:
    """
    Split each verse into its display parts.

    Only the parts switched on are filled; the rest stay None. With
    ``markdown`` subtitles are wrapped in backticks and ids/footnotes in bold.
    """
    output: List[StructuredVerseText] = []

    for verse in data:
        foreign: Optional[Dict[str, ForeignVerseText]] = None
        if verse_foreign_language_texts:
            foreign = {}
            for other in verse_foreign_language_texts:
                name = _lang(other)
                text = verse.localized("verse_text", name)
                if not text:
                    continue
                foreign[name] = ForeignVerseText(
                    verse_subtitle=_wrap(verse.localized("verse_subtitle", name), "`", markdown),
                    verse_id=_wrap(format_data_to_verse_id(verse, name), "**", markdown),
                    verse_text=text,
                    verse_footnotes=_wrap(verse.localized("verse_footnote", name), "**", markdown),
                )

        output.append(StructuredVerseText(
            verse_subtitle=(
                _wrap(get_verse_subtitle_for_language(verse, language), "`", markdown)
                if verse_subtitle else None
            ),
            verse_id=(
                _wrap(format_data_to_verse_id(verse, language), "**", markdown)
                if verse_id else None
            ),
            verse_text=get_verse_text_for_language(verse, language) if verse_text else None,
            verse_arabic=verse.verse_text_arabic if verse_arabic else None,
            verse_foreign_language_texts=foreign,
            verse_transliteration=verse.verse_text_transliterated if verse_transliteration else None,
            verse_footnotes=(
                _wrap(get_verse_footnote_for_language(verse, language), "**", markdown)
                if verse_footnotes else None
            ),
        ))

    return output


def format_data_to_text(
    data: Sequence[QuranData],
    language: Language,
    *,
    markdown: bool = False,
    include_arabic: bool = False,
    include_subtitles: bool = False,
    include_footnotes: bool = False,
    include_transliteration: bool = False,
    include_other_languages: Sequence[Language] = (),
    remove_main_text: bool = False,
) -> List[str]:
    """
    One display string per verse, parts separated by blank lines.

    Order: subtitle, "[id] text", other languages, Arabic, footnote,
    transliteration. Verses with nothing to show are omitted.
    """
    verses: List[str] = []
    bold = "**" if markdown else ""

    for verse in data:
        parts: List[str] = []
        verse_id = format_data_to_verse_id(verse, language)

        if include_subtitles and verse.verse_subtitle_english:
            subtitle = get_verse_subtitle_for_language(verse, language)
            parts.append(_wrap(subtitle, "`", markdown) or "")

        if not remove_main_text:
            parts.append(f"{bold}[{verse_id}]{bold} {get_verse_text_for_language(verse, language)}")

        for other in include_other_languages:
            text = verse.localized("verse_text", _lang(other))
            if text:
                parts.append(f"{bold}[{verse_id}]{bold} {text}")

        if include_arabic and verse.verse_text_arabic:
            parts.append(verse.verse_text_arabic)

        if include_footnotes and verse.verse_footnote_english:
            footnote = get_verse_footnote_for_language(verse, language)
            parts.append(_wrap(footnote, "*", markdown) or "")

        if include_transliteration and verse.verse_text_transliterated:
            parts.append(verse.verse_text_transliterated)

        parts = [part for part in parts if part]
        if parts:
            verses.append("\n\n".join(parts))

    return verses

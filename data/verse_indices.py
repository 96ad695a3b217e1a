"""
WikiSubmission SDK - Verse Index Table

Precomputed index of every verse in the corpus, in reading order.
Each record carries its chapter, verse and global ordinal (verse_index).

Numbering follows the Final Testament text served by the API: chapter 9
ends at verse 127, giving 6234 verses in total.

Usage:
    from data.verse_indices import VERSE_INDICES, get_chapter_indices

    fatiha = get_chapter_indices(1)        # 7 records
    ayat_al_kursi = get_verse_index(2, 255)
"""
from itertools import groupby
from typing import Dict, Optional, Tuple

from data.schemas import VerseIndex


# Verses per chapter, chapters 1..114
VERSE_COUNTS: Tuple[int, ...] = (
    7, 286, 200, 176, 120, 165, 206, 75, 127, 109,      # 1-10
    123, 111, 43, 52, 99, 128, 111, 110, 98, 135,       # 11-20
    112, 78, 118, 64, 77, 227, 93, 88, 69, 60,          # 21-30
    34, 30, 73, 54, 45, 83, 182, 88, 75, 85,            # 31-40
    54, 53, 89, 59, 37, 35, 38, 29, 18, 45,             # 41-50
    60, 49, 62, 55, 78, 96, 29, 22, 24, 13,             # 51-60
    14, 11, 11, 18, 12, 12, 30, 52, 52, 44,             # 61-70
    28, 28, 20, 56, 40, 31, 50, 40, 46, 42,             # 71-80
    29, 19, 36, 25, 22, 17, 19, 26, 30, 20,             # 81-90
    15, 21, 11, 8, 8, 19, 5, 8, 8, 11,                  # 91-100
    11, 8, 3, 9, 5, 4, 7, 3, 6, 3,                      # 101-110
    5, 4, 5, 6,                                         # 111-114
)

CHAPTER_COUNT = len(VERSE_COUNTS)


def _build_indices() -> Tuple[VerseIndex, ...]:
    records = []
    ordinal = 1
    for chapter, count in enumerate(VERSE_COUNTS, start=1):
        for verse in range(1, count + 1):
            records.append(VerseIndex(chapter=chapter, verse=verse, verse_index=ordinal))
            ordinal += 1
    return tuple(records)


VERSE_INDICES: Tuple[VerseIndex, ...] = _build_indices()
TOTAL_VERSES = len(VERSE_INDICES)

# "chapter:verse" -> record, exact reference strings only
_BY_REFERENCE: Dict[str, VerseIndex] = {
    f"{record.chapter}:{record.verse}": record for record in VERSE_INDICES
}

_BY_CHAPTER: Dict[int, Tuple[VerseIndex, ...]] = {
    chapter: tuple(records)
    for chapter, records in groupby(VERSE_INDICES, key=lambda record: record.chapter)
}


def get_chapter_indices(chapter: int) -> Tuple[VerseIndex, ...]:
    """All records of a chapter in reading order (empty if unknown)."""
    return _BY_CHAPTER.get(chapter, ())


def get_verse_index(chapter: int, verse: int) -> Optional[VerseIndex]:
    """Record for chapter:verse, or None."""
    return _BY_REFERENCE.get(f"{chapter}:{verse}")


def lookup_reference(reference: str) -> Optional[VerseIndex]:
    """
    Record whose "chapter:verse" string equals the reference exactly.

    No numeric normalization is applied: "01:1" or " 1:1" do not match.
    """
    return _BY_REFERENCE.get(reference)

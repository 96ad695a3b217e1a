"""Static metadata shipped with the SDK."""
from dataclasses import dataclass
from typing import Tuple

from config import DEFAULT_BASE_URL

SDK_VERSION = "1.0.0"

BASE_URL = DEFAULT_BASE_URL

# Identifiers accepted by QuranAPIClient.get_data()
DATA_SETS = ("quran", "quran-foreign", "quran-word-by-word", "quran-chapters")


@dataclass(frozen=True)
class Credit:
    language: str
    authors: str
    url: str


CREDITS: Tuple[Credit, ...] = (
    Credit("english", "Rashad Khalifa, Ph.D.", "https://masjidtucson.org"),
    Credit("turkish", "Teslim Olanlar", "https://teslimiyetdini.com/"),
    Credit("french", "Masjid Paris", "https://masjidparis.org"),
    Credit("german", "Yunusemre Şentürk & Yusuf Balyemez", "https://github.com/SubmitterTech/quran-tft"),
    Credit("bahasa", "Submission.org", "https://submission.org"),
    Credit("persian", "MasjidTucson.org", "https://masjidtucson.org"),
    Credit("russian", "Madina & Mila Komarnisky", "https://masjidtucson.org"),
    Credit("swedish", "Swedish.submission.info", "https://swedish.submission.info"),
    Credit("tamil", "Kadavulmattum", "https://kadavulmattum.org/"),
)

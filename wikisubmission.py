"""
WikiSubmission SDK

Top-level namespace for the WikiSubmission services.

Usage:
    from wikisubmission import WikiSubmission

    client = WikiSubmission.Quran.V1.create_api_client(enable_caching=True)
    result = await client.query("2:255")
    if isinstance(result, WikiSubmission.Error):
        print(result.message)
"""

from typing import Any, Optional

from config import APIConfig
from core.errors import WikiSubmissionAPIError
from data import schemas
from quran import classifier, formatting
from quran.client import QuranAPIClient
from quran.constants import BASE_URL, CREDITS, SDK_VERSION


class _QuranV1:
    """Version 1 of the Quran service."""

    Methods = classifier
    Formatting = formatting
    Schemas = schemas
    Client = QuranAPIClient

    @staticmethod
    def create_api_client(config: Optional[APIConfig] = None, **overrides: Any) -> QuranAPIClient:
        """A new client; keyword overrides are applied on top of ``config``."""
        return QuranAPIClient(config, **overrides)


class _Quran:
    V1 = _QuranV1
    BASE_URL = BASE_URL
    CREDITS = CREDITS


class WikiSubmission:
    Quran = _Quran
    Error = WikiSubmissionAPIError
    SDK_VERSION = SDK_VERSION


__all__ = ["WikiSubmission"]

"""
Tests for cli/main.py - Command Line Interface.
"""
import json
import logging
import sys

import httpx
import pytest
from typer.testing import CliRunner

from cli.main import app
from observability.logging import SDK_LOGGER_NAME
from quran.client import QuranAPIClient
from tests.conftest import RecordingHandler, json_response

runner = CliRunner()


@pytest.fixture
def served(monkeypatch, sample_verses):
    """Route the CLI's client to a MockTransport answering with sample verses."""
    handler = RecordingHandler(lambda request: json_response(sample_verses))

    def fake_client(base_url):
        return QuranAPIClient(
            transport=httpx.MockTransport(handler),
            base_url=base_url or "https://api.test/quran",
            retry_count=0,
            enable_cache_sweep=False,
        )

    monkeypatch.setattr(sys.modules["cli.main"], "_client", fake_client)
    return handler


class TestClassify:
    """Tests for the classify command."""

    def test_valid_query(self):
        result = runner.invoke(app, ["classify", "2:255"])

        assert result.exit_code == 0
        body = json.loads(result.stdout)
        assert body["type"] == "verse"
        assert body["metadata"]["title"] == "Verse 2:255"

    def test_invalid_query(self):
        result = runner.invoke(app, ["classify", "115"])

        assert result.exit_code == 1
        assert json.loads(result.stdout) == {"valid": False, "error": "Invalid query"}

    def test_options(self):
        result = runner.invoke(app, ["classify", "1:1", "-o", "include_word_by_word=true"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["options"]["include_word_by_word"] is True

    def test_malformed_option(self):
        result = runner.invoke(app, ["classify", "1:1", "-o", "include_word_by_word"])
        assert result.exit_code == 2


class TestVerbose:
    """Tests for the global --verbose flag."""

    def test_verbose_switches_to_debug(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        runner.invoke(app, ["classify", "1:1"])
        assert logging.getLogger(SDK_LOGGER_NAME).level == logging.WARNING

        result = runner.invoke(app, ["--verbose", "classify", "1:1"])

        assert result.exit_code == 0
        assert logging.getLogger(SDK_LOGGER_NAME).level == logging.DEBUG


class TestLanguages:
    """Tests for the languages command."""

    def test_known_languages(self):
        result = runner.invoke(app, ["languages", "Turkish, klingon, french"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "turkish, french"

    def test_fallback(self):
        result = runner.invoke(app, ["languages", "klingon"])
        assert result.stdout.strip() == "english"


class TestQuery:
    """Tests for the query command."""

    def test_renders_verses(self, served):
        result = runner.invoke(app, ["query", "1:1-3"])

        assert result.exit_code == 0
        assert "Verses 1:1-3" in result.stdout
        assert "[1:1] English text of 1:1" in result.stdout
        assert served.params() == {"q": "1:1-3", "type": "verse_range"}

    def test_language_and_word_by_word_options(self, served):
        result = runner.invoke(app, ["query", "1:1", "--language", "turkish", "--word-by-word"])

        assert result.exit_code == 0
        assert "Rahman Rahim" in result.stdout
        assert served.params()["include_word_by_word"] == "true"
        assert served.params()["include_language"] == "turkish"

    def test_json_output(self, served):
        result = runner.invoke(app, ["query", "1:1", "--json"])

        assert result.exit_code == 0
        body = json.loads(result.stdout)
        assert body["request"]["type"] == "verse"
        assert body["response"][0]["verse_id"] == "1:1"

    def test_invalid_query_exits_nonzero(self, served):
        result = runner.invoke(app, ["query", "0"])

        assert result.exit_code == 1
        assert "Invalid query" in result.stdout
        assert served.call_count == 0

    def test_random_verse(self, served):
        result = runner.invoke(app, ["random-verse"])

        assert result.exit_code == 0
        assert served.params()["q"] == "random-verse"

    def test_random_chapter(self, served):
        result = runner.invoke(app, ["random-chapter", "--json"])

        assert result.exit_code == 0
        assert served.params()["type"] == "random_chapter"


class TestBatch:
    """Tests for the batch command."""

    def test_all_succeed(self, served, tmp_path):
        queries = tmp_path / "queries.txt"
        queries.write_text("1:1\n\n2:255\n", encoding="utf-8")

        result = runner.invoke(app, ["batch", str(queries), "--json"])

        assert result.exit_code == 0
        body = json.loads(result.stdout)
        assert [item["request"]["query"] for item in body] == ["1:1", "2:255"]
        assert served.call_count == 2

    def test_failure_reported_in_place(self, served, tmp_path):
        queries = tmp_path / "queries.txt"
        queries.write_text("1:1\n115\n", encoding="utf-8")

        result = runner.invoke(app, ["batch", str(queries), "--json"])

        assert result.exit_code == 1
        body = json.loads(result.stdout)
        assert body[0]["request"]["query"] == "1:1"
        assert body[1]["error_code"] == "INVALID_QUERY"

    def test_table_output(self, served, tmp_path):
        queries = tmp_path / "queries.txt"
        queries.write_text("1:1\n", encoding="utf-8")

        result = runner.invoke(app, ["batch", str(queries)])

        assert result.exit_code == 0
        assert "1 queries" in result.stdout
        assert "verse" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["batch", str(tmp_path / "missing.txt")])

        assert result.exit_code == 1
        assert "Input file not found" in result.stdout

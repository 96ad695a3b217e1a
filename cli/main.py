"""
WikiSubmission SDK - Command Line Interface

Classify queries offline or run them against the Quran service.
"""
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from core.errors import WikiSubmissionAPIError
from data.schemas import APIResponse, InvalidQuery, SupportedLanguage
from observability.logging import LoggingConfig, setup_logging
from quran.classifier import parse_query, resolve_language_query
from quran.client import QuranAPIClient
from quran.formatting import format_data_to_chapter_title, format_data_to_text, parse_verses

# Initialize app
app = typer.Typer(
    name="wikisubmission",
    help="WikiSubmission SDK - Quran verse lookup and search",
    add_completion=False,
)

console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level to stderr"),
):
    """Configure logging before any command runs."""
    if verbose:
        setup_logging(LoggingConfig(level="DEBUG", json_format=False))
    else:
        setup_logging()


def _parse_option_pairs(pairs: List[str]) -> Dict[str, Any]:
    """``key=value`` strings to an options mapping; "true"/"false" become booleans."""
    options: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--option")
        lowered = value.strip().lower()
        options[key.strip()] = {"true": True, "false": False}.get(lowered, value.strip())
    return options


def _client(base_url: Optional[str]) -> QuranAPIClient:
    if base_url:
        return QuranAPIClient(base_url=base_url)
    return QuranAPIClient()


@app.command()
def classify(
    query: str = typer.Argument(..., help="Query string, e.g. '2:255' or 'random verse'"),
    option: List[str] = typer.Option([], "--option", "-o", help="Query option as key=value (repeatable)"),
):
    """Show how a query is classified; no network access."""
    parsed = parse_query(query, _parse_option_pairs(option))
    console.print_json(data=parsed.model_dump(mode="json"))
    if isinstance(parsed, InvalidQuery):
        raise typer.Exit(1)


@app.command()
def query(
    query_text: str = typer.Argument(..., metavar="QUERY", help="Verse reference, range, list or search text"),
    language: str = typer.Option("english", "--language", "-l", help="Display language(s), comma separated"),
    word_by_word: bool = typer.Option(False, "--word-by-word", help="Request word-by-word data"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw response as JSON"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the service URL"),
):
    """Run a query and print the verses."""
    languages = resolve_language_query(language)
    options: Dict[str, Any] = {}
    if word_by_word:
        options["include_word_by_word"] = True
    extra = [lang.value for lang in languages if lang is not SupportedLanguage.ENGLISH]
    if extra:
        options["include_language"] = extra

    result = asyncio.run(_run_query(query_text, options, base_url))
    _render(result, languages[0], as_json)


@app.command("random-verse")
def random_verse(
    as_json: bool = typer.Option(False, "--json", help="Print the raw response as JSON"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the service URL"),
):
    """Fetch a random verse."""
    result = asyncio.run(_run_query("random-verse", {}, base_url))
    _render(result, SupportedLanguage.ENGLISH, as_json)


@app.command("random-chapter")
def random_chapter(
    as_json: bool = typer.Option(False, "--json", help="Print the raw response as JSON"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the service URL"),
):
    """Fetch a random chapter."""
    result = asyncio.run(_run_query("random-chapter", {}, base_url))
    _render(result, SupportedLanguage.ENGLISH, as_json)


@app.command()
def batch(
    input_file: Path = typer.Argument(..., help="File with one query per line"),
    concurrency: int = typer.Option(3, "--concurrency", "-c", help="Queries in flight at once"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override the service URL"),
):
    """Run every query in a file and summarize the results."""
    if not input_file.exists():
        console.print(f"[red]Error: Input file not found: {input_file}[/red]")
        raise typer.Exit(1)

    with open(input_file, encoding="utf-8") as f:
        queries = [line.strip() for line in f if line.strip()]

    results = asyncio.run(_run_batch(queries, concurrency, base_url))
    failed = sum(isinstance(r, WikiSubmissionAPIError) for r in results)

    if as_json:
        console.print_json(data=[
            r.to_dict() if isinstance(r, (APIResponse, WikiSubmissionAPIError)) else r
            for r in results
        ])
    else:
        table = Table(title=f"{len(queries)} queries")
        table.add_column("Query", style="cyan")
        table.add_column("Type")
        table.add_column("Result")

        for text, result in zip(queries, results):
            if isinstance(result, WikiSubmissionAPIError):
                table.add_row(escape(text), "-", f"[red]{escape(result.message)}[/red]")
            else:
                table.add_row(escape(text), result.request.type.value, f"[green]{len(result.response)} records[/green]")

        console.print(table)

    if failed:
        raise typer.Exit(1)


@app.command()
def languages(
    text: str = typer.Argument(..., help="Comma separated language names"),
):
    """Show which languages in a list are supported."""
    console.print(", ".join(lang.value for lang in resolve_language_query(text)))


async def _run_query(text: str, options: Dict[str, Any], base_url: Optional[str]):
    async with _client(base_url) as client:
        return await client.query(text, options)


async def _run_batch(queries: List[str], concurrency: int, base_url: Optional[str]):
    async with _client(base_url) as client:
        return await client.batch_query(queries, concurrency=concurrency)


def _render(result: Any, language: SupportedLanguage, as_json: bool) -> None:
    if isinstance(result, WikiSubmissionAPIError):
        console.print(f"[red]Error: {escape(result.message)}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(data=result.to_dict())
        return

    try:
        verses = parse_verses(result.response)
    except ValidationError:
        # Not verse records (recitations, word data); show them as-is
        console.print_json(data=result.response)
        return

    console.print(Panel.fit(
        f"[bold blue]{escape(result.request.metadata.title)}[/bold blue]\n"
        f"{escape(format_data_to_chapter_title(verses, language))}",
        border_style="blue",
    ))
    for text in format_data_to_text(verses, language):
        console.print(text, markup=False)
        console.print()


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()

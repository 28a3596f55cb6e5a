"""uniscope CLI: entry-point for all pipeline operations.

Usage:
    python cli/main.py --help

Commands follow the pipeline order:
    db init    → create the SQLite schema
    fetch      → fetch one page (static, then headless browser)
    domains    → list the domains / subdomains a page links to
    discover   → breadth-first crawl of the target domain
    search     → seed pages from web search
    extract    → structured extraction of stored pages
    train      → build the per-language models
    classify   → classify one page or a batch
    stats      → dashboard counters
    history    → past web-search runs
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from uniscope.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
from typing import Optional

import typer

from uniscope.config import settings
from uniscope.db import SQLiteStore, get_connection, init_db
from uniscope.db.migrations import migrate
from uniscope.errors import ClassificationInputError
from uniscope.nlp import Category, Classifier, ModelStore, TrainingCoordinator
from uniscope.pipeline import collect_from_search, discover_and_save, extract_pending
from uniscope.scraper.crawler import DomainCrawler
from uniscope.scraper.domains import scan_page
from uniscope.scraper.fetcher import FetchEngine
from uniscope.scraper.models import FetchFailure

app = typer.Typer(
    name="uniscope",
    help="University web content discovery, extraction and classification.",
    no_args_is_help=True,
)


def _open_store() -> SQLiteStore:
    conn = get_connection()
    init_db(conn)
    return SQLiteStore(conn)


def _train(store: SQLiteStore, models: ModelStore) -> None:
    report = TrainingCoordinator(store, models).train()
    if report.success:
        typer.echo(f"[train] ✓ {report.message}  samples={report.trained_samples}")
    else:
        typer.echo(f"[train] ✗ {report.reason}: {report.message}")


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    version = migrate(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path} (schema v{version})")


# ---------------------------------------------------------------------------
# Acquisition
# ---------------------------------------------------------------------------
@app.command("fetch")
def fetch(
    url: str = typer.Argument(..., help="URL to fetch."),
) -> None:
    """Fetch a URL and print its title, metadata and main content."""
    typer.echo(f"[fetch] Fetching {url!r} …")
    result = asyncio.run(FetchEngine().fetch(url))
    if isinstance(result, FetchFailure):
        typer.echo(f"[fetch] ✗ {result.reason}")
        raise typer.Exit(code=1)

    typer.echo(f"[fetch] Title   : {result.title or '(none)'}")
    typer.echo(f"[fetch] Source  : {result.source}  (via {result.via})")
    if result.metadata.description:
        typer.echo(f"[fetch] Summary : {result.metadata.description}")
    if result.metadata.publish_date:
        typer.echo(f"[fetch] Date    : {result.metadata.publish_date.isoformat()}")
    typer.echo("")
    typer.echo(result.content)


@app.command("domains")
def domains(
    url: str = typer.Argument(settings.start_url, help="Page to scan."),
) -> None:
    """List the domains and subdomains referenced by one page."""
    scan = asyncio.run(scan_page(url))
    if scan is None:
        typer.echo(f"[domains] ✗ could not fetch {url}")
        raise typer.Exit(code=1)
    typer.echo(f"[domains] {scan.total_urls} URL(s) on {url}")
    typer.echo(f"[domains] Domains ({len(scan.domains)}):")
    for d in sorted(scan.domains):
        typer.echo(f"  {d}")
    typer.echo(f"[domains] Subdomains ({len(scan.subdomains)}):")
    for s in sorted(scan.subdomains):
        typer.echo(f"  {s}")


@app.command("discover")
def discover(
    start_url: str = typer.Option(settings.start_url, help="Crawl start URL."),
    max_depth: int = typer.Option(settings.crawl_max_depth, help="Maximum link depth."),
    max_pages: int = typer.Option(settings.crawl_max_pages, help="Page budget."),
    save: bool = typer.Option(True, "--save/--no-save", help="Store discovered URLs."),
) -> None:
    """Crawl the target domain breadth-first and record the pages found."""
    store = _open_store() if save else None
    try:
        result = asyncio.run(
            discover_and_save(store, DomainCrawler(), start_url, max_depth, max_pages)
        )
    finally:
        if store is not None:
            store.conn.close()

    typer.echo(
        f"[discover] visited={len(result.crawl.visited_pages)}  "
        f"found={len(result.crawl.discovered_urls)}  "
        f"saved={result.saved}  skipped={result.skipped}"
    )
    for url in result.crawl.discovered_urls:
        typer.echo(f"  {url}")


@app.command("search")
def search(
    query: Optional[str] = typer.Option(None, help="Base search query."),
    max_results: int = typer.Option(10, help="Pages to collect."),
    category: Optional[str] = typer.Option(
        None, help="Query set: haberler | duyurular | etkinlikler | akademik | öğrenci."
    ),
    wide: bool = typer.Option(False, "--wide", help="Expand the query into the full query set."),
    save: bool = typer.Option(True, "--save/--no-save", help="Store collected pages."),
) -> None:
    """Seed pages from web search results."""
    store = _open_store() if save else None
    try:
        report = asyncio.run(
            collect_from_search(
                store,
                query=query,
                max_results=max_results,
                category=category,
                wide=wide,
                save_to_db=save,
            )
        )
    finally:
        if store is not None:
            store.conn.close()

    typer.echo(f"[search] {len(report.results)} page(s) collected.")
    if report.search_id:
        typer.echo(f"[search] history id: {report.search_id}")
    for r in report.results:
        typer.echo(f"  {r.url}  {r.title!r}  ({len(r.content)} chars)")


@app.command("extract")
def extract(
    limit: int = typer.Option(settings.batch_limit, help="Maximum pages to process."),
    save: bool = typer.Option(True, "--save/--no-save", help="Persist content and purge failures."),
) -> None:
    """Extract structured content for stored pages that have none yet."""
    store = _open_store()
    try:
        report = asyncio.run(extract_pending(store, limit=limit, save_to_db=save))
    finally:
        store.conn.close()
    typer.echo(
        f"[extract] processed={report.processed}  ok={report.success}  "
        f"failed={report.failed}  purged={report.purged}"
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
@app.command("train")
def train() -> None:
    """Build the per-language models from stored content (dry run; models are not saved)."""
    store = _open_store()
    try:
        _train(store, ModelStore())
    finally:
        store.conn.close()


@app.command("classify")
def classify(
    page_id: Optional[str] = typer.Argument(None, help="Page id to classify."),
    batch: bool = typer.Option(False, "--batch", help="Classify every unclassified page."),
    limit: int = typer.Option(settings.batch_limit, help="Batch size."),
) -> None:
    """Classify one page, or a batch of unclassified pages.

    Models live in memory only, so they are trained first in the same run.
    """
    if not batch and not page_id:
        typer.echo("[classify] Give a PAGE_ID or --batch.")
        raise typer.Exit(code=1)

    store = _open_store()
    models = ModelStore()
    try:
        _train(store, models)
        classifier = Classifier(models)
        if batch:
            report = classifier.classify_batch(store, limit)
            typer.echo(f"[classify] ok={report.success}  failed={report.failed}")
            for err in report.errors:
                typer.echo(f"  ✗ {err['page_id']}: {err['error']}")
            return
        try:
            record = classifier.classify_page(store, page_id)  # type: ignore[arg-type]
        except ClassificationInputError as exc:
            typer.echo(f"[classify] ✗ {exc}")
            raise typer.Exit(code=1)
    finally:
        store.conn.close()

    typer.echo(f"[classify] Category  : {record.category}  ({record.confidence:.2f}, {record.method})")
    typer.echo(f"[classify] Sentiment : {record.sentiment}  ({record.sentiment_score:+.2f})")
    typer.echo(f"[classify] Keywords  : {', '.join(k.term for k in record.keywords)}")


@app.command("categories")
def categories() -> None:
    """List the category labels."""
    for c in Category:
        typer.echo(c.value)


@app.command("stats")
def stats(
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    """Show page, content and classification counters."""
    store = _open_store()
    try:
        data = store.stats()
    finally:
        store.conn.close()

    if as_json:
        typer.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return
    typer.echo(f"[stats] pages={data['total_pages']}  extracted={data['total_structured']}  "
               f"classified={data['total_classified']}  unclassified={data['total_unclassified']}")
    for row in data["categories"]:
        typer.echo(f"  {row['category']}: {row['count']}  (avg confidence {row['avg_confidence']:.2f})")
    for label, count in sorted(data["sentiments"].items()):
        typer.echo(f"  {label}: {count}")


@app.command("history")
def history(
    search_id: Optional[str] = typer.Argument(None, help="Show one search run in detail."),
    limit: int = typer.Option(20, help="Runs to list."),
) -> None:
    """List recent web-search runs, or show one with the URLs it found."""
    store = _open_store()
    try:
        if search_id is None:
            runs = store.list_searches(limit)
            if not runs:
                typer.echo("[history] no search runs yet.")
            for run in runs:
                typer.echo(f"  {run.id}  {run.status:<11}  {run.results_count:>3}  {run.query}")
            return
        run = store.find_search(search_id)
    finally:
        store.conn.close()

    if run is None:
        typer.echo(f"[history] ✗ no search run {search_id!r}")
        raise typer.Exit(code=1)
    typer.echo(f"[history] {run.query}: {run.status}, {run.results_count} page(s)")
    if run.error:
        typer.echo(f"[history] error: {run.error}")
    for found in run.found_urls:
        typer.echo(f"  {found.url}  {found.title!r}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()

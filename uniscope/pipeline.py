"""Batch orchestration shared by the CLI and the HTTP API.

Every loop here is sequential: one URL is fully handled (fetched, parsed,
stored or purged) before the politeness delay and the next URL.  Per-item
failures are printed and skipped.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import urlparse

from uniscope.config import settings
from uniscope.db.models import FoundUrl
from uniscope.db.store import SQLiteStore
from uniscope.scraper.crawler import CrawlReport, DomainCrawler
from uniscope.scraper.extractor import ContentExtractor
from uniscope.scraper.fetcher import FetchEngine, Sleep
from uniscope.scraper.html import hostname
from uniscope.scraper.models import FetchResult
from uniscope.scraper.search import (
    SearchProviderChain,
    category_queries,
    generate_queries,
    search_many,
)

MIN_SEARCH_CONTENT_CHARS = 50


def title_from_url(url: str) -> str:
    """Last non-empty path segment of *url*, or the URL itself."""
    segments = [s for s in urlparse(url).path.split("/") if s]
    return segments[-1] if segments else url


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

@dataclass
class DiscoveryResult:
    crawl: CrawlReport
    saved: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {**self.crawl.to_dict(), "saved": self.saved, "skipped": self.skipped}


async def discover_and_save(
    store: Optional[SQLiteStore],
    crawler: Optional[DomainCrawler] = None,
    start_url: Optional[str] = None,
    max_depth: Optional[int] = None,
    max_pages: Optional[int] = None,
) -> DiscoveryResult:
    """Crawl the target domain and record every discovered URL as an empty page.

    URLs already stored are left untouched.  With ``store=None`` the crawl
    report is returned without persisting anything.
    """
    crawler = crawler or DomainCrawler()
    report = await crawler.discover(start_url, max_depth, max_pages)
    result = DiscoveryResult(crawl=report)
    if store is None:
        return result

    for url in report.discovered_urls:
        if store.find_page(url) is not None:
            result.skipped += 1
            continue
        store.upsert_page(
            url,
            title=title_from_url(url),
            raw_content="",
            source=hostname(url),
            metadata={"discovery_method": "recursive"},
        )
        result.saved += 1

    print(f"[crawl] saved {result.saved} new page(s), {result.skipped} already known.")
    return result


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

@dataclass
class ExtractionReport:
    processed: int = 0
    success: int = 0
    failed: int = 0
    purged: int = 0
    pages: List[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "success": self.success,
            "failed": self.failed,
            "purged": self.purged,
            "pages": self.pages,
        }


async def extract_pending(
    store: SQLiteStore,
    extractor: Optional[ContentExtractor] = None,
    limit: Optional[int] = None,
    save_to_db: bool = True,
    delay: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
) -> ExtractionReport:
    """Extract structured content for pages that have none yet.

    On success (and ``save_to_db``) the page's title, raw content and source
    are updated and its structured content stored.  A page that fails to
    fetch or has too little text is purged together with any content it had.
    """
    extractor = extractor or ContentExtractor()
    limit = settings.batch_limit if limit is None else limit
    delay = settings.extract_delay if delay is None else delay

    pending = store.list_unextracted_pages(limit)
    print(f"[extract] {len(pending)} page(s) awaiting extraction.")
    report = ExtractionReport()

    for index, page in enumerate(pending):
        report.processed += 1
        print(f"[extract] [{index + 1}/{len(pending)}] {page.url}")
        try:
            content = await extractor.extract(page.url)
        except Exception as exc:
            print(f"[extract] ✗ {page.url}: {exc!r}")
            content = None

        if content is None:
            report.failed += 1
            if save_to_db:
                store.delete_structured_content(page.id)
                store.delete_page(page.id)
                report.purged += 1
        else:
            report.success += 1
            title = content.title or title_from_url(page.url)
            if save_to_db:
                store.upsert_page(
                    page.url,
                    title=title,
                    raw_content=content.clean_text,
                    source=hostname(page.url),
                )
                store.upsert_structured_content(page.id, content)
            report.pages.append(
                {"page_id": page.id, "url": page.url, "title": title, "word_count": content.word_count}
            )

        if index < len(pending) - 1:
            await sleep(delay)

    print(
        f"[extract] done: {report.success} ok, {report.failed} failed, "
        f"{report.purged} purged."
    )
    return report


# ---------------------------------------------------------------------------
# Search collection
# ---------------------------------------------------------------------------

@dataclass
class SearchReport:
    """Pages kept by one search collection, plus its history record when saved."""

    results: List[FetchResult] = field(default_factory=list)
    found_urls: List[FoundUrl] = field(default_factory=list)
    search_id: Optional[str] = None


def history_label(query: str, category: Optional[str] = None, wide: bool = False) -> str:
    """The query text a search history record is filed under."""
    if wide:
        return "Wide search (all categories)"
    if category:
        return f"Category: {category}"
    return query


async def collect_from_search(
    store: Optional[SQLiteStore],
    query: Optional[str] = None,
    max_results: int = 10,
    category: Optional[str] = None,
    wide: bool = False,
    save_to_db: bool = True,
    engine: Optional[FetchEngine] = None,
    chain: Optional[SearchProviderChain] = None,
    delay: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
) -> SearchReport:
    """Search the web, fetch each hit and keep pages with real content.

    When pages are saved, the run is tracked in the search history: the
    record starts ``in_progress`` and ends ``completed`` with the ids of the
    stored pages, or ``failed`` with the error, which is then re-raised.

    Args:
        store: Where pages and the history record are saved; ignored unless
            *save_to_db*.
        query: Base query; defaults to ``settings.default_query``.
        max_results: Number of pages to collect.
        category: Use that category's query set instead of *query*.
        wide: Expand *query* into the full query set.
        save_to_db: Upsert each collected page.
        engine: Fetch engine for the hits.
        chain: Search provider chain.
        delay: Seconds between fetched hits.
        sleep: Awaitable used for every delay.

    Returns:
        A :class:`SearchReport` with the :class:`FetchResult` of every kept
        page, in search order.
    """
    engine = engine or FetchEngine(sleep=sleep)
    delay = settings.extract_delay if delay is None else delay
    query = query or settings.default_query
    tracked = store if save_to_db else None

    report = SearchReport()
    if tracked is not None:
        report.search_id = tracked.create_search(history_label(query, category, wide)).id
        print(f"[search] tracking run {report.search_id}")

    if category and not category_queries(category):
        print(f"[search] unknown category {category!r}.")
        if tracked is not None:
            tracked.fail_search(report.search_id, f"unknown category {category!r}")
        return report

    try:
        page_ids = await _collect(
            report, tracked, query, max_results, category, wide, engine, chain, delay, sleep
        )
    except Exception as exc:
        if tracked is not None:
            tracked.fail_search(report.search_id, f"{type(exc).__name__}: {exc}")
        raise

    if tracked is not None:
        tracked.complete_search(report.search_id, page_ids, report.found_urls)
    return report


async def _collect(
    report: SearchReport,
    store: Optional[SQLiteStore],
    query: str,
    max_results: int,
    category: Optional[str],
    wide: bool,
    engine: FetchEngine,
    chain: Optional[SearchProviderChain],
    delay: float,
    sleep: Sleep,
) -> List[str]:
    if category:
        hits = await search_many(
            category_queries(category), max_results, max_results * 2, chain=chain, sleep=sleep
        )
    elif wide:
        hits = await search_many(generate_queries(query), 5, max(50, max_results), chain=chain, sleep=sleep)
    else:
        hits = await search_many([query], max_results, max_results, chain=chain, sleep=sleep)

    report.found_urls = [
        FoundUrl(url=h.url, title=h.title, snippet=h.snippet, search_query=h.query or query)
        for h in hits
    ]
    if not hits:
        print("[search] ✗ no search results.")
        return []

    page_ids: List[str] = []
    for index, hit in enumerate(hits):
        if len(report.results) >= max_results:
            break
        print(f"[search] [{index + 1}/{len(hits)}] fetching {hit.url}")
        result = await engine.fetch(hit.url)
        if isinstance(result, FetchResult) and len(result.content) > MIN_SEARCH_CONTENT_CHARS:
            report.results.append(result)
            print(f"[search] ✓ {result.title or hit.title} ({len(result.content)} chars)")
            if store is not None:
                publish = result.metadata.publish_date
                page = store.upsert_page(
                    result.url,
                    title=result.title or hit.title,
                    raw_content=result.content,
                    source=result.source,
                    metadata={
                        "description": result.metadata.description,
                        "image_url": result.metadata.image_url,
                        "publish_date": publish.isoformat() if publish else None,
                        "search_query": hit.query,
                        "search_snippet": hit.snippet,
                        "fetched_via": result.via,
                    },
                )
                page_ids.append(page.id)
        else:
            print(f"[search] ✗ no usable content at {hit.url}")

        if index < len(hits) - 1 and len(report.results) < max_results:
            await sleep(delay)

    return page_ids

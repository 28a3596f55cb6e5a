"""Web search seeding with automatic provider failover.

Provider priority (highest to lowest):
  1. DuckDuckGo: free, scraping-based; retried with exponential backoff.
  2. Known sources: a fixed list of the organisation's own landing pages,
     used when every live provider comes back empty.

All providers share a common interface: ``search(query, max_results) -> list[SearchHit]``.
:class:`SearchProviderChain` tries each provider in order and returns the
first non-empty result set.  :func:`search_many` runs several queries through
a chain, one at a time, de-duplicating hits by URL.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from duckduckgo_search import DDGS
from duckduckgo_search.exceptions import DuckDuckGoSearchException, RatelimitException

from uniscope.config import settings
from uniscope.scraper.fetcher import Sleep


@dataclass
class SearchHit:
    title: str
    url: str
    snippet: str = ""
    query: Optional[str] = None


# ---------------------------------------------------------------------------
# Query sets
# ---------------------------------------------------------------------------

_QUERY_SUFFIXES = (
    "",
    "haberler", "duyurular", "etkinlikler",
    "araştırma", "projeler", "yayınlar", "akademik", "fakülteler", "bölümler",
    "öğrenci", "öğrenci kulüpleri", "burs", "staj",
    "konferans", "seminer", "workshop", "güncel", "son dakika",
    "mühendislik", "teknoloji", "bilim", "inovasyon",
)

_SHORT_QUERIES = (
    "GTU haberler",
    "GTU duyurular",
    "GTU etkinlikler",
    "GTÜ haberler",
    "GTÜ duyurular",
)

CATEGORY_QUERIES: Dict[str, List[str]] = {
    "haberler": [
        "Gebze Teknik Üniversitesi haberler",
        "GTU haberler",
        "GTÜ haberler",
        "Gebze Teknik Üniversitesi güncel",
        "GTU son dakika",
    ],
    "duyurular": [
        "Gebze Teknik Üniversitesi duyurular",
        "GTU duyurular",
        "GTÜ duyurular",
        "Gebze Teknik Üniversitesi açıklamalar",
    ],
    "etkinlikler": [
        "Gebze Teknik Üniversitesi etkinlikler",
        "GTU etkinlikler",
        "GTÜ etkinlikler",
        "Gebze Teknik Üniversitesi konferans",
        "GTU seminer",
        "GTU workshop",
    ],
    "akademik": [
        "Gebze Teknik Üniversitesi araştırma",
        "GTU projeler",
        "GTÜ yayınlar",
        "Gebze Teknik Üniversitesi akademik",
        "GTU fakülteler",
    ],
    "öğrenci": [
        "Gebze Teknik Üniversitesi öğrenci",
        "GTU öğrenci kulüpleri",
        "GTÜ burs",
        "Gebze Teknik Üniversitesi staj",
    ],
}

KNOWN_SOURCES = (
    SearchHit(
        title="Gebze Teknik Üniversitesi - Ana Sayfa",
        url="https://www.gtu.edu.tr",
        snippet="Gebze Teknik Üniversitesi resmi web sitesi",
    ),
    SearchHit(
        title="GTU Haberler",
        url="https://www.gtu.edu.tr/tr/haberler",
        snippet="Gebze Teknik Üniversitesi haberler ve duyurular",
    ),
    SearchHit(
        title="GTU Duyurular",
        url="https://www.gtu.edu.tr/tr/duyurular",
        snippet="Gebze Teknik Üniversitesi duyurular",
    ),
)


def generate_queries(base_query: Optional[str] = None) -> List[str]:
    """Expand *base_query* into the wide query set (news, events, research, ...)."""
    base = (base_query or settings.default_query).strip()
    queries = [f"{base} {suffix}".strip() for suffix in _QUERY_SUFFIXES]
    return queries + list(_SHORT_QUERIES)


def category_queries(category: str) -> List[str]:
    """Return the query set for *category* (case-insensitive), ``[]`` if unknown."""
    return list(CATEGORY_QUERIES.get(category.strip().lower(), []))


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

class SearchProvider(ABC):
    """Abstract base class for a single search provider."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""

    @abstractmethod
    def search(self, query: str, max_results: int = 10) -> List[SearchHit]:
        """Return search hits.  Must return ``[]`` (not raise) on failure."""


class DuckDuckGoProvider(SearchProvider):
    """Wrapper around ``duckduckgo_search.DDGS`` with retry on rate-limit."""

    def __init__(self, sleep: Callable[[float], None] = time.sleep) -> None:
        self._sleep = sleep

    @property
    def name(self) -> str:
        return "DuckDuckGo"

    def search(self, query: str, max_results: int = 10) -> List[SearchHit]:
        query = query.strip()
        base_delay = settings.search_retry_base_delay
        max_retries = settings.search_retry_max

        for attempt in range(max_retries + 1):
            try:
                with DDGS() as ddgs:
                    results = ddgs.text(query, max_results=max_results) or []
                hits = [
                    SearchHit(
                        title=r.get("title") or r["href"],
                        url=r["href"],
                        snippet=r.get("body", ""),
                    )
                    for r in results
                    if r.get("href", "").startswith("http")
                ]
                if hits:
                    print(f"[DuckDuckGo] ✓ {len(hits)} result(s).")
                return hits
            except RatelimitException:
                if attempt < max_retries:
                    delay = base_delay * (2 ** attempt)
                    print(
                        f"[DuckDuckGo] rate-limited (attempt {attempt + 1}/{max_retries}); "
                        f"retrying in {delay:.0f}s …"
                    )
                    self._sleep(delay)
                else:
                    print(f"[DuckDuckGo] exhausted {max_retries} retries, still rate-limited.")
                    return []
            except DuckDuckGoSearchException as exc:
                print(f"[DuckDuckGo] search error: {exc}")
                return []
            except Exception as exc:
                print(f"[DuckDuckGo] error: {exc}")
                return []

        return []


class KnownSourcesProvider(SearchProvider):
    """Return the organisation's fixed landing pages regardless of the query."""

    def __init__(self, sources: Sequence[SearchHit] = KNOWN_SOURCES) -> None:
        self._sources = list(sources)

    @property
    def name(self) -> str:
        return "known sources"

    def search(self, query: str, max_results: int = 10) -> List[SearchHit]:
        print(f"[search] falling back to {len(self._sources)} known sources.")
        return [
            SearchHit(title=s.title, url=s.url, snippet=s.snippet)
            for s in self._sources[:max_results]
        ]


class SearchProviderChain:
    """Try providers in order; return the first non-empty result list."""

    def __init__(self, providers: List[SearchProvider]) -> None:
        self._providers = providers

    def search(self, query: str, max_results: int = 10) -> List[SearchHit]:
        for provider in self._providers:
            hits = provider.search(query, max_results=max_results)
            if hits:
                return hits[:max_results]
        print("[search chain] all providers returned no results.")
        return []


def build_default_chain() -> SearchProviderChain:
    """DuckDuckGo → known organisation sources."""
    return SearchProviderChain([DuckDuckGoProvider(), KnownSourcesProvider()])


# ---------------------------------------------------------------------------
# Multi-query search
# ---------------------------------------------------------------------------

async def search_many(
    queries: Sequence[str],
    max_per_query: int = 5,
    max_total: int = 50,
    chain: Optional[SearchProviderChain] = None,
    delay: Optional[float] = None,
    sleep: Sleep = asyncio.sleep,
) -> List[SearchHit]:
    """Run *queries* one after another and merge the hits.

    Hits are de-duplicated by URL and tagged with the query that found them.
    The blocking provider call runs in a worker thread; a fixed delay is
    awaited between queries.  A failing query is reported and skipped.
    """
    chain = chain or build_default_chain()
    delay = settings.search_delay if delay is None else delay
    seen: set[str] = set()
    merged: List[SearchHit] = []

    for index, query in enumerate(queries):
        if len(merged) >= max_total:
            print(f"[search] reached {max_total} results, stopping.")
            break
        print(f"[search] [{index + 1}/{len(queries)}] {query!r}")
        try:
            hits = await asyncio.to_thread(chain.search, query, max_per_query)
        except Exception as exc:
            print(f"[search] ✗ query {query!r} failed: {exc}")
            hits = []
        for hit in hits:
            if hit.url in seen or len(merged) >= max_total:
                continue
            seen.add(hit.url)
            merged.append(SearchHit(title=hit.title, url=hit.url, snippet=hit.snippet, query=query))
        if index < len(queries) - 1:
            await sleep(delay)

    print(f"[search] ✓ {len(merged)} unique result(s).")
    return merged

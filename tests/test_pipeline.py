"""Tests for the discovery / extraction / search batch loops.

Every collaborator is an in-memory fake: crawler, extractor, fetch engine
and search provider.  Storage is the in-memory ``store`` fixture.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from uniscope.pipeline import (
    collect_from_search,
    discover_and_save,
    extract_pending,
    title_from_url,
)
from uniscope.scraper.crawler import CrawlReport
from uniscope.scraper.models import FetchFailure, FetchResult, PageMetadata, StructuredContent
from uniscope.scraper.search import SearchHit, SearchProvider, SearchProviderChain

_TEXT = "Gebze Teknik Üniversitesi yeni araştırma merkezinin açılışını bu hafta gerçekleştirdi"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class _FakeCrawler:
    def __init__(self, urls: list[str]) -> None:
        self.urls = urls
        self.args: tuple = ()

    async def discover(self, start_url=None, max_depth=None, max_pages=None) -> CrawlReport:
        self.args = (start_url, max_depth, max_pages)
        return CrawlReport(start_url=start_url or "", visited_pages=[start_url], discovered_urls=self.urls)


class _FakeExtractor:
    def __init__(self, results: dict[str, object]) -> None:
        self.results = results

    async def extract(self, url: str):
        outcome = self.results.get(url)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class _FakeEngine:
    def __init__(self, results: dict[str, object]) -> None:
        self.results = results
        self.fetched: list[str] = []

    async def fetch(self, url: str):
        self.fetched.append(url)
        return self.results.get(url, FetchFailure(url=url, reason="HTTP 404", permanent=True))


class _Provider(SearchProvider):
    def __init__(self, hits: list[SearchHit]) -> None:
        self.hits = hits
        self.queries: list[str] = []

    @property
    def name(self) -> str:
        return "fake"

    def search(self, query: str, max_results: int = 10) -> list[SearchHit]:
        self.queries.append(query)
        return self.hits[:max_results]


def _content(title: str = "Açılış") -> StructuredContent:
    return StructuredContent(clean_text=_TEXT, word_count=len(_TEXT.split()), title=title)


def _result(url: str, content: str = _TEXT * 2) -> FetchResult:
    return FetchResult(
        url=url,
        title="Merkez açıldı",
        content=content,
        source="www.example.edu",
        metadata=PageMetadata(description="desc", publish_date=datetime(2024, 3, 5, 10, 0)),
    )


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

class TestTitleFromUrl:
    def test_last_segment(self) -> None:
        assert title_from_url("https://example.edu/tr/haberler/robot-yarismasi/") == "robot-yarismasi"

    def test_root(self) -> None:
        assert title_from_url("https://example.edu") == "https://example.edu"


# ---------------------------------------------------------------------------
# discover_and_save
# ---------------------------------------------------------------------------

class TestDiscoverAndSave:
    def test_saves_new_urls_only(self, store) -> None:
        store.upsert_page("https://example.edu/known", title="Known")
        crawler = _FakeCrawler(["https://example.edu/known", "https://bilgi.example.edu/duyuru/5"])

        result = asyncio.run(discover_and_save(store, crawler, "https://example.edu/", 1, 5))

        assert (result.saved, result.skipped) == (1, 1)
        assert crawler.args == ("https://example.edu/", 1, 5)
        page = store.find_page("https://bilgi.example.edu/duyuru/5")
        assert page.title == "5"
        assert page.source == "bilgi.example.edu"
        assert page.metadata == {"discovery_method": "recursive"}
        assert store.find_page("https://example.edu/known").title == "Known"

    def test_without_store(self) -> None:
        result = asyncio.run(discover_and_save(None, _FakeCrawler(["https://example.edu/a"])))
        assert result.saved == 0
        assert result.to_dict()["discovered_urls"] == ["https://example.edu/a"]


# ---------------------------------------------------------------------------
# extract_pending
# ---------------------------------------------------------------------------

class TestExtractPending:
    def test_success_and_purge(self, store, sleeps) -> None:
        good = store.upsert_page("https://example.edu/good")
        bad = store.upsert_page("https://example.edu/bad")
        crashing = store.upsert_page("https://example.edu/crash")
        extractor = _FakeExtractor({
            good.url: _content(),
            bad.url: None,
            crashing.url: RuntimeError("parser exploded"),
        })

        report = asyncio.run(extract_pending(store, extractor, limit=10, delay=2.0, sleep=sleeps))

        assert (report.processed, report.success, report.failed, report.purged) == (3, 1, 2, 2)
        stored = store.find_page_by_id(good.id)
        assert stored.title == "Açılış"
        assert stored.raw_content == _TEXT
        assert stored.source == "example.edu"
        assert store.find_structured_content(good.id).clean_text == _TEXT
        assert store.find_page_by_id(bad.id) is None
        assert store.find_page_by_id(crashing.id) is None
        # Delay between items only.
        assert sleeps.calls == [2.0, 2.0]

    def test_dry_run_keeps_everything(self, store, sleeps) -> None:
        good = store.upsert_page("https://example.edu/good")
        bad = store.upsert_page("https://example.edu/bad")
        extractor = _FakeExtractor({good.url: _content(title="")})

        report = asyncio.run(extract_pending(store, extractor, save_to_db=False, delay=0, sleep=sleeps))

        assert (report.success, report.failed, report.purged) == (1, 1, 0)
        assert report.pages[0]["title"] == "good"
        assert store.find_page_by_id(bad.id) is not None
        assert store.find_structured_content(good.id) is None

    def test_respects_limit(self, store, sleeps) -> None:
        for i in range(3):
            store.upsert_page(f"https://example.edu/{i}")
        report = asyncio.run(extract_pending(store, _FakeExtractor({}), limit=2, delay=0, sleep=sleeps))
        assert report.processed == 2


# ---------------------------------------------------------------------------
# collect_from_search
# ---------------------------------------------------------------------------

class TestCollectFromSearch:
    def test_collects_and_saves(self, store, sleeps) -> None:
        hits = [
            SearchHit(title="Short", url="https://example.edu/short", snippet="s1"),
            SearchHit(title="Good", url="https://example.edu/good", snippet="s2"),
            SearchHit(title="Missing", url="https://example.edu/missing", snippet="s3"),
        ]
        engine = _FakeEngine({
            "https://example.edu/short": _result("https://example.edu/short", content="too short"),
            "https://example.edu/good": _result("https://example.edu/good"),
        })
        chain = SearchProviderChain([_Provider(hits)])

        report = asyncio.run(
            collect_from_search(store, query="GTU", max_results=5, engine=engine, chain=chain, delay=1.0, sleep=sleeps)
        )

        assert [r.url for r in report.results] == ["https://example.edu/good"]
        page = store.find_page("https://example.edu/good")
        assert page.title == "Merkez açıldı"
        assert page.metadata["search_query"] == "GTU"
        assert page.metadata["search_snippet"] == "s2"
        assert page.metadata["publish_date"] == "2024-03-05T10:00:00"
        assert page.metadata["fetched_via"] == "static"
        assert store.find_page("https://example.edu/short") is None
        assert sleeps.calls == [1.0, 1.0]

        run = store.find_search(report.search_id)
        assert run.query == "GTU"
        assert run.status == "completed"
        assert run.results_count == 1
        assert run.page_ids == [page.id]
        assert run.completed_at is not None
        assert [(u.url, u.snippet, u.search_query) for u in run.found_urls] == [
            ("https://example.edu/short", "s1", "GTU"),
            ("https://example.edu/good", "s2", "GTU"),
            ("https://example.edu/missing", "s3", "GTU"),
        ]

    def test_stops_at_max_results(self, store, sleeps) -> None:
        hits = [SearchHit(title=f"H{i}", url=f"https://example.edu/{i}") for i in range(4)]
        engine = _FakeEngine({h.url: _result(h.url) for h in hits})

        report = asyncio.run(
            collect_from_search(
                None, max_results=2, save_to_db=False, engine=engine,
                chain=SearchProviderChain([_Provider(hits)]), delay=1.0, sleep=sleeps,
            )
        )

        assert len(report.results) == 2
        assert report.search_id is None
        assert engine.fetched == ["https://example.edu/0", "https://example.edu/1"]

    def test_category_uses_query_set(self, sleeps) -> None:
        provider = _Provider([])
        report = asyncio.run(
            collect_from_search(
                None, category="etkinlikler", save_to_db=False, engine=_FakeEngine({}),
                chain=SearchProviderChain([provider]), sleep=sleeps,
            )
        )
        assert report.results == []
        assert "GTU seminer" in provider.queries

    def test_unknown_category(self, sleeps) -> None:
        provider = _Provider([])
        report = asyncio.run(
            collect_from_search(
                None, category="spor", engine=_FakeEngine({}),
                chain=SearchProviderChain([provider]), sleep=sleeps,
            )
        )
        assert report.results == []
        assert provider.queries == []

    def test_unknown_category_is_recorded_as_failed(self, store, sleeps) -> None:
        report = asyncio.run(
            collect_from_search(
                store, category="spor", engine=_FakeEngine({}),
                chain=SearchProviderChain([_Provider([])]), sleep=sleeps,
            )
        )

        run = store.find_search(report.search_id)
        assert run.query == "Category: spor"
        assert run.status == "failed"
        assert "spor" in run.error

    def test_crash_marks_run_failed_and_propagates(self, store, sleeps) -> None:
        class _BrokenEngine:
            async def fetch(self, url: str):
                raise RuntimeError("engine down")

        hits = [SearchHit(title="A", url="https://example.edu/a")]
        with pytest.raises(RuntimeError):
            asyncio.run(
                collect_from_search(
                    store, query="GTU", engine=_BrokenEngine(),
                    chain=SearchProviderChain([_Provider(hits)]), sleep=sleeps,
                )
            )

        [run] = store.list_searches()
        assert run.status == "failed"
        assert run.error == "RuntimeError: engine down"
        assert run.completed_at is not None

    def test_no_hits_completes_empty(self, store, sleeps) -> None:
        report = asyncio.run(
            collect_from_search(
                store, wide=True, engine=_FakeEngine({}),
                chain=SearchProviderChain([_Provider([])]), delay=0, sleep=sleeps,
            )
        )

        run = store.find_search(report.search_id)
        assert run.query == "Wide search (all categories)"
        assert (run.status, run.results_count, run.found_urls) == ("completed", 0, [])

    def test_dry_run_is_not_tracked(self, store, sleeps) -> None:
        report = asyncio.run(
            collect_from_search(
                store, save_to_db=False, engine=_FakeEngine({}),
                chain=SearchProviderChain([_Provider([])]), sleep=sleeps,
            )
        )
        assert report.search_id is None
        assert store.list_searches() == []

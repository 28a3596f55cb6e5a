"""Unit tests for uniscope.scraper.search.

``DDGS`` is replaced via ``unittest.mock.patch``; no real search requests are
made.  Provider sleeps are injected so retries finish instantly.
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

from duckduckgo_search.exceptions import DuckDuckGoSearchException, RatelimitException

from uniscope.scraper.search import (
    CATEGORY_QUERIES,
    KNOWN_SOURCES,
    DuckDuckGoProvider,
    KnownSourcesProvider,
    SearchHit,
    SearchProvider,
    SearchProviderChain,
    category_queries,
    generate_queries,
    search_many,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _ddgs_ctx(**text_kwargs) -> MagicMock:
    ctx = MagicMock()
    ctx.__enter__ = MagicMock(return_value=ctx)
    ctx.__exit__ = MagicMock(return_value=False)
    ctx.text = MagicMock(**text_kwargs)
    return ctx


class _StaticProvider(SearchProvider):
    def __init__(self, name: str, hits_by_query: dict[str, list[SearchHit]]) -> None:
        self._name = name
        self.hits_by_query = hits_by_query
        self.queries: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def search(self, query: str, max_results: int = 10) -> list[SearchHit]:
        self.queries.append(query)
        return list(self.hits_by_query.get(query, []))[:max_results]


def _hit(n: int) -> SearchHit:
    return SearchHit(title=f"Hit {n}", url=f"https://example.edu/{n}", snippet=f"snippet {n}")


# ===========================================================================
# Query sets
# ===========================================================================

class TestQueries:
    def test_generate_queries(self) -> None:
        queries = generate_queries("Gebze Teknik Üniversitesi")
        assert queries[0] == "Gebze Teknik Üniversitesi"
        assert "Gebze Teknik Üniversitesi haberler" in queries
        assert "GTU duyurular" in queries
        assert len(queries) == len(set(queries))

    def test_category_queries_case_insensitive(self) -> None:
        assert category_queries("  Haberler ") == CATEGORY_QUERIES["haberler"]
        assert category_queries("unknown") == []

    def test_category_queries_returns_copy(self) -> None:
        category_queries("haberler").append("mutated")
        assert "mutated" not in CATEGORY_QUERIES["haberler"]


# ===========================================================================
# DuckDuckGoProvider
# ===========================================================================

class TestDuckDuckGoProvider:
    def test_returns_hits_on_success(self) -> None:
        fake_results = [
            {"href": "https://a.edu", "title": "A", "body": "about a"},
            {"href": "https://b.edu", "body": "no title"},
            {"href": "ftp://skip.me", "title": "skip"},
        ]
        with patch("uniscope.scraper.search.DDGS") as mock_ddgs_cls:
            mock_ddgs_cls.return_value = _ddgs_ctx(return_value=fake_results)
            hits = DuckDuckGoProvider(sleep=MagicMock()).search("  GTU haberler ", max_results=5)

        assert [(h.title, h.url, h.snippet) for h in hits] == [
            ("A", "https://a.edu", "about a"),
            ("https://b.edu", "https://b.edu", "no title"),
        ]
        mock_ddgs_cls.return_value.text.assert_called_once_with("GTU haberler", max_results=5)

    def test_retries_on_ratelimit_then_succeeds(self) -> None:
        sleep = MagicMock()
        with patch("uniscope.scraper.search.DDGS") as mock_ddgs_cls:
            mock_ddgs_cls.return_value = _ddgs_ctx(
                side_effect=[RatelimitException("rate limited"), [{"href": "https://ok.edu"}]]
            )
            hits = DuckDuckGoProvider(sleep=sleep).search("query")

        assert [h.url for h in hits] == ["https://ok.edu"]
        sleep.assert_called_once_with(2.0)

    def test_backoff_is_exponential_and_bounded(self) -> None:
        sleep = MagicMock()
        with patch("uniscope.scraper.search.DDGS") as mock_ddgs_cls, \
             patch("uniscope.scraper.search.settings") as mock_settings:
            mock_settings.search_retry_max = 3
            mock_settings.search_retry_base_delay = 1.0
            mock_ddgs_cls.return_value = _ddgs_ctx(side_effect=RatelimitException("always"))

            hits = DuckDuckGoProvider(sleep=sleep).search("query")

        assert hits == []
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0, 4.0]

    def test_search_exception_returns_empty(self) -> None:
        with patch("uniscope.scraper.search.DDGS") as mock_ddgs_cls:
            mock_ddgs_cls.return_value = _ddgs_ctx(side_effect=DuckDuckGoSearchException("bad"))
            assert DuckDuckGoProvider(sleep=MagicMock()).search("query") == []

    def test_unexpected_error_returns_empty(self) -> None:
        with patch("uniscope.scraper.search.DDGS") as mock_ddgs_cls:
            mock_ddgs_cls.return_value = _ddgs_ctx(side_effect=RuntimeError("boom"))
            assert DuckDuckGoProvider(sleep=MagicMock()).search("query") == []


# ===========================================================================
# Chain / fallback
# ===========================================================================

class TestSearchProviderChain:
    def test_first_non_empty_wins(self) -> None:
        empty = _StaticProvider("empty", {})
        full = _StaticProvider("full", {"q": [_hit(1), _hit(2)]})
        chain = SearchProviderChain([empty, full])

        assert [h.url for h in chain.search("q", max_results=1)] == ["https://example.edu/1"]
        assert empty.queries == ["q"]

    def test_known_sources_fallback(self) -> None:
        chain = SearchProviderChain([_StaticProvider("empty", {}), KnownSourcesProvider()])
        hits = chain.search("anything", max_results=10)
        assert [h.url for h in hits] == [s.url for s in KNOWN_SOURCES]

    def test_all_empty(self) -> None:
        assert SearchProviderChain([_StaticProvider("empty", {})]).search("q") == []


# ===========================================================================
# search_many
# ===========================================================================

class TestSearchMany:
    def test_dedups_and_tags_queries(self, sleeps) -> None:
        provider = _StaticProvider("p", {"a": [_hit(1), _hit(2)], "b": [_hit(2), _hit(3)]})
        hits = asyncio.run(
            search_many(["a", "b"], 5, 10, chain=SearchProviderChain([provider]), delay=3.0, sleep=sleeps)
        )

        assert [(h.url, h.query) for h in hits] == [
            ("https://example.edu/1", "a"),
            ("https://example.edu/2", "a"),
            ("https://example.edu/3", "b"),
        ]
        assert sleeps.calls == [3.0]

    def test_stops_at_max_total(self, sleeps) -> None:
        provider = _StaticProvider("p", {"a": [_hit(1), _hit(2)], "b": [_hit(3)]})
        hits = asyncio.run(
            search_many(["a", "b"], 5, 1, chain=SearchProviderChain([provider]), delay=3.0, sleep=sleeps)
        )

        assert [h.url for h in hits] == ["https://example.edu/1"]
        assert provider.queries == ["a"]

    def test_failing_query_is_skipped(self, sleeps) -> None:
        class _Exploding(_StaticProvider):
            def search(self, query, max_results=10):
                if query == "bad":
                    raise RuntimeError("provider crashed")
                return super().search(query, max_results)

        provider = _Exploding("p", {"good": [_hit(1)]})
        hits = asyncio.run(
            search_many(["bad", "good"], 5, 10, chain=SearchProviderChain([provider]), delay=0, sleep=sleeps)
        )

        assert [h.url for h in hits] == ["https://example.edu/1"]

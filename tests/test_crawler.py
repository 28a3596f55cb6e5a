"""Tests for the domain scanner and the breadth-first crawler.

The crawler receives a fake engine mapping URL → HTML; missing URLs come back
as ``FetchFailure``.  The politeness delay is recorded, never slept.
"""

from __future__ import annotations

import asyncio

from uniscope.scraper.crawler import DomainCrawler
from uniscope.scraper.domains import MAX_URLS_PER_PAGE, scan_html
from uniscope.scraper.models import FetchFailure, RawPage

DOMAIN = "example.edu"
ROOT = "https://www.example.edu/"


def _links(*hrefs: str) -> str:
    return "<html><body>" + "".join(f'<a href="{h}">link</a>' for h in hrefs) + "</body></html>"


class _SiteEngine:
    def __init__(self, site: dict[str, str]) -> None:
        self.site = site
        self.fetched: list[str] = []

    async def fetch_raw(self, url: str):
        self.fetched.append(url)
        if url not in self.site:
            return FetchFailure(url=url, reason="HTTP 404", permanent=True)
        return RawPage(url=url, html=self.site[url], status_code=200)


def _crawl(site: dict[str, str], sleeps, **kwargs):
    engine = _SiteEngine(site)
    crawler = DomainCrawler(engine=engine, domain=DOMAIN, delay=1.0, sleep=sleeps)
    report = asyncio.run(crawler.discover(ROOT, **kwargs))
    return report, engine


# ---------------------------------------------------------------------------
# scan_html
# ---------------------------------------------------------------------------

class TestScanHtml:
    def test_collects_domains_and_subdomains(self) -> None:
        html = """
        <a href="/about">About</a>
        <a href="https://bilgi.example.edu/x">Portal</a>
        <img src="https://cdn.other.org/a.png">
        <script src="https://example.edu/app.js"></script>
        <a href="mailto:info@example.edu">Mail</a>
        <a href="javascript:void(0)">JS</a>
        """
        scan = scan_html(html, ROOT)

        assert scan.domains == {"example.edu", "other.org"}
        assert scan.subdomains == {"www.example.edu", "bilgi.example.edu", "cdn.other.org", "example.edu"}
        assert all(u.startswith("http") for u in scan.urls)
        assert scan.total_urls == 4

    def test_deduplicates(self) -> None:
        scan = scan_html(_links("/a", "/a", ROOT + "a"), ROOT)
        assert scan.urls == [ROOT + "a"]

    def test_sample_is_capped_but_total_is_not(self) -> None:
        scan = scan_html(_links(*[f"/p{i}" for i in range(150)]), ROOT)
        assert scan.total_urls == 150
        assert len(scan.sample_urls) == MAX_URLS_PER_PAGE
        assert len(scan.to_dict()["urls"]) == MAX_URLS_PER_PAGE


# ---------------------------------------------------------------------------
# DomainCrawler
# ---------------------------------------------------------------------------

class TestDomainCrawler:
    def test_page_budget_and_depth(self, sleeps) -> None:
        children = [f"{ROOT}page{i}" for i in range(10)]
        site = {ROOT: _links(*children)}
        site.update({c: _links(c + "/deeper") for c in children})

        report, _ = _crawl(site, sleeps, max_depth=1, max_pages=5)

        assert len(report.visited_pages) == 5
        assert report.visited_pages[0] == ROOT
        assert all(d <= 1 for d in report.depths.values())
        # The budget was hit before any depth-2 URL could be queued.
        assert not any(u.endswith("/deeper") for u in report.visited_pages)

    def test_depth_bound_on_chain(self, sleeps) -> None:
        site = {
            ROOT: _links("/a"),
            ROOT + "a": _links("/b"),
            ROOT + "b": _links("/c"),
            ROOT + "c": _links("/d"),
        }
        report, engine = _crawl(site, sleeps, max_depth=2, max_pages=50)

        assert report.visited_pages == [ROOT, ROOT + "a", ROOT + "b"]
        assert report.depths == {ROOT: 0, ROOT + "a": 1, ROOT + "b": 2}
        assert ROOT + "c" not in engine.fetched
        # /c was seen on a visited page, so it is still reported.
        assert ROOT + "c" in report.discovered_urls

    def test_cycles_are_not_revisited(self, sleeps) -> None:
        site = {
            ROOT: _links("/a", "/b"),
            ROOT + "a": _links("/", "/b"),
            ROOT + "b": _links("/a", "/"),
        }
        report, engine = _crawl(site, sleeps, max_depth=5, max_pages=50)

        assert sorted(report.visited_pages) == [ROOT, ROOT + "a", ROOT + "b"]
        assert len(engine.fetched) == len(set(engine.fetched)) == 3

    def test_failed_page_is_skipped_and_counts(self, sleeps) -> None:
        site = {ROOT: _links("/missing", "/ok"), ROOT + "ok": _links()}
        report, _ = _crawl(site, sleeps, max_depth=1, max_pages=10)

        assert report.visited_pages == [ROOT, ROOT + "missing", ROOT + "ok"]
        assert sleeps.calls == [1.0, 1.0, 1.0]

    def test_external_hosts_recorded_not_followed(self, sleeps) -> None:
        site = {ROOT: _links("https://partner.org/x", "https://bilgi.example.edu/y")}
        report, engine = _crawl(site, sleeps, max_depth=1, max_pages=10)

        assert "https://partner.org/x" not in engine.fetched
        assert "https://bilgi.example.edu/y" in engine.fetched
        assert "partner.org" in report.domains
        assert "https://partner.org/x" not in report.discovered_urls

    def test_non_pages_and_fragments(self, sleeps) -> None:
        site = {ROOT: _links("/brochure.pdf", "/logo.PNG", "/news#latest", "/news")}
        report, engine = _crawl(site, sleeps, max_depth=1, max_pages=10)

        assert report.discovered_urls == [ROOT + "news"]
        assert engine.fetched == [ROOT, ROOT + "news"]

    def test_start_outside_domain_visits_nothing(self, sleeps) -> None:
        engine = _SiteEngine({})
        crawler = DomainCrawler(engine=engine, domain=DOMAIN, delay=1.0, sleep=sleeps)

        report = asyncio.run(crawler.discover("https://elsewhere.org/", max_depth=2, max_pages=5))

        assert report.visited_pages == []
        assert engine.fetched == []

    def test_report_dict(self, sleeps) -> None:
        report, _ = _crawl({ROOT: _links("/a")}, sleeps, max_depth=0, max_pages=5)
        data = report.to_dict()

        assert data["total_visited"] == 1
        assert data["discovered_urls"] == [ROOT + "a"]
        assert data["subdomains"] == ["www.example.edu"]

    def test_start_url_fragment_is_dropped(self, sleeps) -> None:
        engine = _SiteEngine({ROOT: _links("/", "/a"), ROOT + "a": _links()})
        crawler = DomainCrawler(engine=engine, domain=DOMAIN, delay=1.0, sleep=sleeps)

        report = asyncio.run(crawler.discover(ROOT + "#main", max_depth=2, max_pages=10))

        assert engine.fetched == [ROOT, ROOT + "a"]
        assert report.start_url == ROOT
        assert report.visited_pages == [ROOT, ROOT + "a"]

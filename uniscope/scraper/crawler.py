"""Bounded breadth-first discovery of in-domain pages."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Set, Tuple

from uniscope.config import settings
from uniscope.scraper.domains import scan_page
from uniscope.scraper.extractor import is_content_page
from uniscope.scraper.fetcher import FetchEngine, Sleep
from uniscope.scraper.html import host_in_domain, normalise_url


@dataclass
class CrawlReport:
    start_url: str
    visited_pages: List[str] = field(default_factory=list)
    discovered_urls: List[str] = field(default_factory=list)
    domains: List[str] = field(default_factory=list)
    subdomains: List[str] = field(default_factory=list)
    #: Depth at which each visited page was dequeued.
    depths: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "start_url": self.start_url,
            "visited_pages": self.visited_pages,
            "discovered_urls": self.discovered_urls,
            "domains": self.domains,
            "subdomains": self.subdomains,
            "total_visited": len(self.visited_pages),
            "total_discovered": len(self.discovered_urls),
        }


class DomainCrawler:
    """Walk the target domain breadth-first from a start URL.

    One :meth:`discover` call owns its queue and visited set; nothing is kept
    between runs.  Pages are visited strictly one at a time with a fixed
    politeness delay after each.
    """

    def __init__(
        self,
        engine: Optional[FetchEngine] = None,
        domain: Optional[str] = None,
        delay: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.engine = engine or FetchEngine(sleep=sleep)
        self.domain = domain or settings.target_domain
        self.delay = settings.crawl_delay if delay is None else delay
        self._sleep = sleep

    async def discover(
        self,
        start_url: Optional[str] = None,
        max_depth: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> CrawlReport:
        """Visit at most *max_pages* pages no more than *max_depth* hops away.

        Args:
            start_url: First page; defaults to ``settings.start_url``.
            max_depth: Maximum link distance from *start_url*.
            max_pages: Page budget, counting pages whose scan failed.

        Returns:
            A :class:`CrawlReport` with the visited pages in visit order and
            the sorted in-domain URLs, domains and subdomains seen on them.
        """
        start_url = normalise_url(start_url or settings.start_url)
        max_depth = settings.crawl_max_depth if max_depth is None else max_depth
        max_pages = settings.crawl_max_pages if max_pages is None else max_pages

        queue: Deque[Tuple[str, int]] = deque([(start_url, 0)])
        visited: Set[str] = set()
        report = CrawlReport(start_url=start_url)
        domains: Set[str] = set()
        subdomains: Set[str] = set()
        in_domain: Set[str] = set()

        print(f"[crawl] starting at {start_url} (depth ≤ {max_depth}, pages ≤ {max_pages})")

        while queue and len(visited) < max_pages:
            url, depth = queue.popleft()
            if url in visited or depth > max_depth:
                continue
            if not host_in_domain(url, self.domain):
                continue

            visited.add(url)
            report.visited_pages.append(url)
            report.depths[url] = depth
            print(f"[crawl] [depth {depth}] {url}")

            try:
                scan = await scan_page(url, self.engine)
            except Exception as exc:
                print(f"[crawl] ✗ scan crashed for {url}: {exc!r}")
                scan = None
            if scan is not None:
                domains.update(scan.domains)
                subdomains.update(scan.subdomains)
                for found in scan.sample_urls:
                    if not host_in_domain(found, self.domain):
                        continue
                    found = normalise_url(found)
                    if not is_content_page(found):
                        continue
                    in_domain.add(found)
                    if found not in visited and depth < max_depth:
                        queue.append((found, depth + 1))

            await self._sleep(self.delay)

        report.discovered_urls = sorted(in_domain)
        report.domains = sorted(domains)
        report.subdomains = sorted(subdomains)
        print(
            f"[crawl] ✓ visited {len(report.visited_pages)} pages, "
            f"found {len(report.discovered_urls)} in-domain URLs "
            f"across {len(report.subdomains)} hosts"
        )
        return report

"""Lightweight link / domain scanner used by the crawler and ``uniscope domains``."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Set

from uniscope.scraper.fetcher import FetchEngine
from uniscope.scraper.html import hostname, parse_html, resolve_url, split_host
from uniscope.scraper.models import FetchFailure

# (css selector, attribute holding the URL)
_URL_ATTRIBUTES = (
    ("a[href]", "href"),
    ("link[href]", "href"),
    ("script[src]", "src"),
    ("img[src]", "src"),
    ("iframe[src]", "src"),
    ("source[src]", "src"),
    ("video[src]", "src"),
    ("audio[src]", "src"),
    ("embed[src]", "src"),
    ("object[data]", "data"),
    ("form[action]", "action"),
    ('meta[property="og:url"]', "content"),
    ('meta[property="og:image"]', "content"),
    ('meta[name="twitter:image"]', "content"),
)

MAX_URLS_PER_PAGE = 100


@dataclass
class DomainScan:
    """Every absolute URL referenced by one page, grouped by domain."""

    url: str
    urls: List[str] = field(default_factory=list)
    domains: Set[str] = field(default_factory=set)
    subdomains: Set[str] = field(default_factory=set)

    @property
    def total_urls(self) -> int:
        return len(self.urls)

    @property
    def sample_urls(self) -> List[str]:
        return self.urls[:MAX_URLS_PER_PAGE]

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "domains": sorted(self.domains),
            "subdomains": sorted(self.subdomains),
            "total_urls": self.total_urls,
            "urls": self.sample_urls,
        }


def scan_html(html: str, base_url: str) -> DomainScan:
    """Collect the http(s) URLs referenced by *html*, resolved against *base_url*.

    URLs are de-duplicated and kept in the order the attribute selectors
    above find them.  A host contributes its last two labels to ``domains``
    and its full name to ``subdomains`` (the bare domain when there is no
    subdomain part).
    """
    soup = parse_html(html)
    scan = DomainScan(url=base_url)
    seen: Set[str] = set()

    for selector, attribute in _URL_ATTRIBUTES:
        for element in soup.select(selector):
            value = (element.get(attribute) or "").strip()
            if not value:
                continue
            url = resolve_url(value, base_url)
            if url is None or not url.lower().startswith(("http://", "https://")):
                continue
            if url in seen:
                continue
            seen.add(url)
            scan.urls.append(url)

            parts = split_host(hostname(url))
            if parts is not None:
                domain, subdomain = parts
                scan.domains.add(domain)
                scan.subdomains.add(f"{subdomain}.{domain}" if subdomain else domain)
    return scan


async def scan_page(url: str, engine: Optional[FetchEngine] = None) -> Optional[DomainScan]:
    """Fetch *url* and scan it; ``None`` when the page cannot be fetched."""
    engine = engine or FetchEngine()
    raw = await engine.fetch_raw(url)
    if isinstance(raw, FetchFailure):
        print(f"[crawl] ✗ scan failed for {url}: {raw.reason}")
        return None
    return scan_html(raw.html, raw.url)

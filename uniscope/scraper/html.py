"""Small HTML / URL helpers shared by the fetcher, extractor and crawler."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

_WS_RE = re.compile(r"\s+")

NOISE_TAGS = ("script", "style", "noscript", "iframe", "embed", "object")


def collapse_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace (newlines included) into single spaces."""
    if not text:
        return ""
    return _WS_RE.sub(" ", text).strip()


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def strip_tags(soup: BeautifulSoup, tags: Iterable[str] = NOISE_TAGS) -> None:
    """Remove every element named in *tags* from *soup* in place."""
    for tag in soup(list(tags)):
        tag.decompose()


def element_text(element) -> str:  # type: ignore[no-untyped-def]
    return collapse_whitespace(element.get_text(" "))


def resolve_url(href: str, base_url: str) -> Optional[str]:
    """Resolve *href* against *base_url*; ``None`` when it cannot be parsed."""
    href = href.strip()
    if not href:
        return None
    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def normalise_url(url: str) -> str:
    """Drop the ``#fragment`` so one document maps to one URL."""
    return urldefrag(url)[0]


def hostname(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def host_in_domain(url: str, domain: str) -> bool:
    """Return ``True`` when *url*'s host is *domain* or one of its subdomains."""
    host = hostname(url)
    domain = domain.lower().lstrip(".")
    return bool(host) and (host == domain or host.endswith("." + domain))


def split_host(host: str) -> Optional[Tuple[str, str]]:
    """Split *host* into ``(domain, subdomain)``.

    The domain is the last two DNS labels; any leading labels form the
    subdomain (empty string when there are none).  Hosts with fewer than two
    labels return ``None``.
    """
    parts = [p for p in host.lower().split(".") if p]
    if len(parts) < 2:
        return None
    return ".".join(parts[-2:]), ".".join(parts[:-2])

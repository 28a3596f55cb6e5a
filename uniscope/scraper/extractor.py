"""Structured content extraction: turns page HTML into a :class:`StructuredContent`."""

from __future__ import annotations

from typing import Dict, List, Optional
from urllib.parse import urlparse

from uniscope.config import settings
from uniscope.scraper.fetcher import FetchEngine
from uniscope.scraper.html import (
    collapse_whitespace,
    element_text,
    host_in_domain,
    parse_html,
    resolve_url,
    strip_tags,
)
from uniscope.scraper.models import (
    ContentList,
    FetchFailure,
    Header,
    Image,
    Link,
    Paragraph,
    StructuredContent,
)

# Extensions that never point at an HTML page.
NON_PAGE_EXTENSIONS = (
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico", ".bmp",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx",
    ".zip", ".rar", ".exe", ".dmg",
    ".js", ".css",
)

_PARAGRAPH_SELECTOR = "p, div.content, div.text, article p, main p"
_MIN_PARAGRAPH_CHARS = 20
_IMAGE_NAME_BLOCKLIST = ("icon", "logo", "button")

MIN_WORD_COUNT = 10


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def is_content_page(url: str) -> bool:
    """Return ``False`` for URLs whose path ends in a known non-page extension."""
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return False
    return not path.endswith(NON_PAGE_EXTENSIONS)


def _skip_image(src: str) -> bool:
    if src.startswith("data:"):
        return True
    filename = urlparse(src).path.rsplit("/", 1)[-1].lower()
    return any(word in filename for word in _IMAGE_NAME_BLOCKLIST)


def count_words(text: str) -> int:
    return len(text.split())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_structured(
    html: str,
    base_url: str,
    domain: Optional[str] = None,
) -> StructuredContent:
    """Decompose *html* into ordered headers, paragraphs, links, images and lists.

    Every element carries its position in document order.  ``clean_text`` is
    built from headers, then paragraphs, then list items; link text is left
    out.  The result is returned even when it is too short to be useful;
    callers decide what to do with it.

    Args:
        html: Raw page HTML.
        base_url: URL the HTML was fetched from; relative hrefs resolve
            against it.
        domain: Target domain used to flag internal links.  Defaults to
            ``settings.target_domain``.
    """
    domain = domain or settings.target_domain
    soup = parse_html(html)
    strip_tags(soup)

    position: Dict[int, int] = {
        id(element): index for index, element in enumerate(soup.find_all(True))
    }

    headers: List[Header] = []
    for element in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
        text = element_text(element)
        if text:
            headers.append(Header(level=int(element.name[1]), text=text, order=position[id(element)]))

    paragraphs: List[Paragraph] = []
    for element in soup.select(_PARAGRAPH_SELECTOR):
        text = element_text(element)
        if len(text) > _MIN_PARAGRAPH_CHARS:
            paragraphs.append(Paragraph(text=text, order=position[id(element)]))

    links: List[Link] = []
    for element in soup.find_all("a", href=True):
        href = element["href"].strip()
        if not href or href.startswith("#"):
            continue
        url = resolve_url(href, base_url)
        if url is None:
            continue
        links.append(
            Link(
                text=element_text(element) or url,
                url=url,
                is_internal=host_in_domain(url, domain),
                order=position[id(element)],
            )
        )

    images: List[Image] = []
    for element in soup.find_all("img", src=True):
        src = element["src"].strip()
        if not src or _skip_image(src):
            continue
        images.append(
            Image(
                alt=collapse_whitespace(element.get("alt", "")),
                src=resolve_url(src, base_url) or src,
                order=position[id(element)],
            )
        )

    lists: List[ContentList] = []
    for element in soup.find_all(["ul", "ol"]):
        items = [t for t in (element_text(li) for li in element.find_all("li")) if t]
        if items:
            lists.append(
                ContentList(
                    kind="ordered" if element.name == "ol" else "unordered",
                    items=items,
                    order=position[id(element)],
                )
            )

    parts = (
        [h.text for h in headers]
        + [p.text for p in paragraphs]
        + [item for lst in lists for item in lst.items]
    )
    clean_text = collapse_whitespace(" ".join(parts))

    title = collapse_whitespace(soup.title.get_text()) if soup.title is not None else ""
    if not title:
        h1 = next((h for h in headers if h.level == 1), None)
        title = h1.text if h1 is not None else (headers[0].text if headers else "")

    return StructuredContent(
        title=title,
        headers=headers,
        paragraphs=paragraphs,
        links=links,
        images=images,
        lists=lists,
        clean_text=clean_text,
        word_count=count_words(clean_text),
        language=settings.default_language,
    )


class ContentExtractor:
    """Fetch a page and turn it into :class:`StructuredContent`."""

    def __init__(
        self,
        engine: Optional[FetchEngine] = None,
        domain: Optional[str] = None,
    ) -> None:
        self.engine = engine or FetchEngine()
        self.domain = domain or settings.target_domain

    async def extract(self, url: str) -> Optional[StructuredContent]:
        """Return structured content for *url*, or ``None``.

        ``None`` means the URL is not a page (by extension, checked before
        any network access), the fetch failed on every tier, or the page
        holds fewer than ten words of text.
        """
        if not is_content_page(url):
            print(f"[extract] skipping non-page URL {url}")
            return None

        raw = await self.engine.fetch_raw(url)
        if isinstance(raw, FetchFailure):
            print(f"[extract] ✗ {url}: {raw.reason}")
            return None

        content = parse_structured(raw.html, raw.url, self.domain)
        if content.word_count < MIN_WORD_COUNT:
            print(f"[extract] ✗ {url}: only {content.word_count} words")
            return None

        print(f"[extract] ✓ {url} ({content.word_count} words)")
        return content

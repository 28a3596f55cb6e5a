"""Data models for the fetch / extraction pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, List, Optional


@dataclass
class RawPage:
    """The raw HTML of a single successful fetch attempt."""

    url: str
    html: str
    status_code: int
    via: str = "static"


@dataclass
class FetchFailure:
    """Returned instead of raising when every fetch tier is exhausted."""

    url: str
    reason: str
    permanent: bool = False


@dataclass
class PageMetadata:
    description: str = ""
    image_url: str = ""
    publish_date: Optional[datetime] = None


@dataclass
class FetchResult:
    """Title, main content block and metadata of a fetched page."""

    url: str
    title: str
    content: str
    source: str
    metadata: PageMetadata = field(default_factory=PageMetadata)
    via: str = "static"


# ---------------------------------------------------------------------------
# Structured content
# ---------------------------------------------------------------------------

@dataclass
class Header:
    level: int
    text: str
    order: int


@dataclass
class Paragraph:
    text: str
    order: int


@dataclass
class Link:
    text: str
    url: str
    is_internal: bool
    order: int


@dataclass
class Image:
    alt: str
    src: str
    order: int


@dataclass
class ContentList:
    kind: str  # "ordered" | "unordered"
    items: List[str]
    order: int


@dataclass
class StructuredContent:
    """Typed decomposition of one page plus its derived clean text.

    ``word_count`` always equals ``len(clean_text.split())``.
    """

    headers: List[Header] = field(default_factory=list)
    paragraphs: List[Paragraph] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)
    images: List[Image] = field(default_factory=list)
    lists: List[ContentList] = field(default_factory=list)
    clean_text: str = ""
    word_count: int = 0
    language: str = "tr"
    title: str = ""
    page_id: Optional[str] = None
    extracted_at: Optional[int] = None

    def header_text(self) -> str:
        return " ".join(h.text for h in self.headers)

    def link_text(self) -> str:
        return " ".join(lnk.text for lnk in self.links)

    def sections_json(self) -> dict[str, list[dict[str, Any]]]:
        """Serialise every sequence field to plain dicts for storage."""
        return {
            "headers": [asdict(h) for h in self.headers],
            "paragraphs": [asdict(p) for p in self.paragraphs],
            "links": [asdict(lnk) for lnk in self.links],
            "images": [asdict(i) for i in self.images],
            "lists": [asdict(lst) for lst in self.lists],
        }

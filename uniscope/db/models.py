"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.  Structured content reuses
:class:`uniscope.scraper.models.StructuredContent`.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from uniscope.scraper.models import StructuredContent


@dataclass
class PageRecord:
    id: str
    url: str
    title: str
    raw_content: str
    source: str
    metadata: dict[str, Any]
    is_classified: bool
    discovered_at: int
    updated_at: int


@dataclass
class Keyword:
    term: str
    weight: float


@dataclass
class Classification:
    page_id: str
    category: str
    confidence: float
    sentiment: str
    sentiment_score: float
    keywords: list[Keyword] = field(default_factory=list)
    method: str = "default"
    token_count: int = 0
    language: str = "tr"
    model: str = ""
    processed_at: int = 0

    def keywords_json(self) -> str:
        return json.dumps([asdict(k) for k in self.keywords], ensure_ascii=False)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FoundUrl:
    url: str
    title: str = ""
    snippet: str = ""
    search_query: str = ""


@dataclass
class SearchHistory:
    """One web-search collection run and what it produced."""

    id: str
    query: str
    status: str
    error: Optional[str] = None
    results_count: int = 0
    found_urls: list[FoundUrl] = field(default_factory=list)
    page_ids: list[str] = field(default_factory=list)
    started_at: int = 0
    completed_at: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        del data["found_urls"], data["page_ids"]
        return data


@dataclass
class TrainingRow:
    """Structured content joined with the URL and title of its page."""

    url: str
    title: str
    content: StructuredContent

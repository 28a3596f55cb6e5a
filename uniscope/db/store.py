"""``SQLiteStore``: the persistence operations the pipeline needs, bound to one connection."""

from __future__ import annotations

import sqlite3
from typing import Any, Optional, Sequence

from uniscope.db import classifications, content, pages, search_history, stats
from uniscope.db.models import Classification, FoundUrl, PageRecord, SearchHistory, TrainingRow
from uniscope.scraper.models import StructuredContent


class SQLiteStore:
    """Thin facade over the table modules.

    Each method is a single-record operation with its own transaction.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    # -- pages ---------------------------------------------------------------
    def find_page(self, url: str) -> Optional[PageRecord]:
        return pages.get_page_by_url(self.conn, url)

    def find_page_by_id(self, page_id: str) -> Optional[PageRecord]:
        return pages.get_page(self.conn, page_id)

    def upsert_page(self, url: str, **fields: Any) -> PageRecord:
        return pages.upsert_page(self.conn, url, **fields)

    def delete_page(self, page_id: str) -> None:
        pages.delete_page(self.conn, page_id)

    def mark_classified(self, page_id: str) -> None:
        pages.mark_classified(self.conn, page_id)

    def list_unextracted_pages(self, limit: int) -> list[PageRecord]:
        return pages.list_unextracted_pages(self.conn, limit)

    def list_pages(self, **filters: Any) -> tuple[list[PageRecord], int]:
        return pages.list_pages(self.conn, **filters)

    # -- structured content --------------------------------------------------
    def find_structured_content(self, page_id: str) -> Optional[StructuredContent]:
        return content.get_structured_content(self.conn, page_id)

    def upsert_structured_content(
        self, page_id: str, record: StructuredContent
    ) -> StructuredContent:
        return content.upsert_structured_content(self.conn, page_id, record)

    def delete_structured_content(self, page_id: str) -> None:
        content.delete_structured_content(self.conn, page_id)

    def list_unclassified_content(self, limit: int) -> list[StructuredContent]:
        return content.list_unclassified_content(self.conn, limit)

    def list_training_rows(self) -> list[TrainingRow]:
        return content.list_training_rows(self.conn)

    # -- classifications -----------------------------------------------------
    def find_classification(self, page_id: str) -> Optional[Classification]:
        return classifications.get_classification(self.conn, page_id)

    def upsert_classification(self, record: Classification) -> Classification:
        return classifications.upsert_classification(self.conn, record)

    # -- search history ------------------------------------------------------
    def create_search(self, query: str) -> SearchHistory:
        return search_history.create_search(self.conn, query)

    def complete_search(
        self, search_id: str, page_ids: Sequence[str], found_urls: Sequence[FoundUrl] = ()
    ) -> Optional[SearchHistory]:
        return search_history.complete_search(self.conn, search_id, page_ids, found_urls)

    def fail_search(self, search_id: str, error: str) -> Optional[SearchHistory]:
        return search_history.fail_search(self.conn, search_id, error)

    def find_search(self, search_id: str) -> Optional[SearchHistory]:
        return search_history.get_search(self.conn, search_id)

    def list_searches(self, limit: int = 20) -> list[SearchHistory]:
        return search_history.list_searches(self.conn, limit)

    # -- reporting -----------------------------------------------------------
    def stats(self) -> dict[str, Any]:
        return stats.collect_stats(self.conn)

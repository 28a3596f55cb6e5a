"""CRUD operations for the ``structured_content`` table."""

from __future__ import annotations

import json
import sqlite3
from time import time
from typing import Any, Optional

from uniscope.db.models import TrainingRow
from uniscope.scraper.models import (
    ContentList,
    Header,
    Image,
    Link,
    Paragraph,
    StructuredContent,
)

MIN_WORD_COUNT = 10


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _load(raw: Optional[str]) -> list[dict[str, Any]]:
    return json.loads(raw or "[]")


def _row_to_content(row: sqlite3.Row) -> StructuredContent:
    return StructuredContent(
        headers=[Header(**h) for h in _load(row["headers"])],
        paragraphs=[Paragraph(**p) for p in _load(row["paragraphs"])],
        links=[Link(**lnk) for lnk in _load(row["links"])],
        images=[Image(**i) for i in _load(row["images"])],
        lists=[ContentList(**lst) for lst in _load(row["lists"])],
        clean_text=row["clean_text"],
        word_count=row["word_count"],
        language=row["language"],
        page_id=row["page_id"],
        extracted_at=row["extracted_at"],
    )


def validate_content(content: StructuredContent) -> None:
    """Raise ``ValueError`` unless *content* is sufficient and self-consistent."""
    actual = len(content.clean_text.split())
    if content.word_count != actual:
        raise ValueError(
            f"word_count {content.word_count} does not match clean_text ({actual} words)"
        )
    if content.word_count < MIN_WORD_COUNT:
        raise ValueError(
            f"Content has {content.word_count} words; at least {MIN_WORD_COUNT} required"
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def upsert_structured_content(
    conn: sqlite3.Connection,
    page_id: str,
    content: StructuredContent,
) -> StructuredContent:
    """Insert or replace the structured content of *page_id*.

    Raises:
        ValueError: If the content has fewer than ten words or its
            ``word_count`` disagrees with ``clean_text``.
    """
    validate_content(content)
    sections = {k: json.dumps(v, ensure_ascii=False) for k, v in content.sections_json().items()}
    now = int(time())
    with conn:
        conn.execute(
            """
            INSERT INTO structured_content
                (page_id, headers, paragraphs, links, images, lists,
                 clean_text, word_count, language, extracted_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(page_id) DO UPDATE SET
                headers      = excluded.headers,
                paragraphs   = excluded.paragraphs,
                links        = excluded.links,
                images       = excluded.images,
                lists        = excluded.lists,
                clean_text   = excluded.clean_text,
                word_count   = excluded.word_count,
                language     = excluded.language,
                extracted_at = excluded.extracted_at
            """,
            (
                page_id,
                sections["headers"],
                sections["paragraphs"],
                sections["links"],
                sections["images"],
                sections["lists"],
                content.clean_text,
                content.word_count,
                content.language,
                now,
            ),
        )
    return get_structured_content(conn, page_id)  # type: ignore[return-value]


def get_structured_content(
    conn: sqlite3.Connection, page_id: str
) -> Optional[StructuredContent]:
    row = conn.execute(
        "SELECT * FROM structured_content WHERE page_id = ?", (page_id,)
    ).fetchone()
    return _row_to_content(row) if row else None


def delete_structured_content(conn: sqlite3.Connection, page_id: str) -> None:
    with conn:
        conn.execute("DELETE FROM structured_content WHERE page_id = ?", (page_id,))


def list_unclassified_content(conn: sqlite3.Connection, limit: int) -> list[StructuredContent]:
    """Return up to *limit* content rows that have no classification yet."""
    rows = conn.execute(
        """
        SELECT sc.* FROM structured_content sc
        LEFT JOIN classifications c ON c.page_id = sc.page_id
        WHERE c.page_id IS NULL
          AND sc.word_count >= ?
          AND sc.clean_text != ''
        ORDER BY sc.extracted_at ASC, sc.rowid ASC
        LIMIT ?
        """,
        (MIN_WORD_COUNT, limit),
    ).fetchall()
    return [_row_to_content(r) for r in rows]


def list_training_rows(conn: sqlite3.Connection) -> list[TrainingRow]:
    """Return every content row with non-empty text whose page has a URL and title."""
    rows = conn.execute(
        """
        SELECT sc.*, p.url AS page_url, p.title AS page_title
        FROM structured_content sc
        JOIN pages p ON p.id = sc.page_id
        WHERE sc.clean_text != '' AND p.url != '' AND p.title != ''
        ORDER BY sc.rowid ASC
        """
    ).fetchall()
    return [
        TrainingRow(url=r["page_url"], title=r["page_title"], content=_row_to_content(r))
        for r in rows
    ]

"""CRUD operations for the ``pages`` table."""

from __future__ import annotations

import json
import sqlite3
import uuid
from time import time
from typing import Any, Optional

from uniscope.db.models import PageRecord


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_page(row: sqlite3.Row) -> PageRecord:
    return PageRecord(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        raw_content=row["raw_content"],
        source=row["source"],
        metadata=json.loads(row["metadata"] or "{}"),
        is_classified=bool(row["is_classified"]),
        discovered_at=row["discovered_at"],
        updated_at=row["updated_at"],
    )


_SORT_COLUMNS = {
    "discovered_at": "p.discovered_at",
    "title": "p.title",
    "category": "c.category",
    "confidence": "c.confidence",
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def upsert_page(
    conn: sqlite3.Connection,
    url: str,
    title: Optional[str] = None,
    raw_content: Optional[str] = None,
    source: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> PageRecord:
    """Insert a page keyed by *url*, or update the fields given for an existing one.

    Fields passed as ``None`` keep their stored value (or the column default
    on insert).  ``updated_at`` is always refreshed.

    Args:
        conn: Open DB connection.
        url: Unique page URL.
        title: Display title.
        raw_content: Plain-text content; empty until the page is extracted.
        source: Hostname the content came from.
        metadata: Arbitrary key/value pairs stored as a JSON blob (replaces
            the stored blob).

    Returns:
        The stored :class:`~uniscope.db.models.PageRecord`.
    """
    now = int(time())
    params = {
        "id": str(uuid.uuid4()),
        "url": url,
        "title": title,
        "raw_content": raw_content,
        "source": source,
        "metadata": json.dumps(metadata, ensure_ascii=False) if metadata is not None else None,
        "now": now,
    }
    with conn:
        conn.execute(
            """
            INSERT INTO pages (id, url, title, raw_content, source, metadata, discovered_at, updated_at)
            VALUES (:id, :url, COALESCE(:title, ''), COALESCE(:raw_content, ''),
                    COALESCE(:source, ''), COALESCE(:metadata, '{}'), :now, :now)
            ON CONFLICT(url) DO UPDATE SET
                title       = COALESCE(:title, pages.title),
                raw_content = COALESCE(:raw_content, pages.raw_content),
                source      = COALESCE(:source, pages.source),
                metadata    = COALESCE(:metadata, pages.metadata),
                updated_at  = :now
            """,
            params,
        )
    return get_page_by_url(conn, url)  # type: ignore[return-value]


def get_page(conn: sqlite3.Connection, page_id: str) -> Optional[PageRecord]:
    """Fetch a single page by id.  Returns ``None`` if not found."""
    row = conn.execute("SELECT * FROM pages WHERE id = ?", (page_id,)).fetchone()
    return _row_to_page(row) if row else None


def get_page_by_url(conn: sqlite3.Connection, url: str) -> Optional[PageRecord]:
    row = conn.execute("SELECT * FROM pages WHERE url = ?", (url,)).fetchone()
    return _row_to_page(row) if row else None


def delete_page(conn: sqlite3.Connection, page_id: str) -> None:
    """Delete a page (its content and classification go via CASCADE).

    This is a no-op if the page does not exist.
    """
    with conn:
        conn.execute("DELETE FROM pages WHERE id = ?", (page_id,))


def mark_classified(conn: sqlite3.Connection, page_id: str, classified: bool = True) -> None:
    with conn:
        conn.execute(
            "UPDATE pages SET is_classified = ?, updated_at = ? WHERE id = ?",
            (int(classified), int(time()), page_id),
        )


def list_unextracted_pages(conn: sqlite3.Connection, limit: int) -> list[PageRecord]:
    """Return up to *limit* pages that have no structured content yet, oldest first."""
    rows = conn.execute(
        """
        SELECT p.* FROM pages p
        LEFT JOIN structured_content sc ON sc.page_id = p.id
        WHERE sc.page_id IS NULL
        ORDER BY p.discovered_at ASC, p.rowid ASC
        LIMIT ?
        """,
        (limit,),
    ).fetchall()
    return [_row_to_page(r) for r in rows]


def list_pages(
    conn: sqlite3.Connection,
    limit: int = 10,
    offset: int = 0,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "discovered_at",
    descending: bool = True,
) -> tuple[list[PageRecord], int]:
    """Return one page of :class:`PageRecord` rows plus the total match count.

    Args:
        conn: Open DB connection.
        limit: Maximum rows returned.
        offset: Rows skipped.
        category: Only pages classified into this category.
        search: Case-insensitive substring matched against title and content.
        sort_by: ``discovered_at``, ``title``, ``category`` or ``confidence``.
        descending: Sort direction.

    Raises:
        ValueError: If *sort_by* is not a known column.
    """
    if sort_by not in _SORT_COLUMNS:
        raise ValueError(f"Cannot sort by {sort_by!r}")

    clauses: list[str] = []
    params: list[Any] = []
    if category:
        clauses.append("c.category = ?")
        params.append(category)
    if search:
        clauses.append("(p.title LIKE ? OR p.raw_content LIKE ?)")
        params.extend([f"%{search}%", f"%{search}%"])
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    direction = "DESC" if descending else "ASC"

    base = f"FROM pages p LEFT JOIN classifications c ON c.page_id = p.id {where}"  # noqa: S608
    total = conn.execute(f"SELECT COUNT(*) {base}", params).fetchone()[0]
    rows = conn.execute(
        f"SELECT p.* {base} ORDER BY {_SORT_COLUMNS[sort_by]} {direction}, p.rowid {direction} "
        "LIMIT ? OFFSET ?",
        [*params, limit, offset],
    ).fetchall()
    return [_row_to_page(r) for r in rows], total

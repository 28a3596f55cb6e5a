"""CRUD operations for the ``search_history`` table.

A row is created ``in_progress`` when a search collection starts and closed
exactly once, as ``completed`` (with the pages it produced) or ``failed``
(with the error message).
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from dataclasses import asdict
from time import time
from typing import Optional, Sequence

from uniscope.db.models import FoundUrl, SearchHistory

STATUSES = ("pending", "in_progress", "completed", "failed")


def _row_to_search(row: sqlite3.Row) -> SearchHistory:
    return SearchHistory(
        id=row["id"],
        query=row["query"],
        status=row["status"],
        error=row["error"],
        results_count=row["results_count"],
        found_urls=[FoundUrl(**u) for u in json.loads(row["found_urls"] or "[]")],
        page_ids=json.loads(row["page_ids"] or "[]"),
        started_at=row["started_at"],
        completed_at=row["completed_at"],
    )


def create_search(
    conn: sqlite3.Connection, query: str, status: str = "in_progress"
) -> SearchHistory:
    """Insert a new search record and return it."""
    if status not in STATUSES:
        raise ValueError(f"Unknown search status {status!r}")
    search_id = str(uuid.uuid4())
    with conn:
        conn.execute(
            "INSERT INTO search_history (id, query, status, started_at) VALUES (?, ?, ?, ?)",
            (search_id, query, status, int(time())),
        )
    return get_search(conn, search_id)  # type: ignore[return-value]


def complete_search(
    conn: sqlite3.Connection,
    search_id: str,
    page_ids: Sequence[str],
    found_urls: Sequence[FoundUrl] = (),
) -> Optional[SearchHistory]:
    """Close *search_id* as completed; ``results_count`` is the number of pages."""
    with conn:
        conn.execute(
            """
            UPDATE search_history
            SET status = 'completed', error = NULL, results_count = ?,
                page_ids = ?, found_urls = ?, completed_at = ?
            WHERE id = ?
            """,
            (
                len(page_ids),
                json.dumps(list(page_ids)),
                json.dumps([asdict(u) for u in found_urls], ensure_ascii=False),
                int(time()),
                search_id,
            ),
        )
    return get_search(conn, search_id)


def fail_search(conn: sqlite3.Connection, search_id: str, error: str) -> Optional[SearchHistory]:
    with conn:
        conn.execute(
            """
            UPDATE search_history
            SET status = 'failed', error = ?, completed_at = ?
            WHERE id = ?
            """,
            (error, int(time()), search_id),
        )
    return get_search(conn, search_id)


def get_search(conn: sqlite3.Connection, search_id: str) -> Optional[SearchHistory]:
    row = conn.execute("SELECT * FROM search_history WHERE id = ?", (search_id,)).fetchone()
    return _row_to_search(row) if row else None


def list_searches(conn: sqlite3.Connection, limit: int = 20) -> list[SearchHistory]:
    """Most recent searches first."""
    rows = conn.execute(
        "SELECT * FROM search_history ORDER BY started_at DESC, rowid DESC LIMIT ?",
        (limit,),
    ).fetchall()
    return [_row_to_search(r) for r in rows]

"""Aggregate statistics over pages, content and classifications."""

from __future__ import annotations

import sqlite3
from time import time
from typing import Any

from uniscope.db.content import MIN_WORD_COUNT

_DAY = 24 * 60 * 60


def collect_stats(conn: sqlite3.Connection, top_sources: int = 5) -> dict[str, Any]:
    """Return dashboard counters as a plain dict.

    ``total_unclassified`` counts classifiable content rows (enough words,
    non-empty text) without a classification row, so it can never go
    negative.
    """
    def scalar(sql: str, params: tuple = ()) -> Any:
        return conn.execute(sql, params).fetchone()[0]

    now = int(time())
    confidence = conn.execute(
        "SELECT AVG(confidence), MIN(confidence), MAX(confidence) FROM classifications"
    ).fetchone()

    return {
        "total_pages": scalar("SELECT COUNT(*) FROM pages"),
        "total_structured": scalar("SELECT COUNT(*) FROM structured_content"),
        "total_classified": scalar("SELECT COUNT(*) FROM classifications"),
        "total_unclassified": scalar(
            """
            SELECT COUNT(*) FROM structured_content sc
            LEFT JOIN classifications c ON c.page_id = sc.page_id
            WHERE c.page_id IS NULL AND sc.word_count >= ? AND sc.clean_text != ''
            """,
            (MIN_WORD_COUNT,),
        ),
        "recent_24h": scalar(
            "SELECT COUNT(*) FROM pages WHERE discovered_at >= ?", (now - _DAY,)
        ),
        "total_words": scalar("SELECT COALESCE(SUM(word_count), 0) FROM structured_content"),
        "categories": [
            {"category": r["category"], "count": r["n"], "avg_confidence": r["avg_conf"]}
            for r in conn.execute(
                """
                SELECT category, COUNT(*) AS n, AVG(confidence) AS avg_conf
                FROM classifications GROUP BY category ORDER BY n DESC, category ASC
                """
            ).fetchall()
        ],
        "sentiments": {
            r["sentiment"]: r["n"]
            for r in conn.execute(
                "SELECT sentiment, COUNT(*) AS n FROM classifications GROUP BY sentiment"
            ).fetchall()
        },
        "confidence": {
            "avg": confidence[0],
            "min": confidence[1],
            "max": confidence[2],
        },
        "top_sources": [
            {"source": r["source"], "count": r["n"]}
            for r in conn.execute(
                """
                SELECT source, COUNT(*) AS n FROM pages WHERE source != ''
                GROUP BY source ORDER BY n DESC, source ASC LIMIT ?
                """,
                (top_sources,),
            ).fetchall()
        ],
    }

"""CRUD operations for the ``classifications`` table."""

from __future__ import annotations

import json
import sqlite3
from typing import Optional

from uniscope.db.models import Classification, Keyword


def _row_to_classification(row: sqlite3.Row) -> Classification:
    return Classification(
        page_id=row["page_id"],
        category=row["category"],
        confidence=row["confidence"],
        sentiment=row["sentiment"],
        sentiment_score=row["sentiment_score"],
        keywords=[Keyword(**k) for k in json.loads(row["keywords"] or "[]")],
        method=row["method"],
        token_count=row["token_count"],
        language=row["language"],
        model=row["model"],
        processed_at=row["processed_at"],
    )


def upsert_classification(conn: sqlite3.Connection, record: Classification) -> Classification:
    """Write *record* whole, replacing any previous classification of the page."""
    with conn:
        conn.execute(
            """
            INSERT INTO classifications
                (page_id, category, confidence, sentiment, sentiment_score,
                 keywords, method, token_count, language, model, processed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(page_id) DO UPDATE SET
                category        = excluded.category,
                confidence      = excluded.confidence,
                sentiment       = excluded.sentiment,
                sentiment_score = excluded.sentiment_score,
                keywords        = excluded.keywords,
                method          = excluded.method,
                token_count     = excluded.token_count,
                language        = excluded.language,
                model           = excluded.model,
                processed_at    = excluded.processed_at
            """,
            (
                record.page_id,
                record.category,
                record.confidence,
                record.sentiment,
                record.sentiment_score,
                record.keywords_json(),
                record.method,
                record.token_count,
                record.language,
                record.model,
                record.processed_at,
            ),
        )
    return get_classification(conn, record.page_id)  # type: ignore[return-value]


def get_classification(conn: sqlite3.Connection, page_id: str) -> Optional[Classification]:
    row = conn.execute(
        "SELECT * FROM classifications WHERE page_id = ?", (page_id,)
    ).fetchone()
    return _row_to_classification(row) if row else None

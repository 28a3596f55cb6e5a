"""Read-only access to stored pages.

Routes
------
GET /data              ?page=&limit=&category=&search=&sort_by=&sort_order=
GET /data/{page_id}    → page, structured content summary and classification
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from uniscope.db.models import PageRecord
from uniscope.db.store import SQLiteStore

router = APIRouter()


def _page_out(store: SQLiteStore, page: PageRecord) -> dict[str, Any]:
    classification = store.find_classification(page.id)
    return {
        **asdict(page),
        "classification": classification.to_dict() if classification else None,
    }


@router.get("")
def list_endpoint(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Literal["discovered_at", "title", "category", "confidence"] = "discovered_at",
    sort_order: Literal["asc", "desc"] = "desc",
) -> dict[str, Any]:
    store = SQLiteStore(request.app.state.db)
    rows, total = store.list_pages(
        limit=limit,
        offset=(page - 1) * limit,
        category=category,
        search=search,
        sort_by=sort_by,
        descending=sort_order == "desc",
    )
    return {
        "data": [_page_out(store, r) for r in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


@router.get("/{page_id}")
def get_endpoint(page_id: str, request: Request) -> dict[str, Any]:
    store = SQLiteStore(request.app.state.db)
    page = store.find_page_by_id(page_id)
    if page is None:
        raise HTTPException(status_code=404, detail=f"Page not found: {page_id}")
    out = _page_out(store, page)
    content = store.find_structured_content(page_id)
    out["structured_content"] = (
        {
            "word_count": content.word_count,
            "language": content.language,
            "headers": [asdict(h) for h in content.headers],
            "links": len(content.links),
            "images": len(content.images),
        }
        if content
        else None
    )
    return out

"""Acquisition endpoints.

Routes
------
POST /scrape/fetch      Body: {"url": "https://..."}              → FetchEngine.fetch
GET  /scrape/domains    ?url=https://...                          → scan_page
POST /scrape/discover   Body: {"start_url", "max_depth", ...}      → discover_and_save
POST /scrape/extract    Body: {"limit", "save_to_db"}             → extract_pending
POST /scrape/search     Body: {"query", "max_results", ...}       → collect_from_search
GET  /scrape/history    ?limit=20                                 → recent search runs
GET  /scrape/history/{id}                                         → status of one run
GET  /scrape/history/{id}/results                                 → stored pages + found URLs
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field, HttpUrl

from uniscope.db.store import SQLiteStore
from uniscope.pipeline import collect_from_search, discover_and_save, extract_pending
from uniscope.scraper.domains import scan_page
from uniscope.scraper.fetcher import FetchEngine
from uniscope.scraper.models import FetchFailure

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class FetchRequest(BaseModel):
    url: HttpUrl


class DiscoverRequest(BaseModel):
    start_url: Optional[HttpUrl] = None
    max_depth: int = Field(default=2, ge=0, le=5)
    max_pages: int = Field(default=50, ge=1, le=1000)
    save_to_db: bool = True


class ExtractRequest(BaseModel):
    limit: int = Field(default=50, ge=1, le=500)
    save_to_db: bool = True


class SearchRequest(BaseModel):
    query: Optional[str] = None
    max_results: int = Field(default=10, ge=1, le=100)
    category: Optional[str] = None
    wide: bool = False
    save_to_db: bool = True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _store(request: Request) -> SQLiteStore:
    return SQLiteStore(request.app.state.db)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/fetch")
async def fetch_endpoint(body: FetchRequest) -> dict[str, Any]:
    """Fetch one URL and return its title, main content and metadata."""
    result = await FetchEngine().fetch(str(body.url))
    if isinstance(result, FetchFailure):
        raise HTTPException(status_code=502, detail=f"Fetch failed: {result.reason}")
    data = asdict(result)
    publish = result.metadata.publish_date
    data["metadata"]["publish_date"] = publish.isoformat() if publish else None
    return data


@router.get("/domains")
async def domains_endpoint(url: HttpUrl = Query(...)) -> dict[str, Any]:
    scan = await scan_page(str(url))
    if scan is None:
        raise HTTPException(status_code=502, detail=f"Could not fetch {url}")
    return scan.to_dict()


@router.post("/discover")
async def discover_endpoint(body: DiscoverRequest, request: Request) -> dict[str, Any]:
    """Crawl the target domain breadth-first and store new URLs as pages."""
    store = _store(request) if body.save_to_db else None
    try:
        result = await discover_and_save(
            store,
            start_url=str(body.start_url) if body.start_url else None,
            max_depth=body.max_depth,
            max_pages=body.max_pages,
        )
    except Exception as exc:
        raise HTTPException(status_code=502, detail=f"Discovery failed: {exc}") from exc
    return result.to_dict()


@router.post("/extract")
async def extract_endpoint(body: ExtractRequest, request: Request) -> dict[str, Any]:
    try:
        report = await extract_pending(
            _store(request), limit=body.limit, save_to_db=body.save_to_db
        )
    except Exception as exc:
        raise HTTPException(status_code=502, detail=f"Extraction failed: {exc}") from exc
    return report.to_dict()


@router.post("/search")
async def search_endpoint(body: SearchRequest, request: Request) -> dict[str, Any]:
    """Search the web and collect pages with real content."""
    try:
        report = await collect_from_search(
            _store(request),
            query=body.query,
            max_results=body.max_results,
            category=body.category,
            wide=body.wide,
            save_to_db=body.save_to_db,
        )
    except Exception as exc:
        raise HTTPException(status_code=502, detail=f"Search failed: {exc}") from exc
    return {
        "count": len(report.results),
        "search_id": report.search_id,
        "results": [
            {"url": r.url, "title": r.title, "source": r.source, "content_length": len(r.content)}
            for r in report.results
        ],
    }


@router.get("/history")
async def history_list_endpoint(
    request: Request, limit: int = Query(default=20, ge=1, le=200)
) -> list[dict[str, Any]]:
    return [run.to_dict() for run in _store(request).list_searches(limit)]


@router.get("/history/{search_id}")
async def history_status_endpoint(search_id: str, request: Request) -> dict[str, Any]:
    """Status of one search run."""
    run = _store(request).find_search(search_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Search run {search_id!r} not found")
    return run.to_dict()


@router.get("/history/{search_id}/results")
async def history_results_endpoint(search_id: str, request: Request) -> dict[str, Any]:
    """The pages a search run stored, plus every URL its queries returned.

    Pages purged since the run are left out.
    """
    store = _store(request)
    run = store.find_search(search_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Search run {search_id!r} not found")
    pages = [store.find_page_by_id(page_id) for page_id in run.page_ids]
    return {
        "search": run.to_dict(),
        "results": [
            {"id": p.id, "url": p.url, "title": p.title, "source": p.source}
            for p in pages
            if p is not None
        ],
        "found_urls": [asdict(u) for u in run.found_urls],
    }

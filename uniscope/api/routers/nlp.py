"""Classification endpoints.

Routes
------
POST /nlp/train            → TrainingCoordinator.train (replaces app.state.models)
POST /nlp/classify         Body: {"page_id": "..."}   → Classifier.classify_page
POST /nlp/classify/batch   Body: {"limit": 50}        → Classifier.classify_batch
GET  /nlp/categories       → fixed category labels
GET  /nlp/stats            → aggregate counters
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from uniscope.db.store import SQLiteStore
from uniscope.errors import ClassificationInputError
from uniscope.nlp import Category, Classifier, TrainingCoordinator

router = APIRouter()


class ClassifyRequest(BaseModel):
    page_id: str


class BatchRequest(BaseModel):
    limit: int = Field(default=50, ge=1, le=1000)


def _store(request: Request) -> SQLiteStore:
    return SQLiteStore(request.app.state.db)


@router.post("/train")
def train_endpoint(request: Request) -> dict[str, Any]:
    """Rebuild the per-language models from stored content."""
    coordinator = TrainingCoordinator(_store(request), request.app.state.models)
    return coordinator.train().to_dict()


@router.post("/classify")
def classify_endpoint(body: ClassifyRequest, request: Request) -> dict[str, Any]:
    classifier = Classifier(request.app.state.models)
    try:
        record = classifier.classify_page(_store(request), body.page_id)
    except ClassificationInputError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return record.to_dict()


@router.post("/classify/batch")
def classify_batch_endpoint(body: BatchRequest, request: Request) -> dict[str, Any]:
    classifier = Classifier(request.app.state.models)
    return classifier.classify_batch(_store(request), body.limit).to_dict()


@router.get("/categories")
def categories_endpoint() -> list[str]:
    return [c.value for c in Category]


@router.get("/stats")
def stats_endpoint(request: Request) -> dict[str, Any]:
    stats = _store(request).stats()
    stats["trained_languages"] = request.app.state.models.languages()
    return stats

"""Hybrid classifier: rule pass + per-language statistical model, with sentiment and keywords."""

from __future__ import annotations

from dataclasses import dataclass, field
from time import time
from typing import Optional, Union

from uniscope.config import settings
from uniscope.db.models import Classification, PageRecord
from uniscope.db.store import SQLiteStore
from uniscope.errors import ClassificationInputError
from uniscope.nlp.keywords import extract_keywords
from uniscope.nlp.language import detect_language
from uniscope.nlp.model_store import ModelStore, StatisticalResult
from uniscope.nlp.rules import Category, RuleResult, rule_pass
from uniscope.nlp.sentiment import analyze_sentiment
from uniscope.nlp.text import tokenize
from uniscope.scraper.models import StructuredContent

METHOD_DEFAULT = "default"

RULE_WINS_AT = 0.8
STATISTICAL_WINS_AT = 0.6
DEFAULT_CONFIDENCE = 0.5

Vote = Union[RuleResult, StatisticalResult]


@dataclass(frozen=True)
class Decision:
    category: Category
    confidence: float
    method: str


def arbitrate(rule: Optional[RuleResult], statistical: Optional[StatisticalResult]) -> Decision:
    """Pick the final category from the two passes.

    Priority: a rule result at 0.8 or above, a statistical result at 0.6 or
    above, any rule result, any statistical result, then ``Diğer`` at 0.5.
    """
    chosen: Optional[Vote]
    if rule is not None and rule.confidence >= RULE_WINS_AT:
        chosen = rule
    elif statistical is not None and statistical.confidence >= STATISTICAL_WINS_AT:
        chosen = statistical
    else:
        chosen = rule if rule is not None else statistical

    if chosen is None:
        return Decision(Category.OTHER, DEFAULT_CONFIDENCE, METHOD_DEFAULT)
    return Decision(chosen.category, chosen.confidence, chosen.method)


@dataclass
class BatchReport:
    success: int = 0
    failed: int = 0
    errors: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"success": self.success, "failed": self.failed, "errors": self.errors}


class Classifier:
    """Classify pages using whatever models *models* currently holds."""

    def __init__(self, models: Optional[ModelStore] = None) -> None:
        self.models = models if models is not None else ModelStore()

    def _statistical_pass(self, tokens: list[str], language: str) -> Optional[StatisticalResult]:
        model = self.models.get(language)
        if model is None:
            return None
        try:
            return model.predict(tokens)
        except Exception as exc:
            print(f"[classify] ✗ {language} model failed, using rules only: {exc!r}")
            return None

    def classify(self, page: PageRecord, content: StructuredContent) -> Classification:
        """Build a :class:`Classification` for *page* without touching storage."""
        clean_text = content.clean_text or ""
        language = detect_language(clean_text)
        tokens = tokenize(clean_text, language)

        rule = rule_pass(
            url=page.url,
            title=page.title,
            clean_text=clean_text,
            headers=[h.text for h in content.headers],
            links=[lnk.text for lnk in content.links],
        )
        decision = arbitrate(rule, self._statistical_pass(tokens, language))
        sentiment = analyze_sentiment(clean_text, language)

        return Classification(
            page_id=page.id,
            category=decision.category.value,
            confidence=decision.confidence,
            sentiment=sentiment.label,
            sentiment_score=sentiment.score,
            keywords=extract_keywords(tokens),
            method=decision.method,
            token_count=len(tokens),
            language=language,
            model=f"{language}_hybrid",
            processed_at=int(time()),
        )

    def classify_page(self, store: SQLiteStore, page_id: str) -> Classification:
        """Classify a stored page, persist the result and flag the page classified.

        Raises:
            ClassificationInputError: If the page or its structured content
                does not exist.
        """
        content = store.find_structured_content(page_id)
        if content is None:
            raise ClassificationInputError(f"No structured content for page {page_id!r}")
        page = store.find_page_by_id(page_id)
        if page is None:
            raise ClassificationInputError(f"Page not found: {page_id!r}")

        record = self.classify(page, content)
        stored = store.upsert_classification(record)
        store.mark_classified(page_id)
        print(f"[classify] ✓ {page.url} → {stored.category} ({stored.confidence:.2f}, {stored.method})")
        return stored

    def classify_batch(self, store: SQLiteStore, limit: Optional[int] = None) -> BatchReport:
        """Classify up to *limit* unclassified content rows, one after another."""
        limit = settings.batch_limit if limit is None else limit
        pending = store.list_unclassified_content(limit)
        print(f"[classify] {len(pending)} unclassified item(s) found.")

        report = BatchReport()
        for item in pending:
            page_id = item.page_id or ""
            try:
                self.classify_page(store, page_id)
                report.success += 1
            except Exception as exc:
                report.failed += 1
                report.errors.append({"page_id": page_id, "error": str(exc)})
                print(f"[classify] ✗ {page_id}: {exc}")

        print(f"[classify] batch done: {report.success} ok, {report.failed} failed.")
        return report

"""Bootstrap the per-language statistical models from confident rule-pass labels."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from uniscope.db.models import TrainingRow
from uniscope.db.store import SQLiteStore
from uniscope.nlp.language import SUPPORTED_LANGUAGES, detect_language
from uniscope.nlp.model_store import LanguageModel, ModelStore
from uniscope.nlp.rules import Category, rule_pass
from uniscope.nlp.text import tokenize

MIN_WORDS = 10
MIN_CHARS = 50
LABEL_CONFIDENCE = 0.7

NO_SOURCE_DATA = "no_source_data"
NO_CONFIDENT_LABELS = "no_confident_labels"


@dataclass
class TrainingReport:
    success: bool
    #: Valid items per detected language.
    language_samples: dict[str, int] = field(default_factory=dict)
    #: Labelled documents per language that received a model.
    trained_samples: dict[str, int] = field(default_factory=dict)
    reason: Optional[str] = None
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "language_samples": self.language_samples,
            "trained_samples": self.trained_samples,
            "reason": self.reason,
            "message": self.message,
        }


def is_valid_sample(row: TrainingRow) -> bool:
    content = row.content
    if content.word_count:
        return content.word_count >= MIN_WORDS
    return len(content.clean_text or "") >= MIN_CHARS


def build_models(rows: Sequence[TrainingRow]) -> tuple[dict[str, LanguageModel], dict[str, int], dict[str, int]]:
    """Train one model per language from *rows*.

    Each valid row is labelled by re-running the rule pass on its URL, title,
    clean text and headers (link text is left out).  Only labels with
    confidence above 0.7 are used; a language with no such label gets no
    model at all.

    Returns:
        ``(models, language_samples, trained_samples)``.
    """
    buckets: dict[str, list[TrainingRow]] = {lang: [] for lang in SUPPORTED_LANGUAGES}
    for row in rows:
        if not row.url or not row.content.clean_text or not is_valid_sample(row):
            continue
        buckets.setdefault(detect_language(row.content.clean_text), []).append(row)

    models: dict[str, LanguageModel] = {}
    language_samples = {lang: len(items) for lang, items in buckets.items()}
    trained_samples: dict[str, int] = {}

    for language, items in buckets.items():
        if not items:
            continue
        documents: list[list[str]] = []
        labels: list[Category] = []
        for row in items:
            rule = rule_pass(
                url=row.url,
                title=row.title,
                clean_text=row.content.clean_text,
                headers=[h.text for h in row.content.headers],
            )
            if rule is None or rule.confidence <= LABEL_CONFIDENCE:
                continue
            tokens = tokenize(row.content.clean_text, language)
            if tokens:
                documents.append(tokens)
                labels.append(rule.category)

        if documents:
            models[language] = LanguageModel(language, documents, labels)
            trained_samples[language] = len(documents)
            print(f"[train] ✓ {language} model: {len(documents)} labelled of {len(items)} item(s).")
        else:
            print(f"[train] ✗ {language}: no confident labels among {len(items)} item(s).")

    return models, language_samples, trained_samples


class TrainingCoordinator:
    """Rebuild every language model from stored content and swap them in."""

    def __init__(self, store: SQLiteStore, models: ModelStore) -> None:
        self.store = store
        self.models = models

    def train(self) -> TrainingReport:
        """Retrain from scratch; the previous models are always discarded.

        Returns a :class:`TrainingReport`.  ``success`` is ``False`` with
        ``reason`` ``no_source_data`` when nothing valid is stored, or
        ``no_confident_labels`` when no item cleared the label bar.
        """
        rows = self.store.list_training_rows()
        models, language_samples, trained_samples = build_models(rows)
        self.models.replace(models)

        if not any(language_samples.values()):
            print(f"[train] ✗ no valid training data ({len(rows)} stored item(s)).")
            return TrainingReport(
                success=False,
                language_samples=language_samples,
                reason=NO_SOURCE_DATA,
                message="No extracted content with enough text; run extraction first.",
            )
        if not models:
            return TrainingReport(
                success=False,
                language_samples=language_samples,
                reason=NO_CONFIDENT_LABELS,
                message=f"No item reached rule confidence above {LABEL_CONFIDENCE}.",
            )
        return TrainingReport(
            success=True,
            language_samples=language_samples,
            trained_samples=trained_samples,
            message=f"Trained models for: {', '.join(sorted(models))}.",
        )

"""Per-language bag-of-tokens models and the store that holds them."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from sklearn.feature_extraction.text import CountVectorizer
from sklearn.naive_bayes import MultinomialNB
from sklearn.pipeline import Pipeline

from uniscope.nlp.rules import Category

METHOD_STATISTICAL = "ml_model"


def _identity(tokens: Sequence[str]) -> Sequence[str]:
    return tokens


@dataclass(frozen=True)
class StatisticalResult:
    category: Category
    confidence: float
    method: str = METHOD_STATISTICAL


class LanguageModel:
    """Multinomial naive Bayes over token counts for one language.

    Built once from labelled token lists and never updated afterwards.
    """

    def __init__(
        self,
        language: str,
        documents: Sequence[Sequence[str]],
        labels: Sequence[Category],
    ) -> None:
        if not documents or len(documents) != len(labels):
            raise ValueError("LanguageModel needs one label per non-empty document")
        self.language = language
        self.sample_count = len(documents)
        self.pipeline = Pipeline([
            ("counts", CountVectorizer(analyzer=_identity)),
            ("nb", MultinomialNB()),
        ])
        self.pipeline.fit([list(d) for d in documents], [c.value for c in labels])

    @property
    def categories(self) -> list[str]:
        return [str(c) for c in self.pipeline.classes_]

    def predict(self, tokens: Sequence[str]) -> Optional[StatisticalResult]:
        """Return the most probable category for *tokens*, ``None`` for no tokens."""
        if not tokens:
            return None
        probabilities = self.pipeline.predict_proba([list(tokens)])[0]
        best = int(probabilities.argmax())
        return StatisticalResult(
            category=Category(self.pipeline.classes_[best]),
            confidence=round(float(probabilities[best]), 6),
        )


class ModelStore:
    """Holds the current language → model mapping.

    :meth:`replace` swaps in a complete new mapping in one assignment;
    readers see either the whole old mapping or the whole new one.
    """

    def __init__(self, models: Optional[Mapping[str, LanguageModel]] = None) -> None:
        self._models: Mapping[str, LanguageModel] = MappingProxyType(dict(models or {}))
        self._lock = threading.Lock()

    def get(self, language: str) -> Optional[LanguageModel]:
        return self._models.get(language)

    def replace(self, models: Mapping[str, LanguageModel]) -> None:
        frozen = MappingProxyType(dict(models))
        with self._lock:
            self._models = frozen

    def languages(self) -> list[str]:
        return sorted(self._models)

"""Single-document TF-IDF keyword extraction."""

from __future__ import annotations

from typing import List, Sequence

from sklearn.feature_extraction.text import TfidfVectorizer

from uniscope.db.models import Keyword

MAX_KEYWORDS = 10


def _identity(tokens: Sequence[str]) -> Sequence[str]:
    return tokens


def extract_keywords(tokens: Sequence[str], limit: int = MAX_KEYWORDS) -> List[Keyword]:
    """Return the top *limit* terms of *tokens* by TF-IDF weight.

    *tokens* is treated as one document, so the IDF factor is uniform and the
    ranking follows term frequency.  Equal weights keep first-occurrence
    order; weights in the result never increase.
    """
    if not tokens:
        return []

    vectorizer = TfidfVectorizer(analyzer=_identity)
    try:
        matrix = vectorizer.fit_transform([list(tokens)])
    except ValueError:
        # empty vocabulary
        return []

    weights = matrix.toarray()[0]
    vocabulary = vectorizer.vocabulary_
    first_seen: dict[str, int] = {}
    for index, token in enumerate(tokens):
        first_seen.setdefault(token, index)

    ranked = sorted(first_seen, key=lambda term: (-weights[vocabulary[term]], first_seen[term]))
    return [
        Keyword(term=term, weight=round(float(weights[vocabulary[term]]), 6))
        for term in ranked[:limit]
    ]

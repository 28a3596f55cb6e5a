"""Lexicon-based sentiment scoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from uniscope.nlp.text import count_phrase, lower

POSITIVE = "positive"
NEUTRAL = "neutral"
NEGATIVE = "negative"

_THRESHOLD = 0.2

# language -> (positive words, negative words)
LEXICONS: Dict[str, Tuple[List[str], List[str]]] = {
    "tr": (
        ["başarı", "ödül", "tebrik", "kutlama", "başarılı", "güzel", "iyi", "harika"],
        ["sorun", "problem", "hata", "başarısız", "kötü", "üzücü"],
    ),
    "en": (
        ["success", "award", "congratulations", "celebration", "successful", "good", "great", "excellent"],
        ["problem", "issue", "error", "failed", "bad", "sad"],
    ),
}


@dataclass(frozen=True)
class Sentiment:
    label: str
    score: float


def sentiment_label(score: float) -> str:
    if score > _THRESHOLD:
        return POSITIVE
    if score < -_THRESHOLD:
        return NEGATIVE
    return NEUTRAL


def analyze_sentiment(text: str, language: str) -> Sentiment:
    """Score *text* as ``(pos - neg) / (pos + neg)`` over the language's lexicon.

    The score is 0 when no lexicon word occurs and is always within [-1, 1].
    """
    if not text:
        return Sentiment(NEUTRAL, 0.0)
    positive_words, negative_words = LEXICONS.get(language, LEXICONS["en"])
    lowered = lower(text)
    positive = sum(count_phrase(lowered, w) for w in positive_words)
    negative = sum(count_phrase(lowered, w) for w in negative_words)
    total = positive + negative
    if total == 0:
        return Sentiment(NEUTRAL, 0.0)
    score = max(-1.0, min(1.0, (positive - negative) / total))
    return Sentiment(sentiment_label(score), score)

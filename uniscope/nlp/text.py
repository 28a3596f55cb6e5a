"""Tokenisation and stop-word filtering shared by the statistical pass and keywords."""

from __future__ import annotations

import re
from typing import FrozenSet, List

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

TURKISH_STOP_WORDS: FrozenSet[str] = frozenset({
    "ve", "ile", "bir", "bu", "şu", "o", "için", "olan", "gibi", "kadar",
    "de", "da", "den", "dan", "ki", "mi", "mı", "mu", "mü", "var", "yok",
    "ise", "dır", "dir", "dur", "dür", "tır", "tir", "tur", "tür",
})

_TOKEN_RE = re.compile(r"\w+")
_DIGITS_RE = re.compile(r"^\d+$")


def stop_words(language: str) -> FrozenSet[str]:
    return TURKISH_STOP_WORDS if language == "tr" else ENGLISH_STOP_WORDS


def lower(text: str) -> str:
    """Lower-case *text*, mapping dotted capital İ to a plain ``i``."""
    return text.replace("İ", "i").lower()


def tokenize(text: str, language: str) -> List[str]:
    """Split *text* into lower-case word tokens for *language*.

    Tokens shorter than two characters, purely numeric tokens and the
    language's stop words are dropped.
    """
    if not text:
        return []
    excluded = stop_words(language)
    return [
        token
        for token in _TOKEN_RE.findall(lower(text))
        if len(token) >= 2 and not _DIGITS_RE.match(token) and token not in excluded
    ]


def count_phrase(text: str, phrase: str) -> int:
    """Count whole-word occurrences of *phrase* in already lower-cased *text*."""
    pattern = r"(?<!\w)" + re.escape(phrase) + r"(?!\w)"
    return len(re.findall(pattern, text))

"""Two-language (Turkish / English) detector built on character and word heuristics."""

from __future__ import annotations

import re
from typing import Dict

PRIMARY = "tr"
SECONDARY = "en"
SUPPORTED_LANGUAGES = (PRIMARY, SECONDARY)

# Letters that only occur in Turkish among the two supported languages.
TURKISH_CHARS_RE = re.compile(r"[çğıöşüÇĞİÖŞÜ]")

_SHORT_TEXT_CHARS = 10
_WIN_RATIO = 1.5

# word -> weight; domain words count double
_TURKISH_MARKERS: Dict[str, int] = {
    "ve": 1, "bir": 1, "bu": 1, "ile": 1, "için": 1, "olan": 1, "gibi": 1,
    "daha": 1, "çok": 1, "olarak": 1, "veya": 1, "kadar": 1, "sonra": 1,
    "ise": 1, "değil": 1, "tüm": 1, "her": 1, "yeni": 1, "ilgili": 1,
    "üniversitesi": 2, "üniversite": 2, "öğrenci": 2, "fakülte": 2,
    "bölüm": 2, "bölümü": 2, "duyuru": 2, "duyurular": 2, "haber": 2,
    "haberler": 2, "etkinlik": 2, "etkinlikler": 2, "araştırma": 2,
    "akademik": 2, "başvuru": 2, "ders": 2,
}

_ENGLISH_MARKERS: Dict[str, int] = {
    "the": 1, "and": 1, "of": 1, "to": 1, "in": 1, "for": 1, "is": 1,
    "on": 1, "with": 1, "by": 1, "at": 1, "from": 1, "this": 1, "that": 1,
    "are": 1, "be": 1, "was": 1, "will": 1, "has": 1, "have": 1, "an": 1,
    "university": 2, "student": 2, "students": 2, "faculty": 2,
    "department": 2, "news": 2, "announcement": 2, "announcements": 2,
    "event": 2, "events": 2, "research": 2, "academic": 2,
    "application": 2, "course": 2,
}

_WORD_RE = re.compile(r"\w+")


def _score(words: list[str], markers: Dict[str, int]) -> int:
    return sum(markers.get(w, 0) for w in words)


def detect_language(text: str) -> str:
    """Return ``"tr"`` or ``"en"`` for *text*.

    Text shorter than ten characters is decided by Turkish-only letters alone
    (absent means English).  Longer text is Turkish whenever such letters
    appear; otherwise each language's marker-word weight is totalled and a
    language wins only with at least 1.5 times the other's score.  Anything
    undecided is Turkish.
    """
    if not text or len(text) < _SHORT_TEXT_CHARS:
        return PRIMARY if text and TURKISH_CHARS_RE.search(text) else SECONDARY

    if TURKISH_CHARS_RE.search(text):
        return PRIMARY

    words = _WORD_RE.findall(text.replace("İ", "i").lower())
    tr_score = _score(words, _TURKISH_MARKERS)
    en_score = _score(words, _ENGLISH_MARKERS)

    if en_score > tr_score and en_score >= _WIN_RATIO * tr_score:
        return SECONDARY
    return PRIMARY

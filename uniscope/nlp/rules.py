"""Rule pass: URL path patterns first, then keyword frequency scoring."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from uniscope.nlp.text import count_phrase, lower


class Category(str, Enum):
    NEWS = "Haberler"
    ACADEMIC_ANNOUNCEMENTS = "Akademik Duyurular"
    EVENTS = "Etkinlikler"
    RESEARCH_PROJECTS = "Araştırma Projeleri"
    STUDENT_ANNOUNCEMENTS = "Öğrenci Duyuruları"
    OTHER = "Diğer"


METHOD_URL_PATTERN = "url_pattern"
METHOD_KEYWORDS = "keyword_matching"

# Checked in order against the lower-cased URL.
URL_PATTERNS: List[Tuple[Tuple[str, ...], Category, float]] = [
    (("/haber", "/news", "/haberler"), Category.NEWS, 0.9),
    (("/duyuru", "/announcement", "/duyurular"), Category.ACADEMIC_ANNOUNCEMENTS, 0.85),
    (("/etkinlik", "/event", "/etkinlikler"), Category.EVENTS, 0.9),
]

# Declaration order breaks score ties.
KEYWORD_RULES: Dict[Category, List[str]] = {
    Category.NEWS: [
        "haber", "news", "güncel", "son dakika", "duyuru", "açıklama",
        "başarı", "ödül", "tebrik", "kutlama", "açılış", "tören",
    ],
    Category.ACADEMIC_ANNOUNCEMENTS: [
        "akademik", "academic", "duyuru", "announcement", "ilan", "pozisyon",
        "öğretim üyesi", "öğretim elemanı", "başvuru", "application",
        "yönetmelik", "yönerge", "karar", "toplantı",
    ],
    Category.EVENTS: [
        "etkinlik", "event", "seminer", "seminar", "konferans", "conference",
        "workshop", "çalıştay", "panel", "söyleşi", "sergi", "exhibition",
        "konser", "concert", "tarih", "date", "saat", "time", "yer", "location",
    ],
    Category.RESEARCH_PROJECTS: [
        "araştırma", "research", "proje", "project", "ar-ge", "r&d",
        "inovasyon", "innovation", "teknoloji transfer", "patent",
        "yayın", "publication", "makale", "article", "tübitak",
    ],
    Category.STUDENT_ANNOUNCEMENTS: [
        "öğrenci", "student", "burs", "scholarship", "staj", "internship",
        "kariyer", "career", "iş", "job", "kulüp", "club", "topluluk",
        "sosyal", "spor", "sport", "kültür", "culture",
    ],
}

_KEYWORD_BASE = 0.6
_KEYWORD_CAP = 0.9


@dataclass(frozen=True)
class RuleResult:
    category: Category
    confidence: float
    method: str


def match_url(url: str) -> Optional[RuleResult]:
    lowered = (url or "").lower()
    for fragments, category, confidence in URL_PATTERNS:
        if any(fragment in lowered for fragment in fragments):
            return RuleResult(category, confidence, METHOD_URL_PATTERN)
    return None


def keyword_scores(text: str) -> Dict[Category, int]:
    """Whole-word keyword hit counts per category for already lower-cased *text*."""
    return {
        category: sum(count_phrase(text, keyword) for keyword in keywords)
        for category, keywords in KEYWORD_RULES.items()
    }


def rule_pass(
    url: str,
    title: str = "",
    clean_text: str = "",
    headers: Iterable[str] = (),
    links: Iterable[str] = (),
) -> Optional[RuleResult]:
    """Classify by URL pattern, falling back to keyword scoring.

    Args:
        url: Page URL; a known path fragment decides immediately.
        title: Page title.
        clean_text: Extracted clean text.
        headers: Header texts.
        links: Link texts.

    Returns:
        A :class:`RuleResult`, or ``None`` when neither the URL nor any
        keyword matches.  Keyword confidence is ``min(0.6 + score / 10, 0.9)``.
    """
    by_url = match_url(url)
    if by_url is not None:
        return by_url

    text = lower(" ".join([title or "", clean_text or "", " ".join(headers), " ".join(links)]))
    scores = keyword_scores(text)

    best_category, best_score = Category.OTHER, 0
    for category, score in scores.items():
        if score > best_score:
            best_category, best_score = category, score
    if best_score == 0:
        return None

    confidence = round(min(_KEYWORD_BASE + best_score / 10, _KEYWORD_CAP), 4)
    return RuleResult(best_category, confidence, METHOD_KEYWORDS)

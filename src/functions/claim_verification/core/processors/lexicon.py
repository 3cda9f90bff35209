"""Shared word lists and token helpers for the lexical processors."""

from __future__ import annotations

import re
from typing import List

STOPWORDS = frozenset(
    {
        "a", "about", "above", "after", "again", "against", "all", "also", "am", "an",
        "and", "any", "are", "around", "as", "at", "be", "because", "been", "before",
        "being", "below", "between", "both", "but", "by", "can", "could", "did", "do",
        "does", "doing", "down", "during", "each", "even", "few", "for", "from",
        "further", "had", "has", "have", "having", "he", "her", "here", "hers",
        "herself", "him", "himself", "his", "how", "i", "if", "in", "into", "is", "it",
        "its", "itself", "just", "last", "least", "less", "like", "made", "make",
        "many", "may", "me", "might", "more", "most", "much", "must", "my", "myself",
        "new", "no", "nor", "not", "now", "of", "off", "on", "once", "one", "only",
        "or", "other", "our", "ours", "out", "over", "own", "per", "said", "same",
        "says", "she", "should", "since", "so", "some", "such", "than", "that", "the",
        "their", "theirs", "them", "then", "there", "these", "they", "this", "those",
        "through", "to", "too", "under", "until", "up", "upon", "very", "was", "we",
        "were", "what", "when", "where", "which", "while", "who", "whom", "why",
        "will", "with", "within", "without", "would", "year", "years", "you", "your",
    }
)

# Page-chrome vocabulary that must never end up in a search query.
UI_STOPWORDS = frozenset(
    {
        "advertisement", "click", "comment", "comments", "cookie", "cookies", "download",
        "follow", "home", "login", "menu", "navigation", "newsletter", "privacy", "read",
        "share", "sign", "skip", "sponsored", "subscribe", "terms", "video", "watch",
    }
)

_WORD = re.compile(r"[A-Za-z][A-Za-z'’\-]*")
_NUMBER_TOKEN = re.compile(r"\d[\d,]*(?:\.\d+)?%?")


def words(text: str) -> List[str]:
    return _WORD.findall(text or "")


def significant_words(text: str, min_length: int = 4) -> List[str]:
    """Lowercased, order-preserving, de-duplicated content words."""

    seen: dict[str, None] = {}
    for word in words(text):
        lowered = word.lower().strip("'’-")
        if len(lowered) < min_length or lowered in STOPWORDS or lowered in UI_STOPWORDS:
            continue
        seen.setdefault(lowered, None)
    return list(seen)


def number_tokens(text: str) -> List[str]:
    """Numeric tokens as written, e.g. ``1,200`` or ``12%``, without duplicates."""

    seen: dict[str, None] = {}
    for match in _NUMBER_TOKEN.finditer(text or ""):
        token = match.group(0).rstrip(",")
        if token:
            seen.setdefault(token, None)
    return list(seen)


def overlap_ratio(reference: List[str], candidate_text: str) -> float:
    """Share of ``reference`` words that also appear in ``candidate_text``."""

    if not reference:
        return 0.0
    candidate = set(significant_words(candidate_text))
    if not candidate:
        return 0.0
    hits = sum(1 for word in reference if word in candidate)
    return hits / len(reference)

"""Utilities for mining verifiable factual claims from page text."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from src.shared.utils.logging import get_logger

from ..contracts import Claim, EntityBundle
from .entity_extractor import MONTHS, WEEKDAYS, extract_entities

LOGGER = get_logger(__name__)

MIN_SENTENCE_CHARS = 40
MAX_SENTENCE_CHARS = 400
MIN_FACTUAL_SCORE = 0.4
DEFAULT_MAX_CLAIMS = 10
MAX_CLAIMS_LIMIT = 15

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
# Tokens whose trailing period does not end a sentence.
_ABBREVIATIONS = frozenset(
    {
        "mr.", "mrs.", "ms.", "dr.", "prof.", "gen.", "sen.", "gov.", "rep.", "st.", "jr.", "sr.",
        "inc.", "corp.", "co.", "ltd.", "no.", "vs.", "jan.", "feb.", "mar.", "apr.", "jun.",
        "jul.", "aug.", "sep.", "sept.", "oct.", "nov.", "dec.",
    }
)
_INITIALS = re.compile(r"^(?:[A-Z]\.)+$")

_UI_KEYWORDS = (
    "menu",
    "navigation",
    "skip to content",
    "skip to main",
    "newsletter",
    "subscribe",
    "sign up",
    "sign in",
    "log in",
    "login",
    "cookie",
    "cookies",
    "privacy policy",
    "terms of service",
    "terms of use",
    "all rights reserved",
    "read more",
    "click here",
    "advertisement",
    "sponsored",
    "share this",
    "share on",
    "follow us",
    "download the app",
    "related articles",
    "recommended for you",
)
_UI_KEYWORD_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(keyword) for keyword in _UI_KEYWORDS) + r")\b",
    re.IGNORECASE,
)
_MONTH_ALT = "|".join(MONTHS) + r"|Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec"
_CALENDAR_ALT = _MONTH_ALT + "|" + "|".join(WEEKDAYS)
_UI_PATTERNS = (
    re.compile(r"^\s*[Bb]y\s+(?!(?:" + _CALENDAR_ALT + r")\b)[A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,3}\s*(?:[,|\-]|$)"),
    re.compile(r"\b\d+\s+(?:seconds?|minutes?|mins?|hours?|hrs?|days?|weeks?|months?)\s+ago\b", re.IGNORECASE),
    re.compile(r"^\s*(?:updated|published|posted|last modified)\s*:?\s*(?:on\s+)?(?:" + _MONTH_ALT + r"|\d)", re.IGNORECASE),
    re.compile(r"^\s*(?:(?:Mon|Tues|Wednes|Thurs|Fri|Satur|Sun)day,?\s*)?(?:" + _MONTH_ALT + r")\.?\s+\d{1,2},?\s+\d{4}\.?\s*$"),
    re.compile(r"[©®]"),
    re.compile(r"\b\d+(?:\.\d+)?[kKmM]?\s+(?:shares|likes|comments|views|retweets|reactions)\b", re.IGNORECASE),
)

_OPINION_MARKERS = re.compile(
    r"\b(?:i believe|we believe|believe[sd]?|i think|we think|i feel|in my opinion|in our view|"
    r"might|could|perhaps|possibly|probably|allegedly|supposedly|arguably|seemingly|"
    r"seems?|appears? to|rumou?red|should)\b",
    re.IGNORECASE,
)

_CITATION = re.compile(r"\[[^\]]*\]")
_PARENTHETICAL = re.compile(r"\s*\([^)]*\)")
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([,.;:!?])")
_WHITESPACE = re.compile(r"\s+")

_PERCENTAGE = re.compile(r"\d+(?:\.\d+)?\s?(?:%|percent\b|per cent\b)", re.IGNORECASE)
_CURRENCY = re.compile(
    r"[$€£¥]\s?\d|\b\d[\d,]*(?:\.\d+)?\s?(?:dollars|euros|pounds|usd|eur|gbp)\b",
    re.IGNORECASE,
)
_YEAR = re.compile(r"\b(?:1[89]|20)\d{2}\b")
_MONTH_DAY = re.compile(
    r"\b(?:" + _MONTH_ALT + r")\.?\s+\d{1,2}(?:st|nd|rd|th)?\b|\b\d{1,2}(?:st|nd|rd|th)?\s+(?:" + _MONTH_ALT + r")\b"
)
_ATTRIBUTION = re.compile(
    r"\baccording to\s+\w+|\b(?:said|says|stated|told|announced|confirmed|reported)\b|\breported by\b",
    re.IGNORECASE,
)
_COMPARATIVE = re.compile(
    r"\b(?:more than|less than|fewer than|higher than|lower than|compared (?:to|with)|"
    r"increased?|decreased?|rose|fell|doubled|tripled|halved|largest|smallest|highest|lowest)\b",
    re.IGNORECASE,
)
_CAUSAL = re.compile(
    r"\b(?:because|due to|caused|led to|resulted in|as a result of|leading to|owing to)\b",
    re.IGNORECASE,
)
_VAGUE_QUANTIFIERS = re.compile(r"\b(?:some|many|several|few|various|numerous)\b", re.IGNORECASE)

_WEIGHT_PERCENTAGE = 2.0
_WEIGHT_CURRENCY = 1.8
_WEIGHT_YEAR = 1.5
_WEIGHT_MONTH_DAY = 1.8
_WEIGHT_ATTRIBUTION = 1.5
_WEIGHT_COMPARATIVE = 1.0
_WEIGHT_CAUSAL = 1.2
_WEIGHT_ENTITY = 0.5
_MAX_ENTITY_BONUS = 1.5
_WEIGHT_SWEET_SPOT = 0.5
_PENALTY_VAGUE = 0.3


def extract_claims(text: str, max_claims: int = DEFAULT_MAX_CLAIMS) -> List[Claim]:
    """Return the most claim-like sentences of ``text``, strongest first.

    Args:
        text: Normalised page text.
        max_claims: Upper bound on returned claims, clamped to 1..15.
    """

    limit = max(1, min(MAX_CLAIMS_LIMIT, int(max_claims)))
    candidates: List[Tuple[float, int, str, EntityBundle]] = []
    seen: set[str] = set()

    for index, sentence in enumerate(split_sentences(text)):
        if not MIN_SENTENCE_CHARS <= len(sentence) <= MAX_SENTENCE_CHARS:
            continue
        if is_ui_text(sentence) or is_opinion(sentence):
            continue
        cleaned = clean_sentence(sentence)
        if not cleaned or cleaned.lower() in seen:
            continue
        entities = extract_entities(cleaned)
        score = score_factual_claim(cleaned, entities)
        if score < MIN_FACTUAL_SCORE:
            continue
        seen.add(cleaned.lower())
        candidates.append((score, index, cleaned, entities))

    candidates.sort(key=lambda item: (-item[0], item[1]))
    claims = [
        Claim(text=sentence, factual_score=score, entities=entities)
        for score, _, sentence, entities in candidates[:limit]
    ]
    LOGGER.debug("Extracted %d claims from %d candidates", len(claims), len(candidates))
    return claims


def split_sentences(text: str) -> List[str]:
    if not text:
        return []
    sentences: List[str] = []
    carry = ""
    for piece in _SENTENCE_SPLIT.split(text):
        piece = piece.strip()
        if not piece:
            continue
        current = f"{carry} {piece}" if carry else piece
        if _ends_with_abbreviation(current):
            carry = current
            continue
        sentences.append(current)
        carry = ""
    if carry:
        sentences.append(carry)
    return sentences


def _ends_with_abbreviation(fragment: str) -> bool:
    last = fragment.rsplit(None, 1)[-1]
    return last.lower() in _ABBREVIATIONS or bool(_INITIALS.match(last))


def is_ui_text(sentence: str) -> bool:
    """True for navigation, advertising, byline and other page chrome."""

    if _UI_KEYWORD_PATTERN.search(sentence):
        return True
    return any(pattern.search(sentence) for pattern in _UI_PATTERNS)


def is_opinion(sentence: str) -> bool:
    return len(_OPINION_MARKERS.findall(sentence)) >= 2


def clean_sentence(sentence: str) -> str:
    cleaned = _CITATION.sub("", sentence)
    cleaned = _PARENTHETICAL.sub("", cleaned)
    cleaned = _SPACE_BEFORE_PUNCT.sub(r"\1", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def score_factual_claim(sentence: str, entities: Optional[EntityBundle] = None) -> float:
    """Additive claim-likeness score; higher means more checkable."""

    if entities is None:
        entities = extract_entities(sentence)

    score = 0.0
    if _PERCENTAGE.search(sentence):
        score += _WEIGHT_PERCENTAGE
    if _CURRENCY.search(sentence):
        score += _WEIGHT_CURRENCY
    if _YEAR.search(sentence):
        score += _WEIGHT_YEAR
    if _MONTH_DAY.search(sentence):
        score += _WEIGHT_MONTH_DAY
    score += _WEIGHT_ATTRIBUTION * len(_ATTRIBUTION.findall(sentence))
    if _COMPARATIVE.search(sentence):
        score += _WEIGHT_COMPARATIVE
    if _CAUSAL.search(sentence):
        score += _WEIGHT_CAUSAL

    entity_count = len(entities.named) + len(entities.acronyms)
    score += min(_MAX_ENTITY_BONUS, _WEIGHT_ENTITY * entity_count)

    word_count = len(sentence.split())
    if 15 <= word_count <= 40:
        score += _WEIGHT_SWEET_SPOT

    score -= _PENALTY_VAGUE * len(_VAGUE_QUANTIFIERS.findall(sentence))
    return max(0.0, score)

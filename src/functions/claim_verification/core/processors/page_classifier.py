"""Coarse page-type classification (news article, opinion, blog, ...)."""

from __future__ import annotations

import re
from typing import Dict, Optional

from src.shared.utils.logging import get_logger

from ..contracts import PageType
from ..nli.inference_client import InferenceClient, InferenceClientError

LOGGER = get_logger(__name__)

PAGE_LABELS = ("news article", "opinion", "blog", "research report", "fact page")
CLASSIFY_INPUT_CHARS = 4000
UNKNOWN_LABEL = "unknown"

_KEYWORD_CUES: Dict[str, re.Pattern[str]] = {
    "opinion": re.compile(
        r"\b(?:opinion|op-ed|editorial|commentary|i believe|in my view|columnist)\b", re.IGNORECASE
    ),
    "blog": re.compile(r"\b(?:posted by|blog|leave a comment|my readers|dear readers)\b", re.IGNORECASE),
    "research report": re.compile(
        r"\b(?:abstract|methodology|findings|peer-reviewed|et al\.|participants|doi)\b", re.IGNORECASE
    ),
    "fact page": re.compile(r"\b(?:fact sheet|faq|quick facts|key facts|at a glance)\b", re.IGNORECASE),
    "news article": re.compile(
        r"\b(?:according to|said on|told reporters|reported|press release|officials said)\b",
        re.IGNORECASE,
    ),
}


async def classify_page_type(text: str, client: Optional[InferenceClient] = None) -> PageType:
    """Classify the page, preferring the hosted zero-shot model."""

    excerpt = (text or "")[:CLASSIFY_INPUT_CHARS]
    if not excerpt.strip():
        return PageType()

    if client is not None:
        try:
            scores = await client.zero_shot(excerpt, PAGE_LABELS)
        except InferenceClientError as exc:
            LOGGER.warning("Page classification failed (%s); using keyword cues", exc)
        else:
            best = _best_label(scores)
            if best is not None:
                return best
            LOGGER.warning("Page classification returned no usable scores; using keyword cues")

    return classify_by_keywords(excerpt)


def classify_by_keywords(text: str) -> PageType:
    """Pick the label with the most cue hits. Keyword guesses carry a 0.0 score."""

    hits = {label: len(pattern.findall(text)) for label, pattern in _KEYWORD_CUES.items()}
    label, count = max(hits.items(), key=lambda item: item[1])
    if count == 0:
        return PageType(label=UNKNOWN_LABEL, score=0.0)
    return PageType(label=label, score=0.0)


def _best_label(scores: Dict[str, float]) -> Optional[PageType]:
    numeric = {
        label: float(score)
        for label, score in scores.items()
        if isinstance(score, (int, float)) and not isinstance(score, bool)
    }
    if not numeric:
        return None
    label, score = max(numeric.items(), key=lambda item: item[1])
    return PageType(label=label, score=max(0.0, min(1.0, score)))

"""Claim-specific relevance scoring for evidence sources."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from ..contracts import MAX_RELEVANCE_SCORE, Claim, NliResult, RelevanceScore, Source
from .lexicon import number_tokens, overlap_ratio, significant_words

DEFAULT_RELEVANT_LIMIT = 4
DEFAULT_MIN_RELEVANCE = 0.3

_NLI_WEIGHT = 2.0
_ENTITY_WEIGHT = 0.5
_NUMBER_WEIGHT = 0.8
_KEYWORD_WEIGHT = 0.5
_TITLE_WEIGHT = 0.3
_STRONG_NLI_THRESHOLD = 0.5
_KEYWORD_REASON_THRESHOLD = 0.2
_TITLE_REASON_THRESHOLD = 0.3


def score_relevance(claim: Claim, source: Source, nli: Optional[NliResult] = None) -> RelevanceScore:
    """Return how specifically ``source`` pertains to ``claim``, with reasons."""

    evidence = source.evidence_text
    evidence_lower = evidence.lower()
    reasons: List[str] = []
    score = 0.0

    if nli is not None:
        signal = max(nli.entail, nli.contra)
        score += signal * _NLI_WEIGHT
        if signal >= _STRONG_NLI_THRESHOLD:
            reasons.append("strong NLI signal")

    for entity in claim.entities.named:
        if entity.lower() in evidence_lower:
            score += _ENTITY_WEIGHT
            reasons.append(f"entity match: {entity}")

    evidence_numbers = set(number_tokens(evidence))
    for number in number_tokens(claim.text):
        if number in evidence_numbers:
            score += _NUMBER_WEIGHT
            reasons.append(f"number match: {number}")

    claim_words = significant_words(claim.text)
    keyword_overlap = overlap_ratio(claim_words, evidence)
    if keyword_overlap:
        score += keyword_overlap * _KEYWORD_WEIGHT
        if keyword_overlap >= _KEYWORD_REASON_THRESHOLD:
            reasons.append(f"keyword overlap: {round(keyword_overlap * 100)}%")

    title_overlap = overlap_ratio(claim_words, source.title)
    if title_overlap:
        score += title_overlap * _TITLE_WEIGHT
        if title_overlap >= _TITLE_REASON_THRESHOLD:
            reasons.append("title match")

    return RelevanceScore(score=min(MAX_RELEVANCE_SCORE, score), match_reasons=tuple(reasons))


def select_relevant_sources(
    scored: Iterable[Tuple[Source, RelevanceScore]],
    limit: int = DEFAULT_RELEVANT_LIMIT,
    min_score: float = DEFAULT_MIN_RELEVANCE,
) -> Tuple[Tuple[Source, RelevanceScore], ...]:
    """Keep sources scoring above ``min_score``, best first, at most ``limit``."""

    kept = [pair for pair in scored if pair[1].score > min_score]
    kept.sort(key=lambda pair: pair[1].score, reverse=True)
    return tuple(kept[:limit])

"""Deterministic lexical stand-in for the hosted NLI model."""

from __future__ import annotations

import re

from ..contracts import NliResult
from ..processors.lexicon import number_tokens, overlap_ratio, significant_words

HEURISTIC_STRATEGY = "heuristic"
MAX_HEURISTIC_SCORE = 0.7

_CONTRADICTION_MARKERS = re.compile(
    r"\b(?:false|falsely|untrue|not true|denie[sd]|deny|denying|debunk(?:ed|s)?|no evidence|"
    r"misleading|hoax|fake|fabricated|disputed|refuted?|incorrect|inaccurate|myth|"
    r"baseless|unfounded|retracted|rejected)\b",
    re.IGNORECASE,
)
_SUPPORT_MARKERS = re.compile(
    r"\b(?:confirm(?:s|ed)?|verified|verifies|consistent with|corroborat(?:es|ed)|"
    r"according to official|official data|data shows?|records show|proved|proven|"
    r"accurate|true)\b",
    re.IGNORECASE,
)

_OVERLAP_WEIGHT = 0.5
_NUMBER_MATCH_BONUS = 0.15
_SUPPORT_BONUS = 0.1
_CONTRA_BASE = 0.25
_CONTRA_OVERLAP_WEIGHT = 0.3
_CONTRA_EXTRA_MARKER = 0.05
_ENTAIL_SUPPRESSION = 0.3
_NUMBER_MISMATCH_PENALTY = 0.1


def _clamp(value: float) -> float:
    return max(0.0, min(MAX_HEURISTIC_SCORE, value))


def heuristic_score(evidence: str, claim: str) -> NliResult:
    """Score ``evidence`` against ``claim`` from word overlap, numbers and marker phrases."""

    claim_words = significant_words(claim)
    overlap = overlap_ratio(claim_words, evidence)

    claim_numbers = number_tokens(claim)
    evidence_numbers = set(number_tokens(evidence))
    number_match = bool(claim_numbers) and any(number in evidence_numbers for number in claim_numbers)
    number_mismatch = bool(claim_numbers) and bool(evidence_numbers) and not number_match

    contra_hits = len(_CONTRADICTION_MARKERS.findall(evidence))
    support_hits = len(_SUPPORT_MARKERS.findall(evidence))

    entail = _OVERLAP_WEIGHT * overlap
    if number_match:
        entail += _NUMBER_MATCH_BONUS
    if overlap > 0:
        entail += _SUPPORT_BONUS * min(support_hits, 2)

    contra = 0.0
    if contra_hits and overlap > 0:
        contra = _CONTRA_BASE + _CONTRA_OVERLAP_WEIGHT * overlap
        contra += _CONTRA_EXTRA_MARKER * (min(contra_hits, 3) - 1)
        entail *= _ENTAIL_SUPPRESSION
    if number_mismatch and overlap >= 0.3:
        contra += _NUMBER_MISMATCH_PENALTY

    entail = _clamp(entail)
    contra = _clamp(contra)
    neutral = max(0.0, 1.0 - entail - contra)
    return NliResult(entail=entail, contra=contra, neutral=neutral, strategy=HEURISTIC_STRATEGY)

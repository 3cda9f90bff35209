"""Verdict and result contracts for claim verification."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, TypeVar

from .claim import Claim
from .source import RelevanceScore, Source

_PLAUSIBLE_SUM = (0.5, 1.5)

DISCLAIMER = (
    "Consensus is estimated from multiple sources using automated NLI and may be imperfect."
)

V = TypeVar("V")


class VerdictLabel(str, Enum):
    """Closed set of consensus labels, strongest support first."""

    STRONGLY_SUPPORTED = "strongly_supported"
    SUPPORTED = "supported"
    WEAKLY_SUPPORTED = "weakly_supported"
    CONTESTED = "contested"
    INSUFFICIENT_EVIDENCE = "insufficient_evidence"
    WEAKLY_REFUTED = "weakly_refuted"
    LIKELY_FALSE = "likely_false"
    REFUTED = "refuted"


def _exhaustive(mapping: Mapping[VerdictLabel, V], name: str) -> Dict[VerdictLabel, V]:
    missing = [label.value for label in VerdictLabel if label not in mapping]
    if missing:
        raise RuntimeError(f"{name} is missing verdict labels: {', '.join(missing)}")
    return dict(mapping)


VERDICT_CREDIBILITY: Dict[VerdictLabel, float] = _exhaustive(
    {
        VerdictLabel.STRONGLY_SUPPORTED: 1.0,
        VerdictLabel.SUPPORTED: 0.85,
        VerdictLabel.WEAKLY_SUPPORTED: 0.7,
        VerdictLabel.CONTESTED: 0.5,
        VerdictLabel.INSUFFICIENT_EVIDENCE: 0.5,
        VerdictLabel.WEAKLY_REFUTED: 0.3,
        VerdictLabel.LIKELY_FALSE: 0.2,
        VerdictLabel.REFUTED: 0.1,
    },
    "VERDICT_CREDIBILITY",
)

VERDICT_DISPLAY: Dict[VerdictLabel, str] = _exhaustive(
    {
        VerdictLabel.STRONGLY_SUPPORTED: "Strongly supported",
        VerdictLabel.SUPPORTED: "Supported",
        VerdictLabel.WEAKLY_SUPPORTED: "Weakly supported",
        VerdictLabel.CONTESTED: "Contested",
        VerdictLabel.INSUFFICIENT_EVIDENCE: "Insufficient evidence",
        VerdictLabel.WEAKLY_REFUTED: "Weakly refuted",
        VerdictLabel.LIKELY_FALSE: "Likely false",
        VerdictLabel.REFUTED: "Refuted",
    },
    "VERDICT_DISPLAY",
)

# Consensus summary buckets; ``None`` means the claim is left out of the summary.
VERDICT_SUMMARY_BUCKET: Dict[VerdictLabel, Optional[str]] = _exhaustive(
    {
        VerdictLabel.STRONGLY_SUPPORTED: "Generally supported",
        VerdictLabel.SUPPORTED: "Generally supported",
        VerdictLabel.WEAKLY_SUPPORTED: "Generally supported",
        VerdictLabel.CONTESTED: "Contested/unclear",
        VerdictLabel.INSUFFICIENT_EVIDENCE: None,
        VerdictLabel.WEAKLY_REFUTED: "Likely incorrect",
        VerdictLabel.LIKELY_FALSE: "Likely incorrect",
        VerdictLabel.REFUTED: "Likely incorrect",
    },
    "VERDICT_SUMMARY_BUCKET",
)


@dataclass(frozen=True)
class NliResult:
    """Entailment / contradiction / neutral scores for an (evidence, claim) pair."""

    entail: float
    contra: float
    neutral: float
    strategy: str = "heuristic"

    def is_plausible(self) -> bool:
        """Scores are finite, within [0, 1], and sum to a sane total."""

        values = (self.entail, self.contra, self.neutral)
        for value in values:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return False
            if not math.isfinite(value) or value < 0.0 or value > 1.0:
                return False
        low, high = _PLAUSIBLE_SUM
        return low <= sum(values) <= high

    def is_degenerate(self) -> bool:
        return self.entail <= 0.0 and self.contra <= 0.0

    @property
    def is_remote(self) -> bool:
        return self.strategy == "remote"


@dataclass(frozen=True)
class ClaimVerdict:
    """Final consensus for one claim."""

    claim: Claim
    entail_avg: float
    contra_avg: float
    verdict: VerdictLabel
    relevant_sources: Tuple[Tuple[Source, RelevanceScore], ...] = ()
    confidence: float = 0.0
    evidence_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.claim.text,
            "factual_score": round(self.claim.factual_score, 3),
            "entities": self.claim.entities.to_dict(),
            "entail_score": round(self.entail_avg, 4),
            "contra_score": round(self.contra_avg, 4),
            "consensus": self.verdict.value,
            "consensus_label": VERDICT_DISPLAY[self.verdict],
            "confidence": round(self.confidence, 3),
            "evidence_count": self.evidence_count,
            "relevant_sources": [
                {**source.to_dict(), "relevance": relevance.to_dict()}
                for source, relevance in self.relevant_sources
            ],
        }


@dataclass(frozen=True)
class PageType:
    """Coarse page classification (news article, opinion, blog, ...)."""

    label: str = "unknown"
    score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "score": round(self.score, 4)}


def _default_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class AnalysisResult:
    """Terminal artifact of one analysis run."""

    page_type: PageType
    claims: Tuple[ClaimVerdict, ...] = ()
    sources: Tuple[Source, ...] = ()
    credibility_score: float = 0.5
    consensus_summary: str = ""
    disclaimer: str = DISCLAIMER
    used_fallback_sources: bool = False
    status: str = "complete"
    processing_time_ms: int = 0
    analyzed_at: str = field(default_factory=_default_timestamp)

    def __post_init__(self) -> None:
        self.credibility_score = max(0.0, min(1.0, float(self.credibility_score)))
        self.claims = tuple(self.claims)
        self.sources = tuple(self.sources)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "page_type": self.page_type.to_dict(),
            "claims": [verdict.to_dict() for verdict in self.claims],
            "sources": [source.to_dict() for source in self.sources],
            "credibility_score": round(self.credibility_score, 4),
            "consensus": {
                "summary": self.consensus_summary,
                "disclaimer": self.disclaimer,
            },
            "used_fallback_sources": self.used_fallback_sources,
            "processing_time_ms": self.processing_time_ms,
            "analyzed_at": self.analyzed_at,
        }

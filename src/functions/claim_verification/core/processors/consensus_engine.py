"""Consensus aggregation for claim verdicts and article credibility."""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from src.shared.utils.logging import get_logger

from ..contracts import (
    VERDICT_CREDIBILITY,
    VERDICT_SUMMARY_BUCKET,
    Claim,
    ClaimVerdict,
    NliResult,
    RelevanceScore,
    Source,
    VerdictLabel,
)
from ..retrieval.source_reputation import is_reputable

LOGGER = get_logger(__name__)

REPUTABLE_WEIGHT = 1.5
DEFAULT_WEIGHT = 1.0
MIN_VALID_RESULTS = 2
NEUTRAL_CREDIBILITY = 0.5
HEURISTIC_CONFIDENCE_CAP = 0.6
EMPTY_SUMMARY = "Insufficient evidence for consensus."

_SUMMARY_ORDER = ("Generally supported", "Contested/unclear", "Likely incorrect")
_CLAIMS_PER_BUCKET = 2


class ConsensusEngine:
    """Turns per-source NLI scores into verdicts and an article-level score."""

    def compute_verdict(
        self,
        claim: Claim,
        scored_pairs: Sequence[Tuple[Source, NliResult]],
        relevant_sources: Sequence[Tuple[Source, RelevanceScore]] = (),
    ) -> ClaimVerdict:
        """Aggregate ``scored_pairs`` for ``claim`` into a :class:`ClaimVerdict`.

        Only plausible, non-degenerate results count. Sources from reputable
        publishers weigh 1.5x. Fewer than two valid results always yields
        ``insufficient_evidence``.
        """

        valid = [
            (source, result)
            for source, result in scored_pairs
            if result.is_plausible() and not result.is_degenerate()
        ]
        entail_avg, contra_avg = self._weighted_means(valid)

        if len(valid) < MIN_VALID_RESULTS:
            verdict = VerdictLabel.INSUFFICIENT_EVIDENCE
        else:
            verdict = self.classify(entail_avg, contra_avg)

        confidence = self._confidence(entail_avg, contra_avg, valid, verdict)
        LOGGER.debug(
            "Verdict %s (e=%.3f c=%.3f n=%d conf=%.2f) for claim %r",
            verdict.value,
            entail_avg,
            contra_avg,
            len(valid),
            confidence,
            claim.text[:80],
        )
        return ClaimVerdict(
            claim=claim,
            entail_avg=entail_avg,
            contra_avg=contra_avg,
            verdict=verdict,
            relevant_sources=tuple(relevant_sources),
            confidence=confidence,
            evidence_count=len(valid),
        )

    @staticmethod
    def classify(entail: float, contra: float) -> VerdictLabel:
        """Map weighted means to a label. Checks run in a fixed order; the first match wins."""

        if entail >= 0.35 and contra <= 0.15:
            return VerdictLabel.STRONGLY_SUPPORTED
        if entail >= 0.25 and contra <= 0.20:
            return VerdictLabel.SUPPORTED
        if contra >= 0.35 and entail <= 0.15:
            return VerdictLabel.REFUTED
        if contra >= 0.25 and entail <= 0.20:
            return VerdictLabel.LIKELY_FALSE
        if entail >= 1.5 * contra and entail > 0.15:
            return VerdictLabel.SUPPORTED
        if contra >= 1.5 * entail and contra > 0.15:
            return VerdictLabel.LIKELY_FALSE
        if abs(entail - contra) <= 0.10:
            return VerdictLabel.CONTESTED
        if entail - contra > 0.10:
            return VerdictLabel.WEAKLY_SUPPORTED
        if contra - entail > 0.10:
            return VerdictLabel.WEAKLY_REFUTED
        return VerdictLabel.INSUFFICIENT_EVIDENCE

    @staticmethod
    def credibility_score(verdicts: Sequence[ClaimVerdict]) -> float:
        """Confidence-weighted mean of per-verdict credibility; 0.5 without signal."""

        total_weight = sum(verdict.confidence for verdict in verdicts)
        if not verdicts or total_weight <= 0:
            return NEUTRAL_CREDIBILITY
        weighted = sum(VERDICT_CREDIBILITY[verdict.verdict] * verdict.confidence for verdict in verdicts)
        return max(0.0, min(1.0, weighted / total_weight))

    @staticmethod
    def summarize(verdicts: Sequence[ClaimVerdict]) -> str:
        buckets: Dict[str, List[str]] = {bucket: [] for bucket in _SUMMARY_ORDER}
        for verdict in verdicts:
            bucket = VERDICT_SUMMARY_BUCKET[verdict.verdict]
            if bucket is not None:
                buckets[bucket].append(verdict.claim.text)

        bullets = [
            f"{bucket}: " + "; ".join(texts[:_CLAIMS_PER_BUCKET])
            for bucket, texts in buckets.items()
            if texts
        ]
        return " ".join(bullets) or EMPTY_SUMMARY

    @staticmethod
    def _weighted_means(valid: Sequence[Tuple[Source, NliResult]]) -> Tuple[float, float]:
        if not valid:
            return 0.0, 0.0
        total = entail = contra = 0.0
        for source, result in valid:
            weight = REPUTABLE_WEIGHT if is_reputable(source.url, source.publisher) else DEFAULT_WEIGHT
            total += weight
            entail += result.entail * weight
            contra += result.contra * weight
        return entail / total, contra / total

    @staticmethod
    def _confidence(
        entail: float,
        contra: float,
        valid: Sequence[Tuple[Source, NliResult]],
        verdict: VerdictLabel,
    ) -> float:
        if verdict is VerdictLabel.INSUFFICIENT_EVIDENCE or not valid:
            return 0.0
        base = min(1.0, abs(entail - contra) + 0.1 * len(valid))
        remote_fraction = sum(1 for _, result in valid if result.is_remote) / len(valid)
        scale = HEURISTIC_CONFIDENCE_CAP + (1.0 - HEURISTIC_CONFIDENCE_CAP) * remote_fraction
        return base * scale

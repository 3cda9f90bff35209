"""Evidence/claim inference scoring with caching, deadlines and fallback."""

from __future__ import annotations

import asyncio
import hashlib
from typing import Mapping, Optional

from src.shared.utils.logging import get_logger

from ..config import NliConfig
from ..contracts import NliResult
from ..retrieval.cache_store import CacheStore
from .heuristic_scorer import heuristic_score
from .inference_client import InferenceClient, InferenceClientError

LOGGER = get_logger(__name__)

REMOTE_STRATEGY = "remote"
ENTAIL_LABEL = "supports"
CONTRA_LABEL = "contradicts"
NEUTRAL_LABEL = "unrelated"
NLI_LABELS = (ENTAIL_LABEL, CONTRA_LABEL, NEUTRAL_LABEL)


def hypothesis_template(claim: str) -> str:
    # The label is substituted into ``{}``; literal braces in the claim would break that.
    safe_claim = claim.replace("{", "(").replace("}", ")")
    return f"This evidence {{}} the claim: {safe_claim}"


def cache_key(evidence: str, claim: str) -> str:
    return hashlib.sha256(f"{evidence}\x00{claim}".encode("utf-8")).hexdigest()


def result_from_label_scores(scores: Mapping[str, object]) -> Optional[NliResult]:
    """Map a ``label -> score`` response onto an :class:`NliResult`, or ``None`` if unusable."""

    values = []
    for label in NLI_LABELS:
        value = scores.get(label)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        values.append(float(value))
    result = NliResult(entail=values[0], contra=values[1], neutral=values[2], strategy=REMOTE_STRATEGY)
    return result if result.is_plausible() else None


class NliScorer:
    """Scores (evidence, claim) pairs, preferring the hosted model."""

    def __init__(
        self,
        *,
        cache: CacheStore[str, NliResult],
        config: Optional[NliConfig] = None,
        client: Optional[InferenceClient] = None,
    ) -> None:
        self._config = config or NliConfig(enabled=False)
        self._cache = cache
        if client is None and self._config.is_live:
            client = InferenceClient(self._config)
        self._client = client if self._config.enabled else None

    @property
    def is_remote_enabled(self) -> bool:
        return self._client is not None

    async def score(self, evidence: str, claim: str) -> NliResult:
        evidence = (evidence or "")[: self._config.max_evidence_chars]
        claim = (claim or "")[: self._config.max_claim_chars]
        key = cache_key(evidence, claim)

        cached = self._cache.get(key)
        if cached is not None:
            return cached

        result = await self._score_remote(evidence, claim) if self._client is not None else None
        if result is None:
            result = heuristic_score(evidence, claim)

        # Heuristic results are recomputed; only remote scores are cached.
        if result.is_remote:
            self._cache.put(key, result)
        return result

    async def _score_remote(self, evidence: str, claim: str) -> Optional[NliResult]:
        assert self._client is not None
        try:
            scores = await asyncio.wait_for(
                self._client.zero_shot(
                    evidence, NLI_LABELS, hypothesis_template=hypothesis_template(claim)
                ),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError:
            LOGGER.warning("NLI call timed out after %.1fs; using heuristic", self._config.timeout_seconds)
            return None
        except InferenceClientError as exc:
            LOGGER.warning("NLI call failed (%s); using heuristic", exc)
            return None

        result = result_from_label_scores(scores)
        if result is None:
            LOGGER.warning("Discarding implausible NLI scores %s; using heuristic", dict(scores))
        return result

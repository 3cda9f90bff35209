"""Staged, streaming orchestration of a single analysis run."""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import AsyncIterator, List, Optional, Sequence, Tuple

from src.shared.utils.logging import get_logger

from ..config import PipelineConfig
from ..contracts import AnalysisResult, Claim, ClaimVerdict, NliResult, PageType, PipelineEvent, Source
from ..nli.inference_client import InferenceClient, polish_summary
from ..nli.nli_scorer import NliScorer
from ..processors.claim_extractor import extract_claims
from ..processors.consensus_engine import ConsensusEngine
from ..processors.page_classifier import classify_page_type
from ..processors.query_builder import build_queries, merge_queries
from ..processors.relevance_matcher import score_relevance, select_relevant_sources
from ..processors.text_normalizer import normalize_text
from ..retrieval.evidence_retriever import EvidenceRetriever

LOGGER = get_logger(__name__)

NO_CLAIMS_SUMMARY = "No verifiable claims found"


class PipelineStage(str, Enum):
    EXTRACTING = "extracting"
    QUERYING = "querying"
    RETRIEVING = "retrieving"
    SCORING = "scoring"
    AGGREGATING = "aggregating"
    COMPLETE = "complete"
    FAILED = "failed"


class PipelineError(RuntimeError):
    """Raised when an analysis run ends in the ``failed`` stage."""


class PipelineOrchestrator:
    """Sequences extraction, retrieval, scoring and aggregation for one page.

    ``run`` is a one-shot async generator of :class:`PipelineEvent`; it always
    ends with either a ``complete`` or an ``error`` event.
    """

    def __init__(
        self,
        *,
        retriever: EvidenceRetriever,
        nli_scorer: NliScorer,
        consensus: Optional[ConsensusEngine] = None,
        config: Optional[PipelineConfig] = None,
        inference_client: Optional[InferenceClient] = None,
        summarize_consensus: bool = False,
    ) -> None:
        self._retriever = retriever
        self._nli_scorer = nli_scorer
        self._consensus = consensus or ConsensusEngine()
        self._config = config or PipelineConfig()
        self._inference_client = inference_client
        self._summarize_consensus = summarize_consensus
        self.stage: Optional[PipelineStage] = None

    def _transition(self, stage: PipelineStage) -> None:
        LOGGER.info("Pipeline stage: %s -> %s", self.stage.value if self.stage else "start", stage.value)
        self.stage = stage

    async def run(self, text: str) -> AsyncIterator[PipelineEvent]:
        started = time.perf_counter()
        try:
            self._transition(PipelineStage.EXTRACTING)
            yield PipelineEvent.status("Extracting claims")
            normalized = normalize_text(text, max_chars=self._config.max_text_chars)

            page_type = PageType()
            if self._config.classify_page:
                page_type = await classify_page_type(normalized, self._inference_client)
                yield PipelineEvent.page_type(page_type)

            claims = extract_claims(normalized, self._config.max_claims)
            yield PipelineEvent.claims_extracted(len(claims))

            if not claims:
                LOGGER.info("No verifiable claims found in %d characters", len(normalized))
                result = AnalysisResult(
                    page_type=page_type,
                    consensus_summary=NO_CLAIMS_SUMMARY,
                    processing_time_ms=_elapsed_ms(started),
                )
                self._transition(PipelineStage.COMPLETE)
                yield PipelineEvent.complete(result)
                return

            self._transition(PipelineStage.QUERYING)
            queries = merge_queries((build_queries(claim) for claim in claims), limit=self._config.max_queries)
            LOGGER.debug("Built %d queries for %d claims", len(queries), len(claims))

            self._transition(PipelineStage.RETRIEVING)
            yield PipelineEvent.status("Searching for evidence")
            retrieval = await self._retriever.retrieve(queries, count=self._config.retrieval_count)
            yield PipelineEvent.sources_found(retrieval.sources, retrieval.used_fallback)

            self._transition(PipelineStage.SCORING)
            yield PipelineEvent.status(f"Scoring {len(claims)} claims")
            verdicts: List[Optional[ClaimVerdict]] = [None] * len(claims)
            batch_size = self._config.batch_size
            for start in range(0, len(claims), batch_size):
                tasks = [
                    asyncio.ensure_future(self._score_indexed(index, claim, retrieval.sources))
                    for index, claim in enumerate(claims[start : start + batch_size], start=start)
                ]
                try:
                    for next_done in asyncio.as_completed(tasks):
                        index, verdict = await next_done
                        verdicts[index] = verdict
                        yield PipelineEvent.claim_result(verdict, index, len(claims))
                finally:
                    pending = [task for task in tasks if not task.done()]
                    for task in pending:
                        task.cancel()
                    if pending:
                        LOGGER.info("Cancelling %d in-flight claim scoring tasks", len(pending))
                        await asyncio.gather(*pending, return_exceptions=True)

            self._transition(PipelineStage.AGGREGATING)
            finished = tuple(verdict for verdict in verdicts if verdict is not None)
            summary = self._consensus.summarize(finished)
            if self._summarize_consensus:
                summary = await polish_summary(self._inference_client, summary)

            result = AnalysisResult(
                page_type=page_type,
                claims=finished,
                sources=retrieval.sources,
                credibility_score=self._consensus.credibility_score(finished),
                consensus_summary=summary,
                used_fallback_sources=retrieval.used_fallback,
                processing_time_ms=_elapsed_ms(started),
            )
            self._transition(PipelineStage.COMPLETE)
            yield PipelineEvent.complete(result)
        except Exception as exc:
            LOGGER.exception("Claim verification pipeline failed")
            self._transition(PipelineStage.FAILED)
            yield PipelineEvent.error(f"Analysis failed: {exc}")

    async def _score_indexed(
        self, index: int, claim: Claim, sources: Sequence[Source]
    ) -> Tuple[int, ClaimVerdict]:
        return index, await self.score_claim(claim, sources)

    async def score_claim(self, claim: Claim, sources: Sequence[Source]) -> ClaimVerdict:
        """Run NLI over the claim's best sources and reduce to a verdict."""

        candidates = self._top_sources(claim, sources)
        semaphore = asyncio.Semaphore(self._config.nli_concurrency)

        async def _score(source: Source) -> Tuple[Source, NliResult]:
            async with semaphore:
                return source, await self._nli_scorer.score(source.evidence_text, claim.text)

        scored_pairs = await asyncio.gather(*(_score(source) for source in candidates))
        relevant = select_relevant_sources(
            (source, score_relevance(claim, source, result)) for source, result in scored_pairs
        )
        return self._consensus.compute_verdict(claim, scored_pairs, relevant)

    def _top_sources(self, claim: Claim, sources: Sequence[Source]) -> List[Source]:
        limit = self._config.max_sources_per_claim
        if len(sources) <= limit:
            return list(sources)
        ranked = sorted(sources, key=lambda source: score_relevance(claim, source).score, reverse=True)
        return ranked[:limit]


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)

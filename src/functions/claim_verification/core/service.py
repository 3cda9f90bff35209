"""Claim verification service wiring shared state into the pipeline."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Dict, Optional, Sequence, Tuple, Union

from src.shared.utils.logging import get_logger

from .config import CacheConfig, NliConfig, PipelineConfig, SearchConfig
from .contracts import AnalysisRequest, AnalysisResult, EventKind, NliResult, PipelineEvent, Source
from .nli import InferenceClient, NliScorer
from .pipeline import PipelineError, PipelineOrchestrator
from .retrieval import CacheStore, CredentialPool, EvidenceRetriever, LiveSearchStrategy, NewsSearchClient

LOGGER = get_logger(__name__)


@dataclass
class SharedState:
    """Process-wide caches and credential pools reused across requests."""

    evidence_cache: CacheStore[Tuple[Tuple[str, ...], int], Tuple[Source, ...]]
    nli_cache: CacheStore[str, NliResult]
    _pools: Dict[Tuple[str, ...], CredentialPool] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    @classmethod
    def create(cls, cache_config: Optional[CacheConfig] = None) -> "SharedState":
        config = cache_config or CacheConfig()
        return cls(
            evidence_cache=CacheStore(
                ttl_seconds=config.evidence_ttl_seconds,
                max_entries=config.evidence_max_entries,
                name="evidence cache",
            ),
            nli_cache=CacheStore(
                ttl_seconds=config.nli_ttl_seconds,
                max_entries=config.nli_max_entries,
                name="nli cache",
            ),
        )

    def credential_pool(self, keys: Sequence[str]) -> CredentialPool:
        """Return the pool for this key set, creating it on first use."""

        pool_key = tuple(keys)
        with self._lock:
            pool = self._pools.get(pool_key)
            if pool is None:
                pool = CredentialPool(pool_key)
                self._pools[pool_key] = pool
            return pool


class ClaimVerificationService:
    """Entry point for analysing one page of text."""

    def __init__(
        self,
        request: AnalysisRequest,
        shared_state: Optional[SharedState] = None,
        *,
        news_client: Optional[NewsSearchClient] = None,
        inference_client: Optional[InferenceClient] = None,
    ) -> None:
        self.request = request
        self._search_config = request.search_config or SearchConfig()
        self._nli_config = request.nli_config or NliConfig()
        self._pipeline_config = request.pipeline_config or PipelineConfig()
        self._state = shared_state or SharedState.create(request.cache_config)

        if inference_client is None and self._nli_config.is_live:
            inference_client = InferenceClient(self._nli_config)
        self._inference_client = inference_client if self._nli_config.enabled else None

        client = news_client or NewsSearchClient(
            base_url=self._search_config.base_url,
            timeout_seconds=self._search_config.timeout_seconds,
        )
        self._retriever = EvidenceRetriever(
            cache=self._state.evidence_cache,
            strategies=[
                LiveSearchStrategy(
                    client,
                    self._state.credential_pool(self._search_config.api_keys),
                    self._search_config,
                )
            ],
        )
        self._nli_scorer = NliScorer(
            cache=self._state.nli_cache,
            config=self._nli_config,
            client=self._inference_client,
        )
        LOGGER.debug(
            "ClaimVerificationService ready (live_search=%s, remote_nli=%s)",
            self._search_config.is_live,
            self._nli_scorer.is_remote_enabled,
        )

    def _orchestrator(self) -> PipelineOrchestrator:
        return PipelineOrchestrator(
            retriever=self._retriever,
            nli_scorer=self._nli_scorer,
            config=self._pipeline_config,
            inference_client=self._inference_client,
            summarize_consensus=self._nli_config.summarize_consensus,
        )

    def analyze_events(self, page_text: Optional[str] = None) -> AsyncIterator[PipelineEvent]:
        """Return the progressive event stream for one analysis run."""

        text = self.request.text if page_text is None else page_text
        return self._orchestrator().run(text)

    def analyze(
        self, page_text: Optional[str] = None, streaming: bool = False
    ) -> Union[Awaitable[AnalysisResult], AsyncIterator[PipelineEvent]]:
        """Analyse ``page_text`` (defaults to the request text).

        Returns an awaitable ``AnalysisResult``, or the event stream when
        ``streaming`` is true.
        """

        if streaming:
            return self.analyze_events(page_text)
        return self._collect(page_text)

    async def _collect(self, page_text: Optional[str]) -> AnalysisResult:
        events = self.analyze_events(page_text)
        try:
            async for event in events:
                if event.kind is EventKind.COMPLETE:
                    return event.payload["result"]
                if event.kind is EventKind.ERROR:
                    raise PipelineError(event.payload["message"])
        finally:
            await events.aclose()
        raise PipelineError("Pipeline ended without a terminal event")

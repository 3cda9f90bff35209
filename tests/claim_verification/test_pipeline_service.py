import asyncio
from collections import Counter

import pytest

from src.functions.claim_verification.core.config import NliConfig, PipelineConfig
from src.functions.claim_verification.core.contracts import EventKind, NliResult, Source, VerdictLabel
from src.functions.claim_verification.core.factory import request_from_payload
from src.functions.claim_verification.core.nli import NliScorer
from src.functions.claim_verification.core.pipeline import (
    NO_CLAIMS_SUMMARY,
    PipelineError,
    PipelineOrchestrator,
    PipelineStage,
)
from src.functions.claim_verification.core.retrieval import CacheStore, RateLimitedError, RetrievalResult
from src.functions.claim_verification.core.service import ClaimVerificationService, SharedState

UNEMPLOYMENT = (
    "The unemployment rate fell to 3.5% in March 2023, according to the Labor Department."
)
BUDGET = "The city council approved a budget of $2.1 billion on June 5, 2023 after a long debate."
PAGE_TEXT = f"{UNEMPLOYMENT} {BUDGET}"

SUPPORTING_SOURCES = (
    Source(
        url="https://www.reuters.com/markets/jobs",
        title="Unemployment rate fell to 3.5% in March",
        description="Official data confirms the unemployment rate fell to 3.5% in March 2023, the Labor Department said.",
        publisher="Reuters",
    ),
    Source(
        url="https://apnews.com/article/jobs-report",
        title="Jobs report: unemployment rate fell to 3.5%",
        description="The Labor Department confirmed unemployment fell to 3.5% in March 2023.",
        publisher="Associated Press",
    ),
)

_ENV_VARS = (
    "NEWS_API_KEYS",
    "NEWS_API_KEY",
    "HF_TOKEN",
    "HUGGINGFACE_API_TOKEN",
    "MAX_CLAIMS",
    "SUMMARIZE_CONSENSUS",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class FakeRetriever:
    def __init__(self, sources=SUPPORTING_SOURCES, error=None) -> None:
        self._sources = tuple(sources)
        self._error = error
        self.calls = []

    async def retrieve(self, queries, count=10):
        self.calls.append(list(queries))
        if self._error is not None:
            raise self._error
        return RetrievalResult(sources=self._sources, used_fallback=False)


class FakeNewsClient:
    def __init__(self, error) -> None:
        self._error = error
        self.calls = []

    async def search(self, query, *, api_key, page_size=8):
        self.calls.append((query, api_key))
        raise self._error


class RecordingScorer:
    """Stands in for ``NliScorer``; tracks concurrency and per-claim delays."""

    def __init__(self, delays=None) -> None:
        self._delays = delays or {}
        self.active = Counter()
        self.calls = Counter()
        self.cancelled = []
        self.peak_per_claim = 0
        self.peak_claims = 0

    async def score(self, evidence, claim):
        self.calls[claim] += 1
        self.active[claim] += 1
        self.peak_per_claim = max(self.peak_per_claim, self.active[claim])
        self.peak_claims = max(self.peak_claims, sum(1 for count in self.active.values() if count))
        try:
            await asyncio.sleep(self._delays.get(claim, 0.01))
        except asyncio.CancelledError:
            self.cancelled.append(claim)
            raise
        finally:
            self.active[claim] -= 1
        return NliResult(entail=0.5, contra=0.1, neutral=0.4, strategy="remote")


def _orchestrator(retriever=None, nli_scorer=None, **config):
    return PipelineOrchestrator(
        retriever=retriever or FakeRetriever(),
        nli_scorer=nli_scorer or NliScorer(cache=CacheStore(), config=NliConfig(enabled=False)),
        config=PipelineConfig(**config),
    )


def _collect(events):
    async def run():
        return [event async for event in events]

    return asyncio.run(run())


def test_page_without_claims_completes_early():
    retriever = FakeRetriever()
    orchestrator = _orchestrator(retriever)

    events = _collect(orchestrator.run("Hello there. Nice weather."))

    assert [event.kind for event in events] == [
        EventKind.STATUS,
        EventKind.PAGE_TYPE,
        EventKind.CLAIMS_EXTRACTED,
        EventKind.COMPLETE,
    ]
    assert events[1].payload["page_type"].label == "unknown"
    assert events[2].payload["count"] == 0
    result = events[-1].payload["result"]
    assert result.claims == ()
    assert result.consensus_summary == NO_CLAIMS_SUMMARY
    assert result.credibility_score == 0.5
    assert retriever.calls == []
    assert orchestrator.stage is PipelineStage.COMPLETE


def test_full_run_streams_one_result_per_claim_then_completes():
    retriever = FakeRetriever()
    orchestrator = _orchestrator(retriever)

    events = _collect(orchestrator.run(PAGE_TEXT))

    kinds = [event.kind for event in events]
    assert kinds[0] is EventKind.STATUS
    assert kinds[-1] is EventKind.COMPLETE
    assert kinds.count(EventKind.COMPLETE) == 1
    assert EventKind.ERROR not in kinds
    assert kinds.index(EventKind.SOURCES_FOUND) < kinds.index(EventKind.CLAIM_RESULT)

    claim_events = [event for event in events if event.kind is EventKind.CLAIM_RESULT]
    assert sorted(event.payload["index"] for event in claim_events) == [0, 1]
    assert all(event.payload["total"] == 2 for event in claim_events)
    assert len(retriever.calls) == 1

    result = events[-1].payload["result"]
    assert [verdict.claim.text for verdict in result.claims] == [UNEMPLOYMENT, BUDGET]
    assert result.claims[0].verdict is VerdictLabel.STRONGLY_SUPPORTED
    assert result.credibility_score > 0.5
    assert result.consensus_summary.startswith("Generally supported:")
    assert not result.used_fallback_sources
    assert orchestrator.stage is PipelineStage.COMPLETE


def test_retrieval_failure_ends_with_error_event():
    orchestrator = _orchestrator(FakeRetriever(error=RuntimeError("search backend down")))

    events = _collect(orchestrator.run(PAGE_TEXT))

    assert events[-1].kind is EventKind.ERROR
    assert events[-1].payload["message"] == "Analysis failed: search backend down"
    assert EventKind.COMPLETE not in [event.kind for event in events]
    assert orchestrator.stage is PipelineStage.FAILED


def test_non_text_input_ends_with_error_event():
    events = _collect(_orchestrator().run(None))

    assert [event.kind for event in events] == [EventKind.STATUS, EventKind.ERROR]


def test_offline_service_is_deterministic_across_runs():
    request = request_from_payload({"text": PAGE_TEXT, "options": {"offline": True}})
    state = SharedState.create()

    first = asyncio.run(ClaimVerificationService(request, state).analyze())
    second = asyncio.run(ClaimVerificationService(request, state).analyze())

    assert first.status == "complete"
    assert first.used_fallback_sources
    assert all(source.synthetic for source in first.sources)
    assert [v.verdict for v in first.claims] == [v.verdict for v in second.claims]
    assert first.credibility_score == second.credibility_score


def test_all_keys_rate_limited_falls_back_to_synthetic_sources():
    request = request_from_payload(
        {
            "text": PAGE_TEXT,
            "options": {
                "search": {"api_keys": ["k1", "k2"], "dispatch_delay_seconds": 0},
                "nli": {"enabled": False},
            },
        }
    )
    client = FakeNewsClient(RateLimitedError("k"))
    service = ClaimVerificationService(request, SharedState.create(), news_client=client)

    result = asyncio.run(service.analyze())

    assert result.status == "complete"
    assert result.used_fallback_sources
    assert [key for _, key in client.calls] == ["k1", "k2"]


def test_unexpected_search_failure_raises_pipeline_error():
    request = request_from_payload(
        {
            "text": PAGE_TEXT,
            "options": {"search": {"api_keys": ["k1"]}, "nli": {"enabled": False}},
        }
    )
    service = ClaimVerificationService(
        request, SharedState.create(), news_client=FakeNewsClient(RuntimeError("socket closed"))
    )

    with pytest.raises(PipelineError, match="socket closed"):
        asyncio.run(service.analyze())


def test_streaming_analysis_yields_events():
    request = request_from_payload({"text": PAGE_TEXT, "stream": True, "options": {"offline": True}})
    service = ClaimVerificationService(request, SharedState.create())

    events = _collect(service.analyze(streaming=True))

    assert request.streaming
    assert events[-1].kind is EventKind.COMPLETE
    assert sum(1 for event in events if event.kind is EventKind.CLAIM_RESULT) == 2
    assert all(event.to_dict()["type"] == event.kind.value for event in events)


def test_fast_claim_result_is_emitted_before_slow_batch_mate():
    scorer = RecordingScorer(delays={UNEMPLOYMENT: 0.2, BUDGET: 0.01})

    events = _collect(_orchestrator(nli_scorer=scorer).run(PAGE_TEXT))

    claim_events = [event for event in events if event.kind is EventKind.CLAIM_RESULT]
    assert [event.payload["index"] for event in claim_events] == [1, 0]
    assert events[-1].kind is EventKind.COMPLETE


def test_scoring_respects_batch_source_and_nli_bounds():
    revenue = "The company reported revenue of $4.5 billion in 2022, up 12% from the previous year."
    sources = [
        Source(
            url=f"https://apnews.com/story-{index}",
            title=f"Story {index}",
            description="The Labor Department said unemployment fell to 3.5% in March 2023.",
        )
        for index in range(12)
    ]
    scorer = RecordingScorer()

    events = _collect(
        _orchestrator(FakeRetriever(sources), nli_scorer=scorer).run(f"{PAGE_TEXT} {revenue}")
    )

    assert events[-1].kind is EventKind.COMPLETE
    assert set(scorer.calls) == {UNEMPLOYMENT, BUDGET, revenue}
    assert all(count == 8 for count in scorer.calls.values())
    assert scorer.peak_per_claim == 3
    assert scorer.peak_claims == 2


def test_closing_the_stream_cancels_in_flight_scoring():
    scorer = RecordingScorer(delays={UNEMPLOYMENT: 60.0, BUDGET: 0.01})
    orchestrator = _orchestrator(nli_scorer=scorer)

    async def run():
        events = orchestrator.run(PAGE_TEXT)
        async for event in events:
            if event.kind is EventKind.CLAIM_RESULT:
                break
        await events.aclose()
        return event, list(scorer.cancelled), scorer.active[UNEMPLOYMENT]

    first_result, cancelled, still_active = asyncio.run(run())

    assert first_result.payload["index"] == 1
    assert cancelled and set(cancelled) == {UNEMPLOYMENT}
    assert still_active == 0

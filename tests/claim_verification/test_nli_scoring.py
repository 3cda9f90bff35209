import asyncio

import httpx
import pytest

from src.functions.claim_verification.core.config import NliConfig
from src.functions.claim_verification.core.nli import (
    InferenceClient,
    InferenceClientError,
    NliScorer,
    heuristic_score,
    hypothesis_template,
    polish_summary,
)
from src.functions.claim_verification.core.retrieval import CacheStore

CLAIM = "Unemployment fell to 3.5% in March."


class FakeInferenceClient:
    def __init__(self, scores=None, error=None, delay=0.0) -> None:
        self._scores = scores
        self._error = error
        self.delay = delay
        self.calls = []

    async def zero_shot(self, inputs, labels, *, hypothesis_template=None):
        self.calls.append((inputs, tuple(labels), hypothesis_template))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self._error is not None:
            raise self._error
        return self._scores

    async def summarize(self, text, **_kwargs):
        if self._error is not None:
            raise self._error
        return self._scores


def _scorer(client=None, **config_overrides):
    config = NliConfig(api_token="token", **config_overrides)
    return NliScorer(cache=CacheStore(ttl_seconds=60, max_entries=10), config=config, client=client)


def _assert_in_range(result):
    for value in (result.entail, result.contra, result.neutral):
        assert 0.0 <= value <= 1.0


def test_disabled_remote_uses_heuristic():
    scorer = NliScorer(cache=CacheStore(), config=NliConfig(enabled=False))

    result = asyncio.run(scorer.score("Officials confirmed unemployment fell to 3.5% in March.", CLAIM))

    assert not scorer.is_remote_enabled
    assert result.strategy == "heuristic"
    _assert_in_range(result)


def test_remote_scores_are_mapped_and_cached():
    client = FakeInferenceClient({"supports": 0.7, "contradicts": 0.2, "unrelated": 0.1})
    scorer = _scorer(client)

    first = asyncio.run(scorer.score("evidence text", CLAIM))
    second = asyncio.run(scorer.score("evidence text", CLAIM))

    assert first == second
    assert first.strategy == "remote"
    assert first.entail == pytest.approx(0.7)
    assert first.contra == pytest.approx(0.2)
    assert len(client.calls) == 1
    assert client.calls[0][2] == f"This evidence {{}} the claim: {CLAIM}"


@pytest.mark.parametrize(
    "scores",
    [
        {"supports": 0.9, "contradicts": 0.9, "unrelated": 0.9},
        {"supports": "high", "contradicts": 0.1, "unrelated": 0.1},
        {"supports": 0.5},
        {"supports": float("nan"), "contradicts": 0.5, "unrelated": 0.5},
    ],
)
def test_implausible_remote_scores_fall_back(scores):
    scorer = _scorer(FakeInferenceClient(scores))

    result = asyncio.run(scorer.score("Unemployment fell in March.", CLAIM))

    assert result.strategy == "heuristic"
    _assert_in_range(result)


def test_remote_error_and_timeout_fall_back():
    failing = _scorer(FakeInferenceClient(error=InferenceClientError("down")))
    slow = _scorer(FakeInferenceClient({"supports": 1.0}, delay=1.0), timeout_seconds=0.01)

    assert asyncio.run(failing.score("evidence", CLAIM)).strategy == "heuristic"
    assert asyncio.run(slow.score("evidence", CLAIM)).strategy == "heuristic"


def test_timed_out_pair_is_retried_remotely():
    client = FakeInferenceClient({"supports": 0.7, "contradicts": 0.2, "unrelated": 0.1}, delay=1.0)
    scorer = _scorer(client, timeout_seconds=0.01)

    first = asyncio.run(scorer.score("evidence", CLAIM))
    client.delay = 0.0
    second = asyncio.run(scorer.score("evidence", CLAIM))

    assert first.strategy == "heuristic"
    assert second.strategy == "remote"
    assert len(client.calls) == 2


def test_inputs_are_truncated_before_scoring():
    client = FakeInferenceClient({"supports": 0.4, "contradicts": 0.3, "unrelated": 0.3})
    scorer = _scorer(client, max_evidence_chars=10, max_claim_chars=5)

    asyncio.run(scorer.score("x" * 50, "y" * 50))

    inputs, _, template = client.calls[0]
    assert inputs == "x" * 10
    assert template.endswith(": " + "y" * 5)


def test_hypothesis_template_escapes_braces():
    assert hypothesis_template("a {b} c") == "This evidence {} the claim: a (b) c"


@pytest.mark.parametrize(
    "evidence",
    [
        "",
        "Completely unrelated sports coverage about a football match.",
        "Officials confirmed unemployment fell to 3.5% in March, consistent with data.",
        "The claim that unemployment fell to 3.5% is false, misleading and a hoax, officials denied it.",
        "Unemployment fell to 4.1% in March.",
    ],
)
def test_heuristic_outputs_are_bounded(evidence):
    result = heuristic_score(evidence, CLAIM)

    _assert_in_range(result)
    assert result.entail <= 0.7
    assert result.contra <= 0.7
    assert result.is_plausible()


def test_heuristic_direction_follows_markers():
    support = heuristic_score("Data confirms unemployment fell to 3.5% in March.", CLAIM)
    contradiction = heuristic_score(
        "Officials said the claim that unemployment fell to 3.5% is false and misleading.", CLAIM
    )

    assert support.entail > support.contra
    assert contradiction.contra > contradiction.entail


def test_inference_client_parses_zero_shot_response():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer token"
        assert request.url.path.endswith("/facebook/bart-large-mnli")
        return httpx.Response(
            200,
            json={"sequence": "x", "labels": ["supports", "unrelated", "contradicts"], "scores": [0.6, 0.3, 0.1]},
        )

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = InferenceClient(NliConfig(api_token="token"), http_client=http)
            return await client.zero_shot("premise", ["supports", "contradicts", "unrelated"])

    assert asyncio.run(run()) == {"supports": 0.6, "unrelated": 0.3, "contradicts": 0.1}


def test_inference_client_raises_on_api_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503, json={"error": "loading"}))

    async def run():
        async with httpx.AsyncClient(transport=transport) as http:
            client = InferenceClient(NliConfig(api_token="token"), http_client=http)
            await client.zero_shot("premise", ["a", "b"])

    with pytest.raises(InferenceClientError):
        asyncio.run(run())


def test_polish_summary_keeps_original_on_short_input_or_failure():
    long_text = "Generally supported: " + "a verified statement about the budget. " * 3

    assert asyncio.run(polish_summary(FakeInferenceClient("shorter"), "too short")) == "too short"
    assert asyncio.run(polish_summary(None, long_text)) == long_text
    assert (
        asyncio.run(polish_summary(FakeInferenceClient(error=InferenceClientError("x")), long_text))
        == long_text
    )
    assert (
        asyncio.run(polish_summary(FakeInferenceClient("Upgrade to the Developer plan"), long_text))
        == long_text
    )
    assert asyncio.run(polish_summary(FakeInferenceClient("A shorter summary."), long_text)) == "A shorter summary."

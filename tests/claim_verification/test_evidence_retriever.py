import asyncio

import httpx
import pytest

from src.functions.claim_verification.core.config import SearchConfig
from src.functions.claim_verification.core.contracts import Source
from src.functions.claim_verification.core.retrieval import (
    SYNTHETIC_SOURCES,
    CacheStore,
    CredentialPool,
    EvidenceRetriever,
    LiveSearchStrategy,
    NewsSearchClient,
    NewsSearchError,
    RateLimitedError,
    canonicalize_url,
)


class FakeNewsClient:
    """Stands in for ``NewsSearchClient``; ``behaviour(query, api_key)`` returns sources or raises."""

    def __init__(self, behaviour) -> None:
        self._behaviour = behaviour
        self.calls = []

    async def search(self, query, *, api_key, page_size=8):
        self.calls.append((query, api_key))
        return self._behaviour(query, api_key)


async def _no_sleep(_seconds):
    return None


def _retriever(client, keys):
    config = SearchConfig(api_keys=list(keys), dispatch_delay_seconds=0.0)
    cache = CacheStore(ttl_seconds=60, max_entries=10)
    strategy = LiveSearchStrategy(client, CredentialPool(keys), config, sleep=_no_sleep)
    return EvidenceRetriever(cache=cache, strategies=[strategy]), cache


def test_canonicalize_url_strips_tracking_and_fragments():
    assert (
        canonicalize_url("https://WWW.Reuters.com/world/story/?utm_source=x&id=7#top")
        == "https://www.reuters.com/world/story?id=7"
    )


def test_retrieve_dedupes_urls_across_queries_and_ranks_reputable_first():
    def behaviour(query, api_key):
        if query == "q1":
            return [
                Source(
                    url="https://someblog.example.org/post",
                    title="Blog post",
                    publisher="Some Blog",
                    published_at="2024-05-02T00:00:00Z",
                ),
                Source(
                    url="https://www.reuters.com/world/story/?utm_source=feed",
                    title="Reuters story",
                    publisher="Reuters",
                    published_at="2024-05-01T00:00:00Z",
                ),
            ]
        return [
            Source(url="https://WWW.Reuters.com/world/story#comments", title="Duplicate"),
            Source(url="https://apnews.com/article/abc", title="AP story", publisher="Associated Press"),
        ]

    client = FakeNewsClient(behaviour)
    retriever, _ = _retriever(client, ["k1"])

    result = asyncio.run(retriever.retrieve(["q1", "q2"]))

    urls = [source.url for source in result.sources]
    assert len(urls) == len(set(urls)) == 3
    assert not result.used_fallback
    assert urls[0] == "https://www.reuters.com/world/story"
    assert urls[-1] == "https://someblog.example.org/post"
    assert result.sources[0].title == "Reuters story"


def test_retrieve_serves_cached_results_for_same_query_set():
    client = FakeNewsClient(lambda query, key: [Source(url=f"https://apnews.com/{query}")])
    retriever, _ = _retriever(client, ["k1"])

    first = asyncio.run(retriever.retrieve(["b", "a"]))
    second = asyncio.run(retriever.retrieve(["a", "b"]))

    assert first == second
    assert len(client.calls) == 2


def test_rate_limited_key_is_rotated_for_the_same_query():
    def behaviour(query, api_key):
        if api_key == "k1":
            raise RateLimitedError(api_key)
        return [Source(url="https://apnews.com/a")]

    client = FakeNewsClient(behaviour)
    retriever, _ = _retriever(client, ["k1", "k2"])

    result = asyncio.run(retriever.retrieve(["q1"]))

    assert client.calls == [("q1", "k1"), ("q1", "k2")]
    assert not result.used_fallback


def test_all_keys_limited_serves_synthetic_sources_without_caching():
    def behaviour(query, api_key):
        raise RateLimitedError(api_key)

    client = FakeNewsClient(behaviour)
    retriever, cache = _retriever(client, ["k1", "k2"])

    result = asyncio.run(retriever.retrieve(["q1", "q2"]))

    assert result.used_fallback
    assert result.sources == SYNTHETIC_SOURCES
    assert all(source.synthetic for source in result.sources)
    assert len(client.calls) == 2
    assert len(cache) == 0


def test_failed_query_is_abandoned_but_others_continue():
    def behaviour(query, api_key):
        if query == "bad":
            raise NewsSearchError("boom")
        return [Source(url="https://apnews.com/good")]

    client = FakeNewsClient(behaviour)
    retriever, _ = _retriever(client, ["k1"])

    result = asyncio.run(retriever.retrieve(["bad", "good"]))

    assert [source.url for source in result.sources] == ["https://apnews.com/good"]


def test_no_keys_uses_synthetic_sources():
    client = FakeNewsClient(lambda query, key: [])
    retriever, _ = _retriever(client, [])

    result = asyncio.run(retriever.retrieve(["q1"]))

    assert result.used_fallback
    assert client.calls == []


def test_news_client_maps_articles():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["q"] == "climate"
        assert request.url.params["sortBy"] == "relevancy"
        assert request.url.params["language"] == "en"
        return httpx.Response(
            200,
            json={
                "status": "ok",
                "articles": [
                    {
                        "url": "https://apnews.com/a",
                        "title": "Title",
                        "source": {"name": "AP"},
                        "description": "Desc",
                        "publishedAt": "2024-01-01T00:00:00Z",
                    },
                    {"title": "missing url"},
                ],
            },
        )

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await NewsSearchClient(http_client=http).search("climate", api_key="k")

    sources = asyncio.run(run())

    assert len(sources) == 1
    assert sources[0].publisher == "AP"
    assert sources[0].published_at == "2024-01-01T00:00:00Z"


@pytest.mark.parametrize(
    "status, expected",
    [(429, RateLimitedError), (500, NewsSearchError)],
)
def test_news_client_error_statuses(status, expected):
    transport = httpx.MockTransport(lambda request: httpx.Response(status, json={"message": "nope"}))

    async def run():
        async with httpx.AsyncClient(transport=transport) as http:
            await NewsSearchClient(http_client=http).search("q", api_key="k")

    with pytest.raises(expected):
        asyncio.run(run())

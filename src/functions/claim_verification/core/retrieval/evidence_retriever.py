"""Evidence retrieval with key rotation, URL de-duplication and caching."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from src.shared.utils.logging import get_logger

from ..config import SearchConfig
from ..contracts import Source
from .cache_store import CacheStore
from .credential_pool import CredentialPool
from .news_client import NewsSearchClient, NewsSearchError, RateLimitedError
from .source_reputation import is_reputable

LOGGER = get_logger(__name__)

DEFAULT_RETRIEVAL_COUNT = 10

_TRACKING_PARAMS = {"fbclid", "gclid", "dclid", "msclkid", "mc_cid", "mc_eid", "ref", "ref_src", "cmpid", "smid"}
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

SYNTHETIC_SOURCES: Tuple[Source, ...] = (
    Source(
        url="https://example.com/article1",
        title="Sample News Article 1",
        publisher="Example News",
        description="This is a sample news article description for testing purposes.",
        synthetic=True,
    ),
    Source(
        url="https://example.com/article2",
        title="Sample News Article 2",
        publisher="Test Media",
        description="Another sample article description to demonstrate the fact checking functionality.",
        synthetic=True,
    ),
)

CacheKey = Tuple[Tuple[str, ...], int]


@dataclass(frozen=True)
class RetrievalResult:
    sources: Tuple[Source, ...]
    used_fallback: bool = False


class RetrievalStrategy(Protocol):
    name: str

    async def fetch(self, queries: Sequence[str], count: int) -> Optional[List[Source]]:
        """Return sources, or ``None`` to hand over to the next strategy."""


def canonicalize_url(url: str) -> str:
    """Lowercase the host and drop fragments, tracking parameters and trailing slashes."""

    parts = urlsplit(url.strip())
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not key.lower().startswith("utm_") and key.lower() not in _TRACKING_PARAMS
    ]
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, urlencode(query), ""))


def _recency(source: Source) -> float:
    published = source.published_datetime
    if published is None:
        return _EPOCH.timestamp()
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return published.timestamp()


def rank_sources(sources: Sequence[Source]) -> List[Source]:
    """Reputable publishers first, newest first within each group."""

    return sorted(
        sources,
        key=lambda source: (not is_reputable(source.url, source.publisher), -_recency(source)),
    )


class LiveSearchStrategy:
    """Sequential per-query search that rotates keys on HTTP 429."""

    name = "live_search"

    def __init__(
        self,
        client: NewsSearchClient,
        pool: CredentialPool,
        config: SearchConfig,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._pool = pool
        self._config = config
        self._sleep = sleep

    async def fetch(self, queries: Sequence[str], count: int) -> Optional[List[Source]]:
        if not self._config.enabled or not len(self._pool):
            LOGGER.info("Live search unavailable (no keys configured or disabled)")
            return None

        merged: Dict[str, Source] = {}
        for position, query in enumerate(queries):
            if position and self._config.dispatch_delay_seconds:
                await self._sleep(self._config.dispatch_delay_seconds)
            exhausted = await self._run_query(query, merged)
            if exhausted:
                LOGGER.warning("All search keys rate limited; abandoning live retrieval")
                return None

        if not merged:
            LOGGER.info("Live search returned no articles for %d queries", len(queries))
            return None
        return list(merged.values())

    async def _run_query(self, query: str, merged: Dict[str, Source]) -> bool:
        """Run one query, retrying on rate limits. Returns True when every key is limited."""

        while True:
            api_key = self._pool.next_available()
            if api_key is None:
                return True
            try:
                results = await self._client.search(
                    query, api_key=api_key, page_size=self._config.page_size
                )
            except RateLimitedError:
                self._pool.mark_rate_limited(api_key)
                if self._pool.all_limited():
                    return True
                continue
            except NewsSearchError as exc:
                LOGGER.warning("Search failed for query %r: %s", query, exc)
                return False

            for source in results:
                canonical = canonicalize_url(source.url)
                if canonical not in merged:
                    merged[canonical] = replace(source, url=canonical)
            return False


class SyntheticSourceStrategy:
    """Fixed placeholder evidence so downstream stages never starve."""

    name = "synthetic"

    async def fetch(self, queries: Sequence[str], count: int) -> Optional[List[Source]]:
        return list(SYNTHETIC_SOURCES[:count])


class EvidenceRetriever:
    """Resolves query sets into ranked, de-duplicated evidence sources."""

    def __init__(
        self,
        *,
        cache: CacheStore[CacheKey, Tuple[Source, ...]],
        strategies: Sequence[RetrievalStrategy],
    ) -> None:
        self._cache = cache
        self._strategies: List[RetrievalStrategy] = list(strategies)
        self._fallback = SyntheticSourceStrategy()

    async def retrieve(self, queries: Sequence[str], count: int = DEFAULT_RETRIEVAL_COUNT) -> RetrievalResult:
        cleaned = [query.strip() for query in queries if query and query.strip()]
        cache_key: CacheKey = (tuple(sorted({query.lower() for query in cleaned})), count)

        cached = self._cache.get(cache_key)
        if cached is not None:
            LOGGER.debug("Evidence cache hit for %d queries", len(cleaned))
            return RetrievalResult(sources=cached, used_fallback=False)

        if cleaned:
            for strategy in self._strategies:
                sources = await strategy.fetch(cleaned, count)
                if sources:
                    ranked = tuple(rank_sources(sources)[:count])
                    self._cache.put(cache_key, ranked)
                    LOGGER.info("Retrieved %d sources via %s", len(ranked), strategy.name)
                    return RetrievalResult(sources=ranked, used_fallback=False)

        fallback = await self._fallback.fetch(cleaned, count) or []
        LOGGER.warning("Serving %d synthetic fallback sources", len(fallback))
        return RetrievalResult(sources=tuple(fallback), used_fallback=True)

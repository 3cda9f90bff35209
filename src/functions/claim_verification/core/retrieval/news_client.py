"""Async client for a NewsAPI-compatible article search endpoint."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from src.shared.utils.logging import get_logger

from ..config import DEFAULT_NEWS_SEARCH_URL
from ..contracts import Source

LOGGER = get_logger(__name__)


class NewsSearchError(RuntimeError):
    """Raised when a search request fails for a reason other than rate limiting."""


class RateLimitedError(NewsSearchError):
    """Raised when the search API answers HTTP 429 for the given key."""

    def __init__(self, api_key: str, message: str = "Search API rate limit reached") -> None:
        super().__init__(message)
        self.api_key = api_key


class NewsSearchClient:
    """Issues one query per call and maps articles onto :class:`Source` objects."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_NEWS_SEARCH_URL,
        timeout_seconds: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout_seconds
        self._http_client = http_client

    async def search(self, query: str, *, api_key: str, page_size: int = 8) -> List[Source]:
        params: Dict[str, Any] = {
            "q": query,
            "pageSize": page_size,
            "sortBy": "relevancy",
            "language": "en",
            "apiKey": api_key,
        }
        try:
            if self._http_client is not None:
                response = await self._http_client.get(self._base_url, params=params, timeout=self._timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.get(self._base_url, params=params, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise NewsSearchError(f"Search request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitedError(api_key)
        if response.status_code != 200:
            raise NewsSearchError(
                f"Search API error ({response.status_code}): {_error_message(response)}"
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise NewsSearchError("Search API returned invalid JSON") from exc

        if not isinstance(data, dict) or data.get("status") == "error":
            message = data.get("message", "unknown error") if isinstance(data, dict) else "unexpected payload"
            raise NewsSearchError(f"Search API error: {message}")

        articles = data.get("articles") or []
        sources = [source for source in (_to_source(article) for article in articles) if source is not None]
        LOGGER.debug("Query %r returned %d articles", query, len(sources))
        return sources


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict):
        return str(payload.get("message") or payload.get("code") or payload)[:200]
    return str(payload)[:200]


def _to_source(article: Any) -> Optional[Source]:
    if not isinstance(article, dict):
        return None
    url = article.get("url")
    if not isinstance(url, str) or not url.strip():
        return None
    publisher = article.get("source")
    if isinstance(publisher, dict):
        publisher = publisher.get("name")
    return Source(
        url=url,
        title=article.get("title") or "",
        publisher=publisher or "",
        description=article.get("description") or "",
        content=article.get("content") or None,
        published_at=article.get("publishedAt") or None,
    )

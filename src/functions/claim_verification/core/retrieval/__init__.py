"""Evidence retrieval components for the claim verification module."""

from .cache_store import CacheStore
from .credential_pool import CredentialPool
from .evidence_retriever import (
    SYNTHETIC_SOURCES,
    EvidenceRetriever,
    LiveSearchStrategy,
    RetrievalResult,
    SyntheticSourceStrategy,
    canonicalize_url,
    rank_sources,
)
from .news_client import NewsSearchClient, NewsSearchError, RateLimitedError
from .source_reputation import get_source_score, is_reputable

__all__ = [
    "CacheStore",
    "CredentialPool",
    "SYNTHETIC_SOURCES",
    "EvidenceRetriever",
    "LiveSearchStrategy",
    "RetrievalResult",
    "SyntheticSourceStrategy",
    "canonicalize_url",
    "rank_sources",
    "NewsSearchClient",
    "NewsSearchError",
    "RateLimitedError",
    "get_source_score",
    "is_reputable",
]

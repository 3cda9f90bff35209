"""Configuration models for the claim verification module."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

_SEARCH_TIMEOUT_RANGE = (1, 60)
_NLI_TIMEOUT_RANGE = (1, 60)
_PAGE_SIZE_RANGE = (1, 100)
_MAX_CLAIMS_RANGE = (1, 15)

DEFAULT_NEWS_SEARCH_URL = "https://newsapi.org/v2/everything"
DEFAULT_INFERENCE_URL = "https://api-inference.huggingface.co/models"
DEFAULT_NLI_MODEL = "facebook/bart-large-mnli"
DEFAULT_SUMMARY_MODEL = "facebook/bart-large-cnn"


def _ensure_non_empty(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be provided")
    return value.strip()


def _ensure_range(value: float, field_name: str, bounds: tuple[float, float]) -> float:
    minimum, maximum = bounds
    try:
        numeric = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be numeric") from exc
    if numeric < minimum or numeric > maximum:
        raise ValueError(f"{field_name} must be between {minimum} and {maximum}")
    return numeric


def _ensure_positive_int(value: object, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field_name} must be an integer")
    if value <= 0:
        raise ValueError(f"{field_name} must be positive")
    return value


def _coerce_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes"}:
            return True
        if lowered in {"false", "0", "no"}:
            return False
    raise ValueError("Boolean configuration values must be bools or boolean strings")


@dataclass
class SearchConfig:
    """Settings for the external news search capability."""

    api_keys: List[str] = field(default_factory=list)
    base_url: str = DEFAULT_NEWS_SEARCH_URL
    timeout_seconds: float = 10.0
    page_size: int = 8
    dispatch_delay_seconds: float = 0.25
    enabled: bool = True

    def validate(self) -> None:
        self.api_keys = [key.strip() for key in self.api_keys if isinstance(key, str) and key.strip()]
        # Preserve order while dropping repeated keys.
        self.api_keys = list(dict.fromkeys(self.api_keys))
        self.base_url = _ensure_non_empty(self.base_url, "search.base_url")
        self.timeout_seconds = _ensure_range(
            self.timeout_seconds, "search.timeout_seconds", _SEARCH_TIMEOUT_RANGE
        )
        self.page_size = int(
            _ensure_range(self.page_size, "search.page_size", _PAGE_SIZE_RANGE)
        )
        self.dispatch_delay_seconds = _ensure_range(
            self.dispatch_delay_seconds, "search.dispatch_delay_seconds", (0.0, 5.0)
        )
        if not isinstance(self.enabled, bool):
            self.enabled = _coerce_bool(self.enabled)

    @property
    def is_live(self) -> bool:
        return self.enabled and bool(self.api_keys)


@dataclass
class NliConfig:
    """Settings for the external zero-shot / NLI inference capability."""

    api_token: Optional[str] = None
    base_url: str = DEFAULT_INFERENCE_URL
    model: str = DEFAULT_NLI_MODEL
    summary_model: str = DEFAULT_SUMMARY_MODEL
    timeout_seconds: float = 8.0
    max_evidence_chars: int = 1000
    max_claim_chars: int = 400
    enabled: bool = True
    summarize_consensus: bool = False

    def validate(self) -> None:
        if self.api_token is not None:
            self.api_token = self.api_token.strip() or None
        self.base_url = _ensure_non_empty(self.base_url, "nli.base_url").rstrip("/")
        self.model = _ensure_non_empty(self.model, "nli.model")
        self.summary_model = _ensure_non_empty(self.summary_model, "nli.summary_model")
        self.timeout_seconds = _ensure_range(
            self.timeout_seconds, "nli.timeout_seconds", _NLI_TIMEOUT_RANGE
        )
        self.max_evidence_chars = _ensure_positive_int(
            self.max_evidence_chars, "nli.max_evidence_chars"
        )
        self.max_claim_chars = _ensure_positive_int(self.max_claim_chars, "nli.max_claim_chars")
        for attr in ("enabled", "summarize_consensus"):
            value = getattr(self, attr)
            if not isinstance(value, bool):
                setattr(self, attr, _coerce_bool(value))

    @property
    def is_live(self) -> bool:
        return self.enabled and bool(self.api_token)


@dataclass
class CacheConfig:
    """Bounds for the process-wide performance caches."""

    evidence_ttl_seconds: float = 30 * 60
    evidence_max_entries: int = 200
    nli_ttl_seconds: float = 30 * 60
    nli_max_entries: int = 2000

    def validate(self) -> None:
        self.evidence_ttl_seconds = _ensure_range(
            self.evidence_ttl_seconds, "cache.evidence_ttl_seconds", (1, 24 * 3600)
        )
        self.nli_ttl_seconds = _ensure_range(
            self.nli_ttl_seconds, "cache.nli_ttl_seconds", (1, 24 * 3600)
        )
        self.evidence_max_entries = _ensure_positive_int(
            self.evidence_max_entries, "cache.evidence_max_entries"
        )
        self.nli_max_entries = _ensure_positive_int(self.nli_max_entries, "cache.nli_max_entries")


@dataclass
class PipelineConfig:
    """Behaviour controls for a single analysis run."""

    max_claims: int = 10
    batch_size: int = 2
    nli_concurrency: int = 3
    max_sources_per_claim: int = 8
    max_queries: int = 5
    retrieval_count: int = 10
    max_text_chars: int = 100_000
    classify_page: bool = True

    def validate(self) -> None:
        self.max_claims = int(_ensure_range(self.max_claims, "pipeline.max_claims", _MAX_CLAIMS_RANGE))
        for attr in (
            "batch_size",
            "nli_concurrency",
            "max_sources_per_claim",
            "max_queries",
            "retrieval_count",
            "max_text_chars",
        ):
            setattr(self, attr, _ensure_positive_int(getattr(self, attr), f"pipeline.{attr}"))
        if not isinstance(self.classify_page, bool):
            self.classify_page = _coerce_bool(self.classify_page)

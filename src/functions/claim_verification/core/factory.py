"""Request factory that parses incoming payloads into ``AnalysisRequest`` objects."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from src.shared.utils.env import get_env, get_env_list, load_env
from src.shared.utils.logging import get_logger

from .config import (
    DEFAULT_INFERENCE_URL,
    DEFAULT_NEWS_SEARCH_URL,
    DEFAULT_NLI_MODEL,
    DEFAULT_SUMMARY_MODEL,
    CacheConfig,
    NliConfig,
    PipelineConfig,
    SearchConfig,
)
from .contracts import AnalysisRequest, AnalyzePayload

LOGGER = get_logger(__name__)

_BOOL_TRUE = {"true", "1", "yes", "on"}
_BOOL_FALSE = {"false", "0", "no", "off"}


def request_from_payload(payload: Mapping[str, Any]) -> AnalysisRequest:
    """Build an ``AnalysisRequest`` from a raw payload mapping.

    Values in ``options`` win over environment variables, which win over
    defaults. ``options.offline`` disables both remote search and remote NLI.
    """

    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")

    load_env()

    try:
        model = AnalyzePayload.model_validate(dict(payload))
    except ValidationError as exc:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ValueError(f"Invalid payload: {messages}") from exc

    options = _mapping_or_none(payload.get("options"), "options") or {}
    offline = _coerce_bool(options.get("offline", False), field_name="options.offline")

    search_config = _build_search_config(options.get("search"), offline=offline)
    nli_config = _build_nli_config(options.get("nli"), offline=offline)
    pipeline_config = _build_pipeline_config(options)
    cache_config = _build_cache_config(options.get("cache"))

    return AnalysisRequest(
        text=model.text,
        streaming=model.stream,
        title=model.title,
        url=model.url,
        search_config=search_config,
        nli_config=nli_config,
        pipeline_config=pipeline_config,
        cache_config=cache_config,
    )


def _build_search_config(block: Any, *, offline: bool) -> SearchConfig:
    data = _mapping_or_none(block, "options.search") or {}

    keys = data.get("api_keys")
    if keys is None:
        keys = get_env_list("NEWS_API_KEYS") or [key for key in [get_env("NEWS_API_KEY")] if key]
    elif isinstance(keys, str):
        keys = [part for part in keys.split(",")]
    elif not isinstance(keys, (list, tuple)):
        raise ValueError("`options.search.api_keys` must be a list or comma separated string")

    config = SearchConfig(
        api_keys=[str(key) for key in keys],
        base_url=_first_non_empty(
            data.get("base_url"), get_env("NEWS_API_URL"), DEFAULT_NEWS_SEARCH_URL
        ),
        timeout_seconds=_coerce_float(
            _first_non_none(data.get("timeout_seconds"), get_env("NEWS_API_TIMEOUT_SECONDS"), 10.0),
            field_name="search.timeout_seconds",
        ),
        page_size=_coerce_int(data.get("page_size", 8), field_name="search.page_size"),
        dispatch_delay_seconds=_coerce_float(
            data.get("dispatch_delay_seconds", 0.25), field_name="search.dispatch_delay_seconds"
        ),
        enabled=not offline
        and _coerce_bool(data.get("enabled", True), field_name="search.enabled"),
    )
    config.validate()
    if not config.is_live:
        LOGGER.debug("News search offline; synthetic sources will be used")
    return config


def _build_nli_config(block: Any, *, offline: bool) -> NliConfig:
    data = _mapping_or_none(block, "options.nli") or {}

    config = NliConfig(
        api_token=_first_non_empty(
            data.get("api_token"), get_env("HF_TOKEN"), get_env("HUGGINGFACE_API_TOKEN")
        ),
        base_url=_first_non_empty(data.get("base_url"), get_env("HF_INFERENCE_URL"), DEFAULT_INFERENCE_URL),
        model=_first_non_empty(data.get("model"), get_env("HF_NLI_MODEL"), DEFAULT_NLI_MODEL),
        summary_model=_first_non_empty(
            data.get("summary_model"), get_env("HF_SUMMARY_MODEL"), DEFAULT_SUMMARY_MODEL
        ),
        timeout_seconds=_coerce_float(
            _first_non_none(data.get("timeout_seconds"), get_env("HF_TIMEOUT_SECONDS"), 8.0),
            field_name="nli.timeout_seconds",
        ),
        max_evidence_chars=_coerce_int(
            data.get("max_evidence_chars", 1000), field_name="nli.max_evidence_chars"
        ),
        max_claim_chars=_coerce_int(data.get("max_claim_chars", 400), field_name="nli.max_claim_chars"),
        enabled=not offline and _coerce_bool(data.get("enabled", True), field_name="nli.enabled"),
        summarize_consensus=_coerce_bool(
            _first_non_none(data.get("summarize_consensus"), get_env("SUMMARIZE_CONSENSUS"), False),
            field_name="nli.summarize_consensus",
        ),
    )
    config.validate()
    if not config.is_live:
        LOGGER.debug("Remote NLI offline; heuristic scorer is authoritative")
    return config


def _build_pipeline_config(options: Mapping[str, Any]) -> PipelineConfig:
    data = _mapping_or_none(options.get("pipeline"), "options.pipeline") or {}

    config = PipelineConfig(
        max_claims=_coerce_int(
            _first_non_none(options.get("max_claims"), data.get("max_claims"), get_env("MAX_CLAIMS"), 10),
            field_name="pipeline.max_claims",
        ),
        batch_size=_coerce_int(data.get("batch_size", 2), field_name="pipeline.batch_size"),
        nli_concurrency=_coerce_int(
            data.get("nli_concurrency", 3), field_name="pipeline.nli_concurrency"
        ),
        max_sources_per_claim=_coerce_int(
            data.get("max_sources_per_claim", 8), field_name="pipeline.max_sources_per_claim"
        ),
        max_queries=_coerce_int(data.get("max_queries", 5), field_name="pipeline.max_queries"),
        retrieval_count=_coerce_int(
            data.get("retrieval_count", 10), field_name="pipeline.retrieval_count"
        ),
        max_text_chars=_coerce_int(
            data.get("max_text_chars", 100_000), field_name="pipeline.max_text_chars"
        ),
        classify_page=_coerce_bool(
            _first_non_none(options.get("classify_page"), data.get("classify_page"), True),
            field_name="pipeline.classify_page",
        ),
    )
    config.validate()
    return config


def _build_cache_config(block: Any) -> CacheConfig:
    data = _mapping_or_none(block, "options.cache") or {}
    config = CacheConfig(
        evidence_ttl_seconds=_coerce_float(
            data.get("evidence_ttl_seconds", 30 * 60), field_name="cache.evidence_ttl_seconds"
        ),
        evidence_max_entries=_coerce_int(
            data.get("evidence_max_entries", 200), field_name="cache.evidence_max_entries"
        ),
        nli_ttl_seconds=_coerce_float(
            data.get("nli_ttl_seconds", 30 * 60), field_name="cache.nli_ttl_seconds"
        ),
        nli_max_entries=_coerce_int(
            data.get("nli_max_entries", 2000), field_name="cache.nli_max_entries"
        ),
    )
    config.validate()
    return config


def _mapping_or_none(value: Any, label: str) -> Optional[Mapping[str, Any]]:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return value
    raise ValueError(f"`{label}` block must be a mapping when provided")


def _first_non_empty(*values: Optional[Any]) -> Optional[str]:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _first_non_none(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _coerce_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _BOOL_TRUE:
            return True
        if lowered in _BOOL_FALSE:
            return False
    raise ValueError(f"{field_name} must be a boolean value")


def _coerce_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be an integer") from exc


def _coerce_float(value: Any, field_name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be numeric") from exc

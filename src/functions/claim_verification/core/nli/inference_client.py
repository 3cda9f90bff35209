"""Async client for the hosted zero-shot classification and summarisation models."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import httpx

from src.shared.utils.logging import get_logger

from ..config import NliConfig

LOGGER = get_logger(__name__)

MIN_SUMMARY_INPUT_CHARS = 50
MAX_SUMMARY_INPUT_CHARS = 1000
# Phrases that show up when the hosted API answers with an account/quota notice.
_API_NOTICE_MARKERS = ("Developer plan", "API key", "subscription")


class InferenceClientError(RuntimeError):
    """Raised when the inference API fails or returns an unusable payload."""


class InferenceClient:
    """Thin wrapper over the Hugging Face Inference API."""

    def __init__(self, config: NliConfig, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        if not config.api_token:
            raise ValueError("InferenceClient requires an API token")
        self._config = config
        self._http_client = http_client

    async def zero_shot(
        self,
        inputs: str,
        labels: Sequence[str],
        *,
        hypothesis_template: Optional[str] = None,
    ) -> Dict[str, float]:
        """Return a ``label -> score`` mapping for ``inputs``."""

        parameters: Dict[str, Any] = {"candidate_labels": list(labels), "multi_label": False}
        if hypothesis_template:
            parameters["hypothesis_template"] = hypothesis_template
        payload = await self._post(self._config.model, {"inputs": inputs, "parameters": parameters})

        if isinstance(payload, list):
            payload = payload[0] if payload else {}
        if not isinstance(payload, dict):
            raise InferenceClientError("Unexpected zero-shot response format")

        result_labels = payload.get("labels")
        scores = payload.get("scores")
        if isinstance(result_labels, list) and isinstance(scores, list) and len(result_labels) == len(scores):
            return {str(label): score for label, score in zip(result_labels, scores)}
        if "label" in payload:
            return {str(payload["label"]): payload.get("score", 0.0)}
        raise InferenceClientError("Zero-shot response missing labels/scores")

    async def summarize(self, text: str, *, max_length: int = 100, min_length: int = 30) -> str:
        payload = await self._post(
            self._config.summary_model,
            {
                "inputs": text[:MAX_SUMMARY_INPUT_CHARS],
                "parameters": {"max_length": max_length, "min_length": min_length, "do_sample": False},
            },
        )
        if isinstance(payload, list):
            payload = payload[0] if payload else {}
        if not isinstance(payload, dict):
            raise InferenceClientError("Unexpected summarisation response format")
        summary = payload.get("summary_text") or payload.get("generated_text")
        if not isinstance(summary, str) or not summary.strip():
            raise InferenceClientError("Summarisation response missing text")
        return summary.strip()

    async def _post(self, model: str, body: Dict[str, Any]) -> Any:
        url = f"{self._config.base_url}/{model}"
        headers = {"Authorization": f"Bearer {self._config.api_token}"}
        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    url, json=body, headers=headers, timeout=self._config.timeout_seconds
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        url, json=body, headers=headers, timeout=self._config.timeout_seconds
                    )
        except httpx.HTTPError as exc:
            raise InferenceClientError(f"Inference request failed: {exc}") from exc

        if response.status_code != 200:
            raise InferenceClientError(
                f"Inference API error ({response.status_code}): {response.text[:200]}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise InferenceClientError("Inference API returned invalid JSON") from exc
        if isinstance(payload, dict) and "error" in payload:
            raise InferenceClientError(f"Inference API error: {payload['error']}")
        return payload


def looks_like_api_notice(text: str) -> bool:
    return any(marker in text for marker in _API_NOTICE_MARKERS)


async def polish_summary(client: Optional[InferenceClient], text: str) -> str:
    """Summarise ``text`` when possible, otherwise hand it back unchanged."""

    if client is None or not text.strip():
        return text
    if len(text) < MIN_SUMMARY_INPUT_CHARS or looks_like_api_notice(text):
        return text
    try:
        summary = await client.summarize(text)
    except InferenceClientError as exc:
        LOGGER.warning("Summary polishing failed: %s", exc)
        return text
    if looks_like_api_notice(summary):
        LOGGER.warning("Summary polishing returned an API notice; keeping original")
        return text
    return summary

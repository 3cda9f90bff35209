"""Inference scoring components for the claim verification module."""

from .heuristic_scorer import heuristic_score
from .inference_client import InferenceClient, InferenceClientError, polish_summary
from .nli_scorer import NLI_LABELS, NliScorer, hypothesis_template

__all__ = [
    "heuristic_score",
    "InferenceClient",
    "InferenceClientError",
    "polish_summary",
    "NLI_LABELS",
    "NliScorer",
    "hypothesis_template",
]

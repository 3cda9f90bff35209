"""Data contracts for claim verification."""

from .claim import Claim, EntityBundle
from .source import MAX_RELEVANCE_SCORE, RelevanceScore, Source
from .verdict import (
    DISCLAIMER,
    VERDICT_CREDIBILITY,
    VERDICT_DISPLAY,
    VERDICT_SUMMARY_BUCKET,
    AnalysisResult,
    ClaimVerdict,
    NliResult,
    PageType,
    VerdictLabel,
)
from .events import EventKind, PipelineEvent
from .analysis_request import AnalysisRequest, AnalyzePayload

__all__ = [
    "Claim",
    "EntityBundle",
    "MAX_RELEVANCE_SCORE",
    "RelevanceScore",
    "Source",
    "DISCLAIMER",
    "VERDICT_CREDIBILITY",
    "VERDICT_DISPLAY",
    "VERDICT_SUMMARY_BUCKET",
    "AnalysisResult",
    "ClaimVerdict",
    "NliResult",
    "PageType",
    "VerdictLabel",
    "EventKind",
    "PipelineEvent",
    "AnalysisRequest",
    "AnalyzePayload",
]

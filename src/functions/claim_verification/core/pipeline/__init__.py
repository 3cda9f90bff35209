"""Pipeline orchestration for the claim verification module."""

from .orchestrator import NO_CLAIMS_SUMMARY, PipelineError, PipelineOrchestrator, PipelineStage

__all__ = ["NO_CLAIMS_SUMMARY", "PipelineError", "PipelineOrchestrator", "PipelineStage"]

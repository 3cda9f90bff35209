"""Request contract for the claim verification module."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:  # pragma: no cover - imported for type checkers only
    from ..config import CacheConfig, NliConfig, PipelineConfig, SearchConfig


class AnalyzePayload(BaseModel):
    """Inbound HTTP/CLI payload as sent by the browser extension."""

    text: str = Field(..., description="Raw page text to analyse")
    title: Optional[str] = Field(None, description="Page title, used only for logging")
    url: Optional[str] = Field(None, description="Page URL, used only for logging")
    stream: bool = Field(False, description="Return an event stream instead of one result")

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be empty")
        return value


@dataclass
class AnalysisRequest:
    """Fully resolved analysis request with validated configuration."""

    text: str
    streaming: bool = False
    title: Optional[str] = None
    url: Optional[str] = None
    search_config: Optional["SearchConfig"] = None
    nli_config: Optional["NliConfig"] = None
    pipeline_config: Optional["PipelineConfig"] = None
    cache_config: Optional["CacheConfig"] = None

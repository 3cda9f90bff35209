"""Progressive events emitted by the verification pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Sequence

from .source import Source
from .verdict import AnalysisResult, ClaimVerdict, PageType


class EventKind(str, Enum):
    STATUS = "status"
    PAGE_TYPE = "page_type"
    CLAIMS_EXTRACTED = "claims_extracted"
    SOURCES_FOUND = "sources_found"
    CLAIM_RESULT = "claim_result"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class PipelineEvent:
    """One item of the pipeline's event stream.

    ``payload`` keeps the in-process objects (verdicts, sources, results);
    ``to_dict`` renders the wire form.
    """

    kind: EventKind
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def status(cls, message: str) -> "PipelineEvent":
        return cls(EventKind.STATUS, {"message": message})

    @classmethod
    def page_type(cls, page_type: PageType) -> "PipelineEvent":
        return cls(EventKind.PAGE_TYPE, {"page_type": page_type})

    @classmethod
    def claims_extracted(cls, count: int) -> "PipelineEvent":
        return cls(EventKind.CLAIMS_EXTRACTED, {"count": count})

    @classmethod
    def sources_found(cls, sources: Sequence[Source], used_fallback: bool) -> "PipelineEvent":
        return cls(
            EventKind.SOURCES_FOUND,
            {"count": len(sources), "used_fallback": used_fallback, "sources": tuple(sources)},
        )

    @classmethod
    def claim_result(cls, verdict: ClaimVerdict, index: int, total: int) -> "PipelineEvent":
        return cls(EventKind.CLAIM_RESULT, {"verdict": verdict, "index": index, "total": total})

    @classmethod
    def complete(cls, result: AnalysisResult) -> "PipelineEvent":
        return cls(EventKind.COMPLETE, {"result": result})

    @classmethod
    def error(cls, message: str) -> "PipelineEvent":
        return cls(EventKind.ERROR, {"message": message})

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"type": self.kind.value}
        if self.kind is EventKind.PAGE_TYPE:
            body.update(self.payload["page_type"].to_dict())
        elif self.kind is EventKind.SOURCES_FOUND:
            body.update(
                count=self.payload["count"],
                used_fallback=self.payload["used_fallback"],
                sources=[source.to_dict() for source in self.payload["sources"]],
            )
        elif self.kind is EventKind.CLAIM_RESULT:
            body.update(
                claim=self.payload["verdict"].to_dict(),
                index=self.payload["index"],
                total=self.payload["total"],
            )
        elif self.kind is EventKind.COMPLETE:
            body["result"] = self.payload["result"].to_dict()
        else:
            body.update(self.payload)
        return body

"""Evidence source contracts returned by the evidence retriever."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

MAX_RELEVANCE_SCORE = 2.0


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class Source:
    """A retrieved (or synthetic) news article used as evidence."""

    url: str
    title: str = ""
    publisher: str = ""
    description: str = ""
    content: Optional[str] = None
    published_at: Optional[str] = None
    synthetic: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.url, str) or not self.url.strip():
            raise ValueError("Source url must be a non-empty string")
        object.__setattr__(self, "url", self.url.strip())
        for name in ("title", "publisher", "description"):
            object.__setattr__(self, name, (getattr(self, name) or "").strip())

    @property
    def evidence_text(self) -> str:
        """Snippet text handed to the NLI scorer."""

        parts = [self.title, self.description, self.content or ""]
        return ". ".join(part.strip() for part in parts if part and part.strip())

    @property
    def published_datetime(self) -> Optional[datetime]:
        return _parse_timestamp(self.published_at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "publisher": self.publisher,
            "description": self.description,
            "content": self.content,
            "published_at": self.published_at,
            "synthetic": self.synthetic,
        }


@dataclass(frozen=True)
class RelevanceScore:
    """How specifically a source pertains to one claim."""

    score: float
    match_reasons: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "score", max(0.0, min(MAX_RELEVANCE_SCORE, float(self.score)))
        )
        object.__setattr__(self, "match_reasons", tuple(self.match_reasons))

    def to_dict(self) -> Dict[str, Any]:
        return {"score": round(self.score, 3), "match_reasons": list(self.match_reasons)}

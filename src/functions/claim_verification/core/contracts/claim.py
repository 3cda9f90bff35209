"""Claim contracts produced by the claim extractor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple


def _dedupe(values: Iterable[str]) -> Tuple[str, ...]:
    """Return stripped, non-empty values in first-seen order."""

    ordered: list[str] = []
    lowered: set[str] = set()
    for value in values:
        text = str(value).strip()
        if text and text.lower() not in lowered:
            lowered.add(text.lower())
            ordered.append(text)
    return tuple(ordered)


@dataclass(frozen=True)
class EntityBundle:
    """Named entities mentioned by a single claim."""

    people: Tuple[str, ...] = ()
    places: Tuple[str, ...] = ()
    organizations: Tuple[str, ...] = ()
    dates: Tuple[str, ...] = ()
    numeric_values: Tuple[str, ...] = ()
    acronyms: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("people", "places", "organizations", "dates", "numeric_values", "acronyms"):
            object.__setattr__(self, name, _dedupe(getattr(self, name)))

    @property
    def named(self) -> Tuple[str, ...]:
        """People, organisations and places, in that priority order."""

        return self.people + self.organizations + self.places

    def to_dict(self) -> Dict[str, list[str]]:
        return {
            "people": list(self.people),
            "places": list(self.places),
            "organizations": list(self.organizations),
            "dates": list(self.dates),
            "numeric_values": list(self.numeric_values),
            "acronyms": list(self.acronyms),
        }


@dataclass(frozen=True)
class Claim:
    """A candidate factual sentence with its claim-likeness score."""

    text: str
    factual_score: float
    entities: EntityBundle = field(default_factory=EntityBundle)

    def __post_init__(self) -> None:
        if not isinstance(self.text, str) or not self.text.strip():
            raise ValueError("Claim text must be a non-empty string")
        object.__setattr__(self, "text", self.text.strip())
        object.__setattr__(self, "factual_score", max(0.0, float(self.factual_score)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "factual_score": round(self.factual_score, 3),
            "entities": self.entities.to_dict(),
        }

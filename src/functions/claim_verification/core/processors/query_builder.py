"""Search query construction for claims."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence

from src.shared.utils.logging import get_logger

from ..contracts import Claim
from .lexicon import STOPWORDS, UI_STOPWORDS, significant_words, words

LOGGER = get_logger(__name__)

MAX_QUERIES_PER_CLAIM = 3
DEFAULT_QUERY_LIMIT = 5
GENERIC_QUERY = "latest news"

_MAX_ENTITY_TERMS = 3
_MAX_NOUN_TERMS = 3
_MAX_BAG_TERMS = 8
_FALLBACK_WORDS = 6

_COMMON_VERBS = frozenset(
    {
        "announced", "approved", "arrested", "banned", "blocked", "claimed", "closed",
        "confirmed", "cut", "declared", "denied", "died", "dropped", "elected", "fell",
        "fined", "found", "grew", "hit", "increased", "introduced", "killed", "launched",
        "lost", "opened", "passed", "raised", "reached", "rejected", "released",
        "reported", "rose", "ruled", "signed", "sold", "spent", "struck", "voted", "won",
    }
)
_VERB_SUFFIX = re.compile(r"^[a-z]{4,}(?:ed|es)$")


def build_queries(claim: Claim) -> List[str]:
    """Return up to three search queries for ``claim``, most specific first.

    Always returns at least one query.
    """

    queries: List[str] = []
    for candidate in (_entity_query(claim), _verb_noun_query(claim.text), _bag_of_words_query(claim.text)):
        if candidate and candidate.lower() not in {query.lower() for query in queries}:
            queries.append(candidate)

    if not queries:
        queries.append(_generic_query(claim.text))
    return queries[:MAX_QUERIES_PER_CLAIM]


def merge_queries(per_claim: Iterable[Sequence[str]], limit: int = DEFAULT_QUERY_LIMIT) -> List[str]:
    """Flatten per-claim queries, dropping case-insensitive duplicates, capped at ``limit``."""

    merged: List[str] = []
    seen: set[str] = set()
    for queries in per_claim:
        for query in queries:
            key = query.strip().lower()
            if not key or key in seen:
                continue
            seen.add(key)
            merged.append(query.strip())
            if len(merged) >= limit:
                return merged
    return merged


def _usable(term: str) -> bool:
    lowered = term.lower()
    return bool(lowered) and lowered not in UI_STOPWORDS and not any(
        part in UI_STOPWORDS for part in lowered.split()
    )


def _entity_query(claim: Claim) -> str:
    entities = claim.entities
    terms = [name for name in entities.named if _usable(name)][:_MAX_ENTITY_TERMS]
    if not terms:
        return ""
    if entities.numeric_values:
        terms.append(entities.numeric_values[0])
    return " ".join(terms)


def _verb_noun_query(text: str) -> str:
    tokens = words(text)
    verb_index = next(
        (
            index
            for index, token in enumerate(tokens)
            if token.lower() in _COMMON_VERBS or _VERB_SUFFIX.match(token.lower())
        ),
        None,
    )
    if verb_index is None:
        return ""

    verb = tokens[verb_index].lower()
    nouns: List[str] = []
    for token in tokens[:verb_index] + tokens[verb_index + 1 :]:
        lowered = token.lower()
        if len(lowered) <= 3 or lowered in STOPWORDS or not _usable(lowered):
            continue
        if lowered in _COMMON_VERBS or lowered in nouns:
            continue
        nouns.append(lowered)
        if len(nouns) >= _MAX_NOUN_TERMS:
            break
    if not nouns:
        return ""
    return " ".join([verb, *nouns])


def _bag_of_words_query(text: str) -> str:
    terms = significant_words(text)[:_MAX_BAG_TERMS]
    return " ".join(terms)


def _generic_query(text: str) -> str:
    leading = [token for token in words(text) if _usable(token)][:_FALLBACK_WORDS]
    if not leading:
        LOGGER.debug("No usable terms in claim; using generic query")
        return GENERIC_QUERY
    return " ".join(leading)

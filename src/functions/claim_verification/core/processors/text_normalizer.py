"""Raw page text normalisation."""

from __future__ import annotations

import re

from src.shared.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_MAX_CHARS = 100_000

_WHITESPACE = re.compile(r"\s+")


def normalize_text(raw: object, *, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Trim, collapse whitespace runs to single spaces and cap the length."""

    if not isinstance(raw, str):
        raise ValueError("Page text must be a string")
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    text = _WHITESPACE.sub(" ", raw).strip()
    if len(text) > max_chars:
        LOGGER.debug("Capping page text from %d to %d characters", len(text), max_chars)
        text = text[:max_chars].rstrip()
    return text

"""Round-robin pool of search API keys with rate-limit tracking."""

from __future__ import annotations

import threading
from typing import Iterable, List, Optional, Set

from src.shared.utils.logging import get_logger

LOGGER = get_logger(__name__)


class CredentialPool:
    """Hands out API keys in rotation, skipping ones that hit a rate limit.

    Once every key has been marked limited the whole set is cleared, on the
    assumption that the earliest limits have expired by then. ``all_limited``
    reports the exhausted state before that reset happens so callers can stop
    dispatching for the current run.
    """

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._keys: List[str] = list(dict.fromkeys(key.strip() for key in keys if key and key.strip()))
        self._limited: Set[str] = set()
        self._cursor = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._keys)

    def next_available(self) -> Optional[str]:
        """Return the next non-limited key, or ``None`` if there is none."""

        with self._lock:
            if not self._keys:
                return None
            if len(self._limited) >= len(self._keys):
                LOGGER.info("All %d search keys were rate limited; resetting pool", len(self._keys))
                self._limited.clear()
            for _ in range(len(self._keys)):
                key = self._keys[self._cursor % len(self._keys)]
                self._cursor = (self._cursor + 1) % len(self._keys)
                if key not in self._limited:
                    return key
            return None

    def mark_rate_limited(self, key: str) -> None:
        with self._lock:
            if key in self._keys:
                self._limited.add(key)
                LOGGER.warning(
                    "Search key ...%s rate limited (%d/%d limited)",
                    key[-4:],
                    len(self._limited),
                    len(self._keys),
                )

    def all_limited(self) -> bool:
        with self._lock:
            return bool(self._keys) and len(self._limited) >= len(self._keys)

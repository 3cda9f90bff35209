"""Environment variable helpers.

Values are read from the process environment after an optional ``.env``
file has been merged in by ``load_env``.
"""

from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_env(env_file: Optional[str] = None, override: bool = False) -> None:
    """Load variables from a ``.env`` file.

    Args:
        env_file: Explicit path. When omitted, the current directory and its
                  parents are searched; the closest file wins.
        override: Whether values in the file replace already-set variables.
    """
    if env_file:
        candidates = [Path(env_file)]
    else:
        current = Path.cwd()
        candidates = [current / ".env"] + [parent / ".env" for parent in current.parents]

    for path in candidates:
        if path.is_file():
            load_dotenv(path, override=override)
            logger.debug("Loaded environment from %s", path)
            return

    logger.debug("No .env file found, using system environment")


def get_required_env(key: str) -> str:
    """Return a required variable or raise ``ValueError`` when it is unset."""
    value = os.getenv(key)
    if not value:
        raise ValueError(f"Required environment variable {key} is not set")
    return value


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Return a variable, or ``default`` when it is unset."""
    return os.getenv(key, default)


def get_env_list(key: str, separator: str = ",") -> List[str]:
    """Split a delimited variable into its non-empty, stripped parts.

    ``NEWS_API_KEYS="a, b,,c"`` yields ``["a", "b", "c"]``.
    """
    raw = os.getenv(key) or ""
    return [part.strip() for part in raw.split(separator) if part.strip()]

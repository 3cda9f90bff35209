"""Shared utility functions."""

from .logging import get_logger, setup_logging
from .env import get_env, get_env_list, load_env

__all__ = ["get_logger", "setup_logging", "get_env", "get_env_list", "load_env"]

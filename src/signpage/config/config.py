"""
Document reference cache settings.

The cache directory and retention window come from the environment or
from the ``cache`` section of the policy file::

    {"cache": {"directory": "~/.signpage/cache", "ttl": 3600}, "policies": {...}}
"""

from __future__ import annotations

__all__ = ["get_cache_settings"]

import logging
import os
from pathlib import Path

from ..constants import (
    DEFAULT_CACHE_TTL,
    ENV_CACHE_DIR,
    ENV_CACHE_TTL,
    MAX_CACHE_TTL,
    MIN_CACHE_TTL,
)
from ._storage import load_raw_config

_logger = logging.getLogger(__name__)


def _checked_ttl(value: int, source: str) -> int:
    if value < MIN_CACHE_TTL or value > MAX_CACHE_TTL:
        _logger.warning(
            "%s=%d out of range [%d, %d], using default",
            source,
            value,
            MIN_CACHE_TTL,
            MAX_CACHE_TTL,
        )
        return DEFAULT_CACHE_TTL
    return value


def get_cache_settings(path: Path | None = None) -> tuple[Path | None, int]:
    """
    Resolve the document cache directory and retention window.

    Priority: env vars > policy file > defaults.

    Returns:
        (directory, ttl_seconds). The directory is None when no file
        cache is configured.
    """
    config = load_raw_config(path)
    section = config.get("cache")
    cache_config: dict[str, object] = section if isinstance(section, dict) else {}

    dir_str = os.environ.get(ENV_CACHE_DIR, "").strip()
    if not dir_str:
        configured = cache_config.get("directory")
        dir_str = configured.strip() if isinstance(configured, str) else ""
    directory = Path(dir_str).expanduser() if dir_str else None

    ttl_str = os.environ.get(ENV_CACHE_TTL, "").strip()
    config_ttl = cache_config.get("ttl")
    if ttl_str:
        try:
            ttl = _checked_ttl(int(ttl_str), ENV_CACHE_TTL)
        except ValueError:
            _logger.warning("Invalid %s value %r, using default", ENV_CACHE_TTL, ttl_str)
            ttl = DEFAULT_CACHE_TTL
    elif isinstance(config_ttl, int) and not isinstance(config_ttl, bool):
        ttl = _checked_ttl(config_ttl, "cache.ttl")
    else:
        ttl = DEFAULT_CACHE_TTL

    return directory, ttl

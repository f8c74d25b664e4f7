"""
Application-wide constants for signpage.

Size limits, defaults, environment variable names, and other magic
numbers are centralized here for easy maintenance and configuration.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("signpage")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "BYTES_PER_MB",
    "DEFAULT_CACHE_TTL",
    "DEFAULT_POLICY",
    "ENV_CACHE_DIR",
    "ENV_CACHE_TTL",
    "ENV_CONFIG",
    "MAX_CACHE_TTL",
    "MIN_CACHE_TTL",
    "PDF_MAGIC",
    "PDF_WARN_SIZE",
    "RESOURCE_PREFIX",
    "__version__",
]

# ── Size units ────────────────────────────────────────────────────────

# Bytes per megabyte -- used for size limit formatting and calculations
BYTES_PER_MB = 1024 * 1024


# ── Size limits (bytes) ───────────────────────────────────────────────

# Documents above this size are prepared, but a warning is logged.
# Large documents are the reason reference mode exists.
PDF_WARN_SIZE = 35 * 1024 * 1024


# ── Document reference cache ─────────────────────────────────────────

# Retention window for cached documents (seconds)
DEFAULT_CACHE_TTL = 3600

MIN_CACHE_TTL = 1
MAX_CACHE_TTL = 7 * 24 * 3600


# ── Policies ─────────────────────────────────────────────────────────

# Name of the policy used when the caller does not give one
DEFAULT_POLICY = "default"

# Prefix for content locations resolved from package resources
RESOURCE_PREFIX = "resource:"


# ── Environment variable names ──────────────────────────────────────

ENV_CONFIG = "SIGNPAGE_CONFIG"
ENV_CACHE_DIR = "SIGNPAGE_CACHE_DIR"
ENV_CACHE_TTL = "SIGNPAGE_CACHE_TTL"


# PDF file magic bytes
PDF_MAGIC = b"%PDF-"

"""
Configuration: policies, content loading, and cache settings.

Import from this package directly instead of the individual submodules.
"""

from __future__ import annotations

# Storage
from ._storage import CONFIG_DIR, CONFIG_FILE, get_config_file, load_raw_config, save_config

# Cache settings
from .config import get_cache_settings

# Content sources and loaders
from .content import (
    ContentLoader,
    ContentSource,
    DefaultContentLoader,
    FileContentLoader,
    InlineContent,
    LazyContent,
    PackageResourceLoader,
    resolve_content,
)

# Policies
from .policies import (
    BUILTIN_POLICIES,
    PolicyConfiguration,
    PolicyConfigurationProvider,
    StaticPolicyProvider,
    load_policy_provider,
    parse_policies,
)

__all__ = [
    "BUILTIN_POLICIES",
    "CONFIG_DIR",
    "CONFIG_FILE",
    "ContentLoader",
    "ContentSource",
    "DefaultContentLoader",
    "FileContentLoader",
    "InlineContent",
    "LazyContent",
    "PackageResourceLoader",
    "PolicyConfiguration",
    "PolicyConfigurationProvider",
    "StaticPolicyProvider",
    "get_cache_settings",
    "get_config_file",
    "load_policy_provider",
    "load_raw_config",
    "parse_policies",
    "resolve_content",
    "save_config",
]

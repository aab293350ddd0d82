"""Config module exports."""

from pagedcache.config.loader import PagedCacheSettings, load_config
from pagedcache.config.models import (
    CacheConfig,
    LoggingConfig,
    LogOutputConfig,
    PagedCacheConfig,
)

__all__ = [
    "load_config",
    "CacheConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "PagedCacheConfig",
    "PagedCacheSettings",
]

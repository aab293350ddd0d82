"""Core module exports."""

from pagedcache.core.errors import (
    ConfigError,
    ErrorCode,
    LoadCancelledError,
    PagedCacheError,
    UpstreamResponseError,
)
from pagedcache.core.logging import (
    LoadContext,
    configure_logging,
    current_load,
    get_logger,
    load_context,
)

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "LoadCancelledError",
    "PagedCacheError",
    "UpstreamResponseError",
    # Logging
    "LoadContext",
    "configure_logging",
    "current_load",
    "get_logger",
    "load_context",
]

"""pagedcache - client-side paged data cache with cancellable loads."""

from pagedcache.config.models import CacheConfig
from pagedcache.core.errors import LoadCancelledError, PagedCacheError
from pagedcache.engine import DataSource, PageRequest, PageResponse, Result

__version__ = "0.1.0"

__all__ = [
    "CacheConfig",
    "DataSource",
    "LoadCancelledError",
    "PageRequest",
    "PageResponse",
    "PagedCacheError",
    "Result",
    "__version__",
]
